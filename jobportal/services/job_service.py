"""
Job posting, applications and contact unlocking.

Each action spends one unit from the actor's subscription ledger. The
quota decrement and the row it pays for are committed together.
"""
import logging
from datetime import datetime
from typing import Dict, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobportal.core.clock import utcnow
from jobportal.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from jobportal.db.models.job import ContactView, Job, JobApplication
from jobportal.db.models.plan import UNLIMITED
from jobportal.db.models.user import Employee, Employer
from jobportal.services.subscription_service import (
    CONTACT_VIEWS_QUOTA,
    JOBS_QUOTA,
    consume_quota,
    get_active_subscription,
)

logger = logging.getLogger(__name__)


def _remaining_view(value):
    return "unlimited" if value == UNLIMITED else value


def _get_job(db: Session, job_id: int) -> Job:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError("Job not found")
    return job


def post_job(db: Session, employer: Employer, title: str, description: str, salary: Optional[str] = None) -> Dict:
    remaining = consume_quota(db, employer, JOBS_QUOTA)

    job = Job(employer_id=employer.id, title=title, description=description, salary=salary)
    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info(f"Job posted: job_id={job.id}, employer_id={employer.id}, jobs_remaining={remaining}")
    return {
        "job": {"id": job.id, "title": job.title, "description": job.description, "salary": job.salary},
        "jobs_remaining": _remaining_view(remaining),
    }


def apply_for_job(db: Session, employee: Employee, job_id: int, now: Optional[datetime] = None) -> Dict:
    job = _get_job(db, job_id)

    existing = db.query(JobApplication.id).filter(
        JobApplication.job_id == job.id,
        JobApplication.employee_id == employee.id,
    ).first()
    if existing:
        raise ConflictError("You have already applied for this job")

    remaining = consume_quota(db, employee, JOBS_QUOTA)

    application = JobApplication(
        job_id=job.id,
        employee_id=employee.id,
        status="applied",
        applied_at=now or utcnow(),
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent duplicate; the quota decrement is rolled back with it
        db.rollback()
        raise ConflictError("You have already applied for this job")
    db.refresh(application)

    logger.info(f"Job application: application_id={application.id}, job_id={job.id}, employee_id={employee.id}")
    return {
        "application": {"id": application.id, "job_id": job.id, "status": application.status},
        "applications_remaining": _remaining_view(remaining),
    }


def _already_viewed(db: Session, viewer, target_id: int) -> bool:
    return db.query(ContactView.id).filter(
        ContactView.viewer_type == viewer.user_type,
        ContactView.viewer_id == viewer.id,
        ContactView.target_id == target_id,
    ).first() is not None


def _record_view(db: Session, viewer, target_id: int, job_id=None, application_id=None) -> None:
    db.add(ContactView(
        viewer_type=viewer.user_type,
        viewer_id=viewer.id,
        target_id=target_id,
        job_id=job_id,
        application_id=application_id,
        viewed_at=utcnow(),
    ))


def _current_remaining(db: Session, user):
    subscription = get_active_subscription(db, user)
    return _remaining_view(subscription.contact_views_remaining) if subscription else 0


def view_employer_contact(db: Session, employee: Employee, job_id: int) -> Dict:
    """Unlock the contact details of the employer behind a job."""
    job = _get_job(db, job_id)
    employer = job.employer
    contact = {
        "company_name": employer.company_name,
        "email": employer.email,
        "contact": employer.contact,
        "address": employer.address,
    }

    if _already_viewed(db, employee, employer.id):
        return {
            "contact_details": contact,
            "views_remaining": _current_remaining(db, employee),
            "already_viewed": True,
        }

    remaining = consume_quota(db, employee, CONTACT_VIEWS_QUOTA)
    _record_view(db, employee, employer.id, job_id=job.id)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return {
            "contact_details": contact,
            "views_remaining": _current_remaining(db, employee),
            "already_viewed": True,
        }

    logger.info(f"Contact viewed: employee_id={employee.id}, employer_id={employer.id}, remaining={remaining}")
    return {
        "contact_details": contact,
        "views_remaining": _remaining_view(remaining),
        "already_viewed": False,
    }


def view_applicant_contact(db: Session, employer: Employer, application_id: int) -> Dict:
    """
    Unlock an applicant's contact details.

    Free when the applicant's plan has employer_can_view_contact_free, or
    when this employer already paid for the same applicant.
    """
    application = db.query(JobApplication).filter(JobApplication.id == application_id).first()
    if not application:
        raise NotFoundError("Application not found")
    if application.job.employer_id != employer.id:
        raise AuthorizationError("Unauthorized")

    applicant = application.employee
    contact = {
        "name": applicant.name,
        "email": applicant.email,
        "mobile": applicant.mobile,
    }

    if applicant.plan is not None and applicant.plan.employer_can_view_contact_free:
        return {
            "contact_details": contact,
            "views_remaining": "N/A",
            "already_viewed": False,
            "free_contact_view": True,
        }

    if _already_viewed(db, employer, applicant.id):
        return {
            "contact_details": contact,
            "views_remaining": _current_remaining(db, employer),
            "already_viewed": True,
            "free_contact_view": False,
        }

    remaining = consume_quota(db, employer, CONTACT_VIEWS_QUOTA)
    _record_view(db, employer, applicant.id, job_id=application.job_id, application_id=application.id)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return {
            "contact_details": contact,
            "views_remaining": _current_remaining(db, employer),
            "already_viewed": True,
            "free_contact_view": False,
        }

    logger.info(
        f"Applicant contact viewed: employer_id={employer.id}, application_id={application.id}, remaining={remaining}"
    )
    return {
        "contact_details": contact,
        "views_remaining": _remaining_view(remaining),
        "already_viewed": False,
        "free_contact_view": False,
    }
