"""
Employer actions that spend plan quota.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import get_db, require_user_type
from jobportal.db.models.enums import UserType
from jobportal.db.models.user import Employer
from jobportal.schemas.job import JobCreateRequest
from jobportal.services import job_service

router = APIRouter(prefix="/employer", tags=["Employer"])

current_employer = require_user_type(UserType.EMPLOYER)


@router.post("/jobs", status_code=status.HTTP_201_CREATED)
def post_job(
    payload: JobCreateRequest,
    employer: Employer = Depends(current_employer),
    db: Session = Depends(get_db)
):
    result = job_service.post_job(db, employer, payload.title, payload.description, payload.salary)
    return {"message": "Job posted successfully", **result}


@router.get("/applications/{application_id}/contact")
def view_applicant_contact(
    application_id: int,
    employer: Employer = Depends(current_employer),
    db: Session = Depends(get_db)
):
    return job_service.view_applicant_contact(db, employer, application_id)
