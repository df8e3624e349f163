"""
Employee actions that spend plan quota.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import get_db, require_user_type
from jobportal.db.models.enums import UserType
from jobportal.db.models.user import Employee
from jobportal.services import job_service

router = APIRouter(prefix="/employee", tags=["Employee"])

current_employee = require_user_type(UserType.EMPLOYEE)


@router.post("/jobs/{job_id}/apply", status_code=status.HTTP_201_CREATED)
def apply_for_job(
    job_id: int,
    employee: Employee = Depends(current_employee),
    db: Session = Depends(get_db)
):
    result = job_service.apply_for_job(db, employee, job_id)
    return {"message": "Application submitted successfully", **result}


@router.get("/jobs/{job_id}/contact")
def view_employer_contact(
    job_id: int,
    employee: Employee = Depends(current_employee),
    db: Session = Depends(get_db)
):
    """Employer contact for a job; spends one contact view unless already unlocked."""
    return job_service.view_employer_contact(db, employee, job_id)
