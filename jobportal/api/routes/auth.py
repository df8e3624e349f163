import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import get_db
from jobportal.core.config import LOGIN_RATE_LIMIT
from jobportal.core.logging_config import sanitize_log_data
from jobportal.core.rate_limit import rate_limited
from jobportal.db.models.enums import UserType
from jobportal.schemas.auth import EmployeeRegisterRequest, EmployerRegisterRequest, LoginRequest, TokenResponse
from jobportal.services import identity_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


# ✅ EMPLOYEE SIGNUP (starts on the default employee plan)
@router.post("/register/employee", status_code=status.HTTP_201_CREATED)
def register_employee(payload: EmployeeRegisterRequest, db: Session = Depends(get_db)):
    logger.info(f"Employee registration: {sanitize_log_data(payload.model_dump())}")
    employee = identity_service.register_employee(
        db,
        name=payload.name,
        email=payload.email,
        mobile=payload.mobile,
        password=payload.password,
    )
    return {
        "message": "Employee registered successfully",
        "employee_id": employee.id,
        "plan_id": employee.plan_id,
        "access_token": identity_service.issue_token(UserType.EMPLOYEE.value, employee),
        "token_type": "bearer",
    }


# ✅ EMPLOYER SIGNUP (starts on the default employer plan)
@router.post("/register/employer", status_code=status.HTTP_201_CREATED)
def register_employer(payload: EmployerRegisterRequest, db: Session = Depends(get_db)):
    logger.info(f"Employer registration: {sanitize_log_data(payload.model_dump())}")
    employer = identity_service.register_employer(
        db,
        company_name=payload.company_name,
        email=payload.email,
        contact=payload.contact,
        address=payload.address,
        password=payload.password,
    )
    return {
        "message": "Employer registered successfully",
        "employer_id": employer.id,
        "plan_id": employer.plan_id,
        "access_token": identity_service.issue_token(UserType.EMPLOYER.value, employer),
        "token_type": "bearer",
    }


# ✅ LOGIN FOR ALL THREE PRINCIPAL KINDS
@router.post(
    "/login",
    response_model=TokenResponse,
    dependencies=[Depends(rate_limited("login", LOGIN_RATE_LIMIT))],
)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    principal = identity_service.authenticate(db, payload.kind, payload.identifier, payload.password)

    if not principal:
        logger.info(f"Login failed: {sanitize_log_data(payload.model_dump())}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    role = getattr(principal, "role", None)
    return TokenResponse(
        access_token=identity_service.issue_token(payload.kind, principal),
        kind=payload.kind,
        role=role,
    )
