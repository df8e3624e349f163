"""
Back-office account management and plan overrides for employees/employers.
"""
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import get_db, require_roles
from jobportal.core.exceptions import NotFoundError
from jobportal.db.models.admin import Admin
from jobportal.db.models.enums import AdminRole
from jobportal.db.models.user import Employee, Employer
from jobportal.schemas.admin import (
    AdminCreateRequest,
    AdminPlanUpgradeRequest,
    AdminUpdateRequest,
    AssignManagerRequest,
)
from jobportal.services import identity_service, subscription_service

router = APIRouter(prefix="/admin", tags=["Admin Users"])


@router.post("/admins", status_code=status.HTTP_201_CREATED)
def create_admin(
    payload: AdminCreateRequest,
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    created = identity_service.create_admin(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        manager_id=payload.manager_id,
    )
    return {"message": "Admin created successfully", "admin": identity_service.serialize_admin(created)}


@router.put("/admins/{staff_id}/manager")
def assign_manager(
    staff_id: int,
    payload: AssignManagerRequest,
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    staff = identity_service.assign_manager(db, staff_id, payload.manager_id)
    message = (
        "Staff assigned to manager successfully"
        if payload.manager_id is not None
        else "Staff unassigned from manager successfully"
    )
    return {"message": message, "staff": identity_service.serialize_admin(staff)}


@router.get("/admins")
def list_admins(
    role: Optional[Literal["super_admin", "manager", "staff"]] = Query(None),
    manager_id: Optional[int] = Query(None),
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    admins = identity_service.list_admins(db, role=role, manager_id=manager_id)
    return {"admins": [identity_service.serialize_admin(row) for row in admins]}


@router.get("/managers")
def list_managers(
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    return {"managers": identity_service.list_managers(db)}


@router.get("/admins/{admin_id}")
def get_admin(
    admin_id: int,
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    """One account with the staff reporting to it."""
    found = identity_service.get_admin(db, admin_id)
    return {
        "admin": {
            **identity_service.serialize_admin(found),
            "staff": [identity_service.serialize_admin(member) for member in found.staff_members],
        }
    }


@router.put("/admins/{admin_id}")
def update_admin(
    admin_id: int,
    payload: AdminUpdateRequest,
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    updated = identity_service.update_admin(db, admin_id, payload.model_dump(exclude_unset=True))
    return {"message": "Admin updated successfully", "admin": identity_service.serialize_admin(updated)}


@router.delete("/admins/{admin_id}")
def delete_admin(
    admin_id: int,
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    identity_service.delete_admin(db, admin_id, actor=admin)
    return {"message": "Admin deleted successfully"}


def _upgrade(db: Session, model, user_id: int, payload: AdminPlanUpgradeRequest, label: str):
    user = db.query(model).filter(model.id == user_id).first()
    if not user:
        raise NotFoundError(f"{label} not found")
    subscription = subscription_service.admin_upgrade_plan(db, user, payload.plan_id, payload.payment_id)
    return {
        "message": f"{label} plan upgraded successfully",
        "subscription": subscription_service.serialize_subscription(subscription),
    }


@router.post("/employees/{employee_id}/plan")
def upgrade_employee_plan(
    employee_id: int,
    payload: AdminPlanUpgradeRequest,
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN, AdminRole.MANAGER)),
    db: Session = Depends(get_db)
):
    return _upgrade(db, Employee, employee_id, payload, "Employee")


@router.post("/employers/{employer_id}/plan")
def upgrade_employer_plan(
    employer_id: int,
    payload: AdminPlanUpgradeRequest,
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN, AdminRole.MANAGER)),
    db: Session = Depends(get_db)
):
    return _upgrade(db, Employer, employer_id, payload, "Employer")
