"""
Registration, login and back-office account management.
"""
import logging
from typing import Optional
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import ADMIN_KIND, token_claims_for
from jobportal.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PortalError,
    ValidationError,
)
from jobportal.core.security import create_access_token, verify_password
from jobportal.db.models.admin import Admin
from jobportal.db.models.commission import CommissionTransaction
from jobportal.db.models.coupon import Coupon, CouponUser
from jobportal.db.models.enums import AdminRole, UserType
from jobportal.db.models.user import Employee, Employer
from jobportal.services.subscription_service import assign_default_plan

logger = logging.getLogger(__name__)


def _ensure_unique(db: Session, model, **columns) -> None:
    errors = {}
    for field, value in columns.items():
        if db.query(model.id).filter(getattr(model, field) == value).first():
            errors[field] = [f"The {field} has already been taken."]
    if errors:
        raise ValidationError(errors)


def _register(db: Session, user, **unique_columns):
    """Persist a new subscriber and start them on the default plan, atomically."""
    db.add(user)
    try:
        db.flush()
        assign_default_plan(db, user, commit=False)
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email/phone
        db.rollback()
        logger.info(f"Registration conflict: user_type={user.user_type}, fields={sorted(unique_columns)}")
        _ensure_unique(db, type(user), **unique_columns)
        field = next(iter(unique_columns))
        raise ValidationError.single(field, f"The {field} has already been taken.")
    except PortalError:
        db.rollback()
        raise
    db.refresh(user)
    logger.info(f"Registered: {user.user_type}_id={user.id}, plan_id={user.plan_id}")
    return user


def register_employee(db: Session, name: str, email: str, mobile: str, password: str) -> Employee:
    email = email.lower()
    _ensure_unique(db, Employee, email=email, mobile=mobile)
    return _register(
        db,
        Employee(name=name, email=email, mobile=mobile, password=password),
        email=email,
        mobile=mobile,
    )


def register_employer(
    db: Session,
    company_name: str,
    email: str,
    contact: str,
    password: str,
    address: Optional[str] = None,
) -> Employer:
    email = email.lower()
    _ensure_unique(db, Employer, email=email, contact=contact)
    return _register(
        db,
        Employer(company_name=company_name, email=email, contact=contact, address=address, password=password),
        email=email,
        contact=contact,
    )


def authenticate(db: Session, kind: str, identifier: str, password: str):
    """Return the principal row for valid credentials, or None."""
    identifier = identifier.strip()
    if kind == UserType.EMPLOYEE.value:
        principal = db.query(Employee).filter(
            or_(Employee.email == identifier.lower(), Employee.mobile == identifier)
        ).first()
    elif kind == UserType.EMPLOYER.value:
        principal = db.query(Employer).filter(
            or_(Employer.email == identifier.lower(), Employer.contact == identifier)
        ).first()
    elif kind == ADMIN_KIND:
        principal = db.query(Admin).filter(Admin.email == identifier.lower()).first()
    else:
        return None

    if not principal or not verify_password(password, principal.password_hash):
        return None
    return principal


def issue_token(kind: str, principal) -> str:
    role = principal.role if kind == ADMIN_KIND else None
    return create_access_token(token_claims_for(kind, principal.id, role))


def create_admin(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: str,
    manager_id: Optional[int] = None,
) -> Admin:
    """Create a back-office account; only staff may report to a manager."""
    email = email.lower()
    _ensure_unique(db, Admin, email=email)

    if role not in (r.value for r in AdminRole):
        raise ValidationError.single("role", "The selected role is invalid.")

    if manager_id is not None:
        if role != AdminRole.STAFF.value:
            raise ConflictError("Only staff members can be assigned to a manager")
        manager = db.query(Admin).filter(Admin.id == manager_id).first()
        if not manager or manager.role != AdminRole.MANAGER.value:
            raise ConflictError("Invalid manager. The selected admin must have manager role")

    admin = Admin(name=name, email=email, password=password, role=role, manager_id=manager_id)
    db.add(admin)
    db.commit()
    db.refresh(admin)

    logger.info(f"Admin created: admin_id={admin.id}, role={admin.role}, manager_id={admin.manager_id}")
    return admin


def assign_manager(db: Session, staff_id: int, manager_id: Optional[int]) -> Admin:
    """Point a staff member at a manager, or unassign them when manager_id is None."""
    staff = db.query(Admin).filter(Admin.id == staff_id).first()
    if not staff:
        raise NotFoundError("Staff not found")
    if staff.role != AdminRole.STAFF.value:
        raise ConflictError("Only staff members can be assigned to a manager")

    if manager_id is not None:
        manager = db.query(Admin).filter(Admin.id == manager_id).first()
        if not manager:
            raise NotFoundError("Manager not found")
        if manager.role != AdminRole.MANAGER.value:
            raise ConflictError("The selected admin must have manager role")

    staff.manager_id = manager_id
    db.commit()
    db.refresh(staff)

    logger.info(f"Staff manager updated: staff_id={staff.id}, manager_id={manager_id}")
    return staff


def list_admins(db: Session, role: Optional[str] = None, manager_id: Optional[int] = None) -> list:
    """Back-office accounts, newest first, optionally narrowed by role or manager."""
    query = db.query(Admin)
    if role:
        query = query.filter(Admin.role == role)
    if manager_id is not None:
        query = query.filter(Admin.manager_id == manager_id)
    return query.order_by(Admin.id.desc()).all()


def get_admin(db: Session, admin_id: int) -> Admin:
    admin = db.query(Admin).filter(Admin.id == admin_id).first()
    if not admin:
        raise NotFoundError("Admin not found")
    return admin


def _release_staff(db: Session, manager: Admin) -> int:
    """Unassign every staff member reporting to manager; returns how many were released."""
    return db.query(Admin).filter(Admin.manager_id == manager.id).update(
        {Admin.manager_id: None}, synchronize_session="fetch"
    )


def update_admin(db: Session, admin_id: int, data: dict) -> Admin:
    """
    Apply a partial update to a back-office account.

    Only keys present in data are touched; an explicit manager_id of None
    unassigns. Moving an account off the staff role clears its manager, and
    moving a manager off the manager role releases their staff.
    """
    admin = get_admin(db, admin_id)

    email = data.get("email")
    if email is not None:
        email = email.lower()
        taken = db.query(Admin.id).filter(Admin.email == email, Admin.id != admin.id).first()
        if taken:
            raise ValidationError.single("email", "The email has already been taken.")

    role = data.get("role") or admin.role
    if role not in (r.value for r in AdminRole):
        raise ValidationError.single("role", "The selected role is invalid.")

    manager_id = data["manager_id"] if "manager_id" in data else admin.manager_id
    if role != AdminRole.STAFF.value:
        if "manager_id" in data and manager_id is not None:
            raise ConflictError("Only staff members can be assigned to a manager")
        manager_id = None
    elif manager_id is not None and "manager_id" in data:
        manager = db.query(Admin).filter(Admin.id == manager_id).first()
        if not manager or manager.role != AdminRole.MANAGER.value or manager.id == admin.id:
            raise ConflictError("Invalid manager. The selected admin must have manager role")

    if admin.role == AdminRole.MANAGER.value and role != AdminRole.MANAGER.value:
        released = _release_staff(db, admin)
        logger.info(f"Manager demoted, staff released: admin_id={admin.id}, released={released}")

    if email is not None:
        admin.email = email
    if data.get("name"):
        admin.name = data["name"]
    if data.get("password"):
        admin.password = data["password"]
    admin.role = role
    admin.manager_id = manager_id

    db.commit()
    db.refresh(admin)

    logger.info(f"Admin updated: admin_id={admin.id}, role={admin.role}, fields={sorted(data)}")
    return admin


def delete_admin(db: Session, admin_id: int, actor: Admin) -> None:
    """
    Remove a back-office account.

    Staff reporting to a deleted manager are left unassigned. Accounts that
    own coupons, coupon assignments or commission history cannot be deleted
    because those rows keep a permanent reference to their author.
    """
    admin = get_admin(db, admin_id)
    if admin.id == actor.id:
        raise AuthorizationError("Cannot delete your own account")

    has_history = (
        db.query(Coupon.id).filter(Coupon.created_by == admin.id).first()
        or db.query(CouponUser.id).filter(CouponUser.assigned_by == admin.id).first()
        or db.query(CommissionTransaction.id).filter(CommissionTransaction.staff_id == admin.id).first()
    )
    if has_history:
        raise ConflictError("Cannot delete an admin who has created coupons or earned commissions")

    released = _release_staff(db, admin)
    db.query(Coupon).filter(Coupon.approved_by == admin.id).update(
        {Coupon.approved_by: None}, synchronize_session="fetch"
    )
    db.delete(admin)
    db.commit()

    logger.info(f"Admin deleted: admin_id={admin_id}, by={actor.id}, staff_released={released}")


def list_managers(db: Session) -> list:
    """Managers with the number of staff reporting to each."""
    staff_counts = (
        db.query(Admin.manager_id, func.count(Admin.id))
        .filter(Admin.manager_id.isnot(None))
        .group_by(Admin.manager_id)
        .all()
    )
    counts = dict(staff_counts)
    managers = (
        db.query(Admin)
        .filter(Admin.role == AdminRole.MANAGER.value)
        .order_by(Admin.id.desc())
        .all()
    )
    return [{**serialize_admin(manager), "staff_count": counts.get(manager.id, 0)} for manager in managers]


def serialize_admin(admin: Admin) -> dict:
    return {
        "id": admin.id,
        "name": admin.name,
        "email": admin.email,
        "role": admin.role,
        "manager_id": admin.manager_id,
        "manager_name": admin.manager.name if admin.manager else None,
    }
