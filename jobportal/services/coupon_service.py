"""
Coupon engine: creation, approval workflow, user assignment and role-scoped access.

Status only ever moves pending -> approved or pending -> rejected. The move is
a compare-and-set UPDATE on status = 'pending', so of two concurrent approvers
exactly one succeeds and the other gets a StateError.
"""
import logging
from datetime import date, datetime
from decimal import InvalidOperation
from typing import Dict, List, Optional
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobportal.core.clock import today, utcnow
from jobportal.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ProcessingError,
    StateError,
    ValidationError,
)
from jobportal.core.money import format_money, to_decimal
from jobportal.db.models.admin import Admin
from jobportal.db.models.coupon import Coupon, CouponStatus, CouponUser
from jobportal.db.models.enums import AdminRole, UserType
from jobportal.db.models.user import Employee, Employer, USER_MODELS

logger = logging.getLogger(__name__)

DECISIONS = (CouponStatus.APPROVED.value, CouponStatus.REJECTED.value)


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def is_valid(coupon: Coupon, on: Optional[date] = None) -> bool:
    """Approved and not past its expiry date (the expiry day itself still counts)."""
    if coupon.status != CouponStatus.APPROVED.value:
        return False
    on = on or today()
    return coupon.expiry_date is None or coupon.expiry_date >= on


def find_coupon(db: Session, coupon_id: int) -> Coupon:
    coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
    if not coupon:
        raise NotFoundError("Coupon not found")
    return coupon


def find_coupon_by_code(db: Session, code: str) -> Optional[Coupon]:
    return db.query(Coupon).filter(Coupon.code == normalize_code(code)).first()


def visible_creator_ids(db: Session, actor: Admin) -> Optional[List[int]]:
    """
    Creator ids whose coupons `actor` may act on; None means all.

    Staff see their own, a manager their own plus their direct reports'.
    """
    if actor.role == AdminRole.SUPER_ADMIN.value:
        return None
    if actor.role == AdminRole.MANAGER.value:
        staff_ids = [row.id for row in db.query(Admin.id).filter(Admin.manager_id == actor.id).all()]
        return [actor.id] + staff_ids
    return [actor.id]


def ensure_coupon_access(db: Session, coupon: Coupon, actor: Admin, action: str = "access") -> None:
    creator_ids = visible_creator_ids(db, actor)
    if creator_ids is not None and coupon.created_by not in creator_ids:
        logger.warning(f"Coupon scope denied: admin_id={actor.id}, coupon_id={coupon.id}, action={action}")
        raise AuthorizationError(f"Unauthorized to {action} this coupon")


def create_coupon(
    db: Session,
    creator: Admin,
    code: str,
    name: str,
    discount_percentage,
    coupon_for: str,
    expiry_date: Optional[date] = None,
    on: Optional[date] = None,
) -> Coupon:
    """Create a pending coupon. Every invalid field is reported at once."""
    errors: Dict[str, List[str]] = {}
    normalized = normalize_code(code)

    if not normalized:
        errors["code"] = ["The code field is required."]
    elif db.query(Coupon.id).filter(Coupon.code == normalized).first():
        errors["code"] = ["The code has already been taken."]

    if not (name or "").strip():
        errors["name"] = ["The name field is required."]

    try:
        pct = to_decimal(discount_percentage)
        if not pct.is_finite() or pct < 0 or pct > 100:
            errors["discount_percentage"] = ["The discount percentage must be between 0 and 100."]
    except InvalidOperation:
        errors["discount_percentage"] = ["The discount percentage must be a number."]

    if coupon_for not in (UserType.EMPLOYEE.value, UserType.EMPLOYER.value):
        errors["coupon_for"] = ["The selected coupon for is invalid."]

    if expiry_date is not None and expiry_date < (on or today()):
        errors["expiry_date"] = ["The expiry date must be a date after or equal to today."]

    if errors:
        raise ValidationError(errors)

    coupon = Coupon(
        code=normalized,
        name=name.strip(),
        discount_percentage=pct,
        coupon_for=coupon_for,
        expiry_date=expiry_date,
        status=CouponStatus.PENDING.value,
        created_by=creator.id,
    )
    db.add(coupon)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race on the unique code
        db.rollback()
        raise ValidationError.single("code", "The code has already been taken.")
    db.refresh(coupon)

    logger.info(f"Coupon created: coupon_id={coupon.id}, code={coupon.code}, created_by={creator.id}, status=pending")
    return coupon


def approve_or_reject(
    db: Session,
    coupon_id: int,
    decision: str,
    approver: Admin,
    now: Optional[datetime] = None,
) -> Coupon:
    """Move a pending coupon to approved or rejected."""
    if decision not in DECISIONS:
        raise ValidationError.single("status", "The selected status is invalid.")

    now = now or utcnow()
    updated = db.query(Coupon).filter(
        Coupon.id == coupon_id,
        Coupon.status == CouponStatus.PENDING.value,
    ).update(
        {
            Coupon.status: decision,
            Coupon.approved_by: approver.id,
            Coupon.approved_at: now,
        },
        synchronize_session=False,
    )
    db.commit()

    if updated == 0:
        coupon = find_coupon(db, coupon_id)
        logger.info(f"Coupon decision rejected: coupon_id={coupon_id}, status={coupon.status}, decision={decision}")
        raise StateError("Only pending coupons can be approved or rejected")

    coupon = find_coupon(db, coupon_id)
    db.refresh(coupon)
    logger.info(f"Coupon {decision}: coupon_id={coupon_id}, approver_id={approver.id}")
    return coupon


def _find_user(db: Session, user_type: str, identifier: str):
    """Look a user up by email (case-insensitive) or by phone."""
    identifier = identifier.strip()
    email = identifier.lower()
    if user_type == UserType.EMPLOYEE.value:
        return db.query(Employee).filter(
            or_(func.lower(Employee.email) == email, Employee.mobile == identifier)
        ).first()
    if user_type == UserType.EMPLOYER.value:
        return db.query(Employer).filter(
            or_(func.lower(Employer.email) == email, Employer.contact == identifier)
        ).first()
    return None


def assign_users(
    db: Session,
    coupon_id: int,
    users: List[Dict],
    actor: Admin,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Assign a batch of users to an approved coupon.

    Items that cannot be assigned (unknown user, wrong kind, already
    assigned) are reported in `failed` and do not stop the batch. The whole
    batch commits together; an unexpected error rolls everything back.
    """
    coupon = find_coupon(db, coupon_id)
    if coupon.status != CouponStatus.APPROVED.value:
        raise StateError("Only approved coupons can have users assigned")
    if not is_valid(coupon):
        raise StateError("Expired coupons cannot have users assigned")
    ensure_coupon_access(db, coupon, actor, action="assign users to")

    now = now or utcnow()
    assigned: List[Dict] = []
    failed: List[Dict] = []

    try:
        for item in users:
            identifier = item["identifier"]
            user_type = item["type"]

            user = _find_user(db, user_type, identifier)
            if user is None:
                failed.append({"identifier": identifier, "type": user_type, "reason": "User not found"})
                continue

            if coupon.coupon_for != user_type:
                failed.append({
                    "identifier": identifier,
                    "type": user_type,
                    "reason": f"This coupon is only for {coupon.coupon_for}s",
                })
                continue

            existing = db.query(CouponUser.id).filter(
                CouponUser.coupon_id == coupon.id,
                CouponUser.user_id == user.id,
                CouponUser.user_type == user_type,
            ).first()
            if existing:
                failed.append({
                    "identifier": identifier,
                    "type": user_type,
                    "reason": "User already assigned to this coupon",
                })
                continue

            assignment = CouponUser(
                coupon_id=coupon.id,
                user_id=user.id,
                user_type=user_type,
                assigned_by=actor.id,
                assigned_at=now,
            )
            db.add(assignment)
            db.flush()

            assigned.append({
                "id": assignment.id,
                "user_id": user.id,
                "user_type": user_type,
                "user_name": user.display_name,
                "user_email": user.email,
            })

        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Coupon assignment failed: coupon_id={coupon_id}, error={e}", exc_info=True)
        raise ProcessingError("Error assigning users", str(e))

    logger.info(
        f"Coupon users assigned: coupon_id={coupon.id}, assigned={len(assigned)}, "
        f"failed={len(failed)}, actor_id={actor.id}"
    )
    return {
        "assigned": assigned,
        "failed": failed,
        "assigned_count": len(assigned),
        "failed_count": len(failed),
    }


def remove_assignment(db: Session, coupon_id: int, assignment_id: int, actor: Admin) -> None:
    coupon = find_coupon(db, coupon_id)
    ensure_coupon_access(db, coupon, actor, action="remove users from")

    assignment = db.query(CouponUser).filter(
        CouponUser.id == assignment_id,
        CouponUser.coupon_id == coupon.id,
    ).first()
    if not assignment:
        raise NotFoundError("Assignment not found")

    db.delete(assignment)
    db.commit()
    logger.info(f"Coupon user removed: coupon_id={coupon.id}, assignment_id={assignment_id}, actor_id={actor.id}")


def delete_coupon(db: Session, coupon_id: int) -> None:
    """Delete a coupon that has no assigned users."""
    coupon = find_coupon(db, coupon_id)

    if db.query(CouponUser.id).filter(CouponUser.coupon_id == coupon.id).first():
        raise ConflictError("Cannot delete coupon with assigned users. Please remove all users first.")

    db.delete(coupon)
    db.commit()
    logger.info(f"Coupon deleted: coupon_id={coupon_id}")


def list_coupons(
    db: Session,
    actor: Admin,
    status: Optional[str] = None,
    coupon_for: Optional[str] = None,
) -> List[Coupon]:
    query = db.query(Coupon)

    creator_ids = visible_creator_ids(db, actor)
    if creator_ids is not None:
        query = query.filter(Coupon.created_by.in_(creator_ids))
    if status:
        query = query.filter(Coupon.status == status)
    if coupon_for:
        query = query.filter(Coupon.coupon_for == coupon_for)

    return query.order_by(Coupon.id.desc()).all()


def list_pending_coupons(db: Session) -> List[Coupon]:
    return (
        db.query(Coupon)
        .filter(Coupon.status == CouponStatus.PENDING.value)
        .order_by(Coupon.id.desc())
        .all()
    )


def get_coupon_detail(db: Session, coupon_id: int, actor: Admin) -> Dict:
    """Coupon with its assigned users, subject to the actor's scope."""
    coupon = find_coupon(db, coupon_id)
    ensure_coupon_access(db, coupon, actor, action="view")

    data = serialize_coupon(coupon)
    data["assigned_users"] = [serialize_assignment(db, assignment) for assignment in coupon.assignments]
    return data


def serialize_assignment(db: Session, assignment: CouponUser) -> Dict:
    model = USER_MODELS[UserType(assignment.user_type)]
    user = db.query(model).filter(model.id == assignment.user_id).first()
    return {
        "id": assignment.id,
        "user_id": assignment.user_id,
        "user_type": assignment.user_type,
        "user_name": user.display_name if user else None,
        "user_email": user.email if user else None,
        "assigned_by": assignment.assigned_by,
        "assigned_at": assignment.assigned_at.isoformat() if assignment.assigned_at else None,
    }


def serialize_coupon(coupon: Coupon) -> Dict:
    return {
        "id": coupon.id,
        "code": coupon.code,
        "name": coupon.name,
        "discount_percentage": format_money(coupon.discount_percentage),
        "coupon_for": coupon.coupon_for,
        "expiry_date": coupon.expiry_date.isoformat() if coupon.expiry_date else None,
        "status": coupon.status,
        "is_valid": is_valid(coupon),
        "created_by": coupon.created_by,
        "creator_name": coupon.creator.name if coupon.creator else None,
        "approved_by": coupon.approved_by,
        "approved_at": coupon.approved_at.isoformat() if coupon.approved_at else None,
        "created_at": coupon.created_at.isoformat() if coupon.created_at else None,
    }
