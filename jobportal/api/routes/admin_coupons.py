"""
Back-office coupon endpoints.

Every admin role may create coupons and manage assignments on coupons in
their scope; approval, deletion and the pending queue are super admin only.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import ANY_ADMIN, get_db, require_roles
from jobportal.db.models.admin import Admin
from jobportal.db.models.enums import AdminRole
from jobportal.schemas.coupon import AssignUsersRequest, CouponCreateRequest, CouponDecisionRequest
from jobportal.services import coupon_service
from jobportal.services.coupon_service import serialize_coupon

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/coupons", tags=["Admin Coupons"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_coupon(
    payload: CouponCreateRequest,
    admin: Admin = Depends(require_roles(*ANY_ADMIN)),
    db: Session = Depends(get_db)
):
    coupon = coupon_service.create_coupon(
        db,
        creator=admin,
        code=payload.code,
        name=payload.name,
        discount_percentage=payload.discount_percentage,
        coupon_for=payload.coupon_for,
        expiry_date=payload.expiry_date,
    )
    return {
        "message": "Coupon created successfully and pending approval",
        "coupon": serialize_coupon(coupon),
    }


@router.get("")
def list_coupons(
    status_filter: Optional[str] = Query(None, alias="status"),
    coupon_for: Optional[str] = Query(None),
    admin: Admin = Depends(require_roles(*ANY_ADMIN)),
    db: Session = Depends(get_db)
):
    """Coupons visible to the caller: own, direct reports' (managers) or all (super admin)."""
    coupons = coupon_service.list_coupons(db, admin, status=status_filter, coupon_for=coupon_for)
    return {"coupons": [serialize_coupon(coupon) for coupon in coupons]}


@router.get("/pending")
def list_pending_coupons(
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    coupons = coupon_service.list_pending_coupons(db)
    return {"coupons": [serialize_coupon(coupon) for coupon in coupons]}


@router.get("/{coupon_id}")
def get_coupon(
    coupon_id: int,
    admin: Admin = Depends(require_roles(*ANY_ADMIN)),
    db: Session = Depends(get_db)
):
    return {"coupon": coupon_service.get_coupon_detail(db, coupon_id, admin)}


@router.put("/{coupon_id}/approve")
def approve_coupon(
    coupon_id: int,
    payload: CouponDecisionRequest,
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    coupon = coupon_service.approve_or_reject(db, coupon_id, payload.status, admin)
    return {
        "message": f"Coupon {payload.status} successfully",
        "coupon": serialize_coupon(coupon),
    }


@router.post("/{coupon_id}/assign-users")
def assign_users(
    coupon_id: int,
    payload: AssignUsersRequest,
    admin: Admin = Depends(require_roles(*ANY_ADMIN)),
    db: Session = Depends(get_db)
):
    """
    Assign users by email or phone. Per-user failures are listed in
    `failed` and do not fail the request.
    """
    result = coupon_service.assign_users(
        db,
        coupon_id,
        [item.model_dump() for item in payload.users],
        admin,
    )
    return {"message": "User assignment completed", **result}


@router.delete("/{coupon_id}/users/{assignment_id}")
def remove_assigned_user(
    coupon_id: int,
    assignment_id: int,
    admin: Admin = Depends(require_roles(*ANY_ADMIN)),
    db: Session = Depends(get_db)
):
    coupon_service.remove_assignment(db, coupon_id, assignment_id, admin)
    return {"message": "User removed from coupon successfully"}


@router.delete("/{coupon_id}")
def delete_coupon(
    coupon_id: int,
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    coupon_service.delete_coupon(db, coupon_id)
    logger.info(f"Coupon deleted by admin_id={admin.id}: coupon_id={coupon_id}")
    return {"message": "Coupon deleted successfully"}
