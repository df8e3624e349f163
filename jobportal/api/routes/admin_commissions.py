"""
Commission ledger endpoints.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import ANY_ADMIN, get_db, require_roles
from jobportal.db.models.admin import Admin
from jobportal.db.models.enums import AdminRole
from jobportal.schemas.commission import ManualCommissionRequest
from jobportal.services import commission_service
from jobportal.services.commission_service import serialize_commission

router = APIRouter(prefix="/admin/commissions", tags=["Admin Commissions"])


@router.post("/manual", status_code=status.HTTP_201_CREATED)
def add_manual_commission(
    payload: ManualCommissionRequest,
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN, AdminRole.MANAGER)),
    db: Session = Depends(get_db)
):
    commission = commission_service.add_manual_commission(
        db,
        staff_id=payload.staff_id,
        amount=payload.amount,
        payment_id=payload.payment_id,
        actor=admin,
    )
    return {
        "message": "Manual commission added successfully",
        "commission": serialize_commission(commission),
    }


@router.get("/all")
def list_all_commissions(
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    commissions = commission_service.list_all_commissions(db)
    return {"commissions": [serialize_commission(row) for row in commissions]}


@router.get("/my")
def my_commissions(
    admin: Admin = Depends(require_roles(*ANY_ADMIN)),
    db: Session = Depends(get_db)
):
    """The caller's own commissions with their running total."""
    return commission_service.list_staff_commissions(db, admin.id)
