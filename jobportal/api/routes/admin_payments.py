"""
Back-office view of every plan purchase.
"""
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import get_db, require_roles
from jobportal.db.models.admin import Admin
from jobportal.db.models.enums import AdminRole
from jobportal.services import settlement_service

router = APIRouter(prefix="/admin/payments", tags=["Admin Payments"])


@router.get("")
def list_payments(
    status: Optional[Literal["pending", "completed", "failed"]] = Query(None),
    payment_method: Optional[str] = Query(None),
    user_type: Optional[Literal["employee", "employer"]] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    """Filtered, paginated payments plus platform-wide totals."""
    result = settlement_service.list_payments(
        db,
        status=status,
        payment_method=payment_method,
        user_type=user_type,
        page=page,
        page_size=page_size,
    )
    result["totals"] = settlement_service.payment_totals(db)
    return result
