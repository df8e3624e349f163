"""
Public coupon preview.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import get_db
from jobportal.core.config import COUPON_VALIDATE_RATE_LIMIT
from jobportal.core.rate_limit import rate_limited
from jobportal.schemas.coupon import CouponValidateRequest
from jobportal.services import settlement_service

router = APIRouter(prefix="/coupons", tags=["Coupons"])


@router.post("/validate", dependencies=[Depends(rate_limited("coupon_validate", COUPON_VALIDATE_RATE_LIMIT))])
def validate_coupon(payload: CouponValidateRequest, db: Session = Depends(get_db)):
    """
    Price a plan with a coupon without recording anything.

    Always 200; `valid` is false for unknown, unapproved or expired codes.
    """
    return settlement_service.validate_coupon(db, payload.code, payload.plan_id)
