"""
Plan purchase endpoints for employees and employers.
"""
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import get_current_user, get_db
from jobportal.schemas.payment import SubscribeRequest, VerifyPaymentRequest
from jobportal.services import settlement_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/subscribe", status_code=status.HTTP_201_CREATED)
def subscribe(
    payload: SubscribeRequest,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Buy a plan. An invalid or expired coupon code is ignored and the full
    price is charged.
    """
    result = settlement_service.subscribe(
        db,
        user,
        plan_id=payload.plan_id,
        coupon_code=payload.coupon_code,
        payment_method=payload.payment_method,
    )
    return {"message": "Subscription successful", **result}


@router.post("/verify")
def verify_payment(
    payload: VerifyPaymentRequest,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    payment = settlement_service.verify_payment(db, payload.payment_id, payload.transaction_id, user)
    return {"message": "Payment verified", "payment": payment}


@router.get("/history")
def payment_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return settlement_service.payment_history(db, user, page=page, page_size=page_size)
