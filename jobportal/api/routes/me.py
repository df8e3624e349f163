"""
Subscription state for the signed-in employee or employer.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobportal.core.auth_dependency import get_current_user, get_db
from jobportal.services import subscription_service

router = APIRouter(prefix="/me", tags=["Me"])


@router.get("/subscription")
def get_subscription(user=Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Current plan, remaining quotas and days left.

    Quotas are reported as "unlimited" instead of -1.
    """
    return subscription_service.subscription_summary(db, user)


@router.get("/subscription/history")
def get_subscription_history(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return {"subscriptions": subscription_service.subscription_history(db, user)}
