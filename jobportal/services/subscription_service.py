"""
Subscription ledger for employees and employers.

Holds one active row per owner, seeded with the plan's quotas at activation.
Counters are decremented with conditional UPDATEs so two concurrent requests
cannot both spend the last unit; -1 (unlimited) is never decremented.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from jobportal.core.clock import utcnow
from jobportal.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ProcessingError,
    QuotaExceededError,
    ValidationError,
)
from jobportal.db.models.enums import UserType
from jobportal.db.models.payment import Payment
from jobportal.db.models.plan import Plan, UNLIMITED
from jobportal.db.models.subscription import SubscriptionStatus, SUBSCRIPTION_MODELS
from jobportal.db.models.user import USER_MODELS
from jobportal.services.plan_service import get_default_plan, get_plan

logger = logging.getLogger(__name__)

JOBS_QUOTA = "jobs_remaining"
CONTACT_VIEWS_QUOTA = "contact_views_remaining"
QUOTA_FIELDS = (JOBS_QUOTA, CONTACT_VIEWS_QUOTA)

QUOTA_MESSAGES = {
    (UserType.EMPLOYEE.value, JOBS_QUOTA): "Job application limit reached. Please upgrade your plan.",
    (UserType.EMPLOYEE.value, CONTACT_VIEWS_QUOTA): "Contact view limit reached. Please upgrade your plan.",
    (UserType.EMPLOYER.value, JOBS_QUOTA): "Job posting limit reached. Please upgrade your plan.",
    (UserType.EMPLOYER.value, CONTACT_VIEWS_QUOTA): "Contact view limit reached. Please upgrade your plan.",
}


def subscription_model_for(user):
    return SUBSCRIPTION_MODELS[UserType(user.user_type)]


def activate_subscription(
    db: Session,
    user,
    plan: Plan,
    payment_id: Optional[int] = None,
    is_default: bool = False,
    commit: bool = True,
    now: Optional[datetime] = None,
):
    """
    Put `user` on `plan`.

    Cancels the user's current active row, creates a new one with quotas
    copied from the plan and points the user's plan fields at it. With
    commit=False the caller owns the transaction (settlement does this).
    """
    if plan.owner_type != user.user_type:
        raise ValidationError.single("plan_id", "Invalid plan type for your account")

    now = now or utcnow()
    model = subscription_model_for(user)

    # Row lock on the owner serialises concurrent activations (ignored by SQLite)
    owner_model = type(user)
    db.query(owner_model).filter(owner_model.id == user.id).with_for_update().one()

    db.query(model).filter(
        model.owner_id == user.id,
        model.status == SubscriptionStatus.ACTIVE.value,
    ).update({model.status: SubscriptionStatus.CANCELLED.value}, synchronize_session="fetch")

    jobs, contact_views = plan.initial_quotas()
    expires_at = now + timedelta(days=plan.validity_days) if plan.validity_days else None

    subscription = model(
        owner_id=user.id,
        plan_id=plan.id,
        payment_id=payment_id,
        started_at=now,
        expires_at=expires_at,
        status=SubscriptionStatus.ACTIVE.value,
        is_default=is_default,
        jobs_remaining=jobs,
        contact_views_remaining=contact_views,
    )
    db.add(subscription)

    user.plan_id = plan.id
    user.plan_started_at = now
    user.plan_expires_at = expires_at
    user.plan_is_active = True
    db.flush()

    if commit:
        db.commit()
        db.refresh(subscription)

    logger.info(
        f"Subscription activated: {user.user_type}_id={user.id}, plan_id={plan.id}, "
        f"payment_id={payment_id}, expires_at={expires_at}"
    )
    return subscription


def assign_default_plan(db: Session, user, commit: bool = True):
    """Start a newly registered user on their kind's default plan."""
    plan = get_default_plan(db, UserType(user.user_type))
    if not plan:
        logger.error(f"No default plan configured: user_type={user.user_type}")
        raise ProcessingError("Registration failed", f"No default plan configured for {user.user_type}s")
    return activate_subscription(db, user, plan, is_default=True, commit=commit)


def get_active_subscription(db: Session, user, now: Optional[datetime] = None):
    """
    Return the user's active row, or None.

    A row whose expires_at has passed is marked expired here rather than
    waiting for the sweep script.
    """
    model = subscription_model_for(user)
    subscription = (
        db.query(model)
        .filter(model.owner_id == user.id, model.status == SubscriptionStatus.ACTIVE.value)
        .order_by(model.id.desc())
        .first()
    )
    if subscription is None:
        return None

    now = now or utcnow()
    if subscription.is_expired_at(now):
        subscription.status = SubscriptionStatus.EXPIRED.value
        user.plan_is_active = False
        db.commit()
        logger.info(f"Subscription expired on read: subscription_id={subscription.id}, {user.user_type}_id={user.id}")
        return None

    return subscription


def expire_due_subscriptions(db: Session, now: Optional[datetime] = None) -> int:
    """Mark every active row past its expires_at as expired. Returns how many changed."""
    now = now or utcnow()
    total = 0

    for user_type, model in SUBSCRIPTION_MODELS.items():
        expired = db.query(model).filter(
            model.status == SubscriptionStatus.ACTIVE.value,
            model.expires_at.isnot(None),
            model.expires_at <= now,
        ).update({model.status: SubscriptionStatus.EXPIRED.value}, synchronize_session=False)

        user_model = USER_MODELS[user_type]
        db.query(user_model).filter(
            user_model.plan_is_active.is_(True),
            user_model.plan_expires_at.isnot(None),
            user_model.plan_expires_at <= now,
        ).update({user_model.plan_is_active: False}, synchronize_session=False)

        logger.info(f"Expiry sweep: user_type={user_type.value}, expired={expired}")
        total += expired

    db.commit()
    return total


def consume_quota(db: Session, user, quota: str) -> int:
    """
    Spend one unit of `quota` from the user's active subscription.

    Does not commit; the caller commits together with the row the unit pays
    for. Returns the remaining count, or -1 when unlimited.

    Raises:
        AuthorizationError: no active subscription
        QuotaExceededError: the counter is already at zero
    """
    if quota not in QUOTA_FIELDS:
        raise ValueError(f"Unknown quota: {quota}")

    subscription = get_active_subscription(db, user)
    if subscription is None:
        raise AuthorizationError("No active plan found. Please upgrade your plan.")

    if getattr(subscription, quota) == UNLIMITED:
        return UNLIMITED

    model = type(subscription)
    column = getattr(model, quota)
    updated = db.query(model).filter(
        model.id == subscription.id,
        column > 0,
    ).update({column: column - 1}, synchronize_session=False)

    if updated == 0:
        logger.info(f"Quota exhausted: {user.user_type}_id={user.id}, quota={quota}")
        raise QuotaExceededError(QUOTA_MESSAGES[(user.user_type, quota)], quota)

    db.expire(subscription, [quota])
    remaining = getattr(subscription, quota)
    logger.debug(f"Quota consumed: {user.user_type}_id={user.id}, quota={quota}, remaining={remaining}")
    return remaining


def admin_upgrade_plan(db: Session, user, plan_id: int, payment_id: Optional[int] = None):
    """Move a user onto a plan from the back office, optionally tied to an existing payment."""
    plan = get_plan(db, plan_id)
    if payment_id is not None:
        payment = db.query(Payment).filter(Payment.id == payment_id).first()
        if not payment:
            raise NotFoundError("Payment not found")

    subscription = activate_subscription(db, user, plan, payment_id=payment_id)
    logger.info(f"Plan upgraded by admin: {user.user_type}_id={user.id}, plan_id={plan.id}")
    return subscription


def _quota_view(value: Optional[int]):
    return "unlimited" if value == UNLIMITED else value


def serialize_subscription(subscription) -> Dict:
    plan = subscription.plan
    return {
        "id": subscription.id,
        "plan_id": subscription.plan_id,
        "plan_name": plan.name if plan else None,
        "payment_id": subscription.payment_id,
        "status": subscription.status,
        "is_default": subscription.is_default,
        "started_at": subscription.started_at.isoformat() if subscription.started_at else None,
        "expires_at": subscription.expires_at.isoformat() if subscription.expires_at else None,
        "jobs_remaining": _quota_view(subscription.jobs_remaining),
        "contact_views_remaining": _quota_view(subscription.contact_views_remaining),
    }


def subscription_summary(db: Session, user, now: Optional[datetime] = None) -> Dict:
    """Current plan state for GET /me/subscription."""
    now = now or utcnow()
    subscription = get_active_subscription(db, user, now=now)
    if subscription is None:
        return {"active": False, "subscription": None, "days_left": 0}

    days_left = None
    if subscription.expires_at is not None:
        days_left = max((subscription.expires_at - now).days, 0)

    return {
        "active": True,
        "subscription": serialize_subscription(subscription),
        "days_left": days_left,
    }


def subscription_history(db: Session, user) -> List[Dict]:
    model = subscription_model_for(user)
    rows = (
        db.query(model)
        .filter(model.owner_id == user.id)
        .order_by(model.id.desc())
        .all()
    )
    return [serialize_subscription(row) for row in rows]
