"""
Settlement engine: plan purchase, coupon discounts and commission attribution.

Payment gateway calls are stubbed; a subscription is recorded as completed
straight away with a generated transaction id, and `verify_payment` lets the
client confirm it with the gateway's id afterwards.
"""
import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from jobportal.core.clock import utcnow
from jobportal.core.config import COMMISSION_RATE, CURRENCY
from jobportal.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ProcessingError,
    StateError,
    ValidationError,
)
from jobportal.core.money import ZERO, format_money, percentage_of, round_money
from jobportal.db.models.commission import CommissionTransaction, CommissionType
from jobportal.db.models.coupon import Coupon
from jobportal.db.models.payment import Payment, PaymentStatus
from jobportal.db.models.plan import Plan
from jobportal.db.models.subscription import SubscriptionStatus
from jobportal.services.coupon_service import find_coupon_by_code, is_valid
from jobportal.services.subscription_service import activate_subscription, subscription_model_for

logger = logging.getLogger(__name__)


def commission_rate_for(plan: Plan) -> Decimal:
    """Plan override if set, else the configured global rate."""
    if plan.commission_rate is not None:
        return Decimal(plan.commission_rate)
    return COMMISSION_RATE


def compute_discount(price, discount_percentage) -> Tuple[Decimal, Decimal]:
    """(discount, final) for a price and a percentage; final never goes below zero."""
    original = round_money(price)
    discount = percentage_of(original, discount_percentage)
    final = max(original - discount, ZERO)
    return discount, round_money(final)


def find_applicable_coupon(
    db: Session,
    code: Optional[str],
    owner_type: str,
    on: Optional[date] = None,
) -> Optional[Coupon]:
    """The coupon for `code` if it can be applied to a purchase by `owner_type`, else None."""
    if not code or not code.strip():
        return None
    coupon = find_coupon_by_code(db, code)
    if coupon is None or not is_valid(coupon, on) or coupon.coupon_for != owner_type:
        return None
    return coupon


def _generate_transaction_id() -> str:
    return f"TXN_{uuid.uuid4().hex[:16].upper()}"


def subscribe(
    db: Session,
    user,
    plan_id: int,
    coupon_code: Optional[str] = None,
    payment_method: str = "online",
    now: Optional[datetime] = None,
) -> Dict:
    """
    Buy `plan_id` for `user`, applying `coupon_code` when it is valid for them.

    Payment, commission and subscription are written in one transaction; any
    failure in between rolls all of them back and raises ProcessingError.
    """
    plan = db.query(Plan).filter(Plan.id == plan_id).first()
    if not plan:
        raise NotFoundError("Plan not found")
    if plan.owner_type != user.user_type:
        raise ValidationError.single("plan_id", "Invalid plan type for your account")

    now = now or utcnow()
    original_amount = round_money(plan.price)

    coupon = find_applicable_coupon(db, coupon_code, user.user_type, on=now.date())
    if coupon is not None:
        discount_amount, final_amount = compute_discount(original_amount, coupon.discount_percentage)
    else:
        if coupon_code:
            logger.info(f"Coupon not applied: code={coupon_code}, {user.user_type}_id={user.id}")
        discount_amount, final_amount = ZERO, original_amount

    commission = None
    try:
        payment = Payment(
            user_type=user.user_type,
            user_id=user.id,
            plan_id=plan.id,
            coupon_id=coupon.id if coupon else None,
            original_amount=original_amount,
            discount_amount=discount_amount,
            amount=final_amount,
            payment_method=payment_method,
            status=PaymentStatus.PENDING.value,
        )
        db.add(payment)
        db.flush()

        if coupon is not None:
            commission = CommissionTransaction(
                staff_id=coupon.created_by,
                payment_id=payment.id,
                amount_earned=round_money(final_amount * commission_rate_for(plan)),
                type=CommissionType.COUPON_BASED.value,
            )
            db.add(commission)
            db.flush()

        payment.status = PaymentStatus.COMPLETED.value
        payment.transaction_id = _generate_transaction_id()
        payment.paid_at = now

        subscription = activate_subscription(db, user, plan, payment_id=payment.id, commit=False, now=now)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(
            f"Subscription payment failed: {user.user_type}_id={user.id}, plan_id={plan_id}, error={e}",
            exc_info=True,
        )
        raise ProcessingError("Payment processing failed", str(e))

    db.refresh(payment)
    logger.info(
        f"Subscription paid: payment_id={payment.id}, {user.user_type}_id={user.id}, plan_id={plan.id}, "
        f"amount={final_amount}, discount={discount_amount}, coupon={coupon.code if coupon else None}, "
        f"commission={commission.amount_earned if commission else None}"
    )

    return {
        "payment": serialize_payment(payment),
        "subscription_expires_at": subscription.expires_at.isoformat() if subscription.expires_at else None,
    }


def verify_payment(
    db: Session,
    payment_id: int,
    transaction_id: str,
    user,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Confirm a payment with the gateway's transaction id.

    Repeating the call is harmless: the payment stays completed and no second
    subscription is created for it.
    """
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise NotFoundError("Payment not found")
    if payment.user_type != user.user_type or payment.user_id != user.id:
        raise AuthorizationError("Unauthorized")
    if payment.status == PaymentStatus.FAILED.value:
        raise StateError("Failed payments cannot be verified")

    now = now or utcnow()
    try:
        payment.status = PaymentStatus.COMPLETED.value
        payment.transaction_id = transaction_id
        if payment.paid_at is None:
            payment.paid_at = now

        model = subscription_model_for(user)
        subscription = db.query(model).filter(model.payment_id == payment.id).first()
        if subscription is None:
            activate_subscription(db, user, payment.plan, payment_id=payment.id, commit=False, now=now)
        elif subscription.status == SubscriptionStatus.ACTIVE.value:
            user.plan_id = payment.plan_id
            user.plan_started_at = subscription.started_at
            user.plan_expires_at = subscription.expires_at
            user.plan_is_active = True

        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Payment verification failed: payment_id={payment_id}, error={e}", exc_info=True)
        raise ProcessingError("Payment verification failed", str(e))

    db.refresh(payment)
    logger.info(f"Payment verified: payment_id={payment.id}, transaction_id={transaction_id}")
    return serialize_payment(payment)


def validate_coupon(db: Session, code: str, plan_id: int, on: Optional[date] = None) -> Dict:
    """
    Preview what `code` would take off `plan_id`. Read-only.

    Coupons for the other owner kind are reported as invalid.
    """
    plan = db.query(Plan).filter(Plan.id == plan_id).first()
    if not plan:
        raise ValidationError.single("plan_id", "The selected plan id is invalid.")

    coupon = find_applicable_coupon(db, code, plan.owner_type, on=on)
    if coupon is None:
        return {"valid": False, "message": "Invalid or expired coupon code"}

    discount_amount, final_amount = compute_discount(plan.price, coupon.discount_percentage)
    return {
        "valid": True,
        "coupon": {
            "code": coupon.code,
            "name": coupon.name,
            "discount_percentage": format_money(coupon.discount_percentage),
            "expiry_date": coupon.expiry_date.isoformat() if coupon.expiry_date else None,
        },
        "plan": {
            "id": plan.id,
            "name": plan.name,
            "price": format_money(plan.price),
        },
        "discount_amount": format_money(discount_amount),
        "final_amount": format_money(final_amount),
    }


def payment_history(db: Session, user, page: int = 1, page_size: int = 20) -> Dict:
    query = db.query(Payment).filter(
        Payment.user_type == user.user_type,
        Payment.user_id == user.id,
    )
    total = query.count()
    payments = (
        query.order_by(Payment.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "payments": [serialize_payment(payment) for payment in payments],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


def list_payments(
    db: Session,
    status: Optional[str] = None,
    payment_method: Optional[str] = None,
    user_type: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> Dict:
    """Every payment across subscribers, newest first, with optional filters."""
    query = db.query(Payment)
    if status:
        query = query.filter(Payment.status == status)
    if payment_method:
        query = query.filter(Payment.payment_method == payment_method)
    if user_type:
        query = query.filter(Payment.user_type == user_type)

    total = query.count()
    payments = (
        query.order_by(Payment.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "payments": [serialize_payment(payment) for payment in payments],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


def payment_totals(db: Session) -> Dict:
    """Counts per status plus revenue and discounts granted on completed payments."""
    counts = dict(
        db.query(Payment.status, func.count(Payment.id)).group_by(Payment.status).all()
    )
    revenue, discounts = (
        db.query(
            func.coalesce(func.sum(Payment.amount), 0),
            func.coalesce(func.sum(Payment.discount_amount), 0),
        )
        .filter(Payment.status == PaymentStatus.COMPLETED.value)
        .one()
    )
    return {
        "total_payments": sum(counts.values()),
        "completed": counts.get(PaymentStatus.COMPLETED.value, 0),
        "pending": counts.get(PaymentStatus.PENDING.value, 0),
        "failed": counts.get(PaymentStatus.FAILED.value, 0),
        "total_revenue": format_money(revenue),
        "total_discount": format_money(discounts),
        "currency": CURRENCY,
    }


def serialize_payment(payment: Payment) -> Dict:
    return {
        "id": payment.id,
        "user_type": payment.user_type,
        "user_id": payment.user_id,
        "plan_id": payment.plan_id,
        "plan_name": payment.plan.name if payment.plan else None,
        "coupon_code": payment.coupon.code if payment.coupon else None,
        "original_amount": format_money(payment.original_amount),
        "discount_amount": format_money(payment.discount_amount),
        "amount": format_money(payment.amount),
        "final_amount": format_money(payment.amount),
        "currency": CURRENCY,
        "payment_method": payment.payment_method,
        "payment_status": payment.status,
        "transaction_id": payment.transaction_id,
        "paid_at": payment.paid_at.isoformat() if payment.paid_at else None,
        "created_at": payment.created_at.isoformat() if payment.created_at else None,
    }
