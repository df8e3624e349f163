"""
Commission ledger: manual credits and per-staff / global listings.

Coupon-based rows are written by the settlement engine; rows are never updated.
"""
import logging
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from jobportal.core.exceptions import NotFoundError, ValidationError
from jobportal.core.money import ZERO, format_money, round_money, to_decimal
from jobportal.db.models.admin import Admin
from jobportal.db.models.commission import CommissionTransaction, CommissionType
from jobportal.db.models.payment import Payment

logger = logging.getLogger(__name__)


def add_manual_commission(
    db: Session,
    staff_id: int,
    amount,
    payment_id: Optional[int] = None,
    actor: Optional[Admin] = None,
) -> CommissionTransaction:
    """Credit `amount` to a staff member outside the coupon flow."""
    amount = to_decimal(amount)
    if amount < 0:
        raise ValidationError.single("amount", "The amount must be at least 0.")

    staff = db.query(Admin).filter(Admin.id == staff_id).first()
    if not staff:
        raise NotFoundError("Staff not found")

    if payment_id is not None:
        if not db.query(Payment.id).filter(Payment.id == payment_id).first():
            raise NotFoundError("Payment not found")

    commission = CommissionTransaction(
        staff_id=staff.id,
        payment_id=payment_id,
        amount_earned=round_money(amount),
        type=CommissionType.MANUAL.value,
    )
    db.add(commission)
    db.commit()
    db.refresh(commission)

    logger.info(
        f"Manual commission added: commission_id={commission.id}, staff_id={staff.id}, "
        f"amount={commission.amount_earned}, actor_id={actor.id if actor else None}"
    )
    return commission


def list_all_commissions(db: Session) -> List[CommissionTransaction]:
    return db.query(CommissionTransaction).order_by(CommissionTransaction.id.desc()).all()


def total_earned(db: Session, staff_id: int):
    total = db.query(func.sum(CommissionTransaction.amount_earned)).filter(
        CommissionTransaction.staff_id == staff_id
    ).scalar()
    return round_money(total) if total is not None else ZERO


def list_staff_commissions(db: Session, staff_id: int) -> Dict:
    commissions = (
        db.query(CommissionTransaction)
        .filter(CommissionTransaction.staff_id == staff_id)
        .order_by(CommissionTransaction.id.desc())
        .all()
    )
    return {
        "commissions": [serialize_commission(row) for row in commissions],
        "total_earned": format_money(total_earned(db, staff_id)),
    }


def serialize_commission(commission: CommissionTransaction) -> Dict:
    return {
        "id": commission.id,
        "staff_id": commission.staff_id,
        "staff_name": commission.staff.name if commission.staff else None,
        "payment_id": commission.payment_id,
        "amount_earned": format_money(commission.amount_earned),
        "type": commission.type,
        "created_at": commission.created_at.isoformat() if commission.created_at else None,
    }
