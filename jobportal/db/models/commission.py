import enum
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from jobportal.db.base import Base


class CommissionType(str, enum.Enum):
    COUPON_BASED = "coupon_based"
    MANUAL = "manual"


class CommissionTransaction(Base):
    """Credit earned by a staff member. Rows are never updated."""
    __tablename__ = "commission_transactions"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("admins.id"), nullable=False, index=True)
    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="SET NULL"), nullable=True, index=True)
    amount_earned = Column(Numeric(10, 2), nullable=False)
    type = Column(String(20), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    staff = relationship("Admin")
    payment = relationship("Payment", back_populates="commissions")
