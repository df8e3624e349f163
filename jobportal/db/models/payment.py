import enum
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from jobportal.db.base import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Payment(Base):
    """
    Plan purchase by an employee or employer.

    amount = original_amount - discount_amount. The user reference is a
    (user_type, user_id) pair; there is no foreign key across the two tables.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_type = Column(String(20), nullable=False)
    user_id = Column(Integer, nullable=False)
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=False, index=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True, index=True)

    original_amount = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    amount = Column(Numeric(10, 2), nullable=False)

    payment_method = Column(String(50), nullable=False)
    transaction_id = Column(String(100), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    paid_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    plan = relationship("Plan")
    coupon = relationship("Coupon")
    commissions = relationship("CommissionTransaction", back_populates="payment")

    __table_args__ = (
        Index("idx_payment_user", "user_type", "user_id"),
    )

    def __repr__(self):
        return f"<Payment(id={self.id}, user={self.user_type}:{self.user_id}, status='{self.status}')>"
