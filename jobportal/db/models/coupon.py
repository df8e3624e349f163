"""
Coupon and CouponUser models.
"""
import enum
from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from jobportal.db.base import Base


class CouponStatus(str, enum.Enum):
    """pending -> approved | rejected; both outcomes are terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Coupon(Base):
    """
    Percentage discount code created by a staff member.

    The creator earns commission on every payment the coupon is applied to.
    """
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(191), unique=True, index=True, nullable=False)  # stored upper-case
    name = Column(String(191), nullable=False)
    discount_percentage = Column(Numeric(5, 2), nullable=False)
    coupon_for = Column(String(20), nullable=False, index=True)  # employee | employer
    expiry_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=CouponStatus.PENDING.value, index=True)

    created_by = Column(Integer, ForeignKey("admins.id"), nullable=False, index=True)
    approved_by = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    creator = relationship("Admin", foreign_keys=[created_by])
    approver = relationship("Admin", foreign_keys=[approved_by])
    assignments = relationship("CouponUser", back_populates="coupon", order_by="CouponUser.id")

    def __repr__(self):
        return f"<Coupon(id={self.id}, code='{self.code}', status='{self.status}')>"


class CouponUser(Base):
    """Assignment of a coupon to one employee or employer."""
    __tablename__ = "coupon_users"

    id = Column(Integer, primary_key=True, index=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False)
    user_type = Column(String(20), nullable=False)  # employee | employer
    assigned_by = Column(Integer, ForeignKey("admins.id"), nullable=False)
    assigned_at = Column(DateTime, nullable=False)

    coupon = relationship("Coupon", back_populates="assignments")
    assigner = relationship("Admin")

    __table_args__ = (
        UniqueConstraint("coupon_id", "user_id", "user_type", name="uq_coupon_user"),
    )
