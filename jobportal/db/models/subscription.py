"""
Per-owner plan subscriptions (the subscription ledger).

Each row snapshots the plan's quotas at activation time in jobs_remaining
and contact_views_remaining; -1 means unlimited and is never decremented.
"""
import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, text
from sqlalchemy.sql import func
from sqlalchemy.orm import declared_attr, relationship
from jobportal.db.base import Base
from jobportal.db.models.enums import UserType


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class SubscriptionMixin:
    id = Column(Integer, primary_key=True, index=True)

    @declared_attr
    def plan_id(cls):
        return Column(Integer, ForeignKey("plans.id"), nullable=False, index=True)

    @declared_attr
    def payment_id(cls):
        return Column(Integer, ForeignKey("payments.id", ondelete="SET NULL"), nullable=True, index=True)

    started_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=True)  # NULL never expires
    status = Column(String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value, index=True)
    is_default = Column(Boolean, nullable=False, default=False)
    jobs_remaining = Column(Integer, nullable=True)
    contact_views_remaining = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @declared_attr
    def plan(cls):
        return relationship("Plan")

    @declared_attr
    def __table_args__(cls):
        # At most one active row per owner
        return (
            Index(
                f"uq_{cls.__tablename__}_one_active",
                "owner_id",
                unique=True,
                sqlite_where=text("status = 'active'"),
                postgresql_where=text("status = 'active'"),
            ),
        )

    def is_expired_at(self, moment) -> bool:
        return self.expires_at is not None and self.expires_at <= moment

    def __repr__(self):
        return f"<{type(self).__name__}(id={self.id}, owner_id={self.owner_id}, status='{self.status}')>"


class EmployeePlanSubscription(SubscriptionMixin, Base):
    __tablename__ = "employee_plan_subscriptions"

    owner_type = UserType.EMPLOYEE
    owner_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)


class EmployerPlanSubscription(SubscriptionMixin, Base):
    __tablename__ = "employer_plan_subscriptions"

    owner_type = UserType.EMPLOYER
    owner_id = Column(Integer, ForeignKey("employers.id", ondelete="CASCADE"), nullable=False, index=True)


SUBSCRIPTION_MODELS = {
    UserType.EMPLOYEE: EmployeePlanSubscription,
    UserType.EMPLOYER: EmployerPlanSubscription,
}
