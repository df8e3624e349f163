"""
Plan and PlanFeature models.

Quota columns use -1 for unlimited.
"""
from typing import Tuple
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from jobportal.db.base import Base
from jobportal.db.models.enums import UserType

UNLIMITED = -1


class Plan(Base):
    """
    Subscription tier for one owner kind (employee or employer).

    At most one plan per owner kind carries is_default; new registrations
    are put on it.
    """
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    owner_type = Column(String(20), nullable=False, index=True)  # employee | employer
    price = Column(Numeric(10, 2), nullable=False, default=0)
    validity_days = Column(Integer, nullable=False, default=30)
    is_default = Column(Boolean, nullable=False, default=False, index=True)

    # Employee plan quotas and flags
    jobs_can_apply = Column(Integer, nullable=False, default=5)
    contact_details_can_view = Column(Integer, nullable=False, default=3)
    whatsapp_alerts = Column(Boolean, nullable=False, default=False)
    sms_alerts = Column(Boolean, nullable=False, default=False)
    employer_can_view_contact_free = Column(Boolean, nullable=False, default=False)

    # Employer plan quotas
    jobs_can_post = Column(Integer, nullable=False, default=3)
    employee_contact_details_can_view = Column(Integer, nullable=False, default=3)

    # Overrides config.COMMISSION_RATE when set (0.10 = 10%)
    commission_rate = Column(Numeric(5, 4), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    features = relationship(
        "PlanFeature",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="PlanFeature.id",
    )

    def initial_quotas(self) -> Tuple[int, int]:
        """(jobs_remaining, contact_views_remaining) a new subscription starts with."""
        if self.owner_type == UserType.EMPLOYER.value:
            return self.jobs_can_post, self.employee_contact_details_can_view
        return self.jobs_can_apply, self.contact_details_can_view

    def __repr__(self):
        return f"<Plan(id={self.id}, name='{self.name}', owner_type='{self.owner_type}')>"


class PlanFeature(Base):
    """Display-only name/value pair shown on pricing pages."""
    __tablename__ = "plan_features"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    feature_name = Column(String(255), nullable=False)
    feature_value = Column(String(255), nullable=False)

    plan = relationship("Plan", back_populates="features")
