"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from jobportal.db.models.enums import UserType, AdminRole
from jobportal.db.models.admin import Admin
from jobportal.db.models.user import Employee, Employer, USER_MODELS
from jobportal.db.models.plan import Plan, PlanFeature, UNLIMITED
from jobportal.db.models.coupon import Coupon, CouponUser, CouponStatus
from jobportal.db.models.payment import Payment, PaymentStatus
from jobportal.db.models.commission import CommissionTransaction, CommissionType
from jobportal.db.models.subscription import (
    EmployeePlanSubscription,
    EmployerPlanSubscription,
    SubscriptionStatus,
    SUBSCRIPTION_MODELS,
)
from jobportal.db.models.job import Job, JobApplication, ContactView

# Explicitly export all models for clarity
__all__ = [
    "UserType",
    "AdminRole",
    "Admin",
    "Employee",
    "Employer",
    "USER_MODELS",
    "Plan",
    "PlanFeature",
    "UNLIMITED",
    "Coupon",
    "CouponUser",
    "CouponStatus",
    "Payment",
    "PaymentStatus",
    "CommissionTransaction",
    "CommissionType",
    "EmployeePlanSubscription",
    "EmployerPlanSubscription",
    "SubscriptionStatus",
    "SUBSCRIPTION_MODELS",
    "Job",
    "JobApplication",
    "ContactView",
]
