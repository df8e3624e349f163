"""
Create the free default plans registration depends on, if missing.
Run: python -m scripts.seed_default_plans
"""
import logging
from decimal import Decimal

from jobportal.db.session import SessionLocal
from jobportal.db.models.enums import UserType
from jobportal.services import plan_service

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_PLANS = {
    UserType.EMPLOYEE: {
        "name": "Free Seeker",
        "description": "Starter plan for new job seekers",
        "owner_type": UserType.EMPLOYEE.value,
        "price": Decimal("0.00"),
        "validity_days": 365,
        "is_default": True,
        "jobs_can_apply": 5,
        "contact_details_can_view": 3,
    },
    UserType.EMPLOYER: {
        "name": "Free Employer",
        "description": "Starter plan for new employers",
        "owner_type": UserType.EMPLOYER.value,
        "price": Decimal("0.00"),
        "validity_days": 365,
        "is_default": True,
        "jobs_can_post": 3,
        "employee_contact_details_can_view": 3,
    },
}


def seed_default_plans() -> None:
    db = SessionLocal()
    try:
        for owner_type, data in DEFAULT_PLANS.items():
            existing = plan_service.get_default_plan(db, owner_type)
            if existing:
                logger.info(f"Default {owner_type.value} plan exists: plan_id={existing.id}")
                continue
            plan = plan_service.create_plan(db, dict(data))
            logger.info(f"Default {owner_type.value} plan created: plan_id={plan.id}")
    finally:
        db.close()


if __name__ == "__main__":
    seed_default_plans()
