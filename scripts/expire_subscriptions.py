"""
Mark subscriptions past their expiry as expired. Meant for cron.
Run: python -m scripts.expire_subscriptions
"""
import logging

from jobportal.db.session import SessionLocal
from jobportal.services.subscription_service import expire_due_subscriptions

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> int:
    db = SessionLocal()
    try:
        expired = expire_due_subscriptions(db)
        logger.info(f"Expired {expired} subscription(s)")
        return expired
    finally:
        db.close()


if __name__ == "__main__":
    main()
