"""
Create the first super admin, or promote an existing admin to super admin.
Run: python -m scripts.create_super_admin --email ops@example.com --name "Ops" --password '...'
"""
import argparse
import logging
import sys

from jobportal.db.session import SessionLocal
from jobportal.db.models.admin import Admin
from jobportal.db.models.enums import AdminRole

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_super_admin(email: str, name: str, password: str = None) -> bool:
    db = SessionLocal()
    try:
        admin = db.query(Admin).filter(Admin.email == email.lower()).first()

        if not admin:
            if not password:
                logger.error(f"Admin {email} not found and no password provided. Cannot create admin.")
                return False

            admin = Admin(
                name=name,
                email=email.lower(),
                password=password,
                role=AdminRole.SUPER_ADMIN.value,
            )
            db.add(admin)
            logger.info(f"Creating super admin: {email}")
        else:
            logger.info(f"Promoting existing admin to super admin: {email} (ID: {admin.id})")
            admin.role = AdminRole.SUPER_ADMIN.value
            admin.manager_id = None
            if password:
                admin.password = password

        db.commit()
        db.refresh(admin)
        logger.info(f"Super admin ready: admin_id={admin.id}")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating super admin: {e}", exc_info=True)
        return False
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default="Super Admin")
    parser.add_argument("--password")
    args = parser.parse_args()

    if not create_super_admin(args.email, args.name, args.password):
        print(f"\n[ERROR] Failed to set up super admin {args.email}")
        sys.exit(1)
    print(f"\n[SUCCESS] {args.email} is a super admin")
