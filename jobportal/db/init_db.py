"""
Create all tables directly from the models (local SQLite development).
Deployed databases are managed by Alembic; see migrate.py.
"""
from jobportal.db.session import engine
from jobportal.db.base import Base
import jobportal.db.models  # noqa: F401


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    init_db()
