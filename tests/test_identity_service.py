"""
Unit tests for registration and back-office account maintenance.
"""
import pytest
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobportal.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from jobportal.db.base import Base
from jobportal.db.models import Admin, CommissionTransaction, Employee, Employer
from jobportal.services import identity_service, plan_service


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def default_plans(db):
    for owner_type in ("employee", "employer"):
        plan_service.create_plan(db, {
            "name": f"Free {owner_type}",
            "owner_type": owner_type,
            "price": Decimal("0.00"),
            "validity_days": 30,
            "is_default": True,
        })


@pytest.fixture
def skip_first_uniqueness_check(monkeypatch):
    """Let the pre-insert check miss, as it would for a concurrent registration."""
    real_check = identity_service._ensure_unique
    calls = []

    def check(db, model, **columns):
        calls.append(columns)
        if len(calls) == 1:
            return None
        return real_check(db, model, **columns)

    monkeypatch.setattr(identity_service, "_ensure_unique", check)
    return calls


def make_admin(db, email, role, manager_id=None):
    return identity_service.create_admin(db, email.split("@")[0], email, "adminpass123", role, manager_id)


class TestRegistrationConflicts:
    def test_duplicate_email_reported_as_validation_error(self, db, default_plans):
        identity_service.register_employee(db, "Asha", "asha@example.com", "9800000001", "seekerpass1")

        with pytest.raises(ValidationError) as exc:
            identity_service.register_employee(db, "Asha Two", "Asha@Example.com", "9800000002", "seekerpass1")

        assert list(exc.value.errors) == ["email"]
        assert exc.value.status_code == 422

    def test_insert_race_becomes_validation_error(self, db, default_plans, skip_first_uniqueness_check):
        db.add(Employee(name="Asha", email="asha@example.com", mobile="9800000001", password="seekerpass1"))
        db.commit()

        with pytest.raises(ValidationError) as exc:
            identity_service.register_employee(db, "Asha Two", "asha@example.com", "9800000002", "seekerpass1")

        assert "email" in exc.value.errors
        assert "mobile" not in exc.value.errors
        assert len(skip_first_uniqueness_check) == 2
        assert db.query(Employee).count() == 1

    def test_session_usable_after_race(self, db, default_plans, skip_first_uniqueness_check):
        db.add(Employer(company_name="Acme", email="hr@acme.example", contact="2200000001", password="hirepass123"))
        db.commit()

        with pytest.raises(ValidationError):
            identity_service.register_employer(db, "Acme Two", "hr@acme.example", "2200000002", "hirepass123")

        employer = identity_service.register_employer(db, "Beta", "jobs@beta.example", "2200000003", "hirepass123")
        assert employer.plan_id is not None


class TestAdminMaintenance:
    def test_get_missing_admin(self, db):
        with pytest.raises(NotFoundError):
            identity_service.get_admin(db, 42)

    def test_unassign_with_explicit_null(self, db):
        manager = make_admin(db, "mona@portal.example", "manager")
        staff = make_admin(db, "sam@portal.example", "staff", manager.id)

        updated = identity_service.update_admin(db, staff.id, {"manager_id": None})

        assert updated.manager_id is None

    def test_omitted_manager_is_kept(self, db):
        manager = make_admin(db, "mona@portal.example", "manager")
        staff = make_admin(db, "sam@portal.example", "staff", manager.id)

        updated = identity_service.update_admin(db, staff.id, {"name": "Sammy"})

        assert updated.manager_id == manager.id

    def test_rejected_update_changes_nothing(self, db):
        manager = make_admin(db, "mona@portal.example", "manager")
        staff = make_admin(db, "sam@portal.example", "staff", manager.id)

        with pytest.raises(ConflictError):
            identity_service.update_admin(db, staff.id, {"name": "Sammy", "manager_id": staff.id})

        db.rollback()
        db.refresh(staff)
        assert staff.name == "sam"

    def test_delete_self(self, db):
        root = make_admin(db, "root@portal.example", "super_admin")
        with pytest.raises(AuthorizationError):
            identity_service.delete_admin(db, root.id, actor=root)

    def test_delete_manager_releases_staff(self, db):
        root = make_admin(db, "root@portal.example", "super_admin")
        manager = make_admin(db, "mona@portal.example", "manager")
        staff = make_admin(db, "sam@portal.example", "staff", manager.id)

        identity_service.delete_admin(db, manager.id, actor=root)

        db.refresh(staff)
        assert staff.manager_id is None
        assert [row["email"] for row in identity_service.list_managers(db)] == []

    def test_delete_staff_with_commissions(self, db):
        root = make_admin(db, "root@portal.example", "super_admin")
        staff = make_admin(db, "sam@portal.example", "staff")
        db.add(CommissionTransaction(staff_id=staff.id, amount_earned=Decimal("10.00"), type="manual"))
        db.commit()

        with pytest.raises(ConflictError):
            identity_service.delete_admin(db, staff.id, actor=root)
        assert db.query(Admin).filter(Admin.id == staff.id).count() == 1
