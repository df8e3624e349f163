"""
Integration tests for the employee/employer endpoints: registration, login,
plan purchase, coupon preview and quota-gated job actions.
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobportal.main import app
from jobportal.db.base import Base
from jobportal.db.models import Admin, CommissionTransaction, Coupon, Employee, Payment, Plan
from jobportal.core.auth_dependency import get_db
from jobportal.core.config import COUPON_VALIDATE_RATE_LIMIT
from jobportal.core.rate_limit import rate_limit_store


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function", autouse=True)
def setup_db():
    """Create and drop tables for each test."""
    app.dependency_overrides[get_db] = override_get_db
    rate_limit_store.clear()
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Provide a database session for tests."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def default_plans(db_session):
    """One-unit free plans for both kinds."""
    seeker = Plan(
        name="Seeker Free", owner_type="employee", price=Decimal("0"), validity_days=30, is_default=True,
        jobs_can_apply=1, contact_details_can_view=1,
    )
    recruiter = Plan(
        name="Recruiter Free", owner_type="employer", price=Decimal("0"), validity_days=30, is_default=True,
        jobs_can_post=1, employee_contact_details_can_view=1,
    )
    db_session.add_all([seeker, recruiter])
    db_session.commit()
    return seeker, recruiter


@pytest.fixture
def pro_plan(db_session):
    plan = Plan(
        name="Seeker Pro", owner_type="employee", price=Decimal("100.00"), validity_days=30,
        jobs_can_apply=-1, contact_details_can_view=10,
    )
    db_session.add(plan)
    db_session.commit()
    return plan


@pytest.fixture
def staff(db_session):
    admin = Admin(name="Sam", email="sam@portal.example", password="staffpass123", role="staff")
    db_session.add(admin)
    db_session.commit()
    return admin


@pytest.fixture
def approved_coupon(db_session, staff):
    coupon = Coupon(
        code="WELCOME20", name="Welcome", discount_percentage=Decimal("20"), coupon_for="employee",
        status="approved", created_by=staff.id,
    )
    db_session.add(coupon)
    db_session.commit()
    return coupon


def register_employee(client, email="asha@example.com", mobile="9800000001"):
    return client.post("/auth/register/employee", json={
        "name": "Asha",
        "email": email,
        "mobile": mobile,
        "password": "seekerpass1",
    })


def register_employer(client, email="hr@acme.example", contact="2200000001"):
    return client.post("/auth/register/employer", json={
        "company_name": "Acme",
        "email": email,
        "contact": contact,
        "password": "recruiter1",
    })


def bearer(response):
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


class TestRegistrationAndLogin:
    def test_register_starts_on_default_plan(self, client, default_plans):
        seeker, _ = default_plans
        response = register_employee(client)

        assert response.status_code == 201
        assert response.json()["plan_id"] == seeker.id

        summary = client.get("/me/subscription", headers=bearer(response)).json()
        assert summary["active"] is True
        assert summary["subscription"]["jobs_remaining"] == 1
        assert summary["subscription"]["is_default"] is True

    def test_register_without_default_plan_rolls_back(self, client, db_session):
        response = register_employee(client)

        assert response.status_code == 500
        assert response.json()["message"] == "Registration failed"
        assert db_session.query(Employee).count() == 0

    def test_duplicate_email(self, client, default_plans):
        register_employee(client)
        response = register_employee(client, mobile="9800000002")

        assert response.status_code == 422
        assert "email" in response.json()["errors"]

    def test_short_password(self, client, default_plans):
        response = client.post("/auth/register/employee", json={
            "name": "Asha", "email": "asha@example.com", "mobile": "9800000001", "password": "short",
        })
        assert response.status_code == 422
        assert "password" in response.json()["errors"]

    @pytest.mark.parametrize("identifier", ["asha@example.com", "ASHA@example.com", "9800000001"])
    def test_employee_login(self, client, default_plans, identifier):
        register_employee(client)
        response = client.post("/auth/login", json={
            "kind": "employee", "identifier": identifier, "password": "seekerpass1",
        })

        assert response.status_code == 200
        assert response.json()["kind"] == "employee"
        assert response.json()["role"] is None

    def test_admin_login_carries_role(self, client, staff):
        response = client.post("/auth/login", json={
            "kind": "admin", "identifier": "sam@portal.example", "password": "staffpass123",
        })
        assert response.status_code == 200
        assert response.json()["role"] == "staff"

    def test_wrong_kind_or_password(self, client, default_plans):
        register_employee(client)

        wrong_password = client.post("/auth/login", json={
            "kind": "employee", "identifier": "asha@example.com", "password": "nope-nope",
        })
        wrong_kind = client.post("/auth/login", json={
            "kind": "employer", "identifier": "asha@example.com", "password": "seekerpass1",
        })

        assert wrong_password.status_code == 401
        assert wrong_password.json() == {"message": "Invalid credentials"}
        assert wrong_kind.status_code == 401

    def test_admin_token_cannot_use_subscriber_routes(self, client, staff):
        login = client.post("/auth/login", json={
            "kind": "admin", "identifier": "sam@portal.example", "password": "staffpass123",
        })
        response = client.get("/me/subscription", headers=bearer(login))
        assert response.status_code == 403


class TestPayments:
    def test_subscribe_with_coupon(self, client, db_session, default_plans, pro_plan, approved_coupon, staff):
        headers = bearer(register_employee(client))

        response = client.post("/payments/subscribe", json={
            "plan_id": pro_plan.id, "coupon_code": "welcome20", "payment_method": "upi",
        }, headers=headers)

        assert response.status_code == 201
        payment = response.json()["payment"]
        assert payment["original_amount"] == "100.00"
        assert payment["discount_amount"] == "20.00"
        assert payment["final_amount"] == "80.00"
        assert payment["coupon_code"] == "WELCOME20"
        assert payment["payment_status"] == "completed"

        commission = db_session.query(CommissionTransaction).one()
        assert commission.staff_id == staff.id
        assert commission.amount_earned == Decimal("8.00")

        summary = client.get("/me/subscription", headers=headers).json()
        assert summary["subscription"]["plan_id"] == pro_plan.id
        assert summary["subscription"]["jobs_remaining"] == "unlimited"

        history = client.get("/me/subscription/history", headers=headers).json()["subscriptions"]
        assert [row["status"] for row in history] == ["active", "cancelled"]

    def test_expired_coupon_charges_full_price(self, client, db_session, default_plans, pro_plan, staff):
        db_session.add(Coupon(
            code="OLD", name="Old", discount_percentage=Decimal("50"), coupon_for="employee",
            status="approved", created_by=staff.id, expiry_date=date.today() - timedelta(days=2),
        ))
        db_session.commit()
        headers = bearer(register_employee(client))

        response = client.post("/payments/subscribe", json={
            "plan_id": pro_plan.id, "coupon_code": "OLD", "payment_method": "card",
        }, headers=headers)

        assert response.status_code == 201
        assert response.json()["payment"]["final_amount"] == "100.00"
        assert response.json()["payment"]["coupon_code"] is None
        assert db_session.query(CommissionTransaction).count() == 0

    def test_employer_cannot_buy_employee_plan(self, client, default_plans, pro_plan):
        headers = bearer(register_employer(client))

        response = client.post("/payments/subscribe", json={
            "plan_id": pro_plan.id, "payment_method": "upi",
        }, headers=headers)

        assert response.status_code == 422
        assert "plan_id" in response.json()["errors"]

    def test_verify_and_history(self, client, db_session, default_plans, pro_plan):
        headers = bearer(register_employee(client))
        payment_id = client.post("/payments/subscribe", json={
            "plan_id": pro_plan.id, "payment_method": "upi",
        }, headers=headers).json()["payment"]["id"]

        first = client.post("/payments/verify", json={"payment_id": payment_id, "transaction_id": "GW-1"}, headers=headers)
        second = client.post("/payments/verify", json={"payment_id": payment_id, "transaction_id": "GW-1"}, headers=headers)

        assert first.status_code == 200
        assert second.json()["payment"]["transaction_id"] == "GW-1"
        assert db_session.query(Payment).count() == 1

        history = client.get("/payments/history", headers=headers).json()
        assert history["total"] == 1
        assert history["payments"][0]["plan_name"] == "Seeker Pro"

    def test_verify_other_users_payment(self, client, default_plans, pro_plan):
        owner = bearer(register_employee(client))
        other = bearer(register_employee(client, email="ravi@example.com", mobile="9800000002"))
        payment_id = client.post("/payments/subscribe", json={
            "plan_id": pro_plan.id, "payment_method": "upi",
        }, headers=owner).json()["payment"]["id"]

        response = client.post("/payments/verify", json={"payment_id": payment_id, "transaction_id": "X"}, headers=other)
        assert response.status_code == 403


class TestCouponPreview:
    def test_valid_coupon_preview(self, client, db_session, pro_plan, approved_coupon):
        response = client.post("/coupons/validate", json={"code": "welcome20", "plan_id": pro_plan.id})

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["discount_amount"] == "20.00"
        assert body["final_amount"] == "80.00"
        assert db_session.query(Payment).count() == 0

    def test_coupon_code_field_name(self, client, pro_plan, approved_coupon):
        response = client.post("/coupons/validate", json={"coupon_code": "welcome20", "plan_id": pro_plan.id})

        assert response.status_code == 200
        assert response.json()["valid"] is True
        assert response.json()["coupon"]["code"] == "WELCOME20"

    def test_missing_code(self, client, pro_plan):
        response = client.post("/coupons/validate", json={"plan_id": pro_plan.id})

        assert response.status_code == 422
        assert "coupon_code" in response.json()["errors"]

    def test_unknown_code_is_not_an_error(self, client, pro_plan):
        response = client.post("/coupons/validate", json={"code": "NOPE", "plan_id": pro_plan.id})

        assert response.status_code == 200
        assert response.json() == {"valid": False, "message": "Invalid or expired coupon code"}

    def test_rate_limited(self, client, pro_plan):
        for _ in range(COUPON_VALIDATE_RATE_LIMIT):
            assert client.post("/coupons/validate", json={"code": "NOPE", "plan_id": pro_plan.id}).status_code == 200

        response = client.post("/coupons/validate", json={"code": "NOPE", "plan_id": pro_plan.id})
        assert response.status_code == 429


class TestQuotaGatedActions:
    def post_job(self, client, headers, title="Welder"):
        return client.post("/employer/jobs", json={"title": title, "description": "Day shift"}, headers=headers)

    def test_apply_until_quota_runs_out(self, client, db_session, default_plans):
        seeker = bearer(register_employee(client))
        recruiter = bearer(register_employer(client))
        job_id = self.post_job(client, recruiter).json()["job"]["id"]

        # The free recruiter plan allows one posting
        blocked_post = self.post_job(client, recruiter, title="Fitter")
        assert blocked_post.status_code == 403
        assert blocked_post.json()["quota"] == "jobs_remaining"

        second_recruiter = bearer(register_employer(client, email="jobs@beta.example", contact="2200000002"))
        second_job_id = self.post_job(client, second_recruiter, title="Fitter").json()["job"]["id"]

        applied = client.post(f"/employee/jobs/{job_id}/apply", headers=seeker)
        assert applied.status_code == 201
        assert applied.json()["applications_remaining"] == 0

        duplicate = client.post(f"/employee/jobs/{job_id}/apply", headers=seeker)
        assert duplicate.status_code == 400

        exhausted = client.post(f"/employee/jobs/{second_job_id}/apply", headers=seeker)
        assert exhausted.status_code == 403
        assert exhausted.json() == {
            "message": "Job application limit reached. Please upgrade your plan.",
            "quota": "jobs_remaining",
            "remaining": 0,
        }

    def test_repeat_contact_view_is_free(self, client, default_plans):
        seeker = bearer(register_employee(client))
        recruiter = bearer(register_employer(client))
        job_id = self.post_job(client, recruiter).json()["job"]["id"]

        first = client.get(f"/employee/jobs/{job_id}/contact", headers=seeker)
        again = client.get(f"/employee/jobs/{job_id}/contact", headers=seeker)

        assert first.status_code == 200
        assert first.json()["already_viewed"] is False
        assert first.json()["views_remaining"] == 0
        assert again.status_code == 200
        assert again.json()["already_viewed"] is True
        assert again.json()["contact_details"]["email"] == "hr@acme.example"

    def test_employer_views_applicant(self, client, default_plans):
        seeker = bearer(register_employee(client))
        recruiter = bearer(register_employer(client))
        outsider = bearer(register_employer(client, email="jobs@beta.example", contact="2200000002"))
        job_id = self.post_job(client, recruiter).json()["job"]["id"]
        application_id = client.post(f"/employee/jobs/{job_id}/apply", headers=seeker).json()["application"]["id"]

        forbidden = client.get(f"/employer/applications/{application_id}/contact", headers=outsider)
        assert forbidden.status_code == 403

        response = client.get(f"/employer/applications/{application_id}/contact", headers=recruiter)
        assert response.status_code == 200
        assert response.json()["contact_details"]["mobile"] == "9800000001"
        assert response.json()["free_contact_view"] is False

    def test_employee_route_rejects_employer(self, client, default_plans):
        recruiter = bearer(register_employer(client))
        job_id = self.post_job(client, recruiter).json()["job"]["id"]

        response = client.post(f"/employee/jobs/{job_id}/apply", headers=recruiter)
        assert response.status_code == 403


def test_system_health(client):
    response = client.get("/system/health")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"
