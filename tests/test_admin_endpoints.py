"""
Integration tests for the back-office endpoints: coupons, commissions,
plans and admin accounts.
"""
import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobportal.main import app
from jobportal.db.base import Base
from jobportal.db.models import Admin, CommissionTransaction, Coupon, Employee, Payment, Plan
from jobportal.core.auth_dependency import get_db, token_claims_for
from jobportal.core.security import create_access_token, verify_password


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


def make_admin(db, email, role, manager_id=None):
    admin = Admin(name=email.split("@")[0], email=email, password="adminpass123", role=role, manager_id=manager_id)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def auth_headers(admin):
    token = create_access_token(token_claims_for("admin", admin.id, admin.role))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def super_admin(db_session):
    return make_admin(db_session, "root@portal.example", "super_admin")


@pytest.fixture
def manager(db_session):
    return make_admin(db_session, "mona@portal.example", "manager")


@pytest.fixture
def staff(db_session, manager):
    return make_admin(db_session, "sam@portal.example", "staff", manager_id=manager.id)


@pytest.fixture
def employee(db_session):
    row = Employee(name="Asha", email="asha@example.com", mobile="9800000001", password="seekerpass1")
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


def coupon_payload(**overrides):
    payload = {
        "code": "welcome20",
        "name": "Welcome",
        "discount_percentage": 20,
        "coupon_for": "employee",
    }
    payload.update(overrides)
    return payload


class TestCouponEndpoints:
    def test_staff_creates_pending_coupon(self, client, staff):
        response = client.post("/admin/coupons", json=coupon_payload(), headers=auth_headers(staff))

        assert response.status_code == 201
        coupon = response.json()["coupon"]
        assert coupon["code"] == "WELCOME20"
        assert coupon["status"] == "pending"
        assert coupon["discount_percentage"] == "20.00"
        assert coupon["created_by"] == staff.id
        assert coupon["is_valid"] is False

    def test_invalid_fields_reported_together(self, client, staff):
        response = client.post(
            "/admin/coupons",
            json=coupon_payload(discount_percentage=150, coupon_for="admin"),
            headers=auth_headers(staff),
        )

        assert response.status_code == 422
        errors = response.json()["errors"]
        assert set(errors) == {"discount_percentage", "coupon_for"}

    def test_missing_field_uses_errors_body(self, client, staff):
        payload = coupon_payload()
        del payload["name"]

        response = client.post("/admin/coupons", json=payload, headers=auth_headers(staff))

        assert response.status_code == 422
        assert "name" in response.json()["errors"]

    def test_requires_admin_token(self, client):
        response = client.post("/admin/coupons", json=coupon_payload())
        assert response.status_code == 401

    def test_subscriber_token_is_rejected(self, client, employee):
        token = create_access_token(token_claims_for("employee", employee.id))
        response = client.get("/admin/coupons", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403

    def test_only_super_admin_approves(self, client, staff, manager, super_admin):
        created = client.post("/admin/coupons", json=coupon_payload(), headers=auth_headers(staff)).json()
        coupon_id = created["coupon"]["id"]

        denied = client.put(
            f"/admin/coupons/{coupon_id}/approve", json={"status": "approved"}, headers=auth_headers(manager)
        )
        assert denied.status_code == 403
        assert denied.json() == {"message": "Unauthorized access"}

        approved = client.put(
            f"/admin/coupons/{coupon_id}/approve", json={"status": "approved"}, headers=auth_headers(super_admin)
        )
        assert approved.status_code == 200
        assert approved.json()["coupon"]["status"] == "approved"
        assert approved.json()["coupon"]["approved_by"] == super_admin.id

        again = client.put(
            f"/admin/coupons/{coupon_id}/approve", json={"status": "rejected"}, headers=auth_headers(super_admin)
        )
        assert again.status_code == 400

    def test_pending_queue(self, client, staff, super_admin):
        client.post("/admin/coupons", json=coupon_payload(), headers=auth_headers(staff))
        client.post("/admin/coupons", json=coupon_payload(code="SECOND"), headers=auth_headers(staff))

        response = client.get("/admin/coupons/pending", headers=auth_headers(super_admin))
        assert response.status_code == 200
        assert {c["code"] for c in response.json()["coupons"]} == {"WELCOME20", "SECOND"}

        assert client.get("/admin/coupons/pending", headers=auth_headers(staff)).status_code == 403

    def test_listing_is_scoped(self, client, db_session, staff, manager, super_admin):
        outsider = make_admin(db_session, "olga@portal.example", "staff")
        client.post("/admin/coupons", json=coupon_payload(code="MINE"), headers=auth_headers(staff))
        client.post("/admin/coupons", json=coupon_payload(code="THEIRS"), headers=auth_headers(outsider))

        def codes(admin, **params):
            response = client.get("/admin/coupons", params=params, headers=auth_headers(admin))
            assert response.status_code == 200
            return {c["code"] for c in response.json()["coupons"]}

        assert codes(staff) == {"MINE"}
        assert codes(manager) == {"MINE"}
        assert codes(super_admin) == {"MINE", "THEIRS"}
        assert codes(super_admin, status="approved") == set()

    def test_assign_users_partial_success(self, client, db_session, staff, super_admin, employee):
        coupon_id = client.post(
            "/admin/coupons", json=coupon_payload(), headers=auth_headers(staff)
        ).json()["coupon"]["id"]
        client.put(
            f"/admin/coupons/{coupon_id}/approve", json={"status": "approved"}, headers=auth_headers(super_admin)
        )

        response = client.post(
            f"/admin/coupons/{coupon_id}/assign-users",
            json={"users": [
                {"identifier": "asha@example.com", "type": "employee"},
                {"identifier": "nobody@example.com", "type": "employee"},
            ]},
            headers=auth_headers(staff),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["assigned_count"] == 1
        assert body["failed_count"] == 1
        assert body["failed"][0]["reason"] == "User not found"

        detail = client.get(f"/admin/coupons/{coupon_id}", headers=auth_headers(staff)).json()["coupon"]
        assert len(detail["assigned_users"]) == 1

        blocked = client.delete(f"/admin/coupons/{coupon_id}", headers=auth_headers(super_admin))
        assert blocked.status_code == 400
        assert blocked.json()["message"] == "Cannot delete coupon with assigned users. Please remove all users first."

        assignment_id = detail["assigned_users"][0]["id"]
        removed = client.delete(
            f"/admin/coupons/{coupon_id}/users/{assignment_id}", headers=auth_headers(staff)
        )
        assert removed.status_code == 200

        deleted = client.delete(f"/admin/coupons/{coupon_id}", headers=auth_headers(super_admin))
        assert deleted.status_code == 200
        assert db_session.query(Coupon).count() == 0

    def test_assign_to_pending_coupon_is_rejected(self, client, staff, employee):
        coupon_id = client.post(
            "/admin/coupons", json=coupon_payload(), headers=auth_headers(staff)
        ).json()["coupon"]["id"]

        response = client.post(
            f"/admin/coupons/{coupon_id}/assign-users",
            json={"users": [{"identifier": "asha@example.com", "type": "employee"}]},
            headers=auth_headers(staff),
        )
        assert response.status_code == 400

    def test_unknown_coupon(self, client, super_admin):
        response = client.get("/admin/coupons/999", headers=auth_headers(super_admin))
        assert response.status_code == 404
        assert response.json() == {"message": "Coupon not found"}


class TestCommissionEndpoints:
    def test_manual_commission_and_totals(self, client, staff, manager, super_admin):
        response = client.post(
            "/admin/commissions/manual",
            json={"staff_id": staff.id, "amount": "250.5"},
            headers=auth_headers(manager),
        )
        assert response.status_code == 201
        assert response.json()["commission"]["amount_earned"] == "250.50"
        assert response.json()["commission"]["type"] == "manual"

        mine = client.get("/admin/commissions/my", headers=auth_headers(staff)).json()
        assert mine["total_earned"] == "250.50"
        assert len(mine["commissions"]) == 1

        everything = client.get("/admin/commissions/all", headers=auth_headers(super_admin))
        assert everything.status_code == 200
        assert len(everything.json()["commissions"]) == 1

    def test_staff_cannot_add_or_list_all(self, client, staff):
        response = client.post(
            "/admin/commissions/manual",
            json={"staff_id": staff.id, "amount": "10"},
            headers=auth_headers(staff),
        )
        assert response.status_code == 403
        assert client.get("/admin/commissions/all", headers=auth_headers(staff)).status_code == 403

    def test_negative_amount(self, client, db_session, staff, super_admin):
        response = client.post(
            "/admin/commissions/manual",
            json={"staff_id": staff.id, "amount": "-5"},
            headers=auth_headers(super_admin),
        )
        assert response.status_code == 422
        assert "amount" in response.json()["errors"]
        assert db_session.query(CommissionTransaction).count() == 0


class TestPlanEndpoints:
    def plan_payload(self, **overrides):
        payload = {
            "name": "Pro Seeker",
            "owner_type": "employee",
            "price": "499.00",
            "validity_days": 30,
            "jobs_can_apply": 50,
            "contact_details_can_view": 20,
        }
        payload.update(overrides)
        return payload

    def test_public_listing(self, client, manager, db_session):
        client.post("/plans", json=self.plan_payload(), headers=auth_headers(manager))
        client.post("/plans", json=self.plan_payload(name="Hire", owner_type="employer"), headers=auth_headers(manager))

        response = client.get("/plans", params={"owner_type": "employer"})
        assert response.status_code == 200
        assert [plan["name"] for plan in response.json()["plans"]] == ["Hire"]

    def test_staff_cannot_write_plans(self, client, staff):
        response = client.post("/plans", json=self.plan_payload(), headers=auth_headers(staff))
        assert response.status_code == 403

    def test_create_update_and_feature(self, client, super_admin, db_session):
        created = client.post("/plans", json=self.plan_payload(), headers=auth_headers(super_admin))
        assert created.status_code == 201
        plan_id = created.json()["plan"]["id"]
        assert created.json()["plan"]["price"] == "499.00"

        updated = client.put(
            f"/plans/{plan_id}", json={"price": "399.00"}, headers=auth_headers(super_admin)
        )
        assert updated.status_code == 200
        assert updated.json()["plan"]["price"] == "399.00"
        assert updated.json()["plan"]["jobs_can_apply"] == 50

        feature = client.post(
            f"/plans/{plan_id}/features",
            json={"feature_name": "Profile boost", "feature_value": "Yes"},
            headers=auth_headers(super_admin),
        )
        assert feature.status_code == 201

        plan = db_session.query(Plan).filter(Plan.id == plan_id).one()
        assert plan.price == Decimal("399.00")
        assert [f.feature_name for f in plan.features] == ["Profile boost"]

    def test_zero_validity_rejected(self, client, super_admin):
        response = client.post("/plans", json=self.plan_payload(validity_days=0), headers=auth_headers(super_admin))
        assert response.status_code == 422
        assert "validity_days" in response.json()["errors"]


class TestAdminAccounts:
    def test_create_staff_under_manager(self, client, super_admin, manager):
        response = client.post(
            "/admin/admins",
            json={
                "name": "Sid",
                "email": "sid@portal.example",
                "password": "staffpass123",
                "role": "staff",
                "manager_id": manager.id,
            },
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 201
        assert response.json()["admin"]["manager_id"] == manager.id
        assert response.json()["admin"]["manager_name"] == manager.name

    def test_manager_cannot_report_to_manager(self, client, super_admin, manager):
        response = client.post(
            "/admin/admins",
            json={
                "name": "Max",
                "email": "max@portal.example",
                "password": "managerpass1",
                "role": "manager",
                "manager_id": manager.id,
            },
            headers=auth_headers(super_admin),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Only staff members can be assigned to a manager"

    def test_assign_missing_manager(self, client, super_admin, staff):
        response = client.put(
            f"/admin/admins/{staff.id}/manager", json={"manager_id": 999}, headers=auth_headers(super_admin)
        )
        assert response.status_code == 404

    def test_unassign_manager(self, client, super_admin, staff):
        response = client.put(
            f"/admin/admins/{staff.id}/manager", json={"manager_id": None}, headers=auth_headers(super_admin)
        )
        assert response.status_code == 200
        assert response.json()["staff"]["manager_id"] is None

    def test_admin_plan_upgrade(self, client, db_session, manager, employee):
        plan = Plan(name="Gift", owner_type="employee", price=Decimal("0"), validity_days=7, jobs_can_apply=-1)
        db_session.add(plan)
        db_session.commit()

        response = client.post(
            f"/admin/employees/{employee.id}/plan", json={"plan_id": plan.id}, headers=auth_headers(manager)
        )

        assert response.status_code == 200
        assert response.json()["subscription"]["jobs_remaining"] == "unlimited"
        db_session.refresh(employee)
        assert employee.plan_id == plan.id


class TestAdminHierarchy:
    def test_list_filters_by_role_and_manager(self, client, db_session, super_admin, manager, staff):
        make_admin(db_session, "solo@portal.example", "staff")

        everyone = client.get("/admin/admins", headers=auth_headers(super_admin)).json()["admins"]
        assert len(everyone) == 4
        assert everyone[0]["email"] == "solo@portal.example"

        staff_only = client.get("/admin/admins?role=staff", headers=auth_headers(super_admin)).json()["admins"]
        assert {row["email"] for row in staff_only} == {"sam@portal.example", "solo@portal.example"}

        team = client.get(f"/admin/admins?manager_id={manager.id}", headers=auth_headers(super_admin)).json()
        assert [row["id"] for row in team["admins"]] == [staff.id]

    def test_only_super_admin_reads_accounts(self, client, manager):
        assert client.get("/admin/admins", headers=auth_headers(manager)).status_code == 403
        assert client.get("/admin/managers", headers=auth_headers(manager)).status_code == 403

    def test_detail_includes_staff(self, client, super_admin, manager, staff):
        response = client.get(f"/admin/admins/{manager.id}", headers=auth_headers(super_admin))

        assert response.status_code == 200
        detail = response.json()["admin"]
        assert detail["role"] == "manager"
        assert [member["id"] for member in detail["staff"]] == [staff.id]

    def test_detail_not_found(self, client, super_admin):
        response = client.get("/admin/admins/999", headers=auth_headers(super_admin))
        assert response.status_code == 404
        assert response.json() == {"message": "Admin not found"}

    def test_managers_with_staff_count(self, client, db_session, super_admin, manager, staff):
        make_admin(db_session, "nina@portal.example", "manager")

        managers = client.get("/admin/managers", headers=auth_headers(super_admin)).json()["managers"]

        counts = {row["email"]: row["staff_count"] for row in managers}
        assert counts == {"mona@portal.example": 1, "nina@portal.example": 0}

    def test_update_name_email_and_password(self, client, db_session, super_admin, staff):
        response = client.put(
            f"/admin/admins/{staff.id}",
            json={"name": "Samira", "email": "Samira@Portal.example", "password": "newstaffpass1"},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 200
        updated = response.json()["admin"]
        assert updated["name"] == "Samira"
        assert updated["email"] == "samira@portal.example"
        assert updated["manager_id"] is not None

        db_session.refresh(staff)
        assert verify_password("newstaffpass1", staff.password_hash)

    def test_update_email_taken_by_another_admin(self, client, super_admin, manager, staff):
        response = client.put(
            f"/admin/admins/{staff.id}", json={"email": manager.email}, headers=auth_headers(super_admin)
        )
        assert response.status_code == 422
        assert "email" in response.json()["errors"]

    def test_update_keeps_own_email(self, client, super_admin, staff):
        response = client.put(
            f"/admin/admins/{staff.id}", json={"email": staff.email}, headers=auth_headers(super_admin)
        )
        assert response.status_code == 200

    def test_reassign_to_non_manager(self, client, db_session, super_admin, staff):
        other = make_admin(db_session, "otto@portal.example", "staff")
        response = client.put(
            f"/admin/admins/{staff.id}", json={"manager_id": other.id}, headers=auth_headers(super_admin)
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid manager. The selected admin must have manager role"

    def test_promoting_staff_clears_manager(self, client, super_admin, staff):
        response = client.put(
            f"/admin/admins/{staff.id}", json={"role": "manager"}, headers=auth_headers(super_admin)
        )
        assert response.status_code == 200
        assert response.json()["admin"]["role"] == "manager"
        assert response.json()["admin"]["manager_id"] is None

    def test_demoting_manager_releases_staff(self, client, db_session, super_admin, manager, staff):
        response = client.put(
            f"/admin/admins/{manager.id}", json={"role": "staff"}, headers=auth_headers(super_admin)
        )
        assert response.status_code == 200

        db_session.refresh(staff)
        assert staff.manager_id is None

    def test_manager_id_on_non_staff_role(self, client, db_session, super_admin, manager):
        other = make_admin(db_session, "nina@portal.example", "manager")
        response = client.put(
            f"/admin/admins/{other.id}", json={"manager_id": manager.id}, headers=auth_headers(super_admin)
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Only staff members can be assigned to a manager"

    def test_delete_manager_unassigns_staff(self, client, db_session, super_admin, manager, staff):
        response = client.delete(f"/admin/admins/{manager.id}", headers=auth_headers(super_admin))

        assert response.status_code == 200
        assert db_session.query(Admin).filter(Admin.id == manager.id).first() is None
        db_session.refresh(staff)
        assert staff.manager_id is None

    def test_cannot_delete_own_account(self, client, super_admin):
        response = client.delete(f"/admin/admins/{super_admin.id}", headers=auth_headers(super_admin))
        assert response.status_code == 403
        assert response.json()["message"] == "Cannot delete your own account"

    def test_cannot_delete_coupon_author(self, client, super_admin, staff):
        client.post("/admin/coupons", json=coupon_payload(), headers=auth_headers(staff))

        response = client.delete(f"/admin/admins/{staff.id}", headers=auth_headers(super_admin))

        assert response.status_code == 400
        assert client.get(f"/admin/admins/{staff.id}", headers=auth_headers(super_admin)).status_code == 200


class TestAdminPayments:
    @pytest.fixture
    def payments(self, db_session, employee):
        plan = Plan(name="Pro", owner_type="employee", price=Decimal("100.00"), validity_days=30)
        db_session.add(plan)
        db_session.commit()

        rows = [
            ("completed", "upi", Decimal("100.00"), Decimal("0.00")),
            ("completed", "card", Decimal("100.00"), Decimal("20.00")),
            ("pending", "upi", Decimal("100.00"), Decimal("0.00")),
            ("failed", "card", Decimal("100.00"), Decimal("0.00")),
        ]
        for status, method, original, discount in rows:
            db_session.add(Payment(
                user_type="employee",
                user_id=employee.id,
                plan_id=plan.id,
                original_amount=original,
                discount_amount=discount,
                amount=original - discount,
                payment_method=method,
                status=status,
            ))
        db_session.commit()

    def test_listing_with_totals(self, client, super_admin, payments):
        response = client.get("/admin/payments", headers=auth_headers(super_admin))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 4
        assert body["payments"][0]["payment_status"] == "failed"
        assert body["totals"] == {
            "total_payments": 4,
            "completed": 2,
            "pending": 1,
            "failed": 1,
            "total_revenue": "180.00",
            "total_discount": "20.00",
            "currency": "INR",
        }

    def test_filters_and_pagination(self, client, super_admin, payments):
        response = client.get(
            "/admin/payments?status=completed&payment_method=card&page_size=1",
            headers=auth_headers(super_admin),
        )

        body = response.json()
        assert body["total"] == 1
        assert body["payments"][0]["final_amount"] == "80.00"
        assert body["totals"]["total_payments"] == 4

    def test_unknown_status_filter(self, client, super_admin):
        response = client.get("/admin/payments?status=refunded", headers=auth_headers(super_admin))
        assert response.status_code == 422

    def test_manager_cannot_read_payments(self, client, manager):
        assert client.get("/admin/payments", headers=auth_headers(manager)).status_code == 403
