# tests/test_api.py
"""
API tests
Tests: auth boundary, tenant CRUD, plan gates, order workflow, billing, cron, platform admin
"""

import pytest
from datetime import timedelta

from app.core.config import settings
from app.db.base import utcnow
from app.db.repositories.scoped import create_scoped_client
from tests.conftest import make_auth_headers


@pytest.fixture
def member(org_factory, plan_factory, user_factory):
    """Organization on a given plan plus auth headers for one of its users"""

    async def _create(slug: str, plan_slug: str, role: str = "admin", **plan_overrides):
        plan = await plan_factory(plan_slug, **plan_overrides)
        org = await org_factory(slug, plan=plan)
        user = await user_factory(org, f"{role}@{slug}.com", role=role)
        return org, make_auth_headers(user.id, org.id, role=role)

    return _create


class TestAuthBoundary:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/v1/org/plan")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get("/api/v1/org/plan", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_without_organization(self, client):
        headers = make_auth_headers("user-1", None, role="admin")

        response = await client.get("/api/v1/org/plan", headers=headers)

        assert response.status_code == 401


class TestOrgPlan:

    @pytest.mark.asyncio
    async def test_plan_for_basic_org(self, client, auth_headers):
        response = await client.get("/api/v1/org/plan", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["planSlug"] == "basic"
        assert data["features"]["agents"] is False
        assert data["limits"]["maxProducts"] == 50
        assert data["subscription"]["status"] == "active"
        assert data["trial"]["isActive"] is False

    @pytest.mark.asyncio
    async def test_usage(self, client, auth_headers, test_org, db_session):
        await create_scoped_client(db_session, test_org.id).product.create({"name": "Card"})

        response = await client.get("/api/v1/org/usage", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["products"] == {"current": 1, "limit": 50}
        assert response.json()["users"] == {"current": 1, "limit": 5}


class TestProducts:

    @pytest.mark.asyncio
    async def test_crud(self, client, auth_headers, test_org):
        created = await client.post(
            "/api/v1/products",
            headers=auth_headers,
            json={"name": "Business Card", "category": "cards", "base_price": 25.5},
        )
        assert created.status_code == 201
        product = created.json()
        assert product["organization_id"] == test_org.id

        listed = await client.get("/api/v1/products", params={"search": "business"}, headers=auth_headers)
        assert [p["id"] for p in listed.json()] == [product["id"]]

        updated = await client.patch(
            f"/api/v1/products/{product['id']}", headers=auth_headers, json={"base_price": 30}
        )
        assert updated.status_code == 200
        assert updated.json()["base_price"] == 30

        deleted = await client.delete(f"/api/v1/products/{product['id']}", headers=auth_headers)
        assert deleted.status_code == 204

        missing = await client.get(f"/api/v1/products/{product['id']}", headers=auth_headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_create_ignores_client_organization_id(self, client, auth_headers, test_org, org_factory):
        other = await org_factory("other-shop")

        response = await client.post(
            "/api/v1/products",
            headers=auth_headers,
            json={"name": "Card", "organization_id": other.id},
        )

        assert response.status_code == 201
        assert response.json()["organization_id"] == test_org.id

    @pytest.mark.asyncio
    async def test_foreign_product_is_not_found(self, client, auth_headers, org_factory, db_session):
        other = await org_factory("other-shop")
        foreign = await create_scoped_client(db_session, other.id).product.create({"name": "Secret"})

        assert (await client.get(f"/api/v1/products/{foreign.id}", headers=auth_headers)).status_code == 404
        patched = await client.patch(f"/api/v1/products/{foreign.id}", headers=auth_headers, json={"name": "Mine"})
        assert patched.status_code == 404
        assert (await client.delete(f"/api/v1/products/{foreign.id}", headers=auth_headers)).status_code == 404

        await db_session.refresh(foreign)
        assert foreign.name == "Secret"

    @pytest.mark.asyncio
    async def test_foreign_department_rejected(self, client, auth_headers, test_org, org_factory, db_session):
        other = await org_factory("other-shop")
        foreign_department = await create_scoped_client(db_session, other.id).department.create({"name": "Design"})
        foreign_department_id = foreign_department.id

        created = await client.post(
            "/api/v1/products", headers=auth_headers, json={"name": "Card", "department_id": foreign_department_id}
        )
        assert created.status_code == 404

        product = (await client.post("/api/v1/products", headers=auth_headers, json={"name": "Card"})).json()
        patched = await client.patch(
            f"/api/v1/products/{product['id']}", headers=auth_headers, json={"department_id": foreign_department_id}
        )
        assert patched.status_code == 404

        listed = (await client.get("/api/v1/products", headers=auth_headers)).json()
        assert [(p["name"], p["department_id"]) for p in listed] == [("Card", None)]

    @pytest.mark.asyncio
    async def test_quota_exceeded(self, client, member):
        _, headers = await member("tiny-shop", "pro", max_products=1)

        first = await client.post("/api/v1/products", headers=headers, json={"name": "Card"})
        second = await client.post("/api/v1/products", headers=headers, json={"name": "Banner"})

        assert first.status_code == 201
        assert second.status_code == 403
        detail = second.json()["detail"]
        assert detail["error"] == "quota_exceeded"
        assert detail["resource"] == "products"
        assert detail["limit"] == 1
        assert detail["upgrade_url"] == "/billing"

    @pytest.mark.asyncio
    async def test_staff_cannot_manage_products(self, client, member):
        _, headers = await member("staff-shop", "basic", role="staff")

        response = await client.get("/api/v1/products", headers=headers)

        assert response.status_code == 403


class TestAgents:

    @pytest.mark.asyncio
    async def test_agents_need_plan_feature(self, client, auth_headers):
        response = await client.get("/api/v1/agents", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "feature_unavailable"
        assert response.json()["detail"]["feature"] == "agents"

    @pytest.mark.asyncio
    async def test_agents_on_enterprise(self, client, member):
        _, headers = await member("big-shop", "enterprise")

        created = await client.post("/api/v1/agents", headers=headers, json={"name": "Reseller"})
        listed = await client.get("/api/v1/agents", headers=headers)

        assert created.status_code == 201
        assert created.json()["wallet_balance"] == 0
        assert [a["name"] for a in listed.json()] == ["Reseller"]


class TestCustomers:

    @pytest.mark.asyncio
    async def test_customers_are_tenant_private(self, client, auth_headers, member):
        _, other_headers = await member("other-shop", "pro")
        await client.post("/api/v1/customers", headers=auth_headers, json={"name": "Alice", "company": "Acme"})
        await client.post("/api/v1/customers", headers=other_headers, json={"name": "Bob"})

        mine = await client.get("/api/v1/customers", headers=auth_headers)
        theirs = await client.get("/api/v1/customers", headers=other_headers)

        assert [c["name"] for c in mine.json()] == ["Alice"]
        assert [c["name"] for c in theirs.json()] == ["Bob"]


class TestOrderWorkflow:

    @pytest.mark.asyncio
    async def test_complete_order_logs_activity_and_pays_invoice(self, client, auth_headers, test_org, db_session):
        created = await client.post("/api/v1/orders", headers=auth_headers, json={"quantity": 100, "total": 250})
        assert created.status_code == 201
        order = created.json()
        assert order["status"] == "pending"
        assert order["order_number"].startswith("ORD-")

        invoice = await create_scoped_client(db_session, test_org.id).invoice.create(
            {"invoice_number": "INV-1", "order_id": order["id"], "amount": 250}
        )

        response = await client.patch(
            f"/api/v1/orders/{order['id']}/status", headers=auth_headers, json={"status": "completed"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        activity = await client.get(f"/api/v1/orders/{order['id']}/activity", headers=auth_headers)
        assert [(a["from_status"], a["to_status"]) for a in activity.json()] == [("pending", "completed")]

        await db_session.refresh(invoice)
        assert invoice.status == "paid"
        assert invoice.paid_at is not None

    @pytest.mark.asyncio
    async def test_status_change_without_completion_leaves_invoice(self, client, auth_headers, test_org, db_session):
        order = (await client.post("/api/v1/orders", headers=auth_headers, json={})).json()
        invoice = await create_scoped_client(db_session, test_org.id).invoice.create(
            {"invoice_number": "INV-2", "order_id": order["id"], "amount": 10}
        )

        response = await client.patch(
            f"/api/v1/orders/{order['id']}/status", headers=auth_headers, json={"status": "in_production"}
        )

        assert response.status_code == 200
        await db_session.refresh(invoice)
        assert invoice.status == "unpaid"

    @pytest.mark.asyncio
    async def test_foreign_order_status_is_not_found(self, client, auth_headers, org_factory, db_session):
        other = await org_factory("other-shop")
        other_client = create_scoped_client(db_session, other.id)
        foreign = await other_client.order.create({"order_number": "ORD-X"})

        response = await client.patch(
            f"/api/v1/orders/{foreign.id}/status", headers=auth_headers, json={"status": "cancelled"}
        )

        assert response.status_code == 404
        await db_session.refresh(foreign)
        assert foreign.status == "pending"
        assert await other_client.order_activity.count() == 0

    @pytest.mark.asyncio
    async def test_invalid_status(self, client, auth_headers):
        order = (await client.post("/api/v1/orders", headers=auth_headers, json={})).json()

        response = await client.patch(
            f"/api/v1/orders/{order['id']}/status", headers=auth_headers, json={"status": "shipped-to-mars"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_order_for_foreign_customer_rejected(self, client, auth_headers, org_factory, db_session):
        other = await org_factory("other-shop")
        foreign_customer = await create_scoped_client(db_session, other.id).customer.create({"name": "Bob"})

        response = await client.post(
            "/api/v1/orders", headers=auth_headers, json={"customer_id": foreign_customer.id}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_patch_order_to_foreign_customer_rejected(self, client, auth_headers, test_org, org_factory, db_session):
        other = await org_factory("other-shop")
        foreign_customer = await create_scoped_client(db_session, other.id).customer.create({"name": "Bob"})
        foreign_customer_id = foreign_customer.id
        own_customer = await create_scoped_client(db_session, test_org.id).customer.create({"name": "Alice"})
        own_customer_id = own_customer.id
        order = (await client.post("/api/v1/orders", headers=auth_headers, json={"customer_id": own_customer_id})).json()

        response = await client.patch(
            f"/api/v1/orders/{order['id']}", headers=auth_headers, json={"customer_id": foreign_customer_id}
        )

        assert response.status_code == 404
        stored = await client.get(f"/api/v1/orders/{order['id']}", headers=auth_headers)
        assert stored.json()["customer_id"] == own_customer_id

    @pytest.mark.asyncio
    async def test_super_admin_status_change_logs_without_actor(self, client, test_org):
        headers = make_auth_headers("platform-admin", test_org.id, is_super_admin=True)
        order = (await client.post("/api/v1/orders", headers=headers, json={})).json()

        response = await client.patch(
            f"/api/v1/orders/{order['id']}/status", headers=headers, json={"status": "in_production"}
        )

        assert response.status_code == 200
        activity = (await client.get(f"/api/v1/orders/{order['id']}/activity", headers=headers)).json()
        assert [a["user_id"] for a in activity] == [None]


class TestUsers:

    @pytest.mark.asyncio
    async def test_create_user_and_duplicate_email(self, client, auth_headers, test_org):
        org_id = test_org.id

        created = await client.post(
            "/api/v1/users", headers=auth_headers, json={"email": "Staff@Shop.com", "role": "staff"}
        )
        duplicate = await client.post("/api/v1/users", headers=auth_headers, json={"email": "staff@shop.com"})

        assert created.status_code == 201
        assert created.json()["email"] == "staff@shop.com"
        assert created.json()["organization_id"] == org_id
        assert duplicate.status_code == 409

    @pytest.mark.asyncio
    async def test_user_quota(self, client, member):
        _, headers = await member("solo-shop", "pro", max_users=1)

        response = await client.post("/api/v1/users", headers=headers, json={"email": "second@solo.com"})

        assert response.status_code == 403
        assert response.json()["detail"]["resource"] == "users"

    @pytest.mark.asyncio
    async def test_my_routes(self, client, member):
        _, headers = await member("staff-shop", "basic", role="staff")

        response = await client.get("/api/v1/users/me/routes", headers=headers)

        assert response.json() == ["/production-board", "/orders", "/profile"]

    @pytest.mark.asyncio
    async def test_staff_cannot_list_users(self, client, member):
        _, headers = await member("staff-shop", "basic", role="staff")

        assert (await client.get("/api/v1/users", headers=headers)).status_code == 403

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, client, auth_headers, test_user):
        response = await client.delete(f"/api/v1/users/{test_user.id}", headers=auth_headers)

        assert response.status_code == 400


class TestBilling:

    @pytest.mark.asyncio
    async def test_upgrade_to_pro(self, client, auth_headers, plan_factory):
        await plan_factory("pro")

        response = await client.post(
            "/api/v1/billing/upgrade", headers=auth_headers, json={"plan_slug": "pro", "billing_cycle": "yearly"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "active"
        assert response.json()["billing_cycle"] == "yearly"
        plan = (await client.get("/api/v1/org/plan", headers=auth_headers)).json()
        assert plan["planSlug"] == "pro"
        assert plan["features"]["agents"] is True

    @pytest.mark.asyncio
    async def test_upgrade_unknown_plan(self, client, auth_headers):
        response = await client.post("/api/v1/billing/upgrade", headers=auth_headers, json={"plan_slug": "platinum"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_only_admins_change_billing(self, client, member):
        _, headers = await member("managed-shop", "basic", role="manager")

        response = await client.post("/api/v1/billing/cancel", headers=headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_cancel(self, client, auth_headers):
        response = await client.post("/api/v1/billing/cancel", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "canceled"
        assert response.json()["canceled_at"] is not None

    @pytest.mark.asyncio
    async def test_list_plans(self, client, plan_factory):
        await plan_factory("pro")
        await plan_factory("basic")

        response = await client.get("/api/v1/billing/plans")

        assert [p["slug"] for p in response.json()] == ["basic", "pro"]
        assert response.json()[0]["maxUsers"] == 5


class TestCron:

    @pytest.fixture
    async def ended_trial(self, org_factory, plan_factory):
        plan = await plan_factory("free")
        return await org_factory(
            "lapsed-shop", plan=plan, status="trialing", trial_ends_at=utcnow() - timedelta(days=1)
        )

    @pytest.mark.asyncio
    async def test_requires_secret_when_configured(self, client, ended_trial, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")

        assert (await client.get("/api/v1/cron/check-trials")).status_code == 401
        wrong = await client.get("/api/v1/cron/check-trials", headers={"Authorization": "Bearer nope"})
        assert wrong.status_code == 401

        response = await client.get("/api/v1/cron/check-trials", headers={"Authorization": "Bearer s3cret"})
        assert response.status_code == 200
        assert response.json()["expired_count"] == 1
        assert response.json()["organizations"][0]["slug"] == "lapsed-shop"

    @pytest.mark.asyncio
    async def test_open_without_secret(self, client, ended_trial, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", None)

        first = await client.get("/api/v1/cron/check-trials")
        second = await client.get("/api/v1/cron/check-trials")

        assert first.json()["expired_count"] == 1
        assert second.json()["expired_count"] == 0


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_and_duplicate(self, client):
        payload = {"name": "Acme Prints", "slug": "acme-prints", "admin_email": "boss@acme.com"}

        created = await client.post("/api/v1/register", json=payload)
        duplicate = await client.post("/api/v1/register", json=payload)

        assert created.status_code == 201
        assert created.json()["slug"] == "acme-prints"
        assert created.json()["currency"] == "MYR"
        assert duplicate.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_slug(self, client):
        response = await client.post("/api/v1/register", json={"name": "Acme", "slug": "acme prints!"})

        assert response.status_code == 422


class TestSuperAdmin:

    @pytest.mark.asyncio
    async def test_tenant_admin_is_refused(self, client, auth_headers):
        response = await client.get("/api/v1/superadmin/organizations", headers=auth_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_lists_every_organization(self, client, test_user, member, db_session):
        other_org, _ = await member("other-shop", "pro")
        await create_scoped_client(db_session, other_org.id).product.create({"name": "Card"})
        headers = make_auth_headers("platform-admin", None, is_super_admin=True)

        response = await client.get("/api/v1/superadmin/organizations", headers=headers)

        assert response.status_code == 200
        rows = {row["slug"]: row for row in response.json()}
        assert set(rows) == {"test-print-shop", "other-shop"}
        assert rows["other-shop"]["plan_slug"] == "pro"
        assert rows["other-shop"]["products"] == 1
        assert rows["test-print-shop"]["users"] == 1
