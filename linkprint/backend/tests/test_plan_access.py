# tests/test_plan_access.py
"""
Plan resolution tests
Tests: Basic fallback, Pro trial, trial expiry, feature checks, usage limits
"""

import pytest
from datetime import timedelta
from sqlalchemy.exc import SQLAlchemyError

from app.core.constants import BASIC_FEATURES, ENTERPRISE_FEATURES, FREE_FEATURES, PRO_FEATURES
from app.core.exceptions import FeatureNotAvailableError, UsageLimitExceededError
from app.db.repositories.scoped import create_scoped_client
from app.db.repositories.subscription_repository import SubscriptionRepository
from app.services.plan_access import PlanResolver, check_usage_limit, days_remaining, plan_features, resolve
from tests.conftest import NOW


@pytest.fixture
def resolver(db_session) -> PlanResolver:
    return PlanResolver(db_session, clock=lambda: NOW)


class TestDefaultFallback:
    """Organizations without a usable subscription get Basic"""

    @pytest.mark.asyncio
    async def test_no_subscription_resolves_to_basic(self, db_session, org_factory, resolver):
        org = await org_factory("org-1")

        access = await resolver.resolve(org.id)

        assert access.plan_slug == "basic"
        assert access.plan_name == "Basic"
        assert access.features == BASIC_FEATURES
        assert access.features["agents"] is False
        assert access.features["departments"] is True
        assert access.limits.max_users == 5
        assert access.limits.max_orders == 100
        assert access.limits.max_products == 50
        assert access.limits.max_storage_mb == 1000
        assert access.trial.is_active is False
        assert access.subscription is None
        assert access.is_basic

    @pytest.mark.asyncio
    async def test_no_subscription_and_create_injection(self, db_session, org_factory):
        """Basic plan for org-1, and a product claimed for org-2 still lands in org-1"""
        org_1 = await org_factory("org-1")
        org_2 = await org_factory("org-2")

        access = await resolve(db_session, org_1.id)
        product = await create_scoped_client(db_session, org_1.id).product.create(
            {"name": "Card", "organization_id": org_2.id}
        )

        assert access.plan_slug == "basic"
        assert product.organization_id == org_1.id

    @pytest.mark.asyncio
    async def test_unknown_organization_resolves_to_basic(self, resolver):
        access = await resolver.resolve("no-such-org")

        assert access.plan_slug == "basic"

    @pytest.mark.asyncio
    async def test_store_error_falls_back_to_basic(self, db_session, org_factory, plan_factory, resolver, monkeypatch):
        plan = await plan_factory("enterprise")
        org = await org_factory("org-1", plan=plan)

        async def broken(self, organization_id):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(SubscriptionRepository, "get_for_organization", broken)

        access = await resolver.resolve(org.id)

        assert access.plan_slug == "basic"
        assert access.features == BASIC_FEATURES


class TestTrial:
    """An unexpired trial grants Pro regardless of the linked plan"""

    @pytest.mark.asyncio
    async def test_active_trial_grants_pro(self, org_factory, plan_factory, resolver):
        plan = await plan_factory("free")
        org = await org_factory(
            "org-1", plan=plan, status="trialing", trial_ends_at=NOW + timedelta(days=3, hours=1)
        )

        access = await resolver.resolve(org.id)

        assert access.plan_name == "Pro (Trial)"
        assert access.plan_slug == "pro"
        assert access.features == PRO_FEATURES
        assert access.can("agents")
        assert access.cannot("whiteLabel")
        assert access.limits.max_users == 10
        assert access.limits.max_orders == 500
        assert access.limits.max_products == 200
        assert access.limits.max_storage_mb == 5000
        assert access.trial.is_active is True
        assert access.trial.days_remaining == 4
        assert access.subscription.status == "trialing"
        assert access.is_pro

    @pytest.mark.asyncio
    async def test_days_remaining_whole_days(self, org_factory, plan_factory, resolver):
        plan = await plan_factory("free")
        org = await org_factory("org-1", plan=plan, status="trialing", trial_ends_at=NOW + timedelta(days=3))

        access = await resolver.resolve(org.id)

        assert access.trial.days_remaining == 3

    def test_days_remaining_rounds_up(self):
        assert days_remaining(NOW + timedelta(seconds=1), NOW) == 1
        assert days_remaining(NOW + timedelta(days=14), NOW) == 14
        assert days_remaining(NOW - timedelta(days=1), NOW) == 0

    @pytest.mark.asyncio
    async def test_ended_trial_demotes_to_base_plan(self, org_factory, plan_factory, resolver):
        plan = await plan_factory("free")
        org = await org_factory("org-1", plan=plan, status="trialing", trial_ends_at=NOW - timedelta(seconds=1))

        access = await resolver.resolve(org.id)

        assert access.plan_slug == "free"
        assert access.plan_name == "Free"
        assert access.features == {**BASIC_FEATURES, **FREE_FEATURES}
        assert access.cannot("agents")
        assert access.limits.max_users == 2
        assert access.trial.is_active is False
        assert access.trial.days_remaining == 0
        # Not yet swept: reported as active, still stored as trialing
        assert access.subscription.status == "active"

    @pytest.mark.asyncio
    async def test_trial_ending_now_is_over(self, org_factory, plan_factory, resolver):
        plan = await plan_factory("basic")
        org = await org_factory("org-1", plan=plan, status="trialing", trial_ends_at=NOW)

        access = await resolver.resolve(org.id)

        assert access.plan_slug == "basic"
        assert access.trial.is_active is False

    @pytest.mark.asyncio
    async def test_trialing_without_end_date_uses_plan(self, org_factory, plan_factory, resolver):
        plan = await plan_factory("basic")
        org = await org_factory("org-1", plan=plan, status="trialing", trial_ends_at=None)

        access = await resolver.resolve(org.id)

        assert access.plan_slug == "basic"
        assert access.trial.is_active is False


class TestPlanFeatures:

    @pytest.mark.asyncio
    async def test_stored_features_override_basic_defaults(self, org_factory, plan_factory, resolver):
        plan = await plan_factory("basic", features={"agents": True})
        org = await org_factory("org-1", plan=plan)

        access = await resolver.resolve(org.id)

        assert access.can("agents")
        assert access.can("departments")
        assert access.cannot("storefront")

    @pytest.mark.asyncio
    async def test_enterprise_plan(self, org_factory, plan_factory, resolver):
        plan = await plan_factory("enterprise")
        org = await org_factory("org-1", plan=plan)

        access = await resolver.resolve(org.id)

        assert access.is_enterprise
        assert access.can("whiteLabel")
        assert access.can("apiAccess")
        assert access.limits.max_users == 100

    @pytest.mark.asyncio
    async def test_malformed_flag_only_denies_that_flag(self, org_factory, plan_factory, resolver):
        """One bad stored value must not cost the organization its plan"""
        plan = await plan_factory(
            "enterprise", features={**ENTERPRISE_FEATURES, "liveTracking": None, "shipments": "yes"}
        )
        org = await org_factory("org-1", plan=plan)

        access = await resolver.resolve(org.id)

        assert access.plan_slug == "enterprise"
        assert access.limits.max_users == 100
        assert access.can("whiteLabel")
        assert access.cannot("liveTracking")
        assert access.cannot("shipments")
        assert access.features["liveTracking"] is False

    def test_plan_features_keeps_basic_defaults(self):
        features = plan_features({"agents": True, "departments": 0})

        assert features["agents"] is True
        assert features["departments"] is False
        assert features["customers"] is True

    @pytest.mark.asyncio
    async def test_unknown_feature_is_denied(self, org_factory, plan_factory, resolver):
        plan = await plan_factory("enterprise")
        org = await org_factory("org-1", plan=plan)

        access = await resolver.resolve(org.id)

        assert access.can("teleportation") is False
        assert access.cannot("teleportation") is True

    @pytest.mark.asyncio
    async def test_require_feature(self, org_factory, plan_factory, resolver):
        plan = await plan_factory("basic")
        org = await org_factory("org-1", plan=plan)

        assert (await resolver.require_feature(org.id, "departments")).plan_slug == "basic"
        with pytest.raises(FeatureNotAvailableError) as exc_info:
            await resolver.require_feature(org.id, "agents")
        assert exc_info.value.feature == "agents"
        assert await resolver.can(org.id, "agents") is False

    @pytest.mark.asyncio
    async def test_access_serializes_camel_case(self, org_factory, resolver):
        org = await org_factory("org-1")

        data = (await resolver.resolve(org.id)).model_dump(by_alias=True)

        assert data["planSlug"] == "basic"
        assert data["limits"] == {"maxUsers": 5, "maxOrders": 100, "maxProducts": 50, "maxStorageMb": 1000}
        assert data["trial"]["daysRemaining"] == 0


class TestUsageLimits:

    @pytest.mark.asyncio
    async def test_unlimited_never_raises(self, db_session, org_factory, plan_factory):
        plan = await plan_factory("basic", max_products=-1)
        org = await org_factory("org-1", plan=plan)
        client = create_scoped_client(db_session, org.id)
        for name in ("Card", "Banner", "Flyer"):
            await client.product.create({"name": name})

        await check_usage_limit(db_session, org.id, "products")

    @pytest.mark.asyncio
    async def test_below_limit_passes(self, db_session, org_factory, plan_factory):
        plan = await plan_factory("basic", max_products=2)
        org = await org_factory("org-1", plan=plan)
        await create_scoped_client(db_session, org.id).product.create({"name": "Card"})

        await check_usage_limit(db_session, org.id, "products")

    @pytest.mark.asyncio
    async def test_at_limit_raises(self, db_session, org_factory, plan_factory):
        plan = await plan_factory("basic", max_products=2)
        org = await org_factory("org-1", plan=plan)
        client = create_scoped_client(db_session, org.id)
        await client.product.create({"name": "Card"})
        await client.product.create({"name": "Banner"})

        with pytest.raises(UsageLimitExceededError) as exc_info:
            await check_usage_limit(db_session, org.id, "products")

        assert exc_info.value.limit == 2
        assert exc_info.value.current == 2
        assert str(exc_info.value) == "Plan limit reached for products (2). Upgrade your plan to add more."

    @pytest.mark.asyncio
    async def test_other_tenants_records_do_not_count(self, db_session, org_factory, plan_factory):
        plan = await plan_factory("basic", max_orders=1)
        org_1 = await org_factory("org-1", plan=plan)
        org_2 = await org_factory("org-2", plan=plan)
        await create_scoped_client(db_session, org_2.id).order.create({"order_number": "ORD-1"})

        await check_usage_limit(db_session, org_1.id, "orders")

    @pytest.mark.asyncio
    async def test_trial_limits_apply(self, db_session, org_factory, plan_factory, user_factory, resolver):
        plan = await plan_factory("free")
        org = await org_factory("org-1", plan=plan, status="trialing", trial_ends_at=NOW + timedelta(days=5))
        for i in range(3):
            await user_factory(org, f"user{i}@org-1.com")

        # Free allows 2 users; the trial allows 10
        await resolver.check_usage_limit(org.id, "users")

    @pytest.mark.asyncio
    async def test_unknown_resource(self, db_session, org_factory, resolver):
        org = await org_factory("org-1")

        with pytest.raises(ValueError):
            await resolver.check_usage_limit(org.id, "storage")
