"""
Pytest configuration and fixtures
Shared test setup for all test modules
"""

import os

# Settings are read at import time; point them at a throwaway database first
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.security import create_access_token
from app.db.base import Base
from app.db.database import get_db
from app.db.models import Organization, Plan, Subscription, User
from app.services.subscription_service import plan_from_catalog

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed "now" so trial arithmetic is deterministic
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create clean database for each test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with session_factory() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def plan_factory(db_session: AsyncSession):
    """Insert a catalog plan (free/basic/pro/enterprise), optionally overriding columns"""

    async def _create(slug: str = "basic", **overrides) -> Plan:
        plan = plan_from_catalog(slug)
        for key, value in overrides.items():
            setattr(plan, key, value)
        db_session.add(plan)
        await db_session.commit()
        await db_session.refresh(plan)
        return plan

    return _create


@pytest.fixture
def org_factory(db_session: AsyncSession):
    """Insert an organization, with a subscription when a plan is given"""

    async def _create(
        slug: str,
        plan: Optional[Plan] = None,
        status: str = "active",
        trial_ends_at: Optional[datetime] = None,
        current_period_end: Optional[datetime] = None,
    ) -> Organization:
        organization = Organization(name=slug.replace("-", " ").title(), slug=slug)
        db_session.add(organization)
        await db_session.flush()

        if plan is not None:
            db_session.add(
                Subscription(
                    organization_id=organization.id,
                    plan_id=plan.id,
                    status=status,
                    billing_cycle="monthly",
                    current_period_start=NOW - timedelta(days=10),
                    current_period_end=current_period_end or NOW + timedelta(days=20),
                    trial_ends_at=trial_ends_at,
                )
            )

        await db_session.commit()
        await db_session.refresh(organization)
        return organization

    return _create


@pytest.fixture
def user_factory(db_session: AsyncSession):
    async def _create(organization: Organization, email: str, role: str = "admin", name: Optional[str] = None) -> User:
        user = User(organization_id=organization.id, email=email, name=name, role=role)
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create


def make_auth_headers(
    user_id: str,
    organization_id: Optional[str],
    role: str = "admin",
    is_super_admin: bool = False,
) -> dict:
    """Bearer headers for a principal"""
    claims = {"sub": user_id, "role": role, "is_super_admin": is_super_admin}
    if organization_id:
        claims["organization_id"] = organization_id
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


@pytest.fixture
async def test_org(org_factory, plan_factory) -> Organization:
    """Organization on an active Basic subscription"""
    plan = await plan_factory("basic")
    return await org_factory("test-print-shop", plan=plan)


@pytest.fixture
async def test_user(test_org: Organization, user_factory) -> User:
    return await user_factory(test_org, "owner@test-print-shop.com", role="admin", name="Owner")


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate auth headers for test user"""
    return make_auth_headers(test_user.id, test_user.organization_id, role=test_user.role)
