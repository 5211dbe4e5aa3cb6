"""Shared test fixtures.

Uses an in-memory SQLite async engine so tests run without PostgreSQL.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-jwt-signing-0123456789")
os.environ["SENDGRID_API_KEY"] = ""
os.environ["STRIPE_API_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""

from datetime import date, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.seed import seed_plans
from app.main import app
from app.models import Doctor, Subscription, User
from app.services.auth import create_access_token, hash_password
from app.services import subscriptions as subscription_service


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

WEEKDAY_HOURS = {
    day: {"start": "09:00", "end": "17:00", "enabled": True}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
}


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


@pytest_asyncio.fixture
async def plans(db):
    await seed_plans(db)


@pytest.fixture
def next_monday():
    today = date.today()
    return today + timedelta(days=(7 - today.weekday()) % 7 or 7)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def make_user(db):
    async def _make_user(email: str, role: str = "patient", password: str = "testpass123", **fields) -> User:
        user = User(
            email=email,
            hashed_password=hash_password(password),
            full_name=fields.pop("full_name", email.split("@")[0]),
            role=role,
            is_active=fields.pop("is_active", True),
            **fields,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_doctor(db, make_user):
    """Create a doctor user with a verified, complete profile."""
    async def _make_doctor(email: str = "doctor@example.com", **fields) -> Doctor:
        user = await make_user(email, role="doctor", full_name=fields.get("name", "Juan Perez"))
        values = {
            "slug": email.split("@")[0],
            "name": "Juan Perez",
            "gender": "male",
            "specialty": "Cardiología",
            "location": "Buenos Aires",
            "phone": "+5491100000000",
            "verified": True,
            "profile_complete": True,
            "working_hours": WEEKDAY_HOURS,
        }
        values.update(fields)
        doctor = Doctor(user_id=user.id, **values)
        db.add(doctor)
        await db.commit()
        await db.refresh(doctor)
        return doctor

    return _make_doctor


@pytest.fixture
def subscribe(db):
    """Activate ``plan_id`` for a user through the normal write path."""
    async def _subscribe(user_id, plan_id: str = "plan-medium", days: int = 30) -> Subscription:
        plan = await subscription_service.get_plan(db, plan_id)
        subscription = Subscription(
            user_id=user_id,
            plan_id=plan.id,
            plan_name=plan.name,
            price=plan.price,
            status="pending",
            payment_method="manual",
        )
        db.add(subscription)
        await db.flush()
        now = datetime.utcnow()
        return await subscription_service.activate_subscription(
            db, subscription, activation_type="manual", starts_at=now, expires_at=now + timedelta(days=days),
        )

    return _subscribe
