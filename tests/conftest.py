import asyncio
import os

# Settings are read once; point them at test values before the app is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("ADMIN_EMAIL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from smarthive.core.config import get_settings
from smarthive.core.db import Base, get_db
from smarthive.core.security import get_password_hash
from smarthive.main import app
from smarthive.models import Purchase, User

get_settings.cache_clear()

PASSWORD = "password123"


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def sessionmaker(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite'}",
        poolclass=NullPool,
    )

    async def create_all():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    run(create_all())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    run(engine.dispose())


@pytest.fixture
def client(sessionmaker):
    async def override_get_db():
        async with sessionmaker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seed_user(sessionmaker):
    """Insert a user directly and return its id."""

    def _seed(email, password=PASSWORD, role="user", firstname="Test", lastname="User"):
        async def insert():
            async with sessionmaker() as session:
                user = User(
                    email=email,
                    password_hash=get_password_hash(password),
                    firstname=firstname,
                    lastname=lastname,
                    role=role,
                )
                session.add(user)
                await session.commit()
                return user.id

        return run(insert())

    return _seed


@pytest.fixture
def seed_purchase(sessionmaker):
    def _seed(user_id, master_hives=1, normal_hives=0, access_granted=False, containers=None, **fields):
        async def insert():
            async with sessionmaker() as session:
                purchase = Purchase(
                    user_id=user_id,
                    master_hives=master_hives,
                    normal_hives=normal_hives,
                    total_amount=fields.pop("total_amount", 100.0),
                    full_name=fields.pop("full_name", "Test User"),
                    email=fields.pop("email", "buyer@example.com"),
                    status="approved" if access_granted else "pending",
                    access_granted=access_granted,
                    assigned_containers=containers or [],
                    **fields,
                )
                session.add(purchase)
                await session.commit()
                return purchase.id

        return run(insert())

    return _seed


def login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture
def admin_client(client, seed_user):
    seed_user("admin@example.com", role="admin", firstname="Ada", lastname="Admin")
    res = login(client, "admin@example.com")
    assert res.status_code == 200, res.text
    return client
