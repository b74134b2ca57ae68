# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set test environment before importing app
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-32chars!"  # nosec - test-only secret  # noqa: S105
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["PERMISSION_CACHE_TTL_SECONDS"] = "0"
os.environ["SEED_ON_STARTUP"] = "false"

from hrhub.database import get_db
from hrhub.main import app
from hrhub.models import Permission, Role, User
from hrhub.models.base import Base
from hrhub.security import get_password_hash
from hrhub.services import assignment_service, auth_service
from hrhub.services.rbac_seed_service import seed_rbac_data

# Test database setup
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(db_session):
    """Seed core permissions and default roles."""
    seed_rbac_data(db_session)
    return db_session


@pytest.fixture
def make_user(db_session):
    """Factory creating persisted users with an optional list of role names."""

    def _make_user(
        username: str,
        password: str = "testpassword123",
        roles: list[str] | None = None,
        is_active: bool = True,
    ) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            hashed_password=get_password_hash(password),
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        for role_name in roles or []:
            role = db_session.query(Role).filter(Role.name == role_name).one()
            assignment_service.assign_role_to_user(db_session, user.id, role.id)
        return user

    return _make_user


@pytest.fixture
def make_permission(db_session):
    """Factory creating catalog permissions."""

    def _make_permission(
        code: str, module: str = "Test", resource: str = "", is_active: bool = True
    ) -> Permission:
        permission = Permission(
            name=code.replace("_", " ").title(),
            code=code,
            module=module,
            action=code.split("_")[-1].title(),
            resource=resource,
            is_active=is_active,
        )
        db_session.add(permission)
        db_session.commit()
        db_session.refresh(permission)
        return permission

    return _make_permission


@pytest.fixture
def make_role(db_session):
    """Factory creating roles."""

    def _make_role(name: str, is_active: bool = True) -> Role:
        role = Role(name=name, is_active=is_active)
        db_session.add(role)
        db_session.commit()
        db_session.refresh(role)
        return role

    return _make_role


@pytest.fixture
def login(db_session):
    """Open a session for a user and return bearer headers for it."""

    def _login(username: str) -> dict:
        user = auth_service.get_user_by_username(db_session, username)
        token = auth_service.create_session(db_session, user.id)
        return {"Authorization": f"Bearer {token}"}

    return _login


@pytest.fixture
def test_user(seeded, make_user) -> User:
    """Create a test user without any role."""
    return make_user("testuser")


@pytest.fixture
def admin_user(seeded, make_user) -> User:
    """Create an admin test user with the Admin role."""
    return make_user("admin", password="adminpassword123", roles=["Admin"])


@pytest.fixture
def authenticated_client(client, test_user):
    """Create an authenticated test client."""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": "testuser", "password": "testpassword123"},
    )
    assert response.status_code == 200
    return client


@pytest.fixture
def admin_client(client, admin_user):
    """Create an authenticated admin test client."""
    response = client.post(
        "/api/v1/auth/login", json={"username": "admin", "password": "adminpassword123"}
    )
    assert response.status_code == 200
    return client
