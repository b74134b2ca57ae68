# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for auth_service and user_service."""

from datetime import datetime, timedelta

import pytest

from hrhub.models import UserRole
from hrhub.models.session import Session as SessionModel
from hrhub.rbac.exceptions import ConflictError, NotFoundError
from hrhub.schemas.user import UserCreate
from hrhub.services import auth_service, user_service


def test_authenticate_success(db_session, make_user):
    user = make_user("alice", password="Secret123!")
    assert auth_service.authenticate(db_session, "alice", "Secret123!").id == user.id


def test_authenticate_wrong_password(db_session, make_user):
    make_user("alice", password="Secret123!")
    assert auth_service.authenticate(db_session, "alice", "wrong") is None


def test_authenticate_inactive_user(db_session, make_user):
    make_user("alice", password="Secret123!", is_active=False)
    assert auth_service.authenticate(db_session, "alice", "Secret123!") is None


def test_authenticate_by_email(db_session, make_user):
    user = make_user("alice", password="Secret123!")
    assert auth_service.authenticate(db_session, "alice@example.com", "Secret123!").id == user.id


def test_resolve_identity(db_session, make_user):
    user = make_user("alice")
    token = auth_service.create_session(db_session, user.id)

    assert auth_service.resolve_identity(db_session, token).id == user.id
    assert auth_service.resolve_identity(db_session, None) is None
    assert auth_service.resolve_identity(db_session, "unknown-token") is None

    user.is_active = False
    db_session.commit()
    assert auth_service.resolve_identity(db_session, token) is None


def test_session_lifetime(db_session, make_user):
    user = make_user("alice")
    token = auth_service.create_session(db_session, user.id, lifetime=timedelta(minutes=5))
    session = auth_service.get_session(db_session, token)
    assert session.expires_at < datetime.utcnow() + timedelta(minutes=6)


def test_session_lifecycle(db_session, make_user):
    user = make_user("alice")
    token = auth_service.create_session(db_session, user.id)

    assert auth_service.get_session(db_session, token).user_id == user.id
    assert auth_service.delete_session(db_session, token) is True
    assert auth_service.get_session(db_session, token) is None
    assert auth_service.delete_session(db_session, token) is False


def test_expired_session_is_removed(db_session, make_user):
    user = make_user("alice")
    token = auth_service.create_session(db_session, user.id)
    session = db_session.query(SessionModel).filter(SessionModel.token == token).one()
    session.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db_session.commit()

    assert auth_service.get_session(db_session, token) is None
    assert db_session.query(SessionModel).count() == 0


def test_cleanup_expired_sessions(db_session, make_user):
    user = make_user("alice")
    db_session.add(
        SessionModel(
            user_id=user.id,
            token="expired-token",
            expires_at=datetime.utcnow() - timedelta(days=1),
        )
    )
    db_session.commit()
    auth_service.create_session(db_session, user.id)

    assert auth_service.cleanup_expired_sessions(db_session) == 1
    assert db_session.query(SessionModel).count() == 1


def test_create_user_hashes_password(db_session):
    user = user_service.create_user(
        db_session,
        UserCreate(username="carol", email="carol@example.com", password="Secret123!"),
    )
    assert user.hashed_password != "Secret123!"
    assert auth_service.authenticate(db_session, "carol", "Secret123!") is not None


def test_create_user_duplicate(db_session, make_user):
    make_user("carol")
    with pytest.raises(ConflictError):
        user_service.create_user(
            db_session,
            UserCreate(username="carol", email="other@example.com", password="Secret123!"),
        )


def test_delete_user_cascades_assignments(db_session, seeded, make_user):
    admin = make_user("admin", roles=["Admin"])
    user = make_user("dave", roles=["HR"])

    user_service.delete_user(db_session, user.id, deleted_by=admin.id)

    assert auth_service.get_user_by_id(db_session, user.id) is None
    assert db_session.query(UserRole).filter(UserRole.user_id == user.id).count() == 0


def test_delete_user_errors(db_session, make_user):
    user = make_user("dave")
    with pytest.raises(NotFoundError):
        user_service.delete_user(db_session, "missing")
    with pytest.raises(ConflictError):
        user_service.delete_user(db_session, user.id, deleted_by=user.id)
