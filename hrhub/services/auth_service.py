# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Identity service: credentials, sessions and user lookup.

The access control layer only needs to know *who* is calling. A caller is
identified by an opaque session token, sent either as a bearer token or as
the ``session`` cookie. Tokens of deactivated users identify nobody.
"""

import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from hrhub.config import get_settings
from hrhub.models import User
from hrhub.models.session import Session as SessionModel
from hrhub.security import verify_password

logger = logging.getLogger(__name__)


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


def authenticate(db: Session, login: str, password: str) -> User | None:
    """Check credentials. ``login`` may be the username or the email address.

    Returns the user, or None for unknown logins, wrong passwords and
    deactivated accounts.
    """
    user = db.query(User).filter(or_(User.username == login, User.email == login)).first()
    if user is None or not verify_password(password, user.hashed_password):
        logger.warning(f"Failed login attempt for '{login}'")
        return None
    if not user.is_active:
        logger.warning(f"Login refused for deactivated user {user.id}")
        return None
    return user


def create_session(db: Session, user_id: str, lifetime: timedelta | None = None) -> str:
    """Open a session for a user and return its token."""
    if lifetime is None:
        lifetime = timedelta(days=get_settings().session_expiry_days)

    token = str(uuid.uuid4())
    db.add(SessionModel(user_id=user_id, token=token, expires_at=datetime.utcnow() + lifetime))
    db.commit()

    logger.info(f"Session created for user {user_id}")
    return token


def get_session(db: Session, token: str) -> SessionModel | None:
    """Get a session by token. An expired session is deleted on sight."""
    session = db.query(SessionModel).filter(SessionModel.token == token).first()
    if session is None:
        return None
    if session.expires_at < datetime.utcnow():
        db.delete(session)
        db.commit()
        return None
    return session


def resolve_identity(db: Session, token: str | None) -> User | None:
    """Map a session token to an active user, or None."""
    if not token:
        return None
    session = get_session(db, token)
    if session is None:
        return None
    user = get_user_by_id(db, session.user_id)
    if user is None or not user.is_active:
        return None
    return user


def delete_session(db: Session, token: str) -> bool:
    session = db.query(SessionModel).filter(SessionModel.token == token).first()
    if session is None:
        return False
    user_id = session.user_id
    db.delete(session)
    db.commit()
    logger.info(f"Session ended for user {user_id}")
    return True


def cleanup_expired_sessions(db: Session) -> int:
    """Delete all expired sessions and return how many were removed."""
    count = (
        db.query(SessionModel)
        .filter(SessionModel.expires_at < datetime.utcnow())
        .delete(synchronize_session=False)
    )
    db.commit()
    if count:
        logger.info(f"Removed {count} expired session(s)")
    return count
