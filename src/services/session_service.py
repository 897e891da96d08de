"""Session issuer: signed session tokens and the client-facing user view."""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from domain.model.identity import Session, UserView
from domain.model.role import capabilities_for, effective_role, is_backoffice, role_info_for
from domain.model.user import User

logger = logging.getLogger(__name__)

# JWT Configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY:
    raise ValueError(
        "JWT_SECRET_KEY environment variable is required. "
        "Generate a secure key with: openssl rand -hex 32"
    )
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_DAYS = 7


def create_access_token(user: User) -> str:
    """Create a session JWT for the user.

    Claims carry identity and role only; no password or provider secrets.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "userId": user.id,
        "userType": user.user_type,
        "email": user.email,
        "phone": user.phone,
        "iat": now,
        "exp": now + timedelta(days=JWT_EXPIRATION_DAYS),
    }
    role = effective_role(user)
    if role:
        payload["role"] = role
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Verify a session JWT. Returns its claims, or None if invalid or expired."""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.debug(f"JWT verification failed: {e}")
        return None
    if not payload.get("sub"):
        return None
    return payload


def build_user_view(user: User) -> UserView:
    if not is_backoffice(user):
        return UserView(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            user_type=user.user_type,
        )

    role = effective_role(user)
    return UserView(
        id=user.id,
        name=user.name,
        email=user.email,
        phone=user.phone,
        user_type=user.user_type,
        role=role,
        permissions=sorted(c.value for c in capabilities_for(user)),
        role_info=role_info_for(role),
        username=user.username,
        is_first_login=user.is_first_login,
    )


def issue_session(user: User) -> Session:
    return Session(token=create_access_token(user), user=build_user_view(user))
