"""Session-token authentication and capability dependencies."""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.dependencies import get_user_repo
from domain.model.role import Capability, capabilities_for
from domain.model.user import User
from port.user_repository import UserRepository
from services.session_service import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    user_repo: UserRepository = Depends(get_user_repo),
) -> Optional[User]:
    """Get current authenticated user (optional). Returns None if no token."""
    if not credentials:
        return None

    claims = decode_access_token(credentials.credentials)
    if not claims:
        return None

    return user_repo.get_by_id(claims["sub"])


def get_current_user_required(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    user_repo: UserRepository = Depends(get_user_repo),
) -> User:
    """Get current authenticated user (required). Raises 401 if not authenticated."""
    if not credentials:
        raise _unauthorized("Not authenticated")

    claims = decode_access_token(credentials.credentials)
    if not claims:
        raise _unauthorized("Invalid authentication credentials")

    user = user_repo.get_by_id(claims["sub"])
    if not user:
        raise _unauthorized("User not found")

    return user


def require_capability(capability: Capability):
    """Build a dependency that admits only users whose role grants ``capability``."""

    def dependency(current_user: User = Depends(get_current_user_required)) -> User:
        if capability not in capabilities_for(current_user):
            logger.warning("Capability check failed", extra={
                "userId": current_user.id,
                "userType": current_user.user_type,
                "capability": capability.value,
            })
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return dependency
