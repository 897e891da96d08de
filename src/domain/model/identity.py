from dataclasses import dataclass

from domain.model.role import RoleInfo
from domain.model.user import User


@dataclass(frozen=True)
class VerifiedClaims:
    """Identity extracted from a verified provider token.

    Empty strings stand for claims the provider did not supply.
    """
    subject_id: str
    email: str = ''
    name: str = ''
    phone: str = ''


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of mapping a verified identity onto a local user."""
    user: User
    is_new: bool


@dataclass(frozen=True)
class UserView:
    """Client-facing projection of a user. Never carries credentials."""
    id: str
    name: str
    email: str
    phone: str
    user_type: str
    role: str | None = None
    permissions: list[str] | None = None
    role_info: RoleInfo | None = None
    username: str | None = None
    is_first_login: bool | None = None


@dataclass(frozen=True)
class Session:
    """Signed session token plus the user it was issued for."""
    token: str
    user: UserView
