"""Pydantic models for API request/response.

Wire format is camelCase; every response is wrapped in ApiResponse:
{success, data?, error?, message?}.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.model.identity import UserView
from domain.model.resource import Page

T = TypeVar('T')


class APIModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(APIModel, Generic[T]):
    """Uniform response envelope."""
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None


# ── Auth ─────────────────────────────────────────────────


class ProviderLoginRequest(APIModel):
    """Body for identity-provider token login; the token may come from the header instead."""
    id_token: Optional[str] = None
    user_type: Optional[str] = None


class RegisterRequest(APIModel):
    """Request model for password registration."""
    name: str = ''
    email: str = ''
    phone: str = ''
    password: str = ''
    user_type: str = ''
    experience: Optional[int] = Field(None, ge=0)
    specializations: Optional[list[str]] = None
    service_areas: Optional[list[str]] = None


class LoginRequest(APIModel):
    """Request model for password login by email, phone or username."""
    email: Optional[str] = None
    phone: Optional[str] = None
    username: Optional[str] = None
    password: str = ''


class ProfileUpdateRequest(APIModel):
    name: Optional[str] = None
    preferences: Optional[dict[str, Any]] = None


class RoleInfoResponse(APIModel):
    display_name: str
    color: str


class UserResponse(APIModel):
    """Client-facing user; never carries password hashes or provider secrets."""
    id: str
    name: str
    email: str
    phone: str
    user_type: str
    role: Optional[str] = None
    permissions: Optional[list[str]] = None
    role_info: Optional[RoleInfoResponse] = None
    username: Optional[str] = None
    is_first_login: Optional[bool] = None

    @classmethod
    def from_view(cls, view: UserView) -> 'UserResponse':
        role_info = None
        if view.role_info:
            role_info = RoleInfoResponse(display_name=view.role_info.display_name, color=view.role_info.color)
        return cls(
            id=view.id,
            name=view.name,
            email=view.email,
            phone=view.phone,
            user_type=view.user_type,
            role=view.role,
            permissions=view.permissions,
            role_info=role_info,
            username=view.username,
            is_first_login=view.is_first_login,
        )


class AuthData(APIModel):
    token: str
    user: UserResponse


# ── Admin ────────────────────────────────────────────────


class Pagination(APIModel):
    page: int
    limit: int
    total: int
    pages: int


class ItemList(APIModel):
    """One page of admin resource items."""
    items: list[dict[str, Any]]
    pagination: Pagination

    @classmethod
    def from_page(cls, page: Page) -> 'ItemList':
        return cls(
            items=page.items,
            pagination=Pagination(page=page.page, limit=page.limit, total=page.total, pages=page.pages),
        )


class ReorderRequest(APIModel):
    ids: list[str] = Field(..., min_length=1)


class ReorderResult(APIModel):
    updated: int
