# domain/model/resource.py

"""Admin-managed resources and the pagination envelope for listing them.

Each back-office screen (categories, banners, ...) is driven by one
``AdminResource`` definition; the CRUD service and routes are generic over it.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable

from domain.model.role import Capability
from utils.identifiers import canonicalize_phone, normalize_email

# Fields the service maintains itself; never accepted from clients
SYSTEM_FIELDS = frozenset({'id', '_id', 'created_at', 'updated_at'})


@dataclass(frozen=True)
class AdminResource:
    """Definition of one admin CRUD resource."""
    name: str
    collection: str
    view_capability: Capability
    manage_capability: Capability
    required_fields: tuple[str, ...] = ()
    # query parameter -> expected type (str, bool or int)
    filters: dict[str, type] = field(default_factory=dict)
    search_fields: tuple[str, ...] = ()
    toggle_field: str | None = 'active'
    # value assumed for documents that lack the toggle field
    toggle_default: bool = True
    ordered: bool = False
    creatable: bool = True
    hidden_fields: frozenset[str] = frozenset()
    protected_fields: frozenset[str] = frozenset()
    # at least one of these must stay non-blank on every stored item
    contact_fields: tuple[str, ...] = ()
    # rewrites client-supplied fields into their stored form before any write
    normalize: Callable[[dict], dict] | None = None

    @property
    def writable_excluded(self) -> frozenset[str]:
        return SYSTEM_FIELDS | self.hidden_fields | self.protected_fields

    @property
    def filter_types(self) -> dict[str, type]:
        types = dict(self.filters)
        if self.toggle_field:
            types.setdefault(self.toggle_field, bool)
        return types


@dataclass(frozen=True)
class Page:
    """One page of a paginated listing."""
    items: list[dict[str, Any]]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _normalize_user_contact(fields: dict) -> dict:
    """Store phone and email in the same form identity lookups use."""
    if 'phone' in fields:
        fields['phone'] = canonicalize_phone(str(fields['phone'] or ''))
    if 'email' in fields:
        fields['email'] = normalize_email(str(fields['email'] or ''))
    return fields


CATEGORIES = AdminResource(
    name='categories',
    collection='categories',
    view_capability=Capability.CATEGORIES_MANAGE,
    manage_capability=Capability.CATEGORIES_MANAGE,
    required_fields=('name', 'slug'),
    search_fields=('name', 'slug'),
    ordered=True,
)

BANNERS = AdminResource(
    name='banners',
    collection='banners',
    view_capability=Capability.CONTENT_VIEW,
    manage_capability=Capability.CONTENT_MANAGE,
    required_fields=('title', 'image_url'),
    filters={'position': str},
    search_fields=('title',),
    ordered=True,
)

PROPERTIES = AdminResource(
    name='properties',
    collection='properties',
    view_capability=Capability.ADS_VIEW,
    manage_capability=Capability.ADS_MANAGE,
    required_fields=('title', 'price', 'property_type'),
    filters={'status': str, 'city': str, 'property_type': str},
    search_fields=('title', 'city', 'address'),
    toggle_field='featured',
    toggle_default=False,
)

USERS = AdminResource(
    name='users',
    collection='users',
    view_capability=Capability.USERS_VIEW,
    manage_capability=Capability.USERS_MANAGE,
    filters={'user_type': str},
    search_fields=('name', 'email', 'phone'),
    toggle_field='is_active',
    creatable=False,
    hidden_fields=frozenset({'password_hash'}),
    protected_fields=frozenset({'external_subject_id', 'provider', 'last_login'}),
    contact_fields=('phone', 'email'),
    normalize=_normalize_user_contact,
)

NOTIFICATIONS = AdminResource(
    name='notifications',
    collection='notifications',
    view_capability=Capability.NOTIFICATIONS_SEND,
    manage_capability=Capability.NOTIFICATIONS_SEND,
    required_fields=('title', 'message'),
    filters={'audience': str},
    search_fields=('title', 'message'),
)

SETTINGS = AdminResource(
    name='settings',
    collection='settings',
    view_capability=Capability.SYSTEM_VIEW,
    manage_capability=Capability.SYSTEM_MANAGE,
    required_fields=('key',),
    filters={'group': str},
    search_fields=('key',),
)

CUSTOM_FIELDS = AdminResource(
    name='custom-fields',
    collection='custom_fields',
    view_capability=Capability.ADS_VIEW,
    manage_capability=Capability.ADS_MANAGE,
    required_fields=('name', 'field_type'),
    filters={'category_id': str},
    search_fields=('name',),
    ordered=True,
)

PAGES = AdminResource(
    name='pages',
    collection='pages',
    view_capability=Capability.CONTENT_VIEW,
    manage_capability=Capability.CONTENT_MANAGE,
    required_fields=('title', 'slug'),
    filters={'status': str},
    search_fields=('title', 'slug'),
)

ADMIN_RESOURCES: tuple[AdminResource, ...] = (
    CATEGORIES, BANNERS, PROPERTIES, USERS, NOTIFICATIONS, SETTINGS, CUSTOM_FIELDS, PAGES,
)
