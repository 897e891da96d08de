"""Admin CRUD service: generic list/create/update/delete/toggle/reorder.

Every back-office resource goes through these functions with its
AdminResource definition; the definition decides required fields, filters,
hidden and protected fields, and whether the resource is ordered.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from domain.model.errors import NotFoundError, PermissionDeniedError, ValidationError
from domain.model.resource import AdminResource, Page
from port.resource_repository import ResourceRepository

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

_TRUE_VALUES = {'true', '1', 'yes'}
_FALSE_VALUES = {'false', '0', 'no'}


def _parse_filter_value(name: str, raw: str, expected: type) -> Any:
    if expected is bool:
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValidationError(f"Invalid value for '{name}': expected true or false")
    if expected is int:
        try:
            return int(raw)
        except ValueError:
            raise ValidationError(f"Invalid value for '{name}': expected an integer")
    return raw


def parse_filters(resource: AdminResource, params: dict[str, str]) -> dict[str, Any]:
    """Keep only the query parameters the resource declares as filters, typed."""
    filters = {}
    for name, expected in resource.filter_types.items():
        raw = params.get(name)
        if raw is None or raw == '':
            continue
        filters[name] = _parse_filter_value(name, raw, expected)
    return filters


def _redact(resource: AdminResource, document: dict) -> dict:
    return {k: v for k, v in document.items() if k not in resource.hidden_fields}


def _writable(resource: AdminResource, data: dict) -> dict:
    """Client fields minus system/hidden/protected ones, in stored form.

    Raises:
        ValidationError: a field name is an operator or a dotted path
    """
    operators = [k for k in data if k.startswith('$') or '.' in k]
    if operators:
        raise ValidationError(f"Invalid field names: {', '.join(sorted(operators))}")
    fields = {k: v for k, v in data.items() if k not in resource.writable_excluded}
    return resource.normalize(fields) if resource.normalize else fields


def _check_contact(resource: AdminResource, item: dict) -> None:
    if resource.contact_fields and all(_is_blank(item.get(f)) for f in resource.contact_fields):
        raise ValidationError(f"At least one of {', '.join(resource.contact_fields)} is required")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def list_items(
    repo: ResourceRepository,
    resource: AdminResource,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    filters: dict[str, Any] | None = None,
    search: str | None = None,
) -> Page:
    """Return one page of a resource, newest first (or by ``order`` if ordered)."""
    if page < 1:
        raise ValidationError("page must be at least 1")
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}")

    sort_field, sort_desc = ('order', False) if resource.ordered else ('created_at', True)
    items, total = repo.find_many(
        filters=filters or {},
        search=search.strip() if search and search.strip() else None,
        search_fields=resource.search_fields,
        skip=(page - 1) * limit,
        limit=limit,
        sort_field=sort_field,
        sort_desc=sort_desc,
    )
    return Page(items=[_redact(resource, i) for i in items], page=page, limit=limit, total=total)


def get_item(repo: ResourceRepository, resource: AdminResource, item_id: str) -> dict:
    item = repo.get_by_id(item_id)
    if item is None:
        raise NotFoundError(f"{resource.name} item not found")
    return _redact(resource, item)


def create_item(repo: ResourceRepository, resource: AdminResource, data: dict) -> dict:
    """Create an item after checking required fields.

    Raises:
        PermissionDeniedError: resource does not allow creation
        ValidationError: required field missing or blank
        DuplicateError: unique key already taken
    """
    if not resource.creatable:
        raise PermissionDeniedError(f"{resource.name} cannot be created here")

    fields = _writable(resource, data)
    missing = [f for f in resource.required_fields if _is_blank(fields.get(f))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    _check_contact(resource, fields)

    if resource.toggle_field:
        fields.setdefault(resource.toggle_field, resource.toggle_default)
    if resource.ordered and fields.get('order') is None:
        fields['order'] = repo.max_order() + 1

    now = datetime.now(timezone.utc)
    document = {**fields, 'id': uuid.uuid4().hex, 'created_at': now, 'updated_at': now}
    created = repo.insert(document)
    logger.info("Admin item created", extra={"resource": resource.name, "itemId": created['id']})
    return _redact(resource, created)


def update_item(repo: ResourceRepository, resource: AdminResource, item_id: str, data: dict) -> dict:
    fields = _writable(resource, data)
    blanked = [f for f in resource.required_fields if f in fields and _is_blank(fields[f])]
    if blanked:
        raise ValidationError(f"Required fields cannot be empty: {', '.join(blanked)}")
    if not fields:
        raise ValidationError("No updatable fields supplied")
    if any(f in fields for f in resource.contact_fields):
        current = repo.get_by_id(item_id)
        if current is None:
            raise NotFoundError(f"{resource.name} item not found")
        _check_contact(resource, {**current, **fields})

    fields['updated_at'] = datetime.now(timezone.utc)
    updated = repo.update(item_id, fields)
    if updated is None:
        raise NotFoundError(f"{resource.name} item not found")
    logger.info("Admin item updated", extra={"resource": resource.name, "itemId": item_id})
    return _redact(resource, updated)


def delete_item(repo: ResourceRepository, resource: AdminResource, item_id: str) -> None:
    if not repo.delete(item_id):
        raise NotFoundError(f"{resource.name} item not found")
    logger.info("Admin item deleted", extra={"resource": resource.name, "itemId": item_id})


def toggle_item(repo: ResourceRepository, resource: AdminResource, item_id: str) -> dict:
    """Flip the resource's toggle field (active, featured, ...)."""
    if not resource.toggle_field:
        raise ValidationError(f"{resource.name} has no toggle field")
    item = repo.get_by_id(item_id)
    if item is None:
        raise NotFoundError(f"{resource.name} item not found")

    flipped = not bool(item.get(resource.toggle_field, resource.toggle_default))
    updated = repo.update(item_id, {
        resource.toggle_field: flipped,
        'updated_at': datetime.now(timezone.utc),
    })
    if updated is None:
        raise NotFoundError(f"{resource.name} item not found")
    return _redact(resource, updated)


def reorder_items(repo: ResourceRepository, resource: AdminResource, ids: list[str]) -> int:
    """Persist display order: ids[0] gets order 1, ids[1] order 2, ..."""
    if not resource.ordered:
        raise ValidationError(f"{resource.name} does not support ordering")
    if not ids:
        raise ValidationError("ids must not be empty")
    if len(set(ids)) != len(ids):
        raise ValidationError("ids must not contain duplicates")

    matched = repo.set_orders({item_id: position for position, item_id in enumerate(ids, start=1)})
    logger.info("Admin items reordered", extra={"resource": resource.name, "count": matched})
    return matched
