"""Admin CRUD routes, one router per AdminResource.

For each resource under /admin/{resource}:
- GET    ""              list (page, limit, search, resource filters)
- GET    "/{item_id}"    read
- POST   ""              create
- PUT    "/{item_id}"    update
- DELETE "/{item_id}"    delete
- PATCH  "/{item_id}/toggle"  flip active/featured flag
- POST   "/reorder"      persist display order (ordered resources only)

Reads need the resource's view capability, writes its manage capability.
Domain errors propagate to the application's exception handlers.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request

from api.dependencies import ResourceRepoFactory, get_resource_repo_factory
from api.models import ApiResponse, ItemList, ReorderRequest, ReorderResult
from api.security import require_capability
from domain.model.resource import ADMIN_RESOURCES, AdminResource
from domain.model.user import User
from services import admin_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def build_resource_router(resource: AdminResource) -> APIRouter:
    resource_router = APIRouter(prefix=f"/{resource.name}")
    can_view = require_capability(resource.view_capability)
    can_manage = require_capability(resource.manage_capability)

    def repo_for(factory: ResourceRepoFactory = Depends(get_resource_repo_factory)):
        return factory(resource.collection)

    @resource_router.get("", response_model=ApiResponse[ItemList], name=f"list_{resource.name}")
    def list_items(
        request: Request,
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=admin_service.DEFAULT_LIMIT, ge=1, le=admin_service.MAX_LIMIT),
        search: str | None = Query(default=None, max_length=200),
        current_user: User = Depends(can_view),
        repo=Depends(repo_for),
    ):
        filters = admin_service.parse_filters(resource, dict(request.query_params))
        result = admin_service.list_items(repo, resource, page=page, limit=limit, filters=filters, search=search)
        return ApiResponse[ItemList](data=ItemList.from_page(result))

    # declared before "/{item_id}" routes so "reorder" is not taken as an id
    @resource_router.post("/reorder", response_model=ApiResponse[ReorderResult], name=f"reorder_{resource.name}")
    def reorder(
        request: ReorderRequest,
        current_user: User = Depends(can_manage),
        repo=Depends(repo_for),
    ):
        updated = admin_service.reorder_items(repo, resource, request.ids)
        return ApiResponse[ReorderResult](data=ReorderResult(updated=updated), message="Order updated")

    @resource_router.get("/{item_id}", response_model=ApiResponse[dict[str, Any]], name=f"get_{resource.name}")
    def get_item(item_id: str, current_user: User = Depends(can_view), repo=Depends(repo_for)):
        return ApiResponse[dict[str, Any]](data=admin_service.get_item(repo, resource, item_id))

    @resource_router.post(
        "",
        response_model=ApiResponse[dict[str, Any]],
        status_code=201,
        name=f"create_{resource.name}",
    )
    def create_item(
        data: dict[str, Any] = Body(...),
        current_user: User = Depends(can_manage),
        repo=Depends(repo_for),
    ):
        item = admin_service.create_item(repo, resource, data)
        logger.info("Admin create", extra={"resource": resource.name, "itemId": item['id'], "userId": current_user.id})
        return ApiResponse[dict[str, Any]](data=item, message=f"{resource.name} item created")

    @resource_router.put("/{item_id}", response_model=ApiResponse[dict[str, Any]], name=f"update_{resource.name}")
    def update_item(
        item_id: str,
        data: dict[str, Any] = Body(...),
        current_user: User = Depends(can_manage),
        repo=Depends(repo_for),
    ):
        item = admin_service.update_item(repo, resource, item_id, data)
        return ApiResponse[dict[str, Any]](data=item, message=f"{resource.name} item updated")

    @resource_router.delete("/{item_id}", response_model=ApiResponse[dict[str, Any]], name=f"delete_{resource.name}")
    def delete_item(item_id: str, current_user: User = Depends(can_manage), repo=Depends(repo_for)):
        admin_service.delete_item(repo, resource, item_id)
        logger.info("Admin delete", extra={"resource": resource.name, "itemId": item_id, "userId": current_user.id})
        return ApiResponse[dict[str, Any]](data={"id": item_id}, message=f"{resource.name} item deleted")

    if resource.toggle_field:
        @resource_router.patch(
            "/{item_id}/toggle",
            response_model=ApiResponse[dict[str, Any]],
            name=f"toggle_{resource.name}",
        )
        def toggle_item(item_id: str, current_user: User = Depends(can_manage), repo=Depends(repo_for)):
            return ApiResponse[dict[str, Any]](data=admin_service.toggle_item(repo, resource, item_id))

    return resource_router


for _resource in ADMIN_RESOURCES:
    router.include_router(build_resource_router(_resource))
