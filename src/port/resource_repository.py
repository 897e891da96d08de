from typing import Any, Protocol


class ResourceRepository(Protocol):
    """Protocol for document-style storage of one admin resource collection.

    Documents are plain dicts exposing ``id`` instead of the store's key.
    """

    def find_many(
        self,
        filters: dict[str, Any],
        search: str | None,
        search_fields: tuple[str, ...],
        skip: int,
        limit: int,
        sort_field: str,
        sort_desc: bool,
    ) -> tuple[list[dict], int]:
        """Return (documents, total matching count)."""
        ...

    def get_by_id(self, item_id: str) -> dict | None:
        ...

    def insert(self, document: dict) -> dict:
        """Insert a document carrying its own ``id``. Raises DuplicateError on unique conflict."""
        ...

    def update(self, item_id: str, fields: dict) -> dict | None:
        """Set fields on a document. Return the updated document or None if not found."""
        ...

    def delete(self, item_id: str) -> bool:
        ...

    def max_order(self) -> int:
        """Highest ``order`` value in the collection, 0 when empty."""
        ...

    def set_orders(self, orders: dict[str, int]) -> int:
        """Assign ``order`` per id. Return number of matched documents."""
        ...
