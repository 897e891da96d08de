"""In-memory implementation of ResourceRepository for testing."""

from copy import deepcopy


class FakeResourceRepository:
    def __init__(self):
        self.store: dict[str, dict] = {}

    # ── write operations ─────────────────────────────────────

    def insert(self, document: dict) -> dict:
        self.store[document['id']] = deepcopy(document)
        return deepcopy(document)

    def update(self, item_id: str, fields: dict) -> dict | None:
        item = self.store.get(item_id)
        if item is None:
            return None
        item.update(deepcopy(fields))
        return deepcopy(item)

    def delete(self, item_id: str) -> bool:
        return self.store.pop(item_id, None) is not None

    def set_orders(self, orders: dict[str, int]) -> int:
        matched = 0
        for item_id, position in orders.items():
            if item_id in self.store:
                self.store[item_id]['order'] = position
                matched += 1
        return matched

    # ── read operations ──────────────────────────────────────

    def get_by_id(self, item_id: str) -> dict | None:
        item = self.store.get(item_id)
        return deepcopy(item) if item else None

    def max_order(self) -> int:
        orders = [i['order'] for i in self.store.values() if isinstance(i.get('order'), int)]
        return max(orders, default=0)

    def find_many(
        self,
        filters: dict,
        search: str | None,
        search_fields: tuple[str, ...],
        skip: int,
        limit: int,
        sort_field: str,
        sort_desc: bool,
    ) -> tuple[list[dict], int]:
        def matches(item: dict) -> bool:
            if any(item.get(k) != v for k, v in filters.items()):
                return False
            if search:
                needle = search.lower()
                return any(needle in str(item.get(f, '')).lower() for f in search_fields)
            return True

        found = [i for i in self.store.values() if matches(i)]
        # items missing the sort field go last
        present = sorted((i for i in found if i.get(sort_field) is not None),
                         key=lambda i: i[sort_field], reverse=sort_desc)
        missing = [i for i in found if i.get(sort_field) is None]
        ordered = present + missing
        return deepcopy(ordered[skip:skip + limit]), len(found)
