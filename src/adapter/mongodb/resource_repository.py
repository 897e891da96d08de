"""MongoDB implementation of ResourceRepository, one instance per collection."""

import re
from logging import getLogger

from pymongo import ASCENDING, DESCENDING, ReturnDocument, UpdateOne
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from domain.model.errors import DuplicateError, StorageUnavailableError

logger = getLogger(__name__)


class MongoResourceRepository:
    def __init__(self, db: Database, collection_name: str):
        self.collection = db[collection_name]

    def ensure_indexes(self, ordered: bool = False) -> bool:
        from adapter.mongodb.indexes import create_index_safe

        name = self.collection.name
        try:
            create_index_safe(self.collection, [('created_at', -1)], f'idx_{name}_created_at')
            if ordered:
                create_index_safe(self.collection, [('order', 1)], f'idx_{name}_order')
            return True
        except PyMongoError as e:
            logger.error("Failed to create indexes", extra={"collection": name, "error": str(e)})
            return False

    # ── helpers ──────────────────────────────────────────────

    @staticmethod
    def _from_doc(doc: dict) -> dict:
        item = {k: v for k, v in doc.items() if k != '_id'}
        return {'id': doc['_id'], **item}

    @staticmethod
    def _to_doc(item: dict) -> dict:
        doc = {k: v for k, v in item.items() if k != 'id'}
        return {'_id': item['id'], **doc}

    @staticmethod
    def _build_query(filters: dict, search: str | None, search_fields: tuple[str, ...]) -> dict:
        query = dict(filters)
        if search and search_fields:
            pattern = {'$regex': re.escape(search), '$options': 'i'}
            query['$or'] = [{f: pattern} for f in search_fields]
        return query

    def _fail(self, action: str, e: PyMongoError):
        logger.error(f"Failed to {action}", extra={"collection": self.collection.name, "error": str(e)})
        raise StorageUnavailableError(f"Failed to {action}") from e

    # ── read operations ──────────────────────────────────────

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
        query = self._build_query(filters, search, search_fields)
        try:
            total = self.collection.count_documents(query)
            cursor = (
                self.collection.find(query)
                .sort(sort_field, DESCENDING if sort_desc else ASCENDING)
                .skip(skip)
                .limit(limit)
            )
            return [self._from_doc(d) for d in cursor], total
        except PyMongoError as e:
            self._fail("list items", e)

    def get_by_id(self, item_id: str) -> dict | None:
        try:
            doc = self.collection.find_one({'_id': item_id})
        except PyMongoError as e:
            self._fail("get item", e)
        return self._from_doc(doc) if doc else None

    def max_order(self) -> int:
        try:
            doc = self.collection.find_one({'order': {'$type': 'number'}}, sort=[('order', DESCENDING)])
        except PyMongoError as e:
            self._fail("read order", e)
        return int(doc['order']) if doc else 0

    # ── write operations ─────────────────────────────────────

    def insert(self, document: dict) -> dict:
        try:
            self.collection.insert_one(self._to_doc(document))
        except DuplicateKeyError as e:
            raise DuplicateError("An item with the same unique key already exists") from e
        except PyMongoError as e:
            self._fail("create item", e)
        return document

    def update(self, item_id: str, fields: dict) -> dict | None:
        try:
            doc = self.collection.find_one_and_update(
                {'_id': item_id},
                {'$set': fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise DuplicateError("An item with the same unique key already exists") from e
        except PyMongoError as e:
            self._fail("update item", e)
        return self._from_doc(doc) if doc else None

    def delete(self, item_id: str) -> bool:
        try:
            return self.collection.delete_one({'_id': item_id}).deleted_count > 0
        except PyMongoError as e:
            self._fail("delete item", e)

    def set_orders(self, orders: dict[str, int]) -> int:
        operations = [UpdateOne({'_id': item_id}, {'$set': {'order': position}}) for item_id, position in orders.items()]
        try:
            return self.collection.bulk_write(operations, ordered=False).matched_count
        except PyMongoError as e:
            self._fail("reorder items", e)
