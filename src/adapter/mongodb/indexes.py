"""MongoDB index management utilities.

Index creation with conflict resolution, used by each Mongo repository at
app startup. The users collection's unique indexes are what keep concurrent
logins from creating duplicate accounts, so failures here are logged loudly.
"""

from logging import getLogger

from pymongo.errors import PyMongoError

logger = getLogger(__name__)

# Partial filter so that users without an email/phone ('' or missing) don't collide
NON_EMPTY_STRING = {'$type': 'string', '$gt': ''}


def create_index_safe(collection, keys: list, name: str, **kwargs) -> bool:
    """Create index, replacing an existing index that conflicts with it.

    Handles two conflict scenarios:
    - Same name but different key spec or options
    - Same key spec but different name
    """
    try:
        collection.create_index(keys, name=name, **kwargs)
        return True
    except PyMongoError as e:
        if "already exists" not in str(e) and "Conflict" not in str(e):
            raise
        return _resolve_conflict(collection, keys, name, **kwargs)


def _resolve_conflict(collection, keys: list, name: str, **kwargs) -> bool:
    wanted = dict(keys)

    for idx_name, idx_info in collection.index_information().items():
        if idx_name == '_id_':
            continue

        same_name = idx_name == name
        same_keys = dict(idx_info.get('key', [])) == wanted
        if same_name or same_keys:
            logger.warning("Dropping conflicting index", extra={"index": idx_name, "collection": collection.name})
            collection.drop_index(idx_name)
            collection.create_index(keys, name=name, **kwargs)
            logger.info("Recreated index", extra={"index": name, "collection": collection.name})
            return True

    logger.error("Failed to resolve index conflict", extra={"index": name, "collection": collection.name})
    return False


def ensure_all_indexes(db) -> bool:
    """Ensure indexes for all collections. Called at app startup."""
    from adapter.mongodb.resource_repository import MongoResourceRepository
    from adapter.mongodb.user_repository import MongoUserRepository
    from adapter.mongodb.connection import USERS_COLLECTION_NAME
    from domain.model.resource import ADMIN_RESOURCES

    results = [MongoUserRepository(db).ensure_indexes()]
    for resource in ADMIN_RESOURCES:
        if resource.collection == USERS_COLLECTION_NAME:
            continue
        results.append(MongoResourceRepository(db, resource.collection).ensure_indexes(ordered=resource.ordered))
    return all(results)
