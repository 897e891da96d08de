from collections.abc import Callable

from fastapi import HTTPException

from adapter.firebase.verifier import FirebaseIdentityVerifier
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.resource_repository import MongoResourceRepository
from adapter.mongodb.user_repository import MongoUserRepository
from port.identity_verifier import IdentityVerifier
from port.resource_repository import ResourceRepository
from port.user_repository import UserRepository

ResourceRepoFactory = Callable[[str], ResourceRepository]


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def get_user_repo() -> UserRepository:
    return MongoUserRepository(_get_db())


def get_resource_repo_factory() -> ResourceRepoFactory:
    """Return a factory that opens the repository for a collection name."""
    db = _get_db()
    return lambda collection: MongoResourceRepository(db, collection)


def get_identity_verifier() -> IdentityVerifier:
    return FirebaseIdentityVerifier()
