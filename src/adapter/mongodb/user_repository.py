"""MongoDB implementation of UserRepository."""

from datetime import datetime, timezone
from logging import getLogger

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb.connection import USERS_COLLECTION_NAME
from adapter.mongodb.indexes import NON_EMPTY_STRING
from domain.model.errors import DuplicateError, StorageUnavailableError
from domain.model.user import User

logger = getLogger(__name__)

# Fields record_login may look a user up by
LOGIN_LOOKUP_FIELDS = ('phone', 'email')


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection.

        phone and email are unique among non-empty values; this is the
        authority that prevents duplicate accounts under concurrent logins.
        """
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(self.collection, [('phone', 1)], 'idx_users_phone', unique=True,
                              partialFilterExpression={'phone': NON_EMPTY_STRING})
            create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True,
                              partialFilterExpression={'email': NON_EMPTY_STRING})
            create_index_safe(self.collection, [('username', 1)], 'idx_users_username', unique=True,
                              partialFilterExpression={'username': NON_EMPTY_STRING})
            create_index_safe(self.collection, [('external_subject_id', 1)], 'idx_users_external_subject',
                              sparse=True)
            create_index_safe(self.collection, [('created_at', -1)], 'idx_users_created_at')
            return True
        except PyMongoError as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        return User(
            id=doc['_id'],
            name=doc.get('name', ''),
            email=doc.get('email') or '',
            phone=doc.get('phone') or '',
            user_type=doc.get('user_type', 'seller'),
            created_at=doc['created_at'],
            updated_at=doc['updated_at'],
            last_login=doc.get('last_login'),
            external_subject_id=doc.get('external_subject_id'),
            password_hash=doc.get('password_hash'),
            role=doc.get('role'),
            username=doc.get('username'),
            is_first_login=doc.get('is_first_login', False),
            provider=doc.get('provider', 'password'),
            agent_profile=doc.get('agent_profile'),
            preferences=doc.get('preferences') or {},
        )

    def _to_document(self, user: User) -> dict:
        doc = {
            '_id': user.id,
            'name': user.name,
            'email': user.email,
            'phone': user.phone,
            'user_type': user.user_type,
            'created_at': user.created_at,
            'updated_at': user.updated_at,
            'provider': user.provider,
            'preferences': user.preferences,
        }
        optional = {
            'last_login': user.last_login,
            'external_subject_id': user.external_subject_id,
            'password_hash': user.password_hash,
            'role': user.role,
            'username': user.username,
            'agent_profile': user.agent_profile,
        }
        doc.update({k: v for k, v in optional.items() if v is not None})
        if user.is_first_login:
            doc['is_first_login'] = True
        return doc

    # ── write operations ─────────────────────────────────────

    def create(self, user: User) -> User:
        """Insert a new user. Raises DuplicateError if phone/email/username is taken."""
        try:
            self.collection.insert_one(self._to_document(user))
        except DuplicateKeyError as e:
            logger.warning("User creation failed: duplicate key", extra={"userId": user.id, "error": str(e)[:200]})
            raise DuplicateError("User with this email or phone already exists") from e
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"userId": user.id, "error": str(e)})
            raise StorageUnavailableError("Failed to create user") from e

        logger.info("User created", extra={"userId": user.id, "provider": user.provider})
        return user

    def record_login(self, field: str, value: str, subject_id: str | None, at: datetime) -> User | None:
        """Atomically stamp login bookkeeping on the user matching field == value."""
        if field not in LOGIN_LOOKUP_FIELDS:
            raise ValueError(f"Unsupported lookup field: {field}")
        if not value:
            return None

        updates = {'last_login': at, 'updated_at': at}
        if subject_id:
            updates['external_subject_id'] = subject_id
        try:
            doc = self.collection.find_one_and_update(
                {field: value},
                {'$set': updates},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Failed to record login", extra={"field": field, "error": str(e)})
            raise StorageUnavailableError("Failed to update user") from e
        return self._to_domain(doc) if doc else None

    def update_last_login(self, user_id: str) -> bool:
        """Stamp last_login and clear the first-login flag. Return True if successful."""
        try:
            now = datetime.now(timezone.utc)
            result = self.collection.update_one(
                {'_id': user_id},
                {'$set': {'last_login': now, 'updated_at': now}, '$unset': {'is_first_login': ''}},
            )
            if result.modified_count > 0:
                logger.debug("Updated last_login", extra={"userId": user_id})
                return True
            return False
        except PyMongoError as e:
            logger.error("Failed to update last_login", extra={"userId": user_id, "error": str(e)})
            return False

    def update_profile(self, user_id: str, fields: dict) -> User | None:
        try:
            doc = self.collection.find_one_and_update(
                {'_id': user_id},
                {'$set': {**fields, 'updated_at': datetime.now(timezone.utc)}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Failed to update profile", extra={"userId": user_id, "error": str(e)})
            raise StorageUnavailableError("Failed to update profile") from e
        return self._to_domain(doc) if doc else None

    # ── read operations ──────────────────────────────────────

    def _find_one(self, query: dict, context: dict) -> User | None:
        try:
            doc = self.collection.find_one(query)
            return self._to_domain(doc) if doc else None
        except PyMongoError as e:
            logger.error("Failed to get user", extra={**context, "error": str(e)})
            return None

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        return self._find_one({'_id': user_id}, {"userId": user_id})

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Return User or None if not found."""
        if not email:
            return None
        return self._find_one({'email': email}, {"lookup": "email"})

    def find_by_email_or_phone(self, email: str, phone: str) -> User | None:
        clauses = [{k: v} for k, v in (('email', email), ('phone', phone)) if v]
        if not clauses:
            return None
        return self._find_one({'$or': clauses}, {"lookup": "email_or_phone"})

    def find_for_password_login(
        self,
        email: str | None = None,
        phones: list[str] | None = None,
        username: str | None = None,
    ) -> User | None:
        if username:
            return self._find_one({'username': username}, {"lookup": "username"})

        clauses = []
        if email:
            clauses.append({'email': email})
        clauses.extend({'phone': p} for p in phones or [])
        if not clauses:
            return None
        return self._find_one({'$or': clauses}, {"lookup": "password_login"})
