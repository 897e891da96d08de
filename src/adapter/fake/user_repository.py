"""In-memory implementation of UserRepository for testing.

Enforces the same uniqueness rules as the Mongo indexes (non-empty phone,
email and username are unique) under a lock, so concurrent reconciliation
can be exercised from multiple threads.
"""

import threading
from dataclasses import replace
from datetime import datetime, timezone

from domain.model.errors import DuplicateError
from domain.model.user import User

UNIQUE_FIELDS = ('phone', 'email', 'username')


def _copy(user: User | None) -> User | None:
    return replace(user) if user else None


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}
        self._lock = threading.Lock()

    def _find(self, predicate) -> User | None:
        for user in self.store.values():
            if predicate(user):
                return user
        return None

    # ── write operations ─────────────────────────────────────

    def create(self, user: User) -> User:
        with self._lock:
            for name in UNIQUE_FIELDS:
                value = getattr(user, name)
                if value and self._find(lambda u: getattr(u, name) == value):
                    raise DuplicateError("User with this email or phone already exists")
            self.store[user.id] = replace(user)
            return replace(user)

    def record_login(self, field: str, value: str, subject_id: str | None, at: datetime) -> User | None:
        if not value:
            return None
        with self._lock:
            user = self._find(lambda u: getattr(u, field) == value)
            if not user:
                return None
            user.last_login = at
            user.updated_at = at
            if subject_id:
                user.external_subject_id = subject_id
            return replace(user)

    def update_last_login(self, user_id: str) -> bool:
        user = self.store.get(user_id)
        if not user:
            return False

        now = datetime.now(timezone.utc)
        user.last_login = now
        user.updated_at = now
        user.is_first_login = False
        return True

    def update_profile(self, user_id: str, fields: dict) -> User | None:
        user = self.store.get(user_id)
        if not user:
            return None
        for name, value in fields.items():
            setattr(user, name, value)
        user.updated_at = datetime.now(timezone.utc)
        return replace(user)

    # ── read operations ──────────────────────────────────────

    def get_by_id(self, user_id: str) -> User | None:
        return _copy(self.store.get(user_id))

    def get_by_email(self, email: str) -> User | None:
        return _copy(self._find(lambda u: bool(email) and u.email == email))

    def find_by_email_or_phone(self, email: str, phone: str) -> User | None:
        return _copy(self._find(lambda u: (bool(email) and u.email == email) or (bool(phone) and u.phone == phone)))

    def find_for_password_login(
        self,
        email: str | None = None,
        phones: list[str] | None = None,
        username: str | None = None,
    ) -> User | None:
        if username:
            return _copy(self._find(lambda u: u.username == username))
        phones = phones or []
        return _copy(self._find(lambda u: (bool(email) and u.email == email) or (bool(u.phone) and u.phone in phones)))
