from datetime import datetime
from typing import Protocol

from domain.model.user import User


class UserRepository(Protocol):
    """Protocol defining the interface for user data access."""

    def create(self, user: User) -> User:
        """Insert a new user.

        Raises:
            DuplicateError: phone, email or username already taken
            StorageUnavailableError: store unreachable
        """
        ...

    def record_login(self, field: str, value: str, subject_id: str | None, at: datetime) -> User | None:
        """Atomically find the user whose ``field`` equals ``value`` and stamp login bookkeeping.

        Sets last_login and updated_at (and external_subject_id when given);
        returns the updated User or None if no user matches.
        """
        ...

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        ...

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Return User or None if not found."""
        ...

    def find_by_email_or_phone(self, email: str, phone: str) -> User | None:
        """Find any user holding either the email or the phone."""
        ...

    def find_for_password_login(
        self,
        email: str | None = None,
        phones: list[str] | None = None,
        username: str | None = None,
    ) -> User | None:
        """Find a user matching the username, or any of email / phone variants."""
        ...

    def update_last_login(self, user_id: str) -> bool:
        """Stamp last_login and clear the first-login flag. Return True if successful."""
        ...

    def update_profile(self, user_id: str, fields: dict) -> User | None:
        """Set profile fields. Return updated User or None if not found."""
        ...
