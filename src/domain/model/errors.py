"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Route handlers catch them and map to appropriate HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""


class PermissionDeniedError(DomainError):
    """Caller lacks permission for the requested action."""


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class UnaddressableIdentityError(ValidationError):
    """Verified identity carries neither an email nor a phone number."""


class StorageUnavailableError(DomainError):
    """The backing store could not be reached or rejected the operation."""


# ── Authentication ───────────────────────────────────────


class AuthenticationError(DomainError):
    """Base class for credential failures (mapped to 401)."""


class InvalidCredentialsError(AuthenticationError):
    """Unknown account or wrong password (deliberately vague)."""


class TokenExpiredError(AuthenticationError):
    """Identity token is past its expiry."""


class TokenMalformedError(AuthenticationError):
    """Identity token could not be parsed or its signature is invalid."""


class AudienceMismatchError(AuthenticationError):
    """Identity token was issued for a different provider project."""

    def __init__(self, message: str, token_audience: str | None = None, expected: str | None = None):
        self.token_audience = token_audience
        self.expected = expected
        super().__init__(message)


class ProviderUnavailableError(DomainError):
    """Identity provider unreachable, timed out, or misconfigured."""
