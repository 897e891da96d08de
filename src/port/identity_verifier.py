from typing import Protocol

from domain.model.identity import VerifiedClaims


class IdentityVerifier(Protocol):
    """Port for verifying identity-provider tokens."""

    def verify(self, id_token: str) -> VerifiedClaims:
        """Verify the token and return its identity claims.

        Raises:
            TokenExpiredError: token past expiry
            TokenMalformedError: unparseable token or bad signature
            AudienceMismatchError: token issued for another project
            ProviderUnavailableError: provider unreachable or misconfigured
        """
        ...
