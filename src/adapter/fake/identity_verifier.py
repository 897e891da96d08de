"""In-memory IdentityVerifier for testing: tokens map to claims or errors."""

from domain.model.errors import TokenMalformedError
from domain.model.identity import VerifiedClaims


class FakeIdentityVerifier:
    def __init__(self):
        self.tokens: dict[str, VerifiedClaims | Exception] = {}
        self.calls: list[str] = []

    def register(self, token: str, outcome: VerifiedClaims | Exception) -> None:
        self.tokens[token] = outcome

    def verify(self, id_token: str) -> VerifiedClaims:
        self.calls.append(id_token)
        outcome = self.tokens.get(id_token)
        if outcome is None:
            raise TokenMalformedError("Unknown token")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
