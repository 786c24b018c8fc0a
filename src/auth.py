"""Caller identity resolution for the vectorize endpoint."""
from abc import ABC, abstractmethod
from typing import Dict, Optional


class Authenticator(ABC):
    """Resolves a bearer token to a caller id."""

    @abstractmethod
    async def resolve(self, token: Optional[str]) -> Optional[str]:
        """Return the caller id for ``token``, or None if it is not valid."""
        pass


class StaticTokenAuthenticator(Authenticator):
    """Authenticator backed by a fixed token -> caller id map.

    The map is usually loaded once with ``config.get_auth_tokens()``.
    """

    def __init__(self, tokens: Dict[str, str]):
        self._tokens = dict(tokens)

    async def resolve(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        return self._tokens.get(token)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
