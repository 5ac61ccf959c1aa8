"""Bearer-token identity for the pattern service HTTP boundary.

Tokens are HS256 JWTs issued by the platform's auth provider; the ``sub``
claim is the user id.
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class AuthenticationError(Exception):
    """No identity, or an identity that could not be verified."""
    pass


@dataclass(frozen=True)
class TokenVerifier:
    secret: str
    audience: Optional[str] = None

    @classmethod
    def from_env(cls) -> "TokenVerifier":
        """Environment variables: JWT_SECRET, JWT_AUDIENCE (optional)."""
        return cls(
            secret=os.getenv("JWT_SECRET", "dev-secret-change-me"),
            audience=os.getenv("JWT_AUDIENCE") or None,
        )

    def user_id_from_header(self, authorization: Optional[str]) -> str:
        """Resolve the user id from an ``Authorization`` header value.

        Raises:
            AuthenticationError: Missing header, wrong scheme, bad or
                expired token, or a token without ``sub``
        """
        if not authorization:
            raise AuthenticationError("No authorization header")

        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("Expected a bearer token")

        try:
            claims = jwt.decode(
                token.strip(),
                self.secret,
                algorithms=[ALGORITHM],
                audience=self.audience,
                options={"verify_aud": self.audience is not None},
            )
        except JWTError as e:
            logger.warning("TOKEN_REJECTED", extra={"reason": type(e).__name__})
            raise AuthenticationError("Invalid or expired token") from e

        subject = claims.get("sub")
        if not subject:
            raise AuthenticationError("Token has no subject")
        return str(subject)
