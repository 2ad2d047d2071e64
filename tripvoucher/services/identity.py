"""Identity collaborator: turn a bearer credential into a user identity.

The hosted identity provider signs access tokens with a per-project secret
(HS256). ``JwtIdentityProvider`` verifies the signature, expiry and audience
and trusts the ``sub`` / ``email`` claims verbatim; issuing tokens is the
provider's job, not ours.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Optional, Protocol

from jose import JWTError, jwt

from tripvoucher.core.errors import InvalidCredential

logger = logging.getLogger("tripvoucher.identity")


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass(frozen=True)
class Caller:
    """The authenticated user a service call acts on behalf of."""

    user_id: str
    email: str
    department: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class IdentityProvider(Protocol):
    def identify(self, credential: str) -> Identity: ...


class JwtIdentityProvider:
    def __init__(
        self,
        secret: str,
        audience: Optional[str] = "authenticated",
        algorithms: Optional[List[str]] = None,
    ):
        self.secret = secret
        self.audience = audience
        self.algorithms = algorithms or ["HS256"]

    def identify(self, credential: str) -> Identity:
        if not credential:
            raise InvalidCredential("missing access token")
        options = {"verify_aud": self.audience is not None}
        try:
            claims: Dict[str, Any] = jwt.decode(
                credential,
                self.secret,
                algorithms=self.algorithms,
                audience=self.audience,
                options=options,
            )
        except JWTError as exc:
            logger.info("rejected access token: %s", exc)
            raise InvalidCredential("invalid or expired token") from exc

        user_id = claims.get("sub")
        email = claims.get("email")
        if not user_id or not email:
            raise InvalidCredential("token is missing subject or email")
        metadata = claims.get("user_metadata") or {}
        return Identity(
            user_id=str(user_id),
            email=str(email),
            first_name=metadata.get("first_name") or None,
            last_name=metadata.get("last_name") or None,
        )
