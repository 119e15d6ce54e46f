"""
hoa_portal.auth.jwt

Access tokens for signed-in users (HS256, PyJWT).

Responsibilities:
- Sign access tokens carrying the user id and email.
- Verify tokens (signature, issuer, audience, expiry) and return typed claims.

Refresh tokens are opaque database rows, see `db.repositories.auth_users`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from hoa_portal.settings import Settings

_REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "sub"]


class JwtValidationError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class AccessClaims:
    user_id: uuid.UUID
    email: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class TokenSigner:
    alg: str
    issuer: str
    audience: str
    secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenSigner:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
        )

    def issue(self, *, user_id: uuid.UUID, email: str, ttl: timedelta) -> tuple[str, datetime]:
        issued_at = datetime.now(tz=UTC)
        expires_at = issued_at + ttl
        claims = {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": str(user_id),
            "email": email,
            # Matches the audience so data-API policies can tell users from anon keys.
            "role": "authenticated",
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(claims, self.secret, algorithm=self.alg), expires_at

    def verify(self, token: str) -> AccessClaims:
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.alg],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": _REQUIRED_CLAIMS},
            )
            user_id = uuid.UUID(str(claims["sub"]))
        except jwt.InvalidTokenError as e:
            raise JwtValidationError(str(e)) from e
        except ValueError as e:
            raise JwtValidationError("Invalid token subject") from e
        return AccessClaims(
            user_id=user_id,
            email=str(claims.get("email", "")),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=UTC),
        )
