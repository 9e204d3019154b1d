"""Issue and verify HMAC-signed access tokens."""

from __future__ import annotations

import time
from datetime import UTC, datetime

from authlib.common.security import generate_token
from authlib.jose import JoseError, jwt
from loguru import logger
from pydantic import BaseModel

from src.catalog.runtime.config.config_data import JWTConfig

_REGISTERED_CLAIMS = frozenset({"iss", "sub", "aud", "exp", "iat", "nbf", "jti"})


class TokenError(Exception):
    """Raised when a token is malformed, forged, expired or for another audience."""


class TokenClaims(BaseModel):
    """Verified claims of an access token."""

    sub: str
    jti: str
    role: str | None = None
    iss: str
    aud: str | list[str]
    iat: int
    nbf: int
    exp: int

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=UTC)


class IssuedToken(BaseModel):
    token: str
    jti: str
    expires_at: datetime


class JwtService:
    """Access-token issuance and verification using authlib.

    The service is pure: revocation is checked by the caller against the
    revoked-token table.
    """

    def __init__(self, config: JWTConfig) -> None:
        self._config = config

    def issue(
        self,
        subject: str,
        role: str | None = None,
        expires_in_seconds: int | None = None,
        **extra_claims,
    ) -> IssuedToken:
        """Sign a new access token for ``subject``.

        Args:
            subject: Value of the ``sub`` claim, the user id
            role: Role name copied into the ``role`` claim
            expires_in_seconds: Lifetime override; defaults to the configured one
            **extra_claims: Additional non-registered claims

        Returns:
            The encoded token together with its ``jti`` and expiry
        """
        now = int(time.time())
        lifetime = expires_in_seconds or self._config.expires_in_seconds
        jti = generate_token(24)

        payload = {
            "iss": self._config.issuer,
            "sub": subject,
            "aud": self._config.audience,
            "iat": now,
            "nbf": now,
            "exp": now + lifetime,
            "jti": jti,
        }
        if role is not None:
            payload["role"] = role
        payload.update(
            {k: v for k, v in extra_claims.items() if k not in _REGISTERED_CLAIMS}
        )

        header = {"alg": self._config.algorithm, "typ": "JWT"}
        try:
            token = jwt.encode(header, payload, self._config.secret)
        except JoseError as e:
            raise TokenError(f"JWT encoding failed: {e}") from e

        return IssuedToken(
            token=token.decode() if isinstance(token, bytes) else token,
            jti=jti,
            expires_at=datetime.fromtimestamp(now + lifetime, tz=UTC),
        )

    def verify(self, token: str) -> TokenClaims:
        """Verify signature, algorithm and the registered time/issuer/audience claims."""
        claims_options = {
            "iss": {"essential": True, "value": self._config.issuer},
            "aud": {"essential": True, "value": self._config.audience},
            "sub": {"essential": True},
            "jti": {"essential": True},
            "exp": {"essential": True},
        }
        try:
            claims = jwt.decode(
                token, self._config.secret, claims_options=claims_options
            )
            if claims.header.get("alg") != self._config.algorithm:
                raise TokenError("Disallowed JWT algorithm")
            claims.validate(leeway=self._config.leeway_seconds)
        except (JoseError, ValueError) as exc:
            raise TokenError(f"JWT error: {exc}") from exc

        try:
            return TokenClaims.model_validate(dict(claims))
        except ValueError as exc:
            raise TokenError(f"Malformed claims: {exc}") from exc

    def decode_subject(self, token: str | None) -> str | None:
        """Return the verified ``sub`` claim, or None for any unusable token."""
        if not token:
            return None
        try:
            return self.verify(token).sub
        except TokenError as exc:
            logger.debug("Ignoring unverifiable bearer token: {}", exc)
            return None
