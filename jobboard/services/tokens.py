"""Token service: signing and verification of access and refresh JWTs."""

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import jwt
from jwt.exceptions import PyJWTError

from jobboard.core.config import Settings, get_settings
from jobboard.services.errors import InvalidTokenError, TokenExpiredError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

_REQUIRED_CLAIMS = ["exp", "iat", "sub", "type"]


class TokenService:
    """Stateless JWT issuance.

    Access and refresh tokens use separate secrets, so a leaked access token
    cannot be presented as a refresh token even if the type claim were
    ignored. Keys and lifetimes are fixed at construction.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            access_secret=settings.jwt_access_secret_key,
            refresh_secret=settings.jwt_refresh_secret_key,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.jwt_access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.jwt_refresh_token_expire_days),
        )

    @property
    def access_expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.access_ttl.total_seconds())

    def sign_access(self, subject: str, role: str) -> str:
        """Create a short-lived access token."""
        claims = {"sub": subject, "role": role, "type": ACCESS_TOKEN_TYPE}
        return self._encode(claims, self._access_secret, self.access_ttl)

    def sign_refresh(self, subject: str, token_id: str) -> str:
        """Create a long-lived refresh token bound to a session identifier."""
        claims = {"sub": subject, "tid": token_id, "type": REFRESH_TOKEN_TYPE}
        return self._encode(claims, self._refresh_secret, self.refresh_ttl)

    def verify_access(self, token: str) -> dict[str, Any]:
        """Validate an access token and return its payload."""
        payload = self._decode(token, self._access_secret)
        if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("role"):
            raise InvalidTokenError("Not an access token")
        return payload

    def verify_refresh(self, token: str) -> dict[str, Any]:
        """Validate a refresh token's signature and expiry.

        Callers must still compare the tid claim with the stored identifier.
        """
        payload = self._decode(token, self._refresh_secret)
        return self._check_refresh_claims(payload)

    def identify_refresh(self, token: str) -> dict[str, Any]:
        """Validate a refresh token's signature while tolerating expiry.

        Only for identifying the subject during logout.
        """
        payload = self._decode(token, self._refresh_secret, verify_exp=False)
        return self._check_refresh_claims(payload)

    def _encode(self, claims: dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = datetime.now(UTC)
        payload = {**claims, "iat": now, "exp": now + ttl}
        return str(jwt.encode(payload, secret, algorithm=self._algorithm))

    def _decode(self, token: str, secret: str, verify_exp: bool = True) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"require": _REQUIRED_CLAIMS, "verify_exp": verify_exp},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

    @staticmethod
    def _check_refresh_claims(payload: dict[str, Any]) -> dict[str, Any]:
        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidTokenError("Not a refresh token")
        if not payload.get("tid"):
            raise InvalidTokenError("Refresh token missing session identifier")
        return payload


@lru_cache(maxsize=1)
def get_token_service() -> TokenService:
    """Process-wide token service built from settings on first use."""
    return TokenService.from_settings(get_settings())
