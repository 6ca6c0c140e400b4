# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session token management using python-jose.

Session tokens are stateless signed JWTs carrying the minimum claims needed
to authorize a request: user id, email, role and display name. Role
extension data is never embedded. There are no refresh tokens and no
sliding renewal; clients log in again once a token expires.

Example:
    >>> from amistapp.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token(
    ...     TokenClaims(id=1, email="a@b.com", role="student", name="A")
    ... )
    >>> jwt_manager.decode_token(token).email
    'a@b.com'
"""

import logging
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError

from amistapp.core.config.settings import JWTSettings
from amistapp.domains.auth.models import UserRole

logger = logging.getLogger(__name__)


class TokenClaims(BaseModel):
    """Identity claims carried by a session token.

    Attributes:
        id: User identifier.
        email: User email.
        role: Platform role.
        name: Display name.
    """

    id: int
    email: str
    role: UserRole
    name: str


class SessionClaims(TokenClaims):
    """Claims decoded from a verified session token.

    Attributes:
        iat: Issued-at timestamp (seconds since epoch).
        exp: Expiration timestamp (seconds since epoch).
    """

    iat: int
    exp: int

    def identity_claims(self) -> TokenClaims:
        """Strip the timing claims."""
        return TokenClaims(id=self.id, email=self.email, role=self.role, name=self.name)


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is malformed, forged or carries unexpected claims."""

    pass


class JWTManager:
    """Session token creation and validation.

    The signing secret comes from the injected settings, never from the
    environment at call time.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        """Initialize the JWT manager.

        Args:
            settings: JWT configuration settings.
        """
        self._settings = settings

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return self._settings.expire_hours * 60 * 60

    def create_access_token(
        self,
        claims: TokenClaims,
        issued_at: datetime | None = None,
    ) -> str:
        """Create a signed session token.

        Args:
            claims: Identity claims to embed.
            issued_at: Issue time. Defaults to now.

        Returns:
            JWT string valid for the configured number of hours.
        """
        now = issued_at or datetime.now(timezone.utc)
        exp = now + timedelta(hours=self._settings.expire_hours)

        payload = {
            "sub": str(claims.id),
            "id": claims.id,
            "email": claims.email,
            "role": claims.role.value,
            "name": claims.name,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
            "iss": self._settings.issuer,
            "aud": self._settings.audience,
        }

        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def decode_token(self, token: str) -> SessionClaims:
        """Decode and validate a session token.

        Signature, expiry, issuer and audience are all checked.

        Args:
            token: JWT string.

        Returns:
            SessionClaims with the decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid for any other reason.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
                audience=self._settings.audience,
                issuer=self._settings.issuer,
            )
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JoseJWTError as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        try:
            return SessionClaims(
                id=payload["id"],
                email=payload["email"],
                role=payload["role"],
                name=payload["name"],
                iat=payload["iat"],
                exp=payload["exp"],
            )
        except (KeyError, ValidationError) as e:
            logger.warning("Token claims rejected: %s", str(e))
            raise InvalidTokenError("Invalid token: missing or malformed claims")

    def verify_token(self, token: str) -> bool:
        """Check whether a token is valid.

        Args:
            token: JWT string.

        Returns:
            True if the token decodes, False otherwise.
        """
        try:
            self.decode_token(token)
            return True
        except (TokenExpiredError, InvalidTokenError):
            return False
