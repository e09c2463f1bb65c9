"""
JWT token verification utilities.

Tokens are issued by the identity service; this module only verifies them
and turns the claims into a `CurrentUser`.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from dormbill.config.logging import get_logger
from dormbill.config.settings import Settings, settings
from dormbill.core.exceptions import AuthenticationError, ForbiddenError
from dormbill.models.base.enums import UserRole

logger = get_logger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller resolved from the bearer token."""

    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_tenant(self) -> bool:
        return self.role == UserRole.TENANT


class JWTManager:
    """
    JWT token manager.

    Handles validation of access tokens signed with the shared secret.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "JWTManager":
        return cls(config.JWT_SECRET_KEY, config.JWT_ALGORITHM)

    def create_access_token(
        self,
        user_id: str,
        role: UserRole,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Create a signed access token (service-to-service calls and tests)."""
        now = datetime.now(timezone.utc)
        payload = {
            "user_id": str(user_id),
            "role": role.value,
            "iat": now,
            "exp": now + (expires_delta or timedelta(hours=1)),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode JWT token.

        Raises:
            AuthenticationError: If the token is expired or invalid
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("Token verification failed: token expired")
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Token verification failed: {e}")
            raise AuthenticationError("Invalid token")

    def resolve_user(self, token: str) -> CurrentUser:
        payload = self.verify_token(token)
        user_id = payload.get("user_id") or payload.get("sub")
        if not user_id:
            raise AuthenticationError("Token has no subject")
        try:
            role = UserRole(payload.get("role", UserRole.GUEST.value))
        except ValueError:
            raise AuthenticationError("Token carries an unknown role")
        return CurrentUser(user_id=str(user_id), role=role)


def ensure_admin(user: CurrentUser) -> CurrentUser:
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user
