"""Session Tokens - Issue and validate signed HS256 session JWTs"""
import jwt
from datetime import timedelta
from typing import Any, Dict, Optional

from ..config.settings import settings
from ..domain.errors import AuthenticationError
from .logger import get_logger
from .time import utc_now

logger = get_logger(__name__)


class SessionTokenService:
    """Signs and verifies the session token carried in the `sid` cookie"""

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        expires_minutes: Optional[int] = None
    ):
        self._secret = secret or settings.jwt_secret
        self._algorithm = algorithm or settings.jwt_algorithm
        self._expires = timedelta(minutes=expires_minutes or settings.jwt_expires_minutes)

    @property
    def max_age_seconds(self) -> int:
        return int(self._expires.total_seconds())

    def create_token(self, user_id: str) -> str:
        """
        Issue a session token for a user

        Args:
            user_id: Subject of the token

        Returns:
            Encoded JWT
        """
        now = utc_now()
        claims = {
            "sub": user_id,
            "iat": now,
            "exp": now + self._expires,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and verify a session token

        Raises:
            AuthenticationError: If token is missing, expired or invalid
        """
        if not token:
            raise AuthenticationError("Not authenticated")

        # Remove 'Bearer ' prefix if present
        if token.startswith("Bearer "):
            token = token[7:]

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Session token expired")
            raise AuthenticationError("Session has expired")
        except jwt.PyJWTError as e:
            logger.warning(f"Session token rejected: {e}")
            raise AuthenticationError("Invalid session token")

        return claims

    def get_user_id(self, token: str) -> str:
        """Subject (user_id) of a valid token"""
        claims = self.validate_token(token)
        user_id = claims.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid session token")
        return user_id


# Global token service instance
_token_service: Optional[SessionTokenService] = None


def get_token_service() -> SessionTokenService:
    """Get global session token service"""
    global _token_service
    if _token_service is None:
        _token_service = SessionTokenService()
    return _token_service


def create_session_token(user_id: str) -> str:
    return get_token_service().create_token(user_id)


def decode_session_token(token: str) -> str:
    """Return the user_id carried by a session token"""
    return get_token_service().get_user_id(token)
