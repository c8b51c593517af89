"""Auth Service - Login and session resolution"""
from typing import Optional, Tuple

from ..domain.models import User, ActorContext
from ..domain.enums import UserStatus
from ..domain.errors import AuthenticationError, InvalidCredentialsError
from ..repositories.user_repo import UserRepository
from ..utils.jwt import create_session_token, decode_session_token
from ..utils.security import verify_password
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuthService:
    """Service for password login and session token handling"""

    def __init__(self):
        self.user_repo = UserRepository()

    def login(self, identifier: str, password: str) -> Tuple[User, str]:
        """
        Verify credentials and issue a session token

        Args:
            identifier: Username or email
            password: Plaintext password

        Returns:
            (user, session token)

        Raises:
            InvalidCredentialsError: Unknown user, wrong password or disabled account
        """
        user = self.user_repo.get_user_by_identifier(identifier)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Login failed: invalid credentials", extra={"action": "login"})
            raise InvalidCredentialsError("Invalid credentials")

        if user.status != UserStatus.ACTIVE.value:
            logger.warning(
                f"Login refused for disabled user {user.username}",
                extra={"user_id": user.user_id, "action": "login"}
            )
            raise InvalidCredentialsError("Invalid credentials")

        self.user_repo.record_login(user.user_id)
        token = create_session_token(user.user_id)
        logger.info(f"User logged in: {user.username}", extra={"user_id": user.user_id, "action": "login"})
        return user, token

    def resolve_user(self, token: Optional[str]) -> User:
        """Active user behind a session token"""
        user_id = decode_session_token(token or "")
        user = self.user_repo.get_active_user(user_id)
        if not user:
            raise AuthenticationError("Not authenticated")
        return user

    @staticmethod
    def to_actor(user: User) -> ActorContext:
        return ActorContext(
            user_id=user.user_id,
            username=user.username,
            email=user.email,
            employee_id=user.employee_id,
        )
