"""Account signup, login and bearer-token verification.

Tokens are signed, timestamped payloads carrying the user id and username;
they expire after the configured TTL.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import ValidationError as PydanticValidationError
from werkzeug.security import check_password_hash, generate_password_hash

from ..db.models import User
from ..db.schemas import UserCreate
from ..db.sqlite import Database, get_db
from ..errors import AuthError, ConflictError, ValidationError, from_pydantic

logger = structlog.get_logger(__name__)

TOKEN_SALT = "bookreviews-auth"


@dataclass(frozen=True)
class Identity:
    """A verified caller."""

    user_id: int
    username: str


class IdentityService:
    """Verifies credentials and issues/validates bearer tokens."""

    def __init__(
        self,
        db: Optional[Database] = None,
        secret_key: Optional[str] = None,
        token_ttl: Optional[int] = None,
    ):
        if secret_key is None or token_ttl is None:
            from ..config import get_config

            config = get_config()
            secret_key = secret_key or config.secret_key
            token_ttl = token_ttl or config.token_ttl

        self.db = db or get_db()
        self.token_ttl = token_ttl
        self._serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)

    def signup(self, username: Optional[str], password: Optional[str]) -> User:
        """Create an account.

        Raises:
            ValidationError: Username or password missing
            ConflictError: Username already taken
        """
        if not username or not password:
            raise ValidationError("Username and password required")

        try:
            data = UserCreate(username=username, password=password)
        except PydanticValidationError as e:
            raise from_pydantic(e) from e

        if self.db.get_user_by_username(data.username) is not None:
            raise ConflictError("Username already exists")

        # A concurrent signup with the same name is caught by the unique
        # constraint and translated to the same ConflictError.
        user = self.db.create_user(data.username, generate_password_hash(data.password))
        logger.info("User created", user_id=user.id, username=user.username)
        return user

    def login(self, username: Optional[str], password: Optional[str]) -> str:
        """Exchange credentials for a bearer token.

        Raises:
            AuthError: Unknown user or wrong password
        """
        if not isinstance(username, str) or not isinstance(password, str):
            logger.warning("Login failed", reason="malformed credentials")
            raise AuthError("Invalid credentials")

        user = self.db.get_user_by_username(username.strip()) if username.strip() else None
        if user is None or not password or not check_password_hash(user.password_hash, password):
            logger.warning("Login failed", username=username)
            raise AuthError("Invalid credentials")

        logger.info("User logged in", user_id=user.id)
        return self.issue_token(user)

    def issue_token(self, user: User) -> str:
        """Sign a token for a user."""
        return self._serializer.dumps({"user_id": user.id, "username": user.username})

    def verify(self, token: Optional[str]) -> Identity:
        """Validate a bearer token.

        Raises:
            AuthError: Token missing, tampered with or expired
        """
        if not token:
            raise AuthError("Access denied. No token provided.")

        try:
            payload = self._serializer.loads(token, max_age=self.token_ttl)
        except SignatureExpired:
            logger.info("Expired token rejected")
            raise AuthError("Token expired") from None
        except BadSignature:
            logger.warning("Invalid token rejected")
            raise AuthError("Invalid token") from None

        try:
            return Identity(user_id=int(payload["user_id"]), username=str(payload["username"]))
        except (KeyError, TypeError, ValueError):
            raise AuthError("Invalid token") from None
