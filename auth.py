"""
Auth service: registration, login and session-token verification.

Tokens are stateless HS256 JWTs carrying {id, email, exp}. Nothing about a
session is stored server-side, so a token stays valid until it expires.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from email_validator import EmailNotValidError, validate_email
from jwt import ExpiredSignatureError, InvalidTokenError
from passlib.context import CryptContext

from errors import ConflictError, ForbiddenError, InvalidCredentialsError, UnauthorizedError
from schemas import Identity, User
from settings import Settings
from stores import UserStore

logger = structlog.get_logger(__name__)

ALGORITHM = "HS256"


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup (domain lowercased)."""
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError:
        return email


def parse_authorization(header: Optional[str]) -> str:
    """Return the bearer token from an Authorization header value."""
    if not header:
        raise UnauthorizedError()
    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthorizedError()
    return parts[1]


class AuthService:
    def __init__(self, users: UserStore, settings: Settings):
        self.users = users
        self.settings = settings
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.bcrypt_rounds,
        )

    # ----------------------
    # Passwords / tokens
    # ----------------------

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        if not hashed_password:
            return False
        return self.pwd_context.verify(plain_password, hashed_password)

    def create_access_token(self, identity: Identity, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.settings.access_token_expire_minutes)
        )
        to_encode = {"id": identity.id, "email": identity.email, "exp": expire}
        return jwt.encode(to_encode, self.settings.secret_key, algorithm=ALGORITHM)

    # ----------------------
    # Operations
    # ----------------------

    def register(self, email: str, password: str) -> str:
        """Store a new user and return its id. Raises ConflictError for a taken email."""
        email = normalize_email(email)
        if self.users.find_by_email(email):
            raise ConflictError()

        user_id = self.users.insert(User(email=email, password_hash=self.hash_password(password)))
        logger.info("user_registered", user_id=user_id)
        return user_id

    def login(self, email: str, password: str) -> str:
        email = normalize_email(email)
        user = self.users.find_by_email(email)
        if not user or not self.verify_password(password, user.get("password_hash", "")):
            logger.info("login_failed")
            raise InvalidCredentialsError()

        identity = Identity(id=str(user["_id"]), email=user["email"])
        logger.info("login_succeeded", user_id=identity.id)
        return self.create_access_token(identity)

    def verify(self, token: str) -> Identity:
        try:
            payload = jwt.decode(token, self.settings.secret_key, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            logger.info("token_rejected", reason="expired")
            raise ForbiddenError()
        except InvalidTokenError:
            logger.info("token_rejected", reason="invalid")
            raise ForbiddenError()

        user_id = payload.get("id")
        email = payload.get("email")
        if not user_id or not email:
            logger.info("token_rejected", reason="missing_claims")
            raise ForbiddenError()
        return Identity(id=str(user_id), email=str(email))

    def seed_demo_user(self) -> bool:
        """Create the demo account when it is missing. Returns True if it was created."""
        email = normalize_email(self.settings.demo_email)
        if self.users.find_by_email(email):
            return False
        try:
            self.register(email, self.settings.demo_password)
        except ConflictError:
            # Another worker got there first.
            return False
        logger.info("demo_user_created", email=email)
        return True
