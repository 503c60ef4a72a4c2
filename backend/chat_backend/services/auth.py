"""
User accounts, password hashing and JWT issuing.
"""
import logging
import re
import time
from typing import Any, Dict, Optional

import bcrypt
import jwt
from sqlalchemy import func, select

from ..db.models import User
from ..db.session import Database
from ..errors import AuthenticationError, ConflictError, UserNotFoundError, ValidationError
from ..models.auth import LoginResponse, UserRecord

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@(.+)$")

DEFAULT_USERNAME = "admin"
DEFAULT_EMAIL = "admin@example.com"
DEFAULT_PASSWORD = "admin"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


class AuthService:
    def __init__(self, database: Database, jwt_secret: str, ttl_minutes: int = 1440):
        self.database = database
        self.jwt_secret = jwt_secret
        self.ttl_minutes = ttl_minutes

    def signup(self, username: str, email: str, password: str) -> UserRecord:
        with self.database.session() as session:
            if session.scalars(select(User).where(User.username == username)).first():
                raise ConflictError("Username already exists")
            if session.scalars(select(User).where(User.email == email)).first():
                raise ConflictError("Email already exists")
            if not EMAIL_PATTERN.match(email):
                raise ValidationError("Invalid email format")

            user = User(username=username, email=email, password_hash=hash_password(password), role="USER")
            session.add(user)
            session.flush()
            record = UserRecord.model_validate(user)

        logger.info("Registered user %s", username)
        return record

    def login(self, email: str, password: str) -> LoginResponse:
        with self.database.session() as session:
            user = session.scalars(select(User).where(User.email == email)).first()
            if user is None or not verify_password(password, user.password_hash):
                raise AuthenticationError("Invalid email or password")
            record = UserRecord.model_validate(user)

        return LoginResponse(
            token=self.issue_token(record),
            username=record.username,
            email=record.email,
            role=record.role,
        )

    def issue_token(self, user: UserRecord) -> str:
        now = int(time.time())
        payload = {
            "sub": user.username,
            "email": user.email,
            "role": user.role,
            "iat": now,
            "exp": now + self.ttl_minutes * 60,
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=JWT_ALGORITHM)

    def decode_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.jwt_secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.PyJWTError:
            raise AuthenticationError("Invalid token")

    def user_from_token(self, token: str) -> UserRecord:
        claims = self.decode_token(token)
        user = self.find_by_username(claims.get("sub", ""))
        if user is None:
            raise AuthenticationError("User not found")
        return user

    def find_by_username(self, username: str) -> Optional[UserRecord]:
        with self.database.session() as session:
            user = session.scalars(select(User).where(User.username == username)).first()
            return UserRecord.model_validate(user) if user else None

    def change_password(self, email: str, current_password: str, new_password: str) -> None:
        with self.database.session() as session:
            user = session.scalars(select(User).where(User.email == email)).first()
            if user is None:
                raise UserNotFoundError("User not found")
            if not verify_password(current_password, user.password_hash):
                raise AuthenticationError("Current password is incorrect")
            user.password_hash = hash_password(new_password)

    def delete_account(self, email: str) -> None:
        with self.database.session() as session:
            user = session.scalars(select(User).where(User.email == email)).first()
            if user is None:
                raise UserNotFoundError("User not found")
            session.delete(user)
        logger.info("Deleted account %s", email)

    def create_default_user(self) -> Optional[UserRecord]:
        """Create the initial account when no users exist."""
        with self.database.session() as session:
            if session.scalar(select(func.count(User.id))):
                logger.info("Users already exist, skipping default user creation")
                return None
        record = self.signup(DEFAULT_USERNAME, DEFAULT_EMAIL, DEFAULT_PASSWORD)
        logger.warning("Created default user %s, change its password", DEFAULT_EMAIL)
        return record
