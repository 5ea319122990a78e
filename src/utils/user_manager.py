"""User management utilities.

This module provides user storage, bcrypt password hashing and lookups used
by the authentication routes.
"""

import logging
from typing import Optional

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.user import USER_ROLES, UserModel
from schemas.user import User

logger = logging.getLogger(__name__)

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS = 12


class UserAlreadyExistsError(Exception):
    """Exception raised when trying to create a user that already exists."""

    pass


def _model_to_user(model: UserModel) -> User:
    return User(
        user_id=model.user_id,
        username=model.username,
        password_hash=model.password_hash,
        role=model.role,
        display_name=model.display_name,
        create_at=model.create_at,
    )


class UserManager:
    """Manages user persistence and credentials using SQLAlchemy."""

    def __init__(self, db: Session, bcrypt_rounds: int = BCRYPT_ROUNDS):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            bcrypt_rounds: Cost factor for new password hashes.
        """
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        # bcrypt only looks at the first 72 bytes
        password_bytes = password.encode("utf-8")[:72]
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        password_bytes = plain_password.encode("utf-8")[:72]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def create_user(
        self,
        username: str,
        password: str,
        role: str,
        display_name: Optional[str] = None,
    ) -> User:
        """Create a new user.

        Args:
            username: Username for the new user.
            password: Plain text password.
            role: User role ('admin', 'teacher', or 'student').
            display_name: Optional display name.

        Returns:
            Created User object.

        Raises:
            ValueError: If the role is unknown.
            UserAlreadyExistsError: If username already exists.
        """
        if role not in USER_ROLES:
            raise ValueError(f"Invalid role: {role}")
        existing = self.db.query(UserModel).filter(UserModel.username == username).first()
        if existing:
            raise UserAlreadyExistsError(f"User '{username}' already exists")

        user = User(
            username=username,
            password_hash=self.hash_password(password),
            role=role,
            display_name=display_name,
        )
        try:
            self.db.add(UserModel(**user.model_dump()))
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise UserAlreadyExistsError(f"User '{username}' already exists") from e

        logger.info("Created user: %s (%s)", username, role)
        return user

    def get_user_by_username(self, username: str) -> Optional[User]:
        model = self.db.query(UserModel).filter(UserModel.username == username).first()
        if model:
            return _model_to_user(model)
        return None

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user if the credentials match, otherwise None."""
        user = self.get_user_by_username(username)
        if user is None:
            return None
        if not self.verify_password(password, user.password_hash):
            return None
        return user
