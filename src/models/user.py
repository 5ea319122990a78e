"""Account table for everyone who signs in to roll call.

Teachers and admins issue attendance codes; students redeem them. The role
column drives those permissions, so the database only accepts the three
roles the API knows about.
"""

from sqlalchemy import CheckConstraint, Column, String
from .base import Base

USER_ROLES = ("admin", "teacher", "student")


class UserModel(Base):
    """A teacher, student or admin account."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ({})".format(", ".join(f"'{role}'" for role in USER_ROLES)),
            name="ck_users_role",
        ),
    )

    user_id = Column(String, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False)
    # Shown to teachers in place of the username when set
    display_name = Column(String, nullable=True)
    create_at = Column(String, nullable=False)  # ISO format string
