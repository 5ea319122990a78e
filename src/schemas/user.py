"""User schema definitions."""

import uuid
from datetime import datetime
from typing import Optional

import pytz
from pydantic import BaseModel, Field


class User(BaseModel):
    user_id: str = Field(
        description="The unique identifier for the user.",
        default_factory=lambda: str(uuid.uuid4()),
    )
    username: str
    password_hash: str
    role: str = Field(description="'admin', 'teacher' or 'student'.")
    display_name: Optional[str] = None
    create_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    user: dict
    token: str


class CurrentUserResponse(BaseModel):
    user: dict
