from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import ApiModel


class User(ApiModel):
    id: str
    name: str
    email: str
    role: Literal["admin", "tutor", "student"]
    is_active: bool = True
    balance: int = 0
    license_id: Optional[str] = None
    author_name: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthRegisterRequest(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=6, max_length=128)


class AuthLoginRequest(ApiModel):
    email: str
    password: str


class AuthSession(ApiModel):
    token: str
    user: User


class ProfileUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    author_name: Optional[str] = Field(default=None, max_length=120)
    bio: Optional[str] = Field(default=None, max_length=2000)
