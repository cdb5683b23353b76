from typing import Dict, Optional

from pydantic import Field

from .base import ApiModel
from .users import User


class AdminLoginRequest(ApiModel):
    key: Optional[str] = None
    email: Optional[str] = None
    password: str


class AdminSummary(ApiModel):
    categories: int
    licenses: int
    courses: int
    users: int
    transactions: int


class TopEarner(ApiModel):
    amount: int
    user: Optional[User] = None


class AdminOverview(ApiModel):
    total_users: int
    tutors: int
    students: int
    categories: int
    courses: int
    licenses: Dict[str, int]
    revenue_total: int
    revenue_licenses: int
    revenue_courses: int
    top_earner: Optional[TopEarner] = None


class AdminUserRecord(User):
    license_slug: Optional[str] = None


class AdminUserUpdate(ApiModel):
    balance: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    license_slug: Optional[str] = None
    new_password: Optional[str] = Field(default=None, min_length=6)


class AppConfig(ApiModel):
    allow_registration: bool
    allow_login: bool
    default_credits: int


class AppConfigUpdate(ApiModel):
    allow_registration: Optional[bool] = None
    allow_login: Optional[bool] = None
    default_credits: Optional[int] = Field(default=None, ge=0)
