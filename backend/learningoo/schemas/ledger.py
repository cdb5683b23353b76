from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import ApiModel
from .catalog import Enrollment


class License(ApiModel):
    id: str
    name: str
    slug: str
    price: int
    course_limit: Optional[int] = None
    chapter_limit: Optional[int] = None
    lesson_limit: Optional[int] = None


class LicenseAssignRequest(ApiModel):
    user_id: Optional[str] = None
    license_slug: str = Field(min_length=1)


class LicenseUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[int] = Field(default=None, ge=0)
    course_limit: Optional[int] = Field(default=None, ge=0)
    chapter_limit: Optional[int] = Field(default=None, ge=0)
    lesson_limit: Optional[int] = Field(default=None, ge=0)


class Transaction(ApiModel):
    id: str
    user_id: str
    type: Literal["credit", "debit"]
    category: Literal["license", "course", "topup"]
    amount: int
    related_id: Optional[str] = None
    counterpart_id: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime


class PurchaseResponse(ApiModel):
    enrollment: Enrollment
    balance: int
