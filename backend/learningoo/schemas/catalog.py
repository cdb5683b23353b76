from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from .base import ApiModel


class Category(ApiModel):
    id: str
    name: str
    slug: str


class CategoryCreate(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    slug: Optional[str] = Field(default=None, max_length=120)


class Course(ApiModel):
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    cover_image: Optional[str] = None
    price: int
    tutor_id: str
    is_published: bool
    created_at: datetime
    updated_at: datetime


class CourseCreate(ApiModel):
    title: str = Field(min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    category_id: Optional[str] = None
    cover_image: Optional[str] = None
    price: int = Field(default=0, ge=0)
    is_published: bool = False


class CourseUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    category_id: Optional[str] = None
    cover_image: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=0)
    is_published: Optional[bool] = None


class Chapter(ApiModel):
    id: str
    title: str
    description: Optional[str] = None
    course_id: str
    position: int = Field(default=0, alias="order")
    created_at: datetime
    updated_at: datetime


class LessonOutline(ApiModel):
    id: str
    title: str
    position: int = Field(default=0, alias="order")


class ChapterDetail(Chapter):
    lessons: List[LessonOutline] = Field(default_factory=list)


class ChapterCreate(ApiModel):
    course_id: str
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    position: Optional[int] = Field(default=None, alias="order", ge=0)


class ChapterUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    position: Optional[int] = Field(default=None, alias="order", ge=0)


class Lesson(ApiModel):
    id: str
    title: str
    chapter_id: str
    content_blocks: List[Any] = Field(default_factory=list)
    position: int = Field(default=0, alias="order")
    created_at: datetime
    updated_at: datetime


class LessonCreate(ApiModel):
    chapter_id: str
    title: str = Field(min_length=1, max_length=200)
    content_blocks: List[Any] = Field(default_factory=list)
    position: Optional[int] = Field(default=None, alias="order", ge=0)


class LessonUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content_blocks: Optional[List[Any]] = None
    position: Optional[int] = Field(default=None, alias="order", ge=0)


class Enrollment(ApiModel):
    id: str
    student_id: str
    course_id: str
    status: str
    completed_lessons: List[str] = Field(default_factory=list)
    completed: bool = False
    created_at: datetime


class EnrollmentWithCourse(Enrollment):
    course: Course
