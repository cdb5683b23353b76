from .admin import (
    AdminLoginRequest,
    AdminOverview,
    AdminSummary,
    AdminUserRecord,
    AdminUserUpdate,
    AppConfig,
    AppConfigUpdate,
    TopEarner,
)
from .base import ApiModel
from .catalog import (
    Category,
    CategoryCreate,
    Chapter,
    ChapterCreate,
    ChapterDetail,
    ChapterUpdate,
    Course,
    CourseCreate,
    CourseUpdate,
    Enrollment,
    EnrollmentWithCourse,
    Lesson,
    LessonCreate,
    LessonOutline,
    LessonUpdate,
)
from .ledger import (
    License,
    LicenseAssignRequest,
    LicenseUpdate,
    PurchaseResponse,
    Transaction,
)
from .users import AuthLoginRequest, AuthRegisterRequest, AuthSession, ProfileUpdate, User
