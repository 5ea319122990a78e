from .base import Base
from .user import UserModel
from .roster import (
    AttendanceRecordModel,
    ClassEnrollmentModel,
    ModuleModel,
    TeachingAssignmentModel,
)

__all__ = [
    "Base",
    "UserModel",
    "AttendanceRecordModel",
    "ClassEnrollmentModel",
    "ModuleModel",
    "TeachingAssignmentModel",
]
