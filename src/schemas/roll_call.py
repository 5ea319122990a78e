"""Roll call schema definitions.

Request and response models for the roll call routes, plus the coordinate
model shared with the attendance-code registry.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    """A point on the Earth's surface in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class SessionDescriptor(BaseModel):
    """Identifies the lesson a roll call is taken for."""

    model_config = ConfigDict(frozen=True)

    subject: str
    class_name: str
    module_id: int


class AttendanceOutcome(str, Enum):
    SUCCESS = "success"
    NO_ACTIVE_CODES = "no_active_codes"
    INVALID_CODE = "invalid_code"
    MISSING_COORDINATES = "missing_coordinates"
    OUT_OF_RANGE = "out_of_range"
    ALREADY_REDEEMED = "already_redeemed"
    NOT_ON_ROSTER = "not_on_roster"


OUTCOME_MESSAGES = {
    AttendanceOutcome.NO_ACTIVE_CODES: "No active Codes",
    AttendanceOutcome.INVALID_CODE: "Invalid Code",
    AttendanceOutcome.MISSING_COORDINATES: "Coordinates required",
    AttendanceOutcome.OUT_OF_RANGE: "Invalid Coordinates",
    AttendanceOutcome.ALREADY_REDEEMED: "Attendance already registered with this code",
    AttendanceOutcome.NOT_ON_ROSTER: "You are not on the roster for this class",
}


class AttendanceResult(BaseModel):
    outcome: AttendanceOutcome
    message: str


class ModuleInfo(BaseModel):
    module_id: int
    name: str
    start_time: str
    end_time: str


class StartRollCallInfo(BaseModel):
    """Choices a teacher needs before requesting a code."""

    subjects: List[str]
    classes: List[str]
    modules: List[ModuleInfo]


class RequestAttendanceCodeRequest(BaseModel):
    subject: str = Field(min_length=1)
    class_name: str = Field(min_length=1)
    module_id: int
    coordinates: Optional[Coordinates] = None


class AttendanceCodeResponse(BaseModel):
    attendance_code: str
    expires_at: str


class RegisterAttendanceRequest(BaseModel):
    attendance_code: str = Field(min_length=1)
    coordinates: Optional[Coordinates] = None


class ActiveCodeInfo(BaseModel):
    attendance_code: str
    subject: str
    class_name: str
    module_id: int
    geofenced: bool
    created_at: str
    expires_at: str
    redemptions: int
