"""Roll call orchestration.

Issues attendance codes for teachers and redeems them for students. The
registry holds the codes; the roster manager records who is present.
"""

import asyncio
import logging
from typing import Callable, ContextManager, List, Optional

from config import (
    ATTENDANCE_CODE_LENGTH,
    CODE_GENERATION_MAX_ATTEMPTS,
    COLLABORATOR_TIMEOUT_SECONDS,
    GEOFENCE_RADIUS_METERS,
)
from core.exceptions import (
    CodeSpaceExhaustedError,
    CollaboratorError,
    CollaboratorTimeoutError,
    StudentNotOnRosterError,
)
from schemas.roll_call import (
    OUTCOME_MESSAGES,
    AttendanceOutcome,
    AttendanceResult,
    Coordinates,
    SessionDescriptor,
)
from utils.code_generator import generate_attendance_code
from utils.code_registry import ActiveCode, ActiveCodeRegistry, RedemptionStatus
from utils.geofence import GeofenceStatus, validate_geofence
from utils.roster_manager import RosterManager

logger = logging.getLogger(__name__)

_GEOFENCE_OUTCOMES = {
    GeofenceStatus.MISSING_COORDINATES: AttendanceOutcome.MISSING_COORDINATES,
    GeofenceStatus.OUT_OF_RANGE: AttendanceOutcome.OUT_OF_RANGE,
}


def _result(outcome: AttendanceOutcome) -> AttendanceResult:
    return AttendanceResult(outcome=outcome, message=OUTCOME_MESSAGES[outcome])


class RollCallService:
    """Coordinates code generation, registration and redemption."""

    def __init__(
        self,
        registry: ActiveCodeRegistry,
        roster_factory: Callable[[], ContextManager[RosterManager]],
        code_generator: Optional[Callable[[], str]] = None,
        max_attempts: int = CODE_GENERATION_MAX_ATTEMPTS,
        collaborator_timeout: float = COLLABORATOR_TIMEOUT_SECONDS,
        geofence_radius: float = GEOFENCE_RADIUS_METERS,
    ):
        """Initialize RollCallService.

        Args:
            registry: Shared registry of active codes.
            roster_factory: Context manager factory yielding a roster
                manager on its own database session. Each roster call opens
                one inside its worker thread.
            code_generator: Returns candidate codes. Defaults to random codes
                of ATTENDANCE_CODE_LENGTH characters.
            max_attempts: Candidates tried before giving up.
            collaborator_timeout: Seconds allowed for each roster call.
            geofence_radius: Inclusive geofence radius in metres.
        """
        self.registry = registry
        self.roster_factory = roster_factory
        self.code_generator = code_generator or (
            lambda: generate_attendance_code(ATTENDANCE_CODE_LENGTH)
        )
        self.max_attempts = max_attempts
        self.collaborator_timeout = collaborator_timeout
        self.geofence_radius = geofence_radius

    async def teaches(self, teacher_id: str, session: SessionDescriptor) -> bool:
        return await self._call_roster(
            "teaches", teacher_id, session.subject, session.class_name
        )

    async def module_exists(self, module_id: int) -> bool:
        return await self._call_roster("module_exists", module_id)

    async def generate_code(
        self,
        teacher_id: str,
        session: SessionDescriptor,
        coordinates: Optional[Coordinates] = None,
    ) -> ActiveCode:
        """Issue a new attendance code and prepare the class roster.

        Args:
            teacher_id: Issuing teacher.
            session: Lesson to take roll call for.
            coordinates: Optional geofence center.

        Returns:
            The registered ActiveCode.

        Raises:
            CodeSpaceExhaustedError: If every candidate collided.
            CollaboratorError: If the roster could not be prepared. The code
                is closed again in that case.
        """
        entry = self._register_unique_code(teacher_id, session, coordinates)
        try:
            await self._call_roster("prepare_students_for_attendance", entry)
        except CollaboratorError:
            self.registry.revoke(entry.code, teacher_id)
            raise
        return entry

    async def register_attendance(
        self,
        student_id: str,
        code: str,
        coordinates: Optional[Coordinates] = None,
    ) -> AttendanceResult:
        """Redeem an attendance code for a student.

        Args:
            student_id: Redeeming student.
            code: Code typed in by the student.
            coordinates: Student location, required for geofenced codes.

        Returns:
            AttendanceResult with the outcome and a message for the student.

        Raises:
            CollaboratorError: If the student could not be marked present.
                The redemption is released unless the call timed out, since
                a late write may still mark the student present.
        """
        if self.registry.count() == 0:
            return _result(AttendanceOutcome.NO_ACTIVE_CODES)

        entry = self.registry.lookup(code)
        if entry is None:
            logger.info("Student %s submitted unknown code %r", student_id, code)
            return _result(AttendanceOutcome.INVALID_CODE)

        geofence_status = validate_geofence(
            entry.geofence, coordinates, self.geofence_radius
        )
        if geofence_status is not GeofenceStatus.OK:
            logger.info(
                "Student %s rejected for code %s: %s",
                student_id,
                entry.code,
                geofence_status.value,
            )
            return _result(_GEOFENCE_OUTCOMES[geofence_status])

        status = self.registry.mark_redeemed(entry, student_id)
        if status is RedemptionStatus.ALREADY_REDEEMED:
            return _result(AttendanceOutcome.ALREADY_REDEEMED)

        try:
            message = await self._call_roster("register_attendance", student_id, entry)
        except StudentNotOnRosterError:
            self.registry.release_redemption(entry, student_id)
            return _result(AttendanceOutcome.NOT_ON_ROSTER)
        except CollaboratorTimeoutError:
            logger.warning(
                "Keeping redemption of %s by student %s after roster timeout",
                entry.code,
                student_id,
            )
            raise
        except CollaboratorError:
            self.registry.release_redemption(entry, student_id)
            raise
        return AttendanceResult(outcome=AttendanceOutcome.SUCCESS, message=message)

    def close_code(self, teacher_id: str, code: str) -> bool:
        return self.registry.revoke(code, teacher_id)

    def list_codes(self, teacher_id: str) -> List[ActiveCode]:
        return self.registry.active_codes(teacher_id)

    def _register_unique_code(
        self,
        teacher_id: str,
        session: SessionDescriptor,
        coordinates: Optional[Coordinates],
    ) -> ActiveCode:
        for attempt in range(1, self.max_attempts + 1):
            entry = self.registry.try_register(
                self.code_generator(), teacher_id, session, coordinates
            )
            if entry is not None:
                return entry
            logger.warning(
                "Attendance code collision (attempt %d/%d)", attempt, self.max_attempts
            )
        logger.error("Gave up issuing an attendance code after %d attempts", self.max_attempts)
        raise CodeSpaceExhaustedError(self.max_attempts)

    def _run_roster(self, operation: str, *args):
        with self.roster_factory() as roster:
            return getattr(roster, operation)(*args)

    async def _call_roster(self, operation: str, *args):
        """Run a roster operation in a worker thread with a timeout.

        StudentNotOnRosterError passes through unchanged; any other failure
        is wrapped in CollaboratorError.
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._run_roster, operation, *args),
                timeout=self.collaborator_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "Roster call %s timed out after %.1fs", operation, self.collaborator_timeout
            )
            raise CollaboratorTimeoutError(operation, self.collaborator_timeout) from exc
        except StudentNotOnRosterError:
            raise
        except Exception as exc:
            logger.exception("Roster call %s failed", operation)
            raise CollaboratorError(operation, str(exc)) from exc
