"""Roll call routes.

Teachers open roll call by requesting an attendance code; students redeem
it. Every attendance outcome a student can cause is returned as data with
status 200. Only system failures become HTTP errors.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.routes.auth import require_role
from core.dependencies import RollCallServiceDep, RosterManagerDep
from core.exceptions import (
    CodeSpaceExhaustedError,
    CollaboratorError,
    CollaboratorTimeoutError,
)
from schemas.roll_call import (
    ActiveCodeInfo,
    AttendanceCodeResponse,
    AttendanceResult,
    ModuleInfo,
    RegisterAttendanceRequest,
    RequestAttendanceCodeRequest,
    SessionDescriptor,
    StartRollCallInfo,
)
from schemas.user import User
from utils.code_registry import ActiveCode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rollcall", tags=["RollCall"])

teacher_required = require_role("teacher", "admin")
student_required = require_role("student")


def _collaborator_http_error(exc: CollaboratorError) -> HTTPException:
    if isinstance(exc, CollaboratorTimeoutError):
        return HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="The roster service did not respond in time.",
        )
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="The roster service failed to process the request.",
    )


def _build_code_info(entry: ActiveCode) -> ActiveCodeInfo:
    return ActiveCodeInfo(
        attendance_code=entry.code,
        subject=entry.session.subject,
        class_name=entry.session.class_name,
        module_id=entry.session.module_id,
        geofenced=entry.geofence is not None,
        created_at=entry.created_at.isoformat(),
        expires_at=entry.expires_at.isoformat(),
        redemptions=entry.redemption_count(),
    )


@router.get("/initial-info", response_model=StartRollCallInfo, summary="Roll call choices")
def get_initial_roll_call_info(
    roster: RosterManagerDep,
    current_user: User = Depends(teacher_required),
) -> StartRollCallInfo:
    """Get the teacher's subjects, the classes of the first subject and all modules."""
    subjects, classes = roster.get_subjects_and_classes(current_user.user_id)
    modules = [
        ModuleInfo(
            module_id=m.module_id,
            name=m.name,
            start_time=m.start_time,
            end_time=m.end_time,
        )
        for m in roster.get_modules()
    ]
    return StartRollCallInfo(subjects=subjects, classes=classes, modules=modules)


@router.get("/classes", response_model=List[str], summary="Classes for a subject")
def get_classes(
    roster: RosterManagerDep,
    subject: str = Query(..., min_length=1),
    current_user: User = Depends(teacher_required),
) -> List[str]:
    return roster.get_specific_classes(current_user.user_id, subject)


@router.post(
    "/request-code",
    response_model=AttendanceCodeResponse,
    summary="Issue an attendance code",
)
async def request_attendance_code(
    req: RequestAttendanceCodeRequest,
    service: RollCallServiceDep,
    current_user: User = Depends(teacher_required),
) -> AttendanceCodeResponse:
    """Issue a unique attendance code for a lesson.

    The code stays redeemable for ATTENDANCE_CODE_TTL_SECONDS. When the
    request carries coordinates, students must be within the geofence
    radius of them to redeem the code.

    Raises:
        HTTPException: 403 if the teacher does not teach the class, 400 for
            an unknown module, 503 if no unique code could be issued, 502/504
            if the roster service fails.
    """
    session = SessionDescriptor(
        subject=req.subject, class_name=req.class_name, module_id=req.module_id
    )
    try:
        if current_user.role != "admin" and not await service.teaches(
            current_user.user_id, session
        ):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not teach this subject to this class.",
            )
        if not await service.module_exists(req.module_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown module: {req.module_id}",
            )
        entry = await service.generate_code(
            current_user.user_id, session, req.coordinates
        )
    except CodeSpaceExhaustedError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No attendance code is available right now, try again shortly.",
        )
    except CollaboratorError as exc:
        raise _collaborator_http_error(exc)

    return AttendanceCodeResponse(
        attendance_code=entry.code, expires_at=entry.expires_at.isoformat()
    )


@router.post(
    "/register-attendance",
    response_model=AttendanceResult,
    summary="Redeem an attendance code",
)
async def register_attendance(
    req: RegisterAttendanceRequest,
    service: RollCallServiceDep,
    current_user: User = Depends(student_required),
) -> AttendanceResult:
    try:
        return await service.register_attendance(
            current_user.user_id, req.attendance_code, req.coordinates
        )
    except CollaboratorError as exc:
        raise _collaborator_http_error(exc)


@router.get("/codes", response_model=List[ActiveCodeInfo], summary="List my active codes")
def list_active_codes(
    service: RollCallServiceDep,
    current_user: User = Depends(teacher_required),
) -> List[ActiveCodeInfo]:
    return [_build_code_info(entry) for entry in service.list_codes(current_user.user_id)]


@router.delete("/codes/{code}", summary="Close an attendance code")
def close_attendance_code(
    code: str,
    service: RollCallServiceDep,
    current_user: User = Depends(teacher_required),
) -> dict:
    if not service.close_code(current_user.user_id, code):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Active attendance code not found",
        )
    return {"success": True, "message": "Attendance code closed"}
