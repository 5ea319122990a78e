"""In-memory registry of active attendance codes.

The registry owns every code that is currently redeemable together with the
lesson it belongs to, its optional geofence and the students that already
used it. It is created once per application and shared by all requests.

Thread-safe: one lock guards the code map, and each entry carries its own
lock for its redemption set. Entries dropped by the sweep remain usable by a
redemption that already holds a reference to them.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

import pytz

from schemas.roll_call import Coordinates, SessionDescriptor
from utils.code_generator import normalize_code

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


class RedemptionStatus(str, Enum):
    OK = "ok"
    ALREADY_REDEEMED = "already_redeemed"


@dataclass
class ActiveCode:
    """An issued attendance code and the lesson it opens roll call for."""

    code: str
    teacher_id: str
    session: SessionDescriptor
    created_at: datetime
    expires_at: datetime
    geofence: Optional[Coordinates] = None
    revoked: bool = False
    redeemed_by: Set[str] = field(default_factory=set)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def is_active(self, now: datetime) -> bool:
        return not self.revoked and now < self.expires_at

    def add_redemption(self, student_id: str) -> bool:
        """Record a student; False if the student was already recorded."""
        with self._lock:
            if student_id in self.redeemed_by:
                return False
            self.redeemed_by.add(student_id)
            return True

    def remove_redemption(self, student_id: str) -> None:
        with self._lock:
            self.redeemed_by.discard(student_id)

    def redemption_count(self) -> int:
        with self._lock:
            return len(self.redeemed_by)


class ActiveCodeRegistry:
    """Thread-safe store of active attendance codes keyed by code string."""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize ActiveCodeRegistry.

        Args:
            ttl_seconds: Lifetime of a code after registration. Must be positive.
            clock: Returns the current timezone-aware time. Defaults to UTC now.
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._codes: Dict[str, ActiveCode] = {}
        self._lock = threading.Lock()
        self._sweeper: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        logger.info("ActiveCodeRegistry initialized (ttl=%ss)", ttl_seconds)

    def try_register(
        self,
        code: str,
        teacher_id: str,
        session: SessionDescriptor,
        geofence: Optional[Coordinates] = None,
    ) -> Optional[ActiveCode]:
        """Atomically register a code if no active entry uses it.

        Args:
            code: Candidate code.
            teacher_id: Issuing teacher.
            session: Lesson the code opens roll call for.
            geofence: Optional center point students must be near.

        Returns:
            The new ActiveCode, or None if the code collides with an active one.
        """
        key = normalize_code(code)
        with self._lock:
            now = self._clock()
            existing = self._codes.get(key)
            if existing is not None and existing.is_active(now):
                logger.debug("Attendance code collision: %s", key)
                return None
            entry = ActiveCode(
                code=key,
                teacher_id=teacher_id,
                session=session,
                created_at=now,
                expires_at=now + self._ttl,
                geofence=geofence,
            )
            self._codes[key] = entry
        logger.info(
            "Registered attendance code %s for teacher %s (%s/%s, module %s, geofenced=%s)",
            key,
            teacher_id,
            session.subject,
            session.class_name,
            session.module_id,
            geofence is not None,
        )
        return entry

    def lookup(self, code: str) -> Optional[ActiveCode]:
        """Return the active entry for a code, or None if absent or expired."""
        key = normalize_code(code)
        with self._lock:
            entry = self._codes.get(key)
            if entry is None:
                return None
            if not entry.is_active(self._clock()):
                del self._codes[key]
                logger.debug("Dropped stale attendance code on lookup: %s", key)
                return None
            return entry

    def mark_redeemed(self, entry: ActiveCode, student_id: str) -> RedemptionStatus:
        if not entry.add_redemption(student_id):
            return RedemptionStatus.ALREADY_REDEEMED
        logger.info("Student %s redeemed attendance code %s", student_id, entry.code)
        return RedemptionStatus.OK

    def release_redemption(self, entry: ActiveCode, student_id: str) -> None:
        """Undo a redemption whose attendance could not be recorded."""
        entry.remove_redemption(student_id)
        logger.info("Released redemption of %s by student %s", entry.code, student_id)

    def count(self) -> int:
        """Number of live entries."""
        with self._lock:
            now = self._clock()
            return sum(1 for entry in self._codes.values() if entry.is_active(now))

    def active_codes(self, teacher_id: Optional[str] = None) -> List[ActiveCode]:
        """Snapshot of live entries, optionally only those of one teacher."""
        with self._lock:
            now = self._clock()
            entries = [e for e in self._codes.values() if e.is_active(now)]
        if teacher_id is not None:
            entries = [e for e in entries if e.teacher_id == teacher_id]
        return sorted(entries, key=lambda e: e.created_at)

    def revoke(self, code: str, teacher_id: str) -> bool:
        """Close a code before it expires.

        Args:
            code: Code to close.
            teacher_id: Only the issuing teacher may close a code.

        Returns:
            True if an active code owned by the teacher was closed.
        """
        key = normalize_code(code)
        with self._lock:
            entry = self._codes.get(key)
            if entry is None or entry.teacher_id != teacher_id:
                return False
            if not entry.is_active(self._clock()):
                return False
            entry.revoked = True
            del self._codes[key]
        logger.info("Attendance code %s closed by teacher %s", key, teacher_id)
        return True

    def sweep_expired(self) -> int:
        """Remove expired and revoked entries.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            stale = [key for key, e in self._codes.items() if not e.is_active(now)]
            for key in stale:
                del self._codes[key]
        if stale:
            logger.info("Swept %d expired attendance code(s)", len(stale))
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            count = len(self._codes)
            self._codes.clear()
        logger.info("Registry cleared (%d entries removed)", count)

    def start_sweeper(self, interval_seconds: float) -> None:
        """Start the background sweep thread. Calling twice is a no-op."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            args=(interval_seconds,),
            name="attendance-code-sweeper",
            daemon=True,
        )
        self._sweeper.start()
        logger.info("Attendance code sweeper started (interval=%ss)", interval_seconds)

    def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._stop_event.set()
        self._sweeper.join()
        self._sweeper = None
        logger.info("Attendance code sweeper stopped")

    def _sweep_loop(self, interval_seconds: float) -> None:
        while not self._stop_event.wait(interval_seconds):
            try:
                self.sweep_expired()
            except Exception:
                logger.exception("Attendance code sweep failed")
