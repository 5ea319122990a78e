import threading
import time

import pytest

from schemas.roll_call import Coordinates, SessionDescriptor
from utils.code_registry import ActiveCodeRegistry, RedemptionStatus

CLASSROOM = Coordinates(latitude=55.6761, longitude=12.5683)


def run_concurrently(worker, count):
    barrier = threading.Barrier(count)
    results = [None] * count

    def target(index):
        barrier.wait()
        results[index] = worker(index)

    threads = [threading.Thread(target=target, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def test_register_and_lookup(registry, clock, math_session):
    entry = registry.try_register("AB12", "teacher-1", math_session, CLASSROOM)

    assert entry is not None
    assert entry.code == "AB12"
    assert entry.teacher_id == "teacher-1"
    assert entry.session == math_session
    assert entry.geofence == CLASSROOM
    assert entry.created_at == clock.now
    assert entry.expires_at > entry.created_at
    assert entry.redeemed_by == set()
    assert registry.lookup("AB12") is entry
    assert registry.count() == 1


def test_lookup_normalizes_code(registry, math_session):
    entry = registry.try_register("ab12", "teacher-1", math_session)
    assert entry.code == "AB12"
    assert registry.lookup(" ab12 ") is entry


def test_lookup_unknown_code(registry, math_session):
    registry.try_register("AB12", "teacher-1", math_session)
    assert registry.lookup("ZZ99") is None


def test_register_collision_with_active_code(registry, math_session):
    first = registry.try_register("AB12", "teacher-1", math_session)
    other = SessionDescriptor(subject="Physics", class_name="3.B", module_id=2)

    assert registry.try_register("AB12", "teacher-2", other) is None
    assert registry.lookup("AB12") is first


def test_concurrent_register_same_code_only_one_succeeds(registry, math_session):
    results = run_concurrently(
        lambda i: registry.try_register("AB12", f"teacher-{i}", math_session), 32
    )

    winners = [r for r in results if r is not None]
    assert len(winners) == 1
    assert registry.lookup("AB12") is winners[0]
    assert registry.count() == 1


def test_concurrent_register_small_code_space_never_duplicates(registry, math_session):
    def worker(i):
        return registry.try_register(f"C{i % 8}", f"teacher-{i}", math_session)

    results = run_concurrently(worker, 40)

    codes = [r.code for r in results if r is not None]
    assert len(codes) == 8
    assert len(set(codes)) == 8


def test_lookup_not_found_once_expired(registry, clock, math_session):
    registry.try_register("AB12", "teacher-1", math_session)

    clock.advance(599)
    assert registry.lookup("AB12") is not None

    clock.advance(1)
    assert registry.lookup("AB12") is None
    assert registry.count() == 0


def test_expired_code_can_be_reissued(registry, clock, math_session):
    registry.try_register("AB12", "teacher-1", math_session)
    clock.advance(601)

    entry = registry.try_register("AB12", "teacher-2", math_session)

    assert entry is not None
    assert registry.lookup("AB12").teacher_id == "teacher-2"


def test_mark_redeemed_is_idempotent_per_student(registry, math_session):
    entry = registry.try_register("AB12", "teacher-1", math_session)

    assert registry.mark_redeemed(entry, "student-1") is RedemptionStatus.OK
    assert registry.mark_redeemed(entry, "student-1") is RedemptionStatus.ALREADY_REDEEMED
    assert entry.redeemed_by == {"student-1"}


def test_distinct_students_redeem_same_code(registry, math_session):
    entry = registry.try_register("AB12", "teacher-1", math_session)

    assert registry.mark_redeemed(entry, "student-1") is RedemptionStatus.OK
    assert registry.mark_redeemed(entry, "student-2") is RedemptionStatus.OK
    assert entry.redeemed_by == {"student-1", "student-2"}


def test_concurrent_redemptions(registry, math_session):
    entry = registry.try_register("AB12", "teacher-1", math_session)

    distinct = run_concurrently(
        lambda i: registry.mark_redeemed(entry, f"student-{i}"), 50
    )
    same = run_concurrently(lambda i: registry.mark_redeemed(entry, "student-0"), 20)

    assert all(status is RedemptionStatus.OK for status in distinct)
    assert all(status is RedemptionStatus.ALREADY_REDEEMED for status in same)
    assert entry.redemption_count() == 50


def test_release_redemption(registry, math_session):
    entry = registry.try_register("AB12", "teacher-1", math_session)
    registry.mark_redeemed(entry, "student-1")

    registry.release_redemption(entry, "student-1")

    assert entry.redeemed_by == set()
    assert registry.mark_redeemed(entry, "student-1") is RedemptionStatus.OK


def test_revoke_only_by_owner(registry, math_session):
    entry = registry.try_register("AB12", "teacher-1", math_session)

    assert registry.revoke("AB12", "teacher-2") is False
    assert registry.revoke("AB12", "teacher-1") is True
    assert entry.revoked is True
    assert registry.lookup("AB12") is None
    assert registry.revoke("AB12", "teacher-1") is False


def test_revoked_code_can_be_reissued(registry, math_session):
    registry.try_register("AB12", "teacher-1", math_session)
    registry.revoke("AB12", "teacher-1")

    assert registry.try_register("AB12", "teacher-1", math_session) is not None


def test_active_codes_filters_by_teacher(registry, clock, math_session):
    first = registry.try_register("AAAA", "teacher-1", math_session)
    clock.advance(1)
    registry.try_register("BBBB", "teacher-2", math_session)
    clock.advance(1)
    third = registry.try_register("CCCC", "teacher-1", math_session)

    assert registry.active_codes("teacher-1") == [first, third]
    assert len(registry.active_codes()) == 3


def test_sweep_keeps_entry_usable_for_inflight_redemption(registry, clock, math_session):
    entry = registry.try_register("AB12", "teacher-1", math_session)
    registry.try_register("CD34", "teacher-1", math_session)
    clock.advance(300)
    registry.try_register("EF56", "teacher-1", math_session)
    clock.advance(300)

    assert registry.sweep_expired() == 2
    assert registry.count() == 1
    assert registry.mark_redeemed(entry, "student-1") is RedemptionStatus.OK


def test_background_sweeper_removes_expired_codes(registry, clock, math_session):
    registry.try_register("AB12", "teacher-1", math_session)
    clock.advance(601)

    registry.start_sweeper(0.01)
    try:
        deadline = time.monotonic() + 2
        while registry._codes and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        registry.stop_sweeper()

    assert registry._codes == {}


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        ActiveCodeRegistry(ttl_seconds=0)
