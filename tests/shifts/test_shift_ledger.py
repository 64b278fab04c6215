from __future__ import annotations

import threading

import pytest

from src.shiftbot.shiftbot.core.enums import ShiftStatus
from src.shiftbot.shiftbot.core.exceptions import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from src.shiftbot.shiftbot.effects.model import EffectKind
from src.shiftbot.shiftbot.shifts.memory_shift_repository import InMemoryShiftRepository
from src.shiftbot.shiftbot.shifts.model import ShiftFilter
from src.shiftbot.shiftbot.shifts.service import ShiftLedger


def test_pause_resume_end_scenario(shift_ledger, clock):
    shift = shift_ledger.start(user_id="u1", guild_id="g1").record
    assert shift.status == ShiftStatus.ACTIVE
    assert shift.start_ts == 1000
    assert shift.total_seconds == 0
    assert shift.shift_type == "normal"

    clock.set(1500)
    paused = shift_ledger.pause(shift_id=shift.shift_id, caller_id="u1").record
    assert paused.status == ShiftStatus.PAUSED
    assert paused.total_seconds == 500
    assert paused.pause_ts == 1500

    clock.set(2000)
    resumed = shift_ledger.resume(shift_id=shift.shift_id, caller_id="u1").record
    assert resumed.status == ShiftStatus.ACTIVE
    assert resumed.start_ts == 2000
    assert resumed.resume_ts == 2000
    assert resumed.total_seconds == 500

    clock.set(2300)
    ended = shift_ledger.end(shift_id=shift.shift_id, caller_id="u1").record
    assert ended.status == ShiftStatus.ENDED
    assert ended.total_seconds == 800
    assert ended.end_ts == 2300


@pytest.mark.parametrize(
    "intervals",
    [
        [(0, 100)],
        [(0, 10), (20, 50), (100, 400)],
        [(5, 5), (7, 8), (9, 100), (150, 151)],
    ],
)
def test_total_is_sum_of_active_intervals(shift_ledger, clock, intervals):
    clock.set(intervals[0][0])
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id

    for i, (begin, finish) in enumerate(intervals):
        if i > 0:
            clock.set(begin)
            shift_ledger.resume(shift_id=shift_id, caller_id="u1")
        clock.set(finish)
        if i < len(intervals) - 1:
            shift_ledger.pause(shift_id=shift_id, caller_id="u1")

    ended = shift_ledger.end(shift_id=shift_id, caller_id="u1").record
    assert ended.total_seconds == sum(finish - begin for begin, finish in intervals)


def test_end_while_paused_adds_nothing(shift_ledger, clock):
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    clock.set(1100)
    shift_ledger.pause(shift_id=shift_id, caller_id="u1")
    clock.set(5000)

    ended = shift_ledger.end(shift_id=shift_id, caller_id="u1").record
    assert ended.total_seconds == 100


def test_clock_rollback_is_clamped_to_zero(shift_ledger, clock):
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    clock.set(900)

    paused = shift_ledger.pause(shift_id=shift_id, caller_id="u1").record
    assert paused.total_seconds == 0


def test_pause_twice_is_rejected_and_leaves_record_untouched(shift_ledger, shift_repo, clock):
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    clock.set(1200)
    shift_ledger.pause(shift_id=shift_id, caller_id="u1")
    before = shift_repo.get_by_id(shift_id)

    clock.set(1300)
    with pytest.raises(InvalidStateError):
        shift_ledger.pause(shift_id=shift_id, caller_id="u1")

    assert shift_repo.get_by_id(shift_id) == before


def test_resume_requires_paused(shift_ledger):
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    with pytest.raises(InvalidStateError):
        shift_ledger.resume(shift_id=shift_id, caller_id="u1")


def test_ended_shift_cannot_be_mutated(shift_ledger):
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    shift_ledger.end(shift_id=shift_id, caller_id="u1")

    with pytest.raises(InvalidStateError):
        shift_ledger.pause(shift_id=shift_id, caller_id="u1")
    with pytest.raises(InvalidStateError):
        shift_ledger.resume(shift_id=shift_id, caller_id="u1")
    with pytest.raises(InvalidStateError):
        shift_ledger.end(shift_id=shift_id, caller_id="u1")


def test_unknown_shift_raises_not_found(shift_ledger):
    with pytest.raises(NotFoundError):
        shift_ledger.pause(shift_id=99, caller_id="u1")


def test_non_owner_cannot_pause_and_nothing_is_logged(shift_ledger, shift_repo, audit_repo):
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    before = shift_repo.get_by_id(shift_id)

    with pytest.raises(ForbiddenError):
        shift_ledger.pause(shift_id=shift_id, caller_id="intruder")

    assert shift_repo.get_by_id(shift_id) == before
    assert [e.action for e in audit_repo.all()] == ["shift_start"]


def test_admin_can_pause_someone_elses_shift(shift_ledger, audit_repo, clock):
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    clock.set(1060)

    paused = shift_ledger.pause(shift_id=shift_id, caller_id="boss", caller_is_admin=True).record
    assert paused.status == ShiftStatus.PAUSED

    entry = audit_repo.all()[-1]
    assert entry.action == "shift_pause"
    assert entry.user_id == "u1"
    assert entry.actor_id == "boss"


def test_force_end_requires_admin_even_for_owner(shift_ledger):
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    with pytest.raises(ForbiddenError):
        shift_ledger.end(shift_id=shift_id, caller_id="u1", force=True)


def test_force_end_by_admin(shift_ledger, audit_repo, clock):
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    clock.set(1300)

    outcome = shift_ledger.end(shift_id=shift_id, caller_id="boss", caller_is_admin=True, force=True)
    assert outcome.record.status == ShiftStatus.ENDED
    assert outcome.record.total_seconds == 300

    entry = audit_repo.all()[-1]
    assert entry.action == "shift_forceend"
    assert entry.data == f"id={shift_id},total=300"


def test_start_and_end_return_role_effects(shift_ledger):
    start = shift_ledger.start(user_id="u1", guild_id="g1", shift_type="patrol")
    assert start.record.shift_type == "patrol"
    assert [e.kind for e in start.effects] == [EffectKind.GRANT_ROLE]

    end = shift_ledger.end(shift_id=start.record.shift_id, caller_id="u1")
    assert [e.kind for e in end.effects] == [EffectKind.REVOKE_ROLE]
    assert end.effects[0].user_id == "u1"


def test_get_active_or_paused(shift_ledger):
    assert shift_ledger.get_active_or_paused(user_id="u1", guild_id="g1") is None

    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    shift_ledger.pause(shift_id=shift_id, caller_id="u1")
    assert shift_ledger.get_active_or_paused(user_id="u1", guild_id="g1").shift_id == shift_id
    assert shift_ledger.get_active_or_paused(user_id="u1", guild_id="other") is None

    shift_ledger.end(shift_id=shift_id, caller_id="u1")
    assert shift_ledger.get_active_or_paused(user_id="u1", guild_id="g1") is None


def test_concurrent_pauses_count_elapsed_time_once(shift_ledger, shift_repo, clock):
    shift_id = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    clock.set(1400)

    barrier = threading.Barrier(4)
    outcomes: list[str] = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        try:
            shift_ledger.pause(shift_id=shift_id, caller_id="u1")
            result = "ok"
        except InvalidStateError:
            result = "rejected"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["ok", "rejected", "rejected", "rejected"]
    assert shift_repo.get_by_id(shift_id).total_seconds == 400


# -------- bulk operations --------


def _seed(ledger, clock):
    ids = {}
    clock.set(100)
    ids["a1"] = ledger.start(user_id="a", guild_id="g1").record.shift_id
    clock.set(200)
    ids["b1"] = ledger.start(user_id="b", guild_id="g1").record.shift_id
    ledger.pause(shift_id=ids["b1"], caller_id="b")
    clock.set(300)
    ids["c1"] = ledger.start(user_id="c", guild_id="g1").record.shift_id
    ledger.end(shift_id=ids["c1"], caller_id="c")
    clock.set(400)
    ids["a2"] = ledger.start(user_id="a", guild_id="g2").record.shift_id
    clock.set(1000)
    return ids


def test_bulk_end_whole_guild_only_touches_open_shifts(shift_ledger, shift_repo, audit_repo, clock):
    ids = _seed(shift_ledger, clock)

    outcome = shift_ledger.bulk_end(shift_filter=ShiftFilter(guild_id="g1"), actor_id="boss", caller_is_admin=True)

    assert outcome.count == 2
    assert {r.shift_id for r in outcome.records} == {ids["a1"], ids["b1"]}
    assert shift_repo.get_by_id(ids["a1"]).total_seconds == 900
    # b1 was paused at 200 right after starting
    assert shift_repo.get_by_id(ids["b1"]).total_seconds == 0
    assert shift_repo.get_by_id(ids["a2"]).status == ShiftStatus.ACTIVE
    assert len(outcome.effects) == 2

    bulk_entries = [e for e in audit_repo.all() if e.action == "shift_bulk_end"]
    assert sorted(e.data for e in bulk_entries) == sorted(
        [f"id={ids['a1']},total=900", f"id={ids['b1']},total=0"]
    )
    assert all(e.actor_id == "boss" for e in bulk_entries)


def test_bulk_end_with_user_and_before_filters(shift_ledger, clock):
    ids = _seed(shift_ledger, clock)

    by_user = shift_ledger.bulk_end(
        shift_filter=ShiftFilter(guild_id="g1", user_id="b"), actor_id="boss", caller_is_admin=True
    )
    assert [r.shift_id for r in by_user.records] == [ids["b1"]]

    nothing = shift_ledger.bulk_end(
        shift_filter=ShiftFilter(guild_id="g1", before_ts=100), actor_id="boss", caller_is_admin=True
    )
    assert nothing.count == 0

    before = shift_ledger.bulk_end(
        shift_filter=ShiftFilter(guild_id="g1", before_ts=150), actor_id="boss", caller_is_admin=True
    )
    assert [r.shift_id for r in before.records] == [ids["a1"]]


def test_bulk_end_skips_rows_closed_concurrently(audit_log, clock):
    class RacingRepository(InMemoryShiftRepository):
        def __init__(self):
            super().__init__()
            self.lost: set[int] = set()

        def mark_ended(self, *, shift_id, end_ts):
            if shift_id in self.lost:
                return False
            return super().mark_ended(shift_id=shift_id, end_ts=end_ts)

    repo = RacingRepository()
    ledger = ShiftLedger(repo, audit_log, clock)
    first = ledger.start(user_id="a", guild_id="g1").record.shift_id
    second = ledger.start(user_id="b", guild_id="g1").record.shift_id
    repo.lost.add(first)

    outcome = ledger.bulk_end(shift_filter=ShiftFilter(guild_id="g1"), actor_id="boss", caller_is_admin=True)

    assert [r.shift_id for r in outcome.records] == [second]


def test_bulk_operations_require_admin(shift_ledger, clock):
    _seed(shift_ledger, clock)
    with pytest.raises(ForbiddenError):
        shift_ledger.bulk_end(shift_filter=ShiftFilter(guild_id="g1"), actor_id="a", caller_is_admin=False)
    with pytest.raises(ForbiddenError):
        shift_ledger.bulk_delete(
            shift_filter=ShiftFilter(guild_id="g1", user_id="a"), actor_id="a", caller_is_admin=False
        )


def test_bulk_delete_by_user_logs_each_row(shift_ledger, shift_repo, audit_repo, clock):
    ids = _seed(shift_ledger, clock)

    outcome = shift_ledger.bulk_delete(
        shift_filter=ShiftFilter(guild_id="g1", user_id="a"), actor_id="boss", caller_is_admin=True
    )

    assert [r.shift_id for r in outcome.records] == [ids["a1"]]
    assert shift_repo.get_by_id(ids["a1"]) is None
    assert shift_repo.get_by_id(ids["a2"]) is not None
    deletes = [e for e in audit_repo.all() if e.action == "shift_bulk_delete"]
    assert [e.data for e in deletes] == [f"id={ids['a1']}"]


def test_bulk_delete_ids_are_intersected_with_other_filters(shift_ledger, shift_repo, clock):
    ids = _seed(shift_ledger, clock)

    outcome = shift_ledger.bulk_delete(
        shift_filter=ShiftFilter(guild_id="g1", user_id="b", ids=[ids["a1"], ids["b1"], ids["a2"]]),
        actor_id="boss",
        caller_is_admin=True,
    )

    assert [r.shift_id for r in outcome.records] == [ids["b1"]]
    assert shift_repo.get_by_id(ids["a1"]) is not None


def test_bulk_delete_with_no_match_deletes_and_logs_nothing(shift_ledger, audit_repo, clock):
    _seed(shift_ledger, clock)
    logged = len(audit_repo.all())

    outcome = shift_ledger.bulk_delete(
        shift_filter=ShiftFilter(guild_id="g1", user_id="nobody"), actor_id="boss", caller_is_admin=True
    )

    assert outcome.count == 0
    assert len(audit_repo.all()) == logged


@pytest.mark.parametrize(
    "shift_filter",
    [ShiftFilter(guild_id="g1"), ShiftFilter(guild_id="g1", ids=[])],
)
def test_bulk_delete_rejects_unnarrowed_filters(shift_ledger, shift_filter):
    with pytest.raises(ValidationError):
        shift_ledger.bulk_delete(shift_filter=shift_filter, actor_id="boss", caller_is_admin=True)


def test_get_active_or_paused_can_narrow_to_one_state(shift_ledger):
    active = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    paused = shift_ledger.start(user_id="u1", guild_id="g1").record.shift_id
    shift_ledger.pause(shift_id=paused, caller_id="u1")

    assert shift_ledger.get_active_or_paused(user_id="u1", guild_id="g1").shift_id == paused
    only_active = shift_ledger.get_active_or_paused(user_id="u1", guild_id="g1", statuses=(ShiftStatus.ACTIVE,))
    assert only_active.shift_id == active
    only_paused = shift_ledger.get_active_or_paused(user_id="u1", guild_id="g1", statuses=(ShiftStatus.PAUSED,))
    assert only_paused.shift_id == paused


def test_shift_type_longer_than_column_is_rejected(shift_ledger, shift_repo):
    assert shift_ledger.start(user_id="u1", guild_id="g1", shift_type="x" * 64).record.shift_type == "x" * 64

    with pytest.raises(ValidationError):
        shift_ledger.start(user_id="u1", guild_id="g1", shift_type="x" * 65)
    assert shift_repo.get_by_id(2) is None


def test_bulk_delete_does_not_log_rows_removed_by_someone_else(audit_log, audit_repo, clock):
    class ContestedRepository(InMemoryShiftRepository):
        def __init__(self):
            super().__init__()
            self.taken: set[int] = set()

        def delete(self, *, shift_id):
            if shift_id in self.taken:
                super().delete(shift_id=shift_id)
                return False
            return super().delete(shift_id=shift_id)

    repo = ContestedRepository()
    ledger = ShiftLedger(repo, audit_log, clock)
    first = ledger.start(user_id="a", guild_id="g1").record.shift_id
    second = ledger.start(user_id="a", guild_id="g1").record.shift_id
    repo.taken.add(first)

    outcome = ledger.bulk_delete(
        shift_filter=ShiftFilter(guild_id="g1", user_id="a"), actor_id="boss", caller_is_admin=True
    )

    assert [r.shift_id for r in outcome.records] == [second]
    deletes = [e.data for e in audit_repo.all() if e.action == "shift_bulk_delete"]
    assert deletes == [f"id={second}"]


def test_bulk_end_still_logs_and_revokes_when_row_vanishes(audit_log, audit_repo, clock):
    class VanishingRepository(InMemoryShiftRepository):
        def mark_ended(self, *, shift_id, end_ts):
            ended = super().mark_ended(shift_id=shift_id, end_ts=end_ts)
            self.delete(shift_id=shift_id)
            return ended

    ledger = ShiftLedger(VanishingRepository(), audit_log, clock)
    shift_id = ledger.start(user_id="a", guild_id="g1").record.shift_id

    outcome = ledger.bulk_end(shift_filter=ShiftFilter(guild_id="g1"), actor_id="boss", caller_is_admin=True)

    assert [r.shift_id for r in outcome.records] == [shift_id]
    assert [(e.kind, e.user_id) for e in outcome.effects] == [(EffectKind.REVOKE_ROLE, "a")]
    assert [e.action for e in audit_repo.all()][-1] == "shift_bulk_end"
