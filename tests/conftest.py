from __future__ import annotations

import pytest

from src.shiftbot.shiftbot.audit.memory_audit_repository import InMemoryAuditRepository
from src.shiftbot.shiftbot.audit.service import AuditLog
from src.shiftbot.shiftbot.common.datetime_utils import FixedClock
from src.shiftbot.shiftbot.loa.memory_loa_repository import InMemoryLoaRepository
from src.shiftbot.shiftbot.loa.service import LoaLedger
from src.shiftbot.shiftbot.shifts.memory_shift_repository import InMemoryShiftRepository
from src.shiftbot.shiftbot.shifts.service import ShiftLedger


class RecordingGateway:
    def __init__(self, fail_on: tuple[str, ...] = ()):
        self.calls: list[tuple] = []
        self._fail_on = set(fail_on)

    def _record(self, name: str, *args):
        self.calls.append((name, *args))
        if name in self._fail_on:
            raise RuntimeError(f"{name} unavailable")

    def grant_role(self, *, guild_id, user_id):
        self._record("grant_role", guild_id, user_id)

    def revoke_role(self, *, guild_id, user_id):
        self._record("revoke_role", guild_id, user_id)

    def send_direct_message(self, *, user_id, content):
        self._record("direct_message", user_id, content)

    def broadcast(self, *, guild_id, embed):
        self._record("broadcast", guild_id, embed["title"])

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def clock():
    return FixedClock(1000)


class InspectableAuditRepository(InMemoryAuditRepository):
    def all(self):
        with self._lock:
            return list(self._entries)


@pytest.fixture
def audit_repo():
    return InspectableAuditRepository()


@pytest.fixture
def audit_log(audit_repo, clock):
    return AuditLog(audit_repo, clock)


@pytest.fixture
def shift_repo():
    return InMemoryShiftRepository()


@pytest.fixture
def shift_ledger(shift_repo, audit_log, clock):
    return ShiftLedger(shift_repo, audit_log, clock)


@pytest.fixture
def loa_repo():
    return InMemoryLoaRepository()


@pytest.fixture
def loa_ledger(loa_repo, audit_log, clock):
    return LoaLedger(loa_repo, audit_log, clock)


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def make_gateway():
    return RecordingGateway
