"""Shared fixtures: a ledger file in a temp dir and a controllable clock."""

from datetime import date, datetime, timedelta, timezone

import pytest

from expense_ledger.audit import AuditLogger
from expense_ledger.config import get_settings
from expense_ledger.orchestrator import LedgerService
from expense_ledger.recurrence import RecurrenceEngine, UpcomingProjector
from expense_ledger.services.storage import JsonFileLedgerStore


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set_date(self, day: date) -> None:
        self.now = datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc)

    def advance(self, days: int) -> None:
        self.now = self.now + timedelta(days=days)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Keep settings from leaking between tests or from the developer's env."""
    for key in (
        "LEDGER_STORAGE_DATA_FILE",
        "LEDGER_RECURRENCE_DEFAULT_UPCOMING_DAYS",
        "LEDGER_RECURRENCE_MAX_UPCOMING_DAYS",
        "LEDGER_RECURRENCE_SWEEP_ON_STARTUP",
        "LOG_LEVEL",
        "LOG_JSON",
        "DEFAULT_STATS_PERIOD",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "data" / "expenses.json"


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 1, 22, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def audit_sink():
    return []


@pytest.fixture
def audit_logger(audit_sink):
    return AuditLogger(sink=audit_sink)


@pytest.fixture
def store(data_file, audit_logger, clock):
    return JsonFileLedgerStore(data_file, audit_logger=audit_logger, clock=clock)


@pytest.fixture
def engine(store, audit_logger, clock):
    return RecurrenceEngine(store, audit_logger=audit_logger, clock=clock)


@pytest.fixture
def projector(store, clock):
    return UpcomingProjector(store, clock=clock)


@pytest.fixture
def service(store, engine, projector, audit_logger, clock):
    return LedgerService(
        store=store,
        engine=engine,
        projector=projector,
        audit_logger=audit_logger,
        clock=clock,
    )
