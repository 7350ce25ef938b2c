"""
Recurrence Package

The engine turns recurring patterns into ledger entries (``sweep``);
the projector previews what future sweeps will generate (``upcoming``).
"""

from expense_ledger.recurrence.engine import RecurrenceEngine, sweep_state
from expense_ledger.recurrence.projector import UpcomingProjector, project_occurrences

__all__ = [
    "RecurrenceEngine",
    "UpcomingProjector",
    "project_occurrences",
    "sweep_state",
]
