"""Ledger query package."""

from expense_ledger.queries.stats import StatsCalculator, compute_stats, period_start

__all__ = ["StatsCalculator", "compute_stats", "period_start"]
