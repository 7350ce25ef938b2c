"""
Expense Ledger - Source Package

A personal expense ledger whose core is the recurrence subsystem: it turns
recurring-expense patterns into concrete ledger entries exactly once per
due date, across restarts and repeated invocation.

DESIGN PRINCIPLES:
1. No duplicate and no missing occurrences
2. The file on disk is never half-written
3. Corrupt data fails startup loudly
4. Every mutation is auditable
5. State is injected, never global
"""

__version__ = "1.0.0"
