"""
Ledger Input Validation

DESIGN DECISION: Validation collects every issue it finds before failing,
so a caller gets one error listing all the problems with its input.

Two things are checked here:
- Expense input: amount must be positive and small enough to store exactly
- Pattern input: supported frequency, positive amount, end date on or
  after the start date, no reactivation of a Dormant pattern

IMPORTANT: Validation NEVER silently fixes issues.
Normalization (trimming, lowercasing categories) is done by the models;
anything that would change the meaning of the input is rejected here.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from expense_ledger.models.expense import (
    MAX_AMOUNT,
    ExpenseInput,
    ValidationIssue,
    ValidationResult,
)
from expense_ledger.models.recurring import (
    RecurringOptions,
    RecurringPattern,
    RecurringPatternInput,
    RecurringPatternUpdate,
)
from expense_ledger.schedule import Frequency, UnsupportedFrequencyError, parse_frequency


CENT = Decimal("0.01")


class LedgerValidationError(ValueError):
    """Base class for rejected ledger input. Carries every issue found."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        summary = "; ".join(issue.message for issue in issues) or "invalid input"
        super().__init__(summary)


class InvalidExpenseError(LedgerValidationError):
    """Expense input was rejected."""
    pass


class InvalidPatternError(LedgerValidationError):
    """Pattern input was rejected (frequency, amount or dates)."""
    pass


class LedgerValidator:
    """Validates expense and pattern input before the store applies it."""

    def _check_amount(self, amount: Optional[Decimal]) -> list[ValidationIssue]:
        if amount is None:
            return [ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
            )]
        if amount > MAX_AMOUNT:
            return [ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Amount cannot exceed {MAX_AMOUNT}",
            )]
        if amount <= 0 or amount.quantize(CENT, rounding=ROUND_HALF_UP) <= 0:
            return [ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be at least 0.01",
            )]
        return []

    def _check_frequency(
        self,
        frequency: Union[Frequency, str, None],
    ) -> tuple[Optional[Frequency], list[ValidationIssue]]:
        if frequency is None or not str(frequency).strip():
            return None, [ValidationIssue(
                field="frequency",
                issue_type="missing",
                message="Frequency is required",
            )]
        try:
            return parse_frequency(frequency), []
        except UnsupportedFrequencyError as e:
            return None, [ValidationIssue(
                field="frequency",
                issue_type="unsupported",
                message=str(e),
            )]

    def _check_dates(
        self,
        start_date: date,
        end_date: Optional[date],
        start_field: str = "start_date",
    ) -> list[ValidationIssue]:
        if end_date is not None and end_date < start_date:
            return [ValidationIssue(
                field="end_date",
                issue_type="inconsistent",
                message=f"End date ({end_date}) must be on or after {start_field} ({start_date})",
            )]
        return []

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def validate_expense(self, expense: ExpenseInput) -> ValidationResult:
        return ValidationResult(issues=self._check_amount(expense.amount))

    def ensure_valid_expense(self, expense: ExpenseInput) -> None:
        """
        Raises:
            InvalidExpenseError: If the input has any error-level issue
        """
        result = self.validate_expense(expense)
        if result.has_errors:
            raise InvalidExpenseError(result.issues)

    # -------------------------------------------------------------------------
    # Patterns
    # -------------------------------------------------------------------------

    def validate_new_pattern(
        self,
        pattern: RecurringPatternInput,
        start_date: date,
    ) -> tuple[Optional[Frequency], ValidationResult]:
        """
        Validate a pattern about to be created.

        ``start_date`` is the resolved start (the input's, or today).
        Returns the parsed frequency along with the result.
        """
        issues = self._check_amount(pattern.amount)
        frequency, frequency_issues = self._check_frequency(pattern.frequency)
        issues.extend(frequency_issues)
        issues.extend(self._check_dates(start_date, pattern.end_date))
        return frequency, ValidationResult(issues=issues)

    def ensure_valid_new_pattern(
        self,
        pattern: RecurringPatternInput,
        start_date: date,
    ) -> Frequency:
        """
        Raises:
            InvalidPatternError: If the input has any error-level issue
        """
        frequency, result = self.validate_new_pattern(pattern, start_date)
        if result.has_errors:
            raise InvalidPatternError(result.issues)
        return frequency

    def ensure_valid_recurring_options(
        self,
        options: RecurringOptions,
        expense_date: date,
    ) -> Frequency:
        """Recurrence attached to a new expense; the expense date is the start."""
        frequency, issues = self._check_frequency(options.frequency)
        issues.extend(self._check_dates(expense_date, options.end_date, "expense date"))
        if issues:
            raise InvalidPatternError(issues)
        return frequency

    def ensure_valid_update(
        self,
        existing: RecurringPattern,
        update: RecurringPatternUpdate,
    ) -> Optional[Frequency]:
        """
        Validate a partial update against the pattern it applies to.

        Returns the parsed frequency when the update supplies one.

        Raises:
            InvalidPatternError: If the update or the resulting pattern is invalid
        """
        issues = []
        frequency = None

        if "amount" in update.model_fields_set:
            issues.extend(self._check_amount(update.amount))

        if "frequency" in update.model_fields_set:
            frequency, frequency_issues = self._check_frequency(update.frequency)
            issues.extend(frequency_issues)

        if "start_date" in update.model_fields_set and update.start_date is None:
            issues.append(ValidationIssue(
                field="start_date",
                issue_type="missing",
                message="Start date cannot be cleared",
            ))

        start_date = update.start_date or existing.start_date
        end_date = None if update.clears_end_date else (update.end_date or existing.end_date)
        issues.extend(self._check_dates(start_date, end_date))

        if update.active and not existing.active:
            issues.append(ValidationIssue(
                field="active",
                issue_type="invalid_transition",
                message="Dormant patterns cannot be reactivated; create a new pattern instead",
            ))

        if issues:
            raise InvalidPatternError(issues)
        return frequency
