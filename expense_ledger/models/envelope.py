"""
On-disk Envelope Models

The ledger file has had two shapes:

- Version 1 (legacy): a bare JSON array of expenses, no patterns.
- Version 2: ``{"version": 2, "expenses": [...], "recurring_patterns": [...]}``

DESIGN DECISION: The shape is resolved exactly once, at load time, into
``LegacyLedger | StoreEnvelope``. Everything after the parse step only
sees a StoreEnvelope. Saving always writes the current version, so a
legacy file is migrated the first time it is persisted.
"""

import json
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from expense_ledger.models.expense import LedgerEntry
from expense_ledger.models.recurring import RecurringPattern


CURRENT_VERSION = 2
LEGACY_VERSION = 1


class CorruptLedgerDocument(ValueError):
    """The ledger document cannot be parsed into a known shape."""
    pass


class StoreEnvelope(BaseModel):
    """Versioned container written to disk."""

    version: int = Field(
        default=CURRENT_VERSION,
        ge=LEGACY_VERSION,
        le=CURRENT_VERSION,
    )
    expenses: list[LedgerEntry] = Field(default_factory=list)
    recurring_patterns: list[RecurringPattern] = Field(default_factory=list)

    @field_validator("expenses", "recurring_patterns", mode="before")
    @classmethod
    def null_collection_is_empty(cls, v: Optional[list]) -> list:
        return [] if v is None else v

    @property
    def needs_migration(self) -> bool:
        return self.version < CURRENT_VERSION

    def to_json(self) -> str:
        """Serialize for persistence (always the current version)."""
        payload = self.model_copy(update={"version": CURRENT_VERSION})
        return payload.model_dump_json(indent=2, exclude_none=True) + "\n"


class LegacyLedger(BaseModel):
    """Version 1: a bare array of expenses."""

    version: Literal[1] = LEGACY_VERSION
    expenses: list[LedgerEntry] = Field(default_factory=list)

    @property
    def needs_migration(self) -> bool:
        return True

    def to_envelope(self) -> StoreEnvelope:
        return StoreEnvelope(
            version=LEGACY_VERSION,
            expenses=self.expenses,
            recurring_patterns=[],
        )


LedgerDocument = Union[LegacyLedger, StoreEnvelope]


def parse_ledger_document(raw: Union[str, bytes]) -> LedgerDocument:
    """
    Parse raw file contents into one of the known shapes.

    An empty document is an empty current-version envelope.

    Raises:
        CorruptLedgerDocument: Unparseable JSON, a top-level value that is
            neither an array nor an object, or records that fail validation
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptLedgerDocument(f"Ledger file is not valid UTF-8: {e}") from e

    text = raw.strip()
    if not text:
        return StoreEnvelope()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptLedgerDocument(f"Ledger file is not valid JSON: {e}") from e

    try:
        if isinstance(data, list):
            return LegacyLedger(expenses=data)
        if isinstance(data, dict):
            return StoreEnvelope.model_validate(data)
    except ValidationError as e:
        raise CorruptLedgerDocument(
            f"Ledger file has invalid records ({e.error_count()} errors): {e}"
        ) from e

    raise CorruptLedgerDocument("Ledger file must be a JSON object or array")
