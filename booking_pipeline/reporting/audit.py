"""
Audit of soft corrections.

Soft violations are never surfaced to dashboard consumers; the only way to
see them is to re-derive the outcome from the raw store. audit_record() does
that for every raw occurrence of an identifier and lists which fields the
normalizer changed.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import BaseModel, Field

from booking_pipeline.core.models import LoadMarker, RAW_FIELDS, ViolationKind
from booking_pipeline.core.normalize import Normalizer
from booking_pipeline.core.rules import ValidationRuleset
from booking_pipeline.stores.base import LoadTracker, RawStore


class FieldCorrection(BaseModel):
    """One field whose curated value differs from the raw text."""

    field_name: str
    raw_value: str
    curated_value: Optional[str] = None


class OccurrenceAudit(BaseModel):
    """Re-derived outcome of one raw occurrence."""

    sequence: int
    batch_id: str
    ingested_at: datetime
    checksum: str
    eligible: bool
    violations: list[ViolationKind] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)
    corrections: list[FieldCorrection] = Field(default_factory=list)


class RecordAudit(BaseModel):
    """Every raw occurrence of an identifier and the marker written for it."""

    booking_id: str
    occurrences: list[OccurrenceAudit] = Field(default_factory=list)
    marker: Optional[LoadMarker] = None

    @property
    def found(self) -> bool:
        return bool(self.occurrences)

    @property
    def winner(self) -> Optional[OccurrenceAudit]:
        """Occurrence the marker was written for (matched by checksum, else first seen)."""
        if not self.occurrences:
            return None
        if self.marker is not None and self.marker.checksum:
            for occurrence in self.occurrences:
                if occurrence.checksum == self.marker.checksum:
                    return occurrence
        return self.occurrences[0]


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _same_value(raw_value: str, curated_value) -> bool:
    """Numbers compare by value, so "100" and 100.00 are not a correction."""
    if isinstance(curated_value, Decimal):
        try:
            return Decimal(raw_value.strip()) == curated_value
        except InvalidOperation:
            return False
    return _as_text(curated_value) == raw_value


def audit_record(
    raw_store: RawStore,
    ruleset: ValidationRuleset,
    booking_id: str,
    normalizer: Optional[Normalizer] = None,
    tracker: Optional[LoadTracker] = None,
) -> RecordAudit:
    """
    Re-derive validation and normalization for every raw occurrence of an identifier.

    Args:
        raw_store: Where the occurrences are read from
        ruleset: Ruleset to classify with
        booking_id: Identifier to audit
        normalizer: Normalizer for corrections (built from the ruleset's defaults when omitted)
        tracker: When given, the marker for the identifier is attached

    Returns:
        RecordAudit (empty occurrences when the identifier was never ingested)
    """
    normalizer = normalizer or Normalizer(ruleset=ruleset)
    audit = RecordAudit(
        booking_id=booking_id,
        marker=tracker.lookup(booking_id) if tracker is not None else None,
    )

    for record in raw_store.occurrences(booking_id):
        outcome = ruleset.classify(record)
        occurrence = OccurrenceAudit(
            sequence=record.sequence,
            batch_id=record.batch_id,
            ingested_at=record.ingested_at,
            checksum=record.checksum(),
            eligible=outcome.eligible,
            violations=outcome.violations,
            messages=[str(failure) for failure in ruleset.explain(record)],
        )

        if outcome.eligible:
            curated = normalizer.normalize(record, outcome)
            for name in RAW_FIELDS:
                raw_value = record.field(name)
                curated_value = getattr(curated, name)
                if raw_value.strip() == "" and curated_value is None:
                    continue
                if not _same_value(raw_value, curated_value):
                    occurrence.corrections.append(FieldCorrection(
                        field_name=name,
                        raw_value=raw_value,
                        curated_value=None if curated_value is None else _as_text(curated_value),
                    ))

        audit.occurrences.append(occurrence)

    return audit
