"""
PromotionResult and BatchPromotion models describing what happened to raw records.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from .curated_record import CuratedRecord
from .validation_outcome import HARD_VIOLATIONS, ViolationKind


class PromotionResult(BaseModel):
    """
    Outcome of promoting a single raw record.

    Attributes:
        kind: "promoted" (curated row exists) or "rejected" (hard failure)
        record_id: Record identifier
        curated: The curated row for promoted records
        violations: Violations recorded when the identifier was first evaluated
        previously_recorded: True when the outcome came from an existing marker
    """

    kind: Literal["promoted", "rejected"]
    record_id: str
    curated: CuratedRecord | None = None
    violations: list[ViolationKind] = Field(default_factory=list)
    previously_recorded: bool = False

    @model_validator(mode="after")
    def check_payload(self) -> "PromotionResult":
        if self.kind == "rejected" and self.curated is not None:
            raise ValueError("rejected result cannot carry a curated record")
        return self

    @property
    def promoted(self) -> bool:
        return self.kind == "promoted"


class BatchPromotion(BaseModel):
    """
    Outcome of one promotion pass over a set of raw records.

    Attributes:
        results: One result per raw record, in ingestion order
        newly_promoted: Curated rows inserted by this pass (input to incremental aggregation)
        conflicting_duplicates: Skipped occurrences whose payload differs from the winner's
    """

    results: list[PromotionResult] = Field(default_factory=list)
    newly_promoted: list[CuratedRecord] = Field(default_factory=list)
    conflicting_duplicates: int = 0

    @property
    def promoted(self) -> int:
        return sum(1 for r in self.results if r.promoted and not r.previously_recorded)

    @property
    def rejected(self) -> int:
        return sum(1 for r in self.results if not r.promoted and not r.previously_recorded)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.previously_recorded)

    def rejections_by_reason(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for result in self.results:
            if result.promoted or result.previously_recorded:
                continue
            for kind in result.violations:
                if kind in HARD_VIOLATIONS:
                    counts[kind.value] = counts.get(kind.value, 0) + 1
        return counts

    def violations_by_kind(self) -> dict[str, int]:
        """Violation tag counts over records evaluated in this pass."""
        counts: dict[str, int] = {}
        for result in self.results:
            if result.previously_recorded:
                continue
            for kind in result.violations:
                counts[kind.value] = counts.get(kind.value, 0) + 1
        return counts
