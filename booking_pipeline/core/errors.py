"""
Exception hierarchy for pipeline failures.

Validation problems are never raised: they are ViolationKind tags on a
ValidationOutcome. Exceptions here are reserved for failures that stop a run.
"""


class PipelineError(Exception):
    """Base class for fatal pipeline failures."""


class StoreUnavailableError(PipelineError):
    """Raised when a backing store cannot be reached or a write cannot be committed."""

    def __init__(self, store: str, message: str):
        self.store = store
        self.message = message
        super().__init__(f"[{store}] {message}")


class MalformedBatchError(PipelineError):
    """Raised when an ingested batch cannot be turned into raw records at all."""


class ConfigurationError(PipelineError):
    """Raised when ruleset or pipeline configuration is invalid."""


class NormalizationError(PipelineError):
    """Raised when normalize() is called on a record with hard violations."""

    def __init__(self, record_id: str, violations: list):
        self.record_id = record_id
        self.violations = violations
        super().__init__(
            f"Record {record_id} is not eligible for normalization: "
            f"{', '.join(str(getattr(v, 'value', v)) for v in violations)}"
        )
