from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class MissingScopeError(ValidationError):
    """Raised when a partitioned write lacks year, sem, div, subject or date."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing partition dimensions: {', '.join(self.missing)}")


class LimitExceededError(ValidationError):
    """Raised before any query is issued when a batch request is too large."""

    def __init__(self, bound: str, actual: int, limit: int):
        self.bound = bound
        self.actual = int(actual)
        self.limit = int(limit)
        super().__init__(f"Too many {bound} ({self.actual}). Maximum allowed: {self.limit}")


class NotFoundError(DomainError):
    """Raised when a requested entity does not exist."""


class InvalidTransitionError(DomainError):
    """Raised when a leave request cannot move from its current state."""


class StoreError(Exception):
    """Raised by document store backends for I/O or driver failures."""


class DocumentNotFoundError(StoreError):
    """Raised by ``update`` when the target document does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No document at {path}")


class PartitionNotFoundError(LookupError):
    """Soft: a segment read hit an absent partition. Logged, never raised to callers."""


class MirrorInconsistencyWarning(UserWarning):
    """Soft: a secondary write failed after the primary write succeeded."""
