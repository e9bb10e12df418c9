from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..core.exceptions import MirrorInconsistencyWarning
from .datetime_utils import now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SoftFailure:
    operation: str
    error: BaseException
    warning: MirrorInconsistencyWarning
    context: dict[str, Any]
    at: datetime


@dataclass
class SoftFailureLog:
    """Sink for best-effort side effects that failed after the primary write.

    Nothing recorded here is raised to the caller; entries are kept so callers
    (and tests) can see which mirror/notification writes were attempted and lost.
    """

    max_entries: int = 1000
    entries: list[SoftFailure] = field(default_factory=list)

    def record(self, operation: str, error: BaseException, **context: Any) -> SoftFailure:
        warning = MirrorInconsistencyWarning(f"{operation} failed: {error}")
        entry = SoftFailure(operation=operation, error=error, warning=warning, context=dict(context), at=now_utc())
        logger.warning("[%s] best-effort write failed: %s %s", operation, error, context or "")
        self.entries.append(entry)
        if len(self.entries) > self.max_entries:
            del self.entries[: len(self.entries) - self.max_entries]
        return entry

    def for_operation(self, operation: str) -> list[SoftFailure]:
        return [e for e in self.entries if e.operation == operation]
