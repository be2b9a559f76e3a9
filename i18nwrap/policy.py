"""Error handling policy implementation."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from typing import List, Optional

from .errors import FATAL_CATEGORIES, ErrorCategory, ErrorRecord, WrapperError

logger = logging.getLogger(__name__)


class ErrorPolicy:
    """Isolates per-file failures and escalates run-level ones.

    Workers share one policy instance, so every mutation happens under a lock.
    """

    def __init__(self) -> None:
        self.records: List[ErrorRecord] = []
        self.counts: Counter[ErrorCategory] = Counter()
        self._lock = threading.Lock()

    def handle_error(
        self,
        error: WrapperError,
        *,
        path: Optional[str] = None,
        details: Optional[str] = None,
    ) -> str:
        """Record ``error`` and decide what happens to the batch.

        Run-level categories are re-raised; everything else is logged and the
        caller skips the offending file.
        """

        category = error.category
        if category in FATAL_CATEGORIES:
            raise error

        record = ErrorRecord(
            category=category,
            message=str(error),
            path=path,
            details=details,
        )
        with self._lock:
            self.records.append(record)
            self.counts[category] += 1

        logger.error("Error processing %s", record.describe())
        if details:
            logger.debug("%s", details)
        return "skip"

    @property
    def total_errors(self) -> int:
        with self._lock:
            return len(self.records)

    def messages(self) -> List[str]:
        with self._lock:
            return [record.describe() for record in self.records]
