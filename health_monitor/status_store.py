"""
Health Monitor - Status Store.

============================================================
RESPONSIBILITY
============================================================

In-memory map from target URL to its last StatusRecord. It is
the only source of truth for transition detection.

- One record per target, created at startup
- Records are replaced wholesale, never merged
- The target set is fixed for the process lifetime

============================================================
CONCURRENCY
============================================================

All access happens on the event loop thread and replace() has
no await point, so each write is atomic. When overlapping
cycles are allowed, the last cycle to finish wins.

============================================================
"""

from typing import Dict, Iterable, List
import logging

from .models import StatusRecord, StatusSummary, TargetStatus


logger = logging.getLogger(__name__)


class StatusStore:
    """Last known status of every monitored target."""

    def __init__(self) -> None:
        self._records: Dict[str, StatusRecord] = {}

    def initialize(self, targets: Iterable[str]) -> None:
        """Give every target the assume-healthy initial record."""
        for target in targets:
            self._records[target] = StatusRecord.initial()
        logger.debug(f"Status store initialized with {len(self._records)} targets")

    @property
    def targets(self) -> List[str]:
        return list(self._records)

    def __contains__(self, target: str) -> bool:
        return target in self._records

    def __len__(self) -> int:
        return len(self._records)

    def get(self, target: str) -> StatusRecord:
        """
        Get the current record for a target.

        Raises:
            KeyError: target was never configured
        """
        return self._records[target]

    def replace(self, target: str, record: StatusRecord) -> StatusRecord:
        """Replace a target's record, returning the previous one."""
        if target not in self._records:
            raise KeyError(f"Unknown target: {target}")
        previous = self._records[target]
        self._records[target] = record
        return previous

    def snapshot(self) -> Dict[str, StatusRecord]:
        """Copy of all records for safe iteration."""
        return dict(self._records)

    def get_summary(self) -> StatusSummary:
        """Current status of all monitored targets."""
        summary = StatusSummary(total=len(self._records))

        for url, record in self._records.items():
            if record.is_up:
                summary.up += 1
            else:
                summary.down += 1

            summary.targets.append(
                TargetStatus(
                    url=url,
                    is_up=record.is_up,
                    last_check=record.last_check,
                    consecutive_failures=record.consecutive_failures,
                    error=record.error,
                )
            )

        return summary
