"""
Health Monitor - Models.

============================================================
DATA MODEL
============================================================

- ProbeResult: outcome of one probe (all attempts included)
- StatusRecord: last known status of a target, replaced
  wholesale after every probe
- Transition: classification of old-vs-new record
- CycleSummary: aggregate counts for one health-check cycle
- StatusSummary: point-in-time view over every target

============================================================
ASSUME HEALTHY
============================================================

Every target starts as UP with zero failures and no last
check. A first successful probe therefore produces no alert,
and a recovery alert can never fire before a down alert.

============================================================
"""

from enum import Enum
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional
from dataclasses import dataclass, field


# ============================================================
# TRANSITIONS
# ============================================================

class Transition(Enum):
    """Change in classification between two consecutive checks."""

    NO_CHANGE = "no_change"
    DOWN = "down"      # Was up, now down
    UP = "up"          # Was down, now up


# ============================================================
# PROBE RESULT
# ============================================================

@dataclass(frozen=True)
class ProbeResult:
    """
    Outcome of a probe.

    Either a response was received (status_code + elapsed_ms),
    or every attempt failed at the transport level (error).
    """

    status_code: Optional[int] = None
    elapsed_ms: Optional[int] = None
    error: Optional[str] = None
    attempts: int = 1

    @property
    def succeeded(self) -> bool:
        """True when an HTTP response was received."""
        return self.error is None and self.status_code is not None

    @classmethod
    def success(cls, status_code: int, elapsed_ms: int, attempts: int = 1) -> "ProbeResult":
        return cls(status_code=status_code, elapsed_ms=elapsed_ms, attempts=attempts)

    @classmethod
    def failure(cls, reason: str, attempts: int) -> "ProbeResult":
        return cls(error=reason, attempts=attempts)


# ============================================================
# STATUS RECORD
# ============================================================

@dataclass(frozen=True)
class StatusRecord:
    """Last known status of a single target."""

    is_up: bool
    last_check: Optional[datetime] = None
    consecutive_failures: int = 0
    status_code: Optional[int] = None
    response_time_ms: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def initial(cls) -> "StatusRecord":
        """The assume-healthy record every target starts with."""
        return cls(is_up=True)

    @classmethod
    def from_probe(
        cls,
        previous: "StatusRecord",
        result: ProbeResult,
        success_codes: FrozenSet[int],
        checked_at: datetime,
    ) -> "StatusRecord":
        """
        Build the record that replaces `previous` after a probe.

        A response with a status outside the allow-set is DOWN but
        still keeps its status code and latency.
        """
        if not result.succeeded:
            return cls(
                is_up=False,
                last_check=checked_at,
                consecutive_failures=previous.consecutive_failures + 1,
                error=result.error,
            )

        is_up = result.status_code in success_codes
        return cls(
            is_up=is_up,
            last_check=checked_at,
            consecutive_failures=0 if is_up else previous.consecutive_failures + 1,
            status_code=result.status_code,
            response_time_ms=result.elapsed_ms,
        )

    def transition_from(self, previous: "StatusRecord") -> Transition:
        """Classify the change from `previous` to this record."""
        if previous.is_up and not self.is_up:
            return Transition.DOWN
        if not previous.is_up and self.is_up:
            return Transition.UP
        return Transition.NO_CHANGE


# ============================================================
# SUMMARIES
# ============================================================

@dataclass(frozen=True)
class CycleSummary:
    """Aggregate result of one health-check cycle."""

    up_count: int
    down_count: int
    down_transitions: int = 0
    up_transitions: int = 0

    @property
    def total(self) -> int:
        return self.up_count + self.down_count

    @property
    def all_up(self) -> bool:
        return self.down_count == 0


@dataclass
class TargetStatus:
    """One row of a status summary."""

    url: str
    is_up: bool
    last_check: Optional[datetime]
    consecutive_failures: int
    error: Optional[str] = None


@dataclass
class StatusSummary:
    """Point-in-time view over every monitored target."""

    total: int = 0
    up: int = 0
    down: int = 0
    targets: List[TargetStatus] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "up": self.up,
            "down": self.down,
            "targets": [
                {
                    "url": t.url,
                    "is_up": t.is_up,
                    "last_check": t.last_check.isoformat() if t.last_check else None,
                    "consecutive_failures": t.consecutive_failures,
                    "error": t.error,
                }
                for t in self.targets
            ],
        }


__all__ = [
    "Transition",
    "ProbeResult",
    "StatusRecord",
    "CycleSummary",
    "TargetStatus",
    "StatusSummary",
]
