"""Data models for health checks."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# Port recorded in the identity key of a ping-only unit.
PING_PORT = 0


class CheckStatus(str, Enum):
    """Outcome of a single check."""

    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True)
class CheckUnit:
    """One atomic check derived from a target (a port, or a ping)."""

    name: str
    host: str
    port: int | None = None

    @property
    def is_ping(self) -> bool:
        return self.port is None

    @property
    def key(self) -> str:
        """Identity used to track status between cycles."""
        port = PING_PORT if self.port is None else self.port
        return f"{self.host}:{port}"

    @property
    def kind(self) -> str:
        return "ping" if self.is_ping else "port"


@dataclass(frozen=True)
class CheckResult:
    """Result of checking one unit."""

    unit: CheckUnit
    status: CheckStatus
    error: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_up(self) -> bool:
        return self.status == CheckStatus.UP

    @property
    def is_down(self) -> bool:
        return self.status == CheckStatus.DOWN

    @classmethod
    def up(cls, unit: CheckUnit) -> "CheckResult":
        return cls(unit=unit, status=CheckStatus.UP)

    @classmethod
    def down(cls, unit: CheckUnit, error: str | None = None) -> "CheckResult":
        return cls(unit=unit, status=CheckStatus.DOWN, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.unit.name,
            "host": self.unit.host,
            "port": self.unit.port,
            "kind": self.unit.kind,
            "status": self.status.value,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }

