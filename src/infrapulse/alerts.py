"""Alert formatting and batching."""

from dataclasses import dataclass, field
from datetime import datetime

from infrapulse.models import CheckResult

NO_ERROR_PLACEHOLDER = "No specific error message."
ALERT_SUBJECT = "InfraPulse Alert: Service Degradation Detected"
ALERT_INTRO = "One or more services are down:"
ALERT_SEPARATOR = "\n---------------------------------\n\n"

RFC1123_FORMAT = "%a, %d %b %Y %H:%M:%S %Z"


def format_timestamp(when: datetime) -> str:
    """Format a timestamp RFC 1123 style, in local time."""
    return when.astimezone().strftime(RFC1123_FORMAT)


def format_alert(result: CheckResult, when: datetime | None = None) -> str:
    """Format a down alert block for one result.

    Args:
        result: The DOWN result.
        when: Detection time. Defaults to the result's timestamp.
    """
    unit = result.unit
    timestamp = format_timestamp(when or result.timestamp)
    error = result.error or NO_ERROR_PLACEHOLDER

    if unit.is_ping:
        return (
            "Host Down Alert\n\n"
            f"Host: {unit.name} ({unit.host})\n"
            f"Time: {timestamp}\n"
            "Details: Ping failed.\n"
            f"Error: {error}\n"
        )
    return (
        "Service Down Alert\n\n"
        f"Service: {unit.name}\n"
        f"Host: {unit.host}\n"
        f"Port: {unit.port}\n"
        f"Time: {timestamp}\n"
        f"Error: {error}\n"
    )


@dataclass
class AlertBatch:
    """Alerts collected during one cycle, sent together."""

    alerts: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_results(cls, results: list[CheckResult]) -> "AlertBatch":
        return cls(alerts=[format_alert(r) for r in results])

    def add(self, alert: str) -> None:
        self.alerts.append(alert)

    def has_alerts(self) -> bool:
        return bool(self.alerts)

    def __len__(self) -> int:
        return len(self.alerts)

    @property
    def subject(self) -> str:
        return ALERT_SUBJECT

    def body(self) -> str:
        """Message body with every alert block."""
        return f"{ALERT_INTRO}\n\n" + ALERT_SEPARATOR.join(self.alerts)
