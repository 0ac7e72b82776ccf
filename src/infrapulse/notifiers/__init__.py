"""Alert notification handlers."""

from infrapulse.notifiers.base import BaseNotifier, DeliveryOutcome
from infrapulse.notifiers.smtp import EmailNotifier, SMTPTransport

__all__ = ["BaseNotifier", "DeliveryOutcome", "EmailNotifier", "SMTPTransport"]
