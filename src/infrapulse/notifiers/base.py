"""Base notifier interface."""

from abc import ABC, abstractmethod
from enum import Enum

from infrapulse.alerts import AlertBatch


class DeliveryOutcome(str, Enum):
    """What happened to a cycle's alert batch."""

    SENT = "sent"
    NOTHING_TO_SEND = "nothing_to_send"
    DISABLED = "disabled"
    NO_RECIPIENTS = "no_recipients"
    FAILED = "failed"

    @property
    def skipped(self) -> bool:
        return self in (DeliveryOutcome.DISABLED, DeliveryOutcome.NO_RECIPIENTS)


class BaseNotifier(ABC):
    """Abstract base class for alert notifiers."""

    @abstractmethod
    def send_batch(self, batch: AlertBatch) -> DeliveryOutcome:
        """Deliver every alert of a cycle as a single notification.

        Implementations report problems through the returned outcome and
        never raise.

        Args:
            batch: Alerts collected during the cycle.

        Returns:
            DeliveryOutcome describing what happened.
        """
        ...
