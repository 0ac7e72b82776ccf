"""Base checker interface."""

from abc import ABC, abstractmethod

from infrapulse.models import CheckResult, CheckUnit

DEFAULT_TIMEOUT = 2.0


class BaseChecker(ABC):
    """Abstract base class for checkers.

    A checker turns one unit into exactly one result. Failures are reported
    as DOWN results; ``check`` must not raise and must return within a
    bounded time.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    @abstractmethod
    def check(self, unit: CheckUnit) -> CheckResult:
        """Check a unit.

        Args:
            unit: The unit to probe.

        Returns:
            CheckResult with status UP or DOWN.
        """
        ...
