"""Status tracking between check cycles."""

import logging
from typing import Iterable

from infrapulse.models import CheckResult, CheckStatus

logger = logging.getLogger(__name__)


class StatusTracker:
    """Remembers the last status of every unit and detects down transitions.

    Alerts are edge-triggered: a unit that stays DOWN across cycles is
    reported once, on the first cycle it is seen DOWN, and again only after
    it has been seen UP in between. A unit with no recorded status is
    treated as not DOWN.

    The tracker is owned by a single driver and is not thread-safe.
    """

    def __init__(self) -> None:
        self._history: dict[str, CheckStatus] = {}

    def previous(self, key: str) -> CheckStatus | None:
        """Get the last recorded status for a unit key."""
        return self._history.get(key)

    def is_transition(self, result: CheckResult) -> bool:
        """Whether the result moves its unit into DOWN."""
        return result.is_down and self.previous(result.unit.key) != CheckStatus.DOWN

    def evaluate(self, results: Iterable[CheckResult]) -> list[CheckResult]:
        """Record a cycle's results and return those that went DOWN.

        The history is overwritten for every result, whether or not it
        triggered a transition. Returned results keep the order in which
        they were given.
        """
        transitions = []
        for result in results:
            if self.is_transition(result):
                logger.info(f"{result.unit.key} ({result.unit.name}) went DOWN")
                transitions.append(result)
            elif result.is_up and self.previous(result.unit.key) == CheckStatus.DOWN:
                logger.info(f"{result.unit.key} ({result.unit.name}) recovered")
            self._history[result.unit.key] = result.status
        return transitions

    def snapshot(self) -> dict[str, CheckStatus]:
        """Copy of the current history."""
        return dict(self._history)

    def __len__(self) -> int:
        return len(self._history)
