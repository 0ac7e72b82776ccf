"""Core monitoring logic: expand targets, run checks, track and notify."""

import logging
import math
import signal
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from infrapulse.alerts import AlertBatch
from infrapulse.checkers import BaseChecker, PingChecker, TcpChecker
from infrapulse.config import Config, Target
from infrapulse.models import CheckResult, CheckUnit
from infrapulse.notifiers import BaseNotifier, DeliveryOutcome, EmailNotifier
from infrapulse.tracker import StatusTracker

logger = logging.getLogger(__name__)

ResultCallback = Callable[[CheckResult], None]


def expand_targets(targets: list[Target]) -> list[CheckUnit]:
    """Flatten targets into check units.

    A target without ports yields a single ping unit; otherwise one unit
    per port, in declaration order. Duplicates are kept as-is.
    """
    units: list[CheckUnit] = []
    for target in targets:
        if not target.ports:
            units.append(CheckUnit(name=target.name, host=target.host))
            continue
        for port in target.ports:
            units.append(CheckUnit(name=target.name, host=target.host, port=port))
    return units


def run_checks(
    units: list[CheckUnit],
    check: Callable[[CheckUnit], CheckResult],
    on_result: ResultCallback | None = None,
) -> list[CheckResult]:
    """Run every check concurrently and wait for all of them.

    One worker is started per unit. Results are returned in completion
    order, once every check has finished. A check that raises is recorded
    as a DOWN result carrying the exception text.

    Args:
        units: Units to check.
        check: Function producing a result for one unit.
        on_result: Optional callback invoked for each result as it completes.

    Returns:
        One result per unit.
    """
    if not units:
        return []

    results: list[CheckResult] = []
    with ThreadPoolExecutor(max_workers=len(units), thread_name_prefix="check") as executor:
        futures = {executor.submit(check, unit): unit for unit in units}

        for future in as_completed(futures):
            unit = futures[future]
            try:
                result = future.result()
            except Exception as e:
                logger.error(f"Check of {unit.key} raised: {e}")
                result = CheckResult.down(unit, str(e) or type(e).__name__)
            results.append(result)
            if on_result is not None:
                on_result(result)

    return results


def next_tick(last_tick: float, interval: float, now: float) -> float:
    """Next scheduled start after ``last_tick`` that is not already past.

    Missed ticks collapse into the latest one, which is due immediately.
    """
    tick = last_tick + interval
    if tick >= now:
        return tick
    missed = math.floor((now - last_tick) / interval)
    return last_tick + missed * interval


@dataclass
class CycleReport:
    """What happened during one check cycle."""

    results: list[CheckResult] = field(default_factory=list)
    transitions: list[CheckResult] = field(default_factory=list)
    batch: AlertBatch = field(default_factory=AlertBatch)
    outcome: DeliveryOutcome = DeliveryOutcome.NOTHING_TO_SEND
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def up_count(self) -> int:
        return sum(1 for r in self.results if r.is_up)

    @property
    def down_count(self) -> int:
        return sum(1 for r in self.results if r.is_down)


class Monitor:
    """Runs check cycles once or on a fixed interval."""

    def __init__(
        self,
        config: Config,
        notifier: BaseNotifier | None = None,
        ping_checker: BaseChecker | None = None,
        tcp_checker: BaseChecker | None = None,
        on_result: ResultCallback | None = None,
        on_cycle: Callable[[CycleReport], None] | None = None,
    ) -> None:
        """Initialize monitor.

        Args:
            config: Configuration object.
            notifier: Alert notifier, defaults to email from the config.
            ping_checker: Checker used for port-less units.
            tcp_checker: Checker used for port units.
            on_result: Optional callback for each result as it completes.
            on_cycle: Optional callback invoked after each cycle.
        """
        self.config = config
        self.notifier = notifier or EmailNotifier(config.smtp, config.alert_recipient)
        self.ping_checker = ping_checker or PingChecker()
        self.tcp_checker = tcp_checker or TcpChecker()
        self.on_result = on_result
        self.on_cycle = on_cycle
        self.units = expand_targets(config.targets)
        self.tracker = StatusTracker()
        self._stop = threading.Event()

    def check_unit(self, unit: CheckUnit) -> CheckResult:
        """Check one unit with the matching checker."""
        checker = self.ping_checker if unit.is_ping else self.tcp_checker
        return checker.check(unit)

    def run_cycle(self, tracker: StatusTracker | None = None) -> CycleReport:
        """Run one full cycle: check everything, track, notify.

        Args:
            tracker: History to evaluate against. Defaults to the monitor's
                own long-lived tracker.
        """
        tracker = tracker if tracker is not None else self.tracker

        if not self.units:
            logger.warning("No servers configured")

        results = run_checks(self.units, self.check_unit, self.on_result)
        transitions = tracker.evaluate(results)
        batch = AlertBatch.from_results(transitions)

        report = CycleReport(results=results, transitions=transitions, batch=batch)
        if batch.has_alerts():
            logger.info(f"Sending {len(batch)} alert(s)")
            report.outcome = self.notifier.send_batch(batch)

        if self.on_cycle is not None:
            self.on_cycle(report)
        return report

    def run_once(self) -> CycleReport:
        """Run a single cycle without prior history.

        Every DOWN result is reported as a transition.
        """
        return self.run_cycle(StatusTracker())

    def run_forever(self, interval: float, max_cycles: int | None = None) -> int:
        """Run cycles every ``interval`` seconds until stopped.

        Cycles start on a fixed schedule measured from the start of the
        loop, so a slow cycle does not push later ones back. Ticks that
        pass while a cycle is still running are dropped, not queued. The
        first cycle runs one interval after start. ``stop`` only takes
        effect between cycles; a running cycle always finishes, including
        its notification.

        Returns:
            Number of cycles run.
        """
        cycles = 0
        tick = time.monotonic() + interval
        while not self._stop.wait(max(0.0, tick - time.monotonic())):
            self.run_cycle()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            tick = next_tick(tick, interval, time.monotonic())
        logger.info(f"Monitoring loop stopped after {cycles} cycle(s)")
        return cycles

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()


def install_signal_handlers(monitor: Monitor) -> None:
    """Stop the monitor on SIGINT or SIGTERM."""

    def _handle(signum, frame):
        logger.info(f"Received signal {signum}, stopping")
        monitor.stop()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)
