"""ICMP reachability checker using the system ping command."""

import logging
import math
import platform
import re
import subprocess
from typing import Callable

from infrapulse.checkers.base import DEFAULT_TIMEOUT, BaseChecker
from infrapulse.models import CheckResult, CheckUnit

logger = logging.getLogger(__name__)

DEFAULT_COUNT = 3

# "3 packets transmitted, 2 received" (linux), "3 packets received" (darwin),
# "Received = 2" (windows)
_RECEIVED_PATTERNS = [
    re.compile(r"(\d+)\s+(?:packets\s+)?received", re.IGNORECASE),
    re.compile(r"Received\s*=\s*(\d+)", re.IGNORECASE),
]


def parse_received(output: str) -> int | None:
    """Extract the number of echo replies from ping output."""
    for pattern in _RECEIVED_PATTERNS:
        match = pattern.search(output)
        if match:
            return int(match.group(1))
    return None


class PingChecker(BaseChecker):
    """Check host reachability with a bounded number of echo requests."""

    def __init__(
        self,
        count: int = DEFAULT_COUNT,
        timeout: float = DEFAULT_TIMEOUT,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        super().__init__(timeout)
        self.count = count
        self.runner = runner
        self.platform = platform.system().lower()

    def build_command(self, host: str) -> list[str]:
        """Build the platform-specific ping command line."""
        seconds = max(1, math.ceil(self.timeout))
        if self.platform == "windows":
            return ["ping", "-n", str(self.count), "-w", str(int(self.timeout * 1000)), host]
        if self.platform == "darwin":
            # -t is the overall deadline on BSD ping
            return ["ping", "-c", str(self.count), "-t", str(seconds), host]
        # -w is the overall deadline, -W the per-reply wait
        return ["ping", "-c", str(self.count), "-W", str(seconds), "-w", str(seconds), host]

    def check(self, unit: CheckUnit) -> CheckResult:
        """Ping the unit's host. UP if at least one reply arrives."""
        cmd = self.build_command(unit.host)

        try:
            # own session, so a stop signal sent to our process group
            # cannot kill a ping that is still in flight
            proc = self.runner(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout + 2,
                start_new_session=True,
            )
        except subprocess.TimeoutExpired:
            return CheckResult.down(unit, f"ping timed out after {self.timeout:g}s")
        except OSError as e:
            # ping binary missing or not executable
            return CheckResult.down(unit, f"failed to run ping: {e}")

        received = parse_received(proc.stdout or "")
        if received is None:
            received = 1 if proc.returncode == 0 else 0

        if received > 0:
            logger.debug(f"Ping {unit.host}: {received}/{self.count} replies")
            return CheckResult.up(unit)

        error = (proc.stderr or "").strip() or None
        if error is None and proc.returncode != 0:
            error = f"no reply from {unit.host} (exit status {proc.returncode})"
        logger.info(f"Ping {unit.host} failed: {error or 'no replies'}")
        return CheckResult.down(unit, error)
