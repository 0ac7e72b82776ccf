"""TCP port checker."""

import logging
import socket

from infrapulse.checkers.base import BaseChecker
from infrapulse.models import CheckResult, CheckUnit

logger = logging.getLogger(__name__)


class TcpChecker(BaseChecker):
    """Check that a TCP connection to host:port can be established."""

    def check(self, unit: CheckUnit) -> CheckResult:
        address = f"{unit.host}:{unit.port}"
        try:
            with socket.create_connection((unit.host, unit.port), timeout=self.timeout):
                pass
        except socket.timeout:
            logger.info(f"Connect to {address} timed out")
            return CheckResult.down(unit, f"dial tcp {address}: i/o timeout")
        except OSError as e:
            logger.info(f"Connect to {address} failed: {e}")
            return CheckResult.down(unit, f"dial tcp {address}: {e}")

        return CheckResult.up(unit)
