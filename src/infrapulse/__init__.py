"""
InfraPulse - host reachability and port availability monitoring with email alerts.

Checks every configured host and port concurrently, once or on a fixed
interval, and emails a single consolidated alert when services go down.
"""

__version__ = "1.0.0"

from infrapulse.config import Config, SMTPConfig, Target
from infrapulse.exceptions import ConfigError, InfraPulseError
from infrapulse.models import CheckResult, CheckStatus, CheckUnit
from infrapulse.monitor import Monitor, expand_targets, run_checks
from infrapulse.tracker import StatusTracker

__all__ = [
    "Config",
    "SMTPConfig",
    "Target",
    "ConfigError",
    "InfraPulseError",
    "CheckResult",
    "CheckStatus",
    "CheckUnit",
    "Monitor",
    "StatusTracker",
    "expand_targets",
    "run_checks",
]
