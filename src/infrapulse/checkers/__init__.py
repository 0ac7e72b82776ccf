"""Checkers that probe a single check unit."""

from infrapulse.checkers.base import BaseChecker
from infrapulse.checkers.ping import PingChecker
from infrapulse.checkers.tcp import TcpChecker

__all__ = ["BaseChecker", "PingChecker", "TcpChecker"]
