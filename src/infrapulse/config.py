"""Configuration management for InfraPulse.

Configuration comes from two YAML files kept side by side:

* ``servers.yaml`` lists the targets to monitor and an optional
  ``check_interval``. It is required.
* ``config.yaml`` holds private settings (SMTP credentials and the alert
  recipients). It is optional; without it alerting is disabled.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from infrapulse.exceptions import ConfigError

logger = logging.getLogger(__name__)

SERVERS_FILENAME = "servers.yaml"
PRIVATE_FILENAME = "config.yaml"
DEFAULT_CONFIG_DIR = Path("~/.config/infrapulse")
DEFAULT_INTERVAL = "60s"

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|ms|s|m|h)")

DEFAULT_SERVERS_YAML = """\
servers:
  - name: "Localhost"
    host: "127.0.0.1"
    ports:
      - 80
      - 443
  - name: "Google DNS"
    host: "8.8.8.8"
    ports:
      - 53

# check_interval: "60s"
"""

DEFAULT_PRIVATE_YAML = """\
# SMTP settings used to send down alerts. Remove the smtp block (or leave
# host empty) to disable email alerts.
smtp:
  host: ""
  port: 587
  username: ""
  password: ""

# Comma-separated list of addresses that receive alerts.
alert_recipient: ""
"""


def parse_duration(value: str) -> float:
    """Parse a duration such as ``"90s"``, ``"5m"`` or ``"1h30m"`` into seconds.

    Raises:
        ConfigError: If the value is malformed or not positive.
    """
    text = str(value).strip()
    if not text:
        raise ConfigError("Invalid check interval: empty value")

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos != len(text):
        raise ConfigError(f"Invalid check interval: {value!r}")
    if total <= 0:
        raise ConfigError(f"Invalid check interval: {value!r} must be positive")
    return total


def resolve_interval(override: str | None, configured: str | None) -> float:
    """Pick the loop interval: explicit override, then config, then default."""
    for candidate in (override, configured):
        if candidate:
            return parse_duration(candidate)
    return parse_duration(DEFAULT_INTERVAL)


def parse_recipients(value: str | None) -> list[str]:
    """Split a comma-separated recipient string into trimmed addresses."""
    if not value:
        return []
    return [addr.strip() for addr in value.split(",") if addr.strip()]


def _validate_port(server: str, port: Any) -> int:
    if isinstance(port, bool) or not isinstance(port, int):
        raise ConfigError(f"Server {server!r}: port {port!r} is not an integer")
    if not 1 <= port <= 65535:
        raise ConfigError(f"Server {server!r}: port {port} is out of range")
    return port


@dataclass(frozen=True)
class Target:
    """A named host with the ports to monitor on it."""

    name: str
    host: str
    ports: tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Target":
        if not isinstance(data, dict):
            raise ConfigError(f"Server entry must be a mapping, got {data!r}")

        host = data.get("host")
        if not host:
            raise ConfigError(f"Server entry {data!r} has no host")
        host = str(host)
        name = str(data.get("name") or host)

        ports = data.get("ports") or []
        if not isinstance(ports, list):
            raise ConfigError(f"Server {name!r}: ports must be a list")

        return cls(
            name=name,
            host=host,
            ports=tuple(_validate_port(name, p) for p in ports),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "host": self.host}
        if self.ports:
            data["ports"] = list(self.ports)
        return data


@dataclass
class SMTPConfig:
    """Outgoing mail server settings."""

    host: str = ""
    port: int = 587
    username: str = ""
    password: str = ""
    timeout: float = 10.0

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "SMTPConfig":
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError("smtp must be a mapping")
        try:
            port = int(data.get("port") or 587)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid SMTP port: {data.get('port')!r}") from e
        try:
            timeout = float(data.get("timeout", 10.0))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid SMTP timeout: {data.get('timeout')!r}") from e
        return cls(
            host=str(data.get("host") or ""),
            port=port,
            username=str(data.get("username") or ""),
            password=str(data.get("password") or ""),
            timeout=timeout,
        )


@dataclass
class Config:
    """Merged configuration for InfraPulse."""

    targets: list[Target] = field(default_factory=list)
    check_interval: str | None = None
    smtp: SMTPConfig = field(default_factory=SMTPConfig)
    alert_recipient: str = ""

    @property
    def recipients(self) -> list[str]:
        return parse_recipients(self.alert_recipient)

    @staticmethod
    def default_path() -> Path:
        """Default location of ``servers.yaml``."""
        return (DEFAULT_CONFIG_DIR / SERVERS_FILENAME).expanduser()

    @classmethod
    def from_dict(
        cls,
        servers: dict[str, Any],
        private: dict[str, Any] | None = None,
    ) -> "Config":
        """Create configuration from the two parsed YAML documents."""
        private = private or {}

        entries = servers.get("servers") or []
        if not isinstance(entries, list):
            raise ConfigError("servers must be a list")

        interval = servers.get("check_interval")
        recipient = private.get("alert_recipient") or ""
        if isinstance(recipient, list):
            recipient = ", ".join(str(r) for r in recipient)

        return cls(
            targets=[Target.from_dict(entry) for entry in entries],
            check_interval=str(interval) if interval else None,
            smtp=SMTPConfig.from_dict(private.get("smtp")),
            alert_recipient=str(recipient),
        )

    @classmethod
    def load(cls, servers_path: str | Path, private_path: str | Path | None = None) -> "Config":
        """Load ``servers.yaml`` and merge the private config beside it.

        Raises:
            ConfigError: If the server list is missing or either file is invalid.
        """
        servers_path = Path(servers_path).expanduser()
        if private_path is None:
            private_path = servers_path.parent / PRIVATE_FILENAME
        private_path = Path(private_path).expanduser()

        servers = _read_yaml(servers_path)
        if private_path.exists():
            private = _read_yaml(private_path)
        else:
            logger.info(f"No private config at {private_path}, email alerts disabled")
            private = {}

        return cls.from_dict(servers, private)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def write_default_config(directory: str | Path, force: bool = False) -> list[Path]:
    """Write example ``servers.yaml`` and ``config.yaml`` files.

    Existing files are left alone unless ``force`` is set.

    Returns:
        The paths that were written.
    """
    directory = Path(directory).expanduser()
    directory.mkdir(parents=True, exist_ok=True)

    written = []
    for filename, content in (
        (SERVERS_FILENAME, DEFAULT_SERVERS_YAML),
        (PRIVATE_FILENAME, DEFAULT_PRIVATE_YAML),
    ):
        path = directory / filename
        if path.exists() and not force:
            logger.info(f"Keeping existing {path}")
            continue
        path.write_text(content)
        written.append(path)
    return written
