"""Tests for the command-line interface."""

import json
import socket

import pytest
from click.testing import CliRunner

from infrapulse import cli
from infrapulse.cli import format_result, main
from infrapulse.models import CheckResult, CheckUnit
from infrapulse.monitor import Monitor


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def listening_port():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(5)
    yield server.getsockname()[1]
    server.close()


@pytest.fixture
def closed_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def write_servers(tmp_path, ports, interval=None):
    lines = ["servers:", '  - name: "Local"', '    host: "127.0.0.1"', "    ports:"]
    lines += [f"      - {p}" for p in ports]
    if interval:
        lines.append(f'check_interval: "{interval}"')
    path = tmp_path / "servers.yaml"
    path.write_text("\n".join(lines) + "\n")
    return path


class TestCheckCommand:
    """Tests for `infrapulse check`."""

    def test_one_shot_all_up(self, runner, tmp_path, listening_port):
        path = write_servers(tmp_path, [listening_port])
        result = runner.invoke(main, ["check", "--config", str(path)])

        assert result.exit_code == 0
        assert f"Port {listening_port}: [UP]" in result.output
        assert "All checks complete." in result.output
        assert "skipping email" not in result.output

    def test_one_shot_down_without_smtp(self, runner, tmp_path, closed_port):
        path = write_servers(tmp_path, [closed_port])
        result = runner.invoke(main, ["check", "--config", str(path)])

        assert result.exit_code == 0
        assert f"Port {closed_port}: [DOWN]" in result.output
        assert "SMTP configuration not found, skipping email alerts." in result.output

    def test_down_with_smtp_but_no_recipient(self, runner, tmp_path, closed_port):
        path = write_servers(tmp_path, [closed_port])
        (tmp_path / "config.yaml").write_text('smtp:\n  host: "smtp.invalid"\n')
        result = runner.invoke(main, ["check", "--config", str(path)])

        assert result.exit_code == 0
        assert "No alert recipient configured" in result.output

    def test_json_output(self, runner, tmp_path, listening_port, closed_port):
        path = write_servers(tmp_path, [listening_port, closed_port])
        result = runner.invoke(main, ["check", "--config", str(path), "--json"])

        assert result.exit_code == 0
        records = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
        statuses = {r["port"]: r["status"] for r in records}
        assert statuses == {listening_port: "UP", closed_port: "DOWN"}

    def test_missing_config_is_fatal(self, runner, tmp_path):
        result = runner.invoke(main, ["check", "--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "Error loading configuration" in result.output

    def test_invalid_smtp_timeout_is_fatal(self, runner, tmp_path, listening_port):
        path = write_servers(tmp_path, [listening_port])
        (tmp_path / "config.yaml").write_text('smtp:\n  host: "smtp.invalid"\n  timeout: "ten"\n')
        result = runner.invoke(main, ["check", "--config", str(path)])

        assert result.exit_code == 1
        assert "Error loading configuration" in result.output
        assert "Invalid SMTP timeout" in result.output
        assert "Traceback" not in result.output

    def test_invalid_interval_is_fatal(self, runner, tmp_path, monkeypatch, listening_port):
        def fail(*args, **kwargs):
            raise AssertionError("no checks may run")

        monkeypatch.setattr(Monitor, "run_forever", fail)
        path = write_servers(tmp_path, [listening_port])
        result = runner.invoke(main, ["check", "--config", str(path), "--daemon", "-i", "often"])

        assert result.exit_code == 1
        assert "Invalid check interval" in result.output

    @pytest.mark.parametrize(
        "args, configured, expected",
        [
            (["-i", "5m"], "30s", 300.0),
            ([], "30s", 30.0),
            ([], None, 60.0),
        ],
    )
    def test_daemon_interval_precedence(
        self, runner, tmp_path, monkeypatch, listening_port, args, configured, expected
    ):
        seen = {}

        def fake_run_forever(self, interval, max_cycles=None):
            seen["interval"] = interval
            return 0

        monkeypatch.setattr(Monitor, "run_forever", fake_run_forever)
        monkeypatch.setattr(cli, "install_signal_handlers", lambda monitor: None)

        path = write_servers(tmp_path, [listening_port], interval=configured)
        result = runner.invoke(main, ["check", "--config", str(path), "--daemon", *args])

        assert result.exit_code == 0
        assert seen["interval"] == expected
        assert "Starting monitoring loop" in result.output
        assert "Shutting down monitoring loop" in result.output


class TestFormatResult:
    """Tests for the human-readable result lines."""

    def test_ping_line(self):
        unit = CheckUnit(name="Gateway", host="10.0.0.1")
        assert format_result(CheckResult.up(unit)).plain == "  [UP] Gateway (10.0.0.1): Host is up"

    def test_port_line(self):
        unit = CheckUnit(name="Web", host="example.com", port=443)
        text = format_result(CheckResult.up(unit))
        assert text.plain == "    - Web (example.com) Port 443: [UP]"

    def test_down_line_carries_error(self):
        unit = CheckUnit(name="Web", host="example.com", port=443)
        text = format_result(CheckResult.down(unit, "connection refused"))
        assert text.plain == "    - Web (example.com) Port 443: [DOWN]  connection refused"


class TestInitCommand:
    """Tests for `infrapulse init`."""

    def test_creates_files(self, runner, tmp_path):
        result = runner.invoke(main, ["init", "--dir", str(tmp_path)])
        assert result.exit_code == 0
        assert (tmp_path / "servers.yaml").exists()
        assert (tmp_path / "config.yaml").exists()

    def test_existing_files_kept(self, runner, tmp_path):
        runner.invoke(main, ["init", "--dir", str(tmp_path)])
        (tmp_path / "servers.yaml").write_text("servers: []\n")

        result = runner.invoke(main, ["init", "--dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "already exists" in result.output
        assert (tmp_path / "servers.yaml").read_text() == "servers: []\n"


class TestSystemdUnitCommand:
    """Tests for `infrapulse systemd-unit`."""

    def test_prints_unit(self, runner):
        result = runner.invoke(main, ["systemd-unit", "-i", "5m"])
        assert result.exit_code == 0
        assert "[Service]" in result.output
        assert "Restart=on-failure" in result.output
        exec_line = next(l for l in result.output.splitlines() if l.startswith("ExecStart="))
        assert exec_line.endswith("check --daemon --interval 5m")


def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.output
