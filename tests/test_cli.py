"""Tests for the lanwake CLI."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import yaml
from click.testing import CliRunner

from lanwake.cli import main
from lanwake.core.probe import ProbeResult

# ── Helpers ───────────────────────────────────────────────────────────────────


def _write_config(tmp_path: Path, hosts: list[dict] | None = None) -> Path:
    """Write a settings file plus a host list with two entries."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(yaml.dump({"settings": {"hosts_file": "hosts.json", "default_port": 9}}))
    if hosts is None:
        hosts = [
            {"mac": "AA:BB:CC:DD:EE:FF", "host": "192.168.1.10", "cidr": "24", "port": ""},
            {"mac": "11:22:33:44:55:66", "host": "10.0.0.8", "cidr": "", "port": "7",
             "comment": "NAS"},
        ]
    (tmp_path / "hosts.json").write_text(json.dumps(hosts))
    return cfg


def _run(cfg: Path, *args: str):  # type: ignore[no-untyped-def]
    return CliRunner().invoke(main, ["--config", str(cfg), *args])


# ── config errors ─────────────────────────────────────────────────────────────


class TestConfigErrors:
    def test_invalid_settings_exit_1(self, tmp_path: Path) -> None:
        cfg = tmp_path / "config.yaml"
        cfg.write_text(yaml.dump({"settings": {"default_port": 0}}))
        result = _run(cfg, "hosts", "list")
        assert result.exit_code == 1
        assert "default_port" in result.output

    def test_broken_host_list_exit_1(self, tmp_path: Path) -> None:
        cfg = _write_config(tmp_path)
        (tmp_path / "hosts.json").write_text("{nope")
        result = _run(cfg, "hosts", "list")
        assert result.exit_code == 1
        assert "Host list error" in result.output

    def test_missing_config_uses_defaults(self, tmp_path: Path) -> None:
        result = _run(tmp_path / "absent.yaml", "hosts", "list")
        assert result.exit_code == 0
        assert "No hosts configured." in result.output


# ── hosts list ────────────────────────────────────────────────────────────────


class TestHostsList:
    def test_lists_hosts_in_order(self, tmp_path: Path) -> None:
        result = _run(_write_config(tmp_path), "hosts", "list")
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert "AA:BB:CC:DD:EE:FF" in lines[2]
        assert "11:22:33:44:55:66" in lines[3]
        assert "NAS" in lines[3]


# ── wake ──────────────────────────────────────────────────────────────────────


class TestWake:
    @patch("lanwake.core.magic._udp_socket")
    def test_wake_by_position(self, mock_socket: MagicMock, tmp_path: Path) -> None:
        result = _run(_write_config(tmp_path), "wake", "1")

        assert result.exit_code == 0
        assert "192.168.1.255:9" in result.output
        _, address = mock_socket.return_value.sendto.call_args[0]
        assert address == ("192.168.1.255", 9)

    @patch("lanwake.core.magic._udp_socket")
    def test_wake_by_mac_any_separator(self, mock_socket: MagicMock, tmp_path: Path) -> None:
        result = _run(_write_config(tmp_path), "wake", "11-22-33-44-55-66")

        assert result.exit_code == 0
        _, address = mock_socket.return_value.sendto.call_args[0]
        assert address == ("10.0.0.8", 7)

    @patch("lanwake.core.magic._udp_socket")
    def test_wake_by_host(self, mock_socket: MagicMock, tmp_path: Path) -> None:
        result = _run(_write_config(tmp_path), "wake", "10.0.0.8", "--port", "9")

        assert result.exit_code == 0
        _, address = mock_socket.return_value.sendto.call_args[0]
        assert address == ("10.0.0.8", 9)

    @patch("lanwake.core.magic._udp_socket")
    def test_ad_hoc_wake(self, mock_socket: MagicMock, tmp_path: Path) -> None:
        result = _run(
            _write_config(tmp_path), "wake", "de:ad:be:ef:00:01", "--host", "10.1.2.3", "--cidr", "16"
        )

        assert result.exit_code == 0
        assert "DE-AD-BE-EF-00-01" in result.output
        _, address = mock_socket.return_value.sendto.call_args[0]
        assert address == ("10.1.255.255", 9)

    def test_unknown_target_exit_1(self, tmp_path: Path) -> None:
        result = _run(_write_config(tmp_path), "wake", "ghost")
        assert result.exit_code == 1
        assert "not found" in result.output

    @patch("lanwake.core.magic._udp_socket")
    def test_invalid_mac_exit_2(self, mock_socket: MagicMock, tmp_path: Path) -> None:
        result = _run(_write_config(tmp_path), "wake", "ZZ-11-22-33-44-55", "--host", "10.0.0.1")

        assert result.exit_code == 2
        assert "Invalid MAC-address" in result.output
        mock_socket.assert_not_called()

    @patch("lanwake.core.magic._udp_socket")
    def test_debug_prints_trace(self, mock_socket: MagicMock, tmp_path: Path) -> None:
        result = _run(_write_config(tmp_path), "wake", "1", "--debug")
        assert "broadcast address = 192.168.1.255" in result.output
        assert "Done." in result.output


# ── check ─────────────────────────────────────────────────────────────────────


class TestCheck:
    @patch("lanwake.core.probe.check_host")
    def test_up(self, mock_check: MagicMock, tmp_path: Path) -> None:
        mock_check.return_value = ProbeResult(is_up=True, info="22 (SSH)")
        result = _run(_write_config(tmp_path), "check", "nas.local")

        assert result.exit_code == 0
        assert "nas.local is up (22 (SSH))" in result.output

    @patch("lanwake.core.probe.check_host")
    def test_down_exit_3(self, mock_check: MagicMock, tmp_path: Path) -> None:
        mock_check.return_value = ProbeResult(
            is_up=False, err_code=111, err_str="Connection refused", error_port=5938
        )
        result = _run(_write_config(tmp_path), "check", "nas.local")

        assert result.exit_code == 3
        assert "port 5938" in result.output

    @patch("lanwake.core.probe.check_host")
    def test_invalid_host_exit_1(self, mock_check: MagicMock, tmp_path: Path) -> None:
        result = _run(_write_config(tmp_path), "check", "bad host;")

        assert result.exit_code == 1
        mock_check.assert_not_called()


# ── serve ─────────────────────────────────────────────────────────────────────


class TestServe:
    @patch("uvicorn.run")
    def test_serve_starts_uvicorn(self, mock_run: MagicMock, tmp_path: Path) -> None:
        result = _run(_write_config(tmp_path), "serve", "--port", "9000")

        assert result.exit_code == 0
        mock_run.assert_called_once()
        assert mock_run.call_args.kwargs["port"] == 9000

    @patch("uvicorn.run")
    def test_serve_bad_config_exit_1(self, mock_run: MagicMock, tmp_path: Path) -> None:
        cfg = tmp_path / "config.yaml"
        cfg.write_text(yaml.dump({"settings": {"probe_timeout": -1}}))
        result = _run(cfg, "serve")

        assert result.exit_code == 1
        mock_run.assert_not_called()
