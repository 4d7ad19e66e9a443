"""Tests for the host reachability probe."""

import socket
from unittest.mock import MagicMock, patch

import pytest

from lanwake.core.probe import HOST_CHECK_PORTS, ProbeResult, check_host, is_checkable_host


def _open_only(*open_ports: int):  # type: ignore[no-untyped-def]
    """Fake create_connection that accepts only the given ports."""

    def fake(address: tuple[str, int], timeout: float) -> MagicMock:
        _, port = address
        if port in open_ports:
            return MagicMock()
        raise ConnectionRefusedError(111, "Connection refused")

    return fake


class TestCheckHost:
    @patch("lanwake.core.probe.socket.create_connection")
    def test_first_open_port_wins(self, mock_conn: MagicMock) -> None:
        mock_conn.side_effect = _open_only(3389, 22)

        result = check_host("pc.local")

        assert result == ProbeResult(is_up=True, info="3389 (RDP)")
        mock_conn.assert_called_once_with(("pc.local", 3389), timeout=3.0)

    @patch("lanwake.core.probe.socket.create_connection")
    def test_priority_order_and_short_circuit(self, mock_conn: MagicMock) -> None:
        mock_conn.side_effect = _open_only(443)

        result = check_host("pc.local")

        assert result.is_up is True
        assert result.info == "443 (HTTPS)"
        assert result.err_code is None
        assert result.err_str is None
        assert result.error_port is None
        tried = [c.args[0][1] for c in mock_conn.call_args_list]
        assert tried == [3389, 22, 80, 443]

    @patch("lanwake.core.probe.socket.create_connection")
    def test_all_closed_reports_last_port(self, mock_conn: MagicMock) -> None:
        mock_conn.side_effect = _open_only()

        result = check_host("pc.local")

        assert result.is_up is False
        assert result.info is None
        assert result.error_port == 5938
        assert result.err_code == 111
        assert result.err_str == "Connection refused"
        assert mock_conn.call_count == len(HOST_CHECK_PORTS)

    @patch("lanwake.core.probe.socket.create_connection")
    def test_last_error_kept_not_first(self, mock_conn: MagicMock) -> None:
        mock_conn.side_effect = [
            ConnectionRefusedError(111, "Connection refused"),
            ConnectionRefusedError(111, "Connection refused"),
            ConnectionRefusedError(111, "Connection refused"),
            ConnectionRefusedError(111, "Connection refused"),
            socket.timeout("timed out"),
        ]

        result = check_host("pc.local")

        assert result.error_port == 5938
        assert result.err_code == 0
        assert result.err_str == "timed out"

    @patch("lanwake.core.probe.socket.create_connection")
    def test_custom_ports_and_timeout(self, mock_conn: MagicMock) -> None:
        mock_conn.side_effect = _open_only(8080)

        result = check_host("pc.local", ports=((8080, "Web"),), timeout=0.5)

        assert result.info == "8080 (Web)"
        mock_conn.assert_called_once_with(("pc.local", 8080), timeout=0.5)


class TestIsCheckableHost:
    @pytest.mark.parametrize(
        "host", ["192.168.1.10", "nas.local", "my-pc", "fe80::1", "a" * 253]
    )
    def test_allowed(self, host: str) -> None:
        assert is_checkable_host(host)

    @pytest.mark.parametrize(
        "host",
        [
            "",
            "a" * 254,
            "host/path",
            "http://x",
            "evil host",
            "a;rm -rf",
            "x@y",
            "[::1]",
            "nas.local\n",
            "\nnas.local",
        ],
    )
    def test_rejected(self, host: str) -> None:
        assert not is_checkable_host(host)
