"""
Unit tests for server statistics and their display helpers.
"""

import threading
from http import HTTPStatus

import pytest
from rich.console import Console

from minihttpd.core.lib.server_stats import ServerStats
from minihttpd.core.network import LocalInterface
from minihttpd.core.utils.prompt import render_interfaces, render_stats
from minihttpd.core.utils.utils import format_bytes, format_duration


class TestServerStats:
    """Tests for ServerStats counters."""

    def test_initial_snapshot(self):
        snapshot = ServerStats().snapshot()

        assert snapshot.connections == 0
        assert snapshot.failed_connections == 0
        assert snapshot.bytes_sent == 0
        assert snapshot.responses == {}
        assert snapshot.uptime_seconds >= 0

    def test_record_responses(self):
        stats = ServerStats()

        stats.connection_started()
        stats.record_response(HTTPStatus.OK, 100)
        stats.connection_started()
        stats.record_response(HTTPStatus.NOT_FOUND, 60)
        stats.connection_started()
        stats.record_response(HTTPStatus.OK, 40)

        snapshot = stats.snapshot()
        assert snapshot.connections == 3
        assert snapshot.bytes_sent == 200
        assert snapshot.responses == {200: 2, 404: 1}

    def test_record_without_status(self):
        stats = ServerStats()

        stats.record_response(None, 0)

        assert stats.snapshot().responses == {}

    def test_failed_connections(self):
        stats = ServerStats()

        stats.connection_started()
        stats.connection_failed()

        assert stats.snapshot().failed_connections == 1

    def test_snapshot_is_a_copy(self):
        stats = ServerStats()
        stats.record_response(HTTPStatus.OK, 1)
        snapshot = stats.snapshot()

        stats.record_response(HTTPStatus.OK, 1)

        assert snapshot.responses == {200: 1}

    def test_concurrent_updates(self):
        stats = ServerStats()

        def worker():
            for _ in range(1000):
                stats.connection_started()
                stats.record_response(HTTPStatus.OK, 1)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        snapshot = stats.snapshot()
        assert snapshot.connections == 4000
        assert snapshot.responses == {200: 4000}


class TestFormatting:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0, "0.0 B"),
            (512, "512.0 B"),
            (1536, "1.5 KB"),
            (1024**2, "1.0 MB"),
            (1024**5, "1024.0 TB"),
        ],
    )
    def test_format_bytes(self, value, expected):
        assert format_bytes(value) == expected

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "0:00:00"), (59.9, "0:00:59"), (61, "0:01:01"), (3723, "1:02:03")],
    )
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestRendering:
    """Tests for the rich summary tables."""

    def render(self, renderable) -> str:
        console = Console(width=100, record=True, color_system=None)
        console.print(renderable)
        return console.export_text()

    def test_render_stats(self):
        stats = ServerStats()
        stats.connection_started()
        stats.record_response(HTTPStatus.OK, 2048)
        stats.connection_started()
        stats.connection_failed()

        text = self.render(render_stats(stats.snapshot()))

        assert "Server Statistics" in text
        assert "200 OK" in text
        assert "Failed" in text
        assert "2.0 KB" in text

    def test_render_interfaces(self):
        interfaces = [
            LocalInterface(name="lo", ip="127.0.0.1", is_up=True),
            LocalInterface(name="eth1", ip="10.0.0.5", is_up=False),
        ]

        text = self.render(render_interfaces(interfaces))

        assert "127.0.0.1" in text
        assert "eth1" in text
        assert "down" in text
