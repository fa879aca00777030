"""
Unit tests for HTTP response writing.
"""

from http import HTTPStatus

import pytest

from minihttpd.core.lib.response import ResponseWriter, content_type_for, read_file, status_line


def read_all(sock) -> bytes:
    received = bytearray()
    while chunk := sock.receive(65536):
        received += chunk
    return bytes(received)


class TestContentType:
    """Tests for MIME type mapping."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("file1.html", "text/html"),
            ("image1.jpg", "image/jpeg"),
            ("photo.jpeg", "image/jpeg"),
            ("archive.tar.gz", "application/octet-stream"),
            ("README", "application/octet-stream"),
            ("page.HTML", "application/octet-stream"),
        ],
    )
    def test_mapping(self, name, expected):
        assert content_type_for(name) == expected


class TestStatusLine:
    def test_status_lines(self):
        assert status_line(HTTPStatus.OK) == "HTTP/1.0 200 OK"
        assert status_line(HTTPStatus.BAD_REQUEST) == "HTTP/1.0 400 Bad Request"
        assert status_line(HTTPStatus.NOT_FOUND) == "HTTP/1.0 404 Not Found"


class TestReadFile:
    def test_existing_file(self, data_dir):
        assert read_file(data_dir / "file1.html").startswith(b"<html>")

    def test_missing_file(self, data_dir):
        assert read_file(data_dir / "file9.html") is None

    def test_directory_is_unreadable(self, data_dir):
        (data_dir / "file3.html").mkdir()

        assert read_file(data_dir / "file3.html") is None


class TestResponseWriter:
    """Tests for ResponseWriter output on the wire."""

    def test_not_found(self, connected_pair):
        client, server_side = connected_pair
        writer = ResponseWriter(server_side)

        assert writer.send_not_found()
        server_side.close()

        assert read_all(client) == (
            b"HTTP/1.0 404 Not Found\r\nContent-Length: 0\r\nContent-Type: text/html\r\n\r\n"
        )
        assert writer.status is HTTPStatus.NOT_FOUND

    def test_bad_request(self, connected_pair):
        client, server_side = connected_pair

        ResponseWriter(server_side).send_bad_request()
        server_side.close()

        assert read_all(client).startswith(b"HTTP/1.0 400 Bad Request\r\nContent-Length: 0\r\n")

    def test_send_file(self, connected_pair, data_dir):
        client, server_side = connected_pair
        body = (data_dir / "image1.jpg").read_bytes()
        writer = ResponseWriter(server_side)

        writer.send_file(data_dir / "image1.jpg")
        server_side.close()

        expected_head = (
            f"HTTP/1.0 200 OK\r\nContent-Length: {len(body)}\r\n"
            "Content-Type: image/jpeg\r\n\r\n"
        ).encode()
        assert read_all(client) == expected_head + body
        assert writer.bytes_sent == len(expected_head) + len(body)

    def test_send_file_without_body(self, connected_pair, data_dir):
        client, server_side = connected_pair
        length = len((data_dir / "file1.html").read_bytes())

        ResponseWriter(server_side).send_file(data_dir / "file1.html", include_body=False)
        server_side.close()

        assert read_all(client) == (
            f"HTTP/1.0 200 OK\r\nContent-Length: {length}\r\n"
            "Content-Type: text/html\r\n\r\n"
        ).encode()

    def test_send_missing_file_is_404(self, connected_pair, data_dir):
        client, server_side = connected_pair
        writer = ResponseWriter(server_side)

        writer.send_file(data_dir / "file8.html")
        server_side.close()

        assert read_all(client).startswith(b"HTTP/1.0 404 Not Found\r\n")
        assert writer.status is HTTPStatus.NOT_FOUND

    def test_send_failure_is_not_raised(self, connected_pair):
        client, server_side = connected_pair
        server_side.shutdown(read=False, write=True)
        writer = ResponseWriter(server_side)

        assert writer.send_not_found() is False
        assert writer.failed
        assert writer.send_line("ignored") is False
        client.close()
