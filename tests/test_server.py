import socket
import threading
import urllib.error
import urllib.request
import uuid
from pathlib import Path
from typing import Iterator

import pytest

from httpfs.server import ServerState, run
from httpfs.services.files import FileService

TIMEOUT: float = 10.0


@pytest.fixture
def sample(tmp_path: Path) -> tuple[Path, str]:
	"""A root with an index and a text file holding a random UUID, so that a
	stale server or cache can't satisfy the test."""
	(tmp_path / "index.html").write_text("Hello!\n")
	text = f"text content, with a random UUID: {uuid.uuid4()}"
	(tmp_path / "sample.txt").write_text(text)
	return tmp_path, text


@pytest.fixture
def server(sample: tuple[Path, str]) -> Iterator[str]:
	"""Runs the server on an ephemeral port in a background thread, yielding
	its base URL."""
	root, _ = sample
	state = ServerState()
	thread = threading.Thread(
		target=run,
		args=(FileService(root),),
		kwargs=dict(host="127.0.0.1", port=0, polling=0.1, state=state),
		daemon=True,
	)
	thread.start()
	assert state.ready.wait(TIMEOUT), "server did not start"
	yield f"http://127.0.0.1:{state.port}"
	state.stop()
	thread.join(TIMEOUT)
	assert not thread.is_alive()


def fetch(url: str, method: str = "GET") -> tuple[int, dict[str, str], bytes]:
	req = urllib.request.Request(url, method=method)
	try:
		with urllib.request.urlopen(req, timeout=TIMEOUT) as res:  # nosec: B310
			return res.status, dict(res.headers), res.read()
	except urllib.error.HTTPError as e:
		return e.code, dict(e.headers), e.read()


def test_end_to_end(server, sample):
	_, text = sample
	status, headers, body = fetch(f"{server}/")
	assert status == 200
	assert body == b"Hello!\n"
	assert headers["Content-Type"] == "text/html; charset=utf-8"
	status, headers, body = fetch(f"{server}/sample.txt")
	assert status == 200
	assert body.decode() == text
	assert headers["Content-Type"] == "application/octet-stream"


def test_head_over_the_wire(server, sample):
	_, text = sample
	status, headers, body = fetch(f"{server}/sample.txt", "HEAD")
	assert status == 200
	assert body == b""
	assert headers["Content-Length"] == str(len(text.encode()))


def test_errors_over_the_wire(server):
	assert fetch(f"{server}/missing.txt")[0] == 404
	status, headers, body = fetch(f"{server}/", "POST")
	assert status == 405
	assert body == b""
	assert headers["Allow"] == "GET, HEAD"


def test_keep_alive_and_pipelining(server):
	host, port = server.removeprefix("http://").split(":")
	with socket.create_connection((host, int(port)), timeout=TIMEOUT) as client:
		client.sendall(
			b"GET / HTTP/1.1\r\nHost: localhost\r\n\r\n"
			b"HEAD /sample.txt HTTP/1.1\r\nHost: localhost\r\n\r\n"
			b"GET /nope HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n"
		)
		data = bytearray()
		while chunk := client.recv(4096):
			data += chunk
	assert data.count(b"HTTP/1.1 ") == 3
	assert data.index(b"HTTP/1.1 200 OK") < data.index(b"Hello!\n")
	assert data.endswith(b"HTTP/1.1 404 Not Found\r\nContent-Length: 0\r\n\r\n")


def test_malformed_request_is_bad_request(server):
	host, port = server.removeprefix("http://").split(":")
	with socket.create_connection((host, int(port)), timeout=TIMEOUT) as client:
		client.sendall(b"nonsense\r\n\r\n")
		data = bytearray()
		while chunk := client.recv(4096):
			data += chunk
	assert data.startswith(b"HTTP/1.1 400 Bad Request\r\n")


@pytest.mark.parametrize(
	"data", [b"HTTP/1.1 200 OK\r\n\r\n", b"HTTP/1.1 abc\r\n\r\n"]
)
def test_response_messages_are_bad_requests(server, data: bytes):
	host, port = server.removeprefix("http://").split(":")
	with socket.create_connection((host, int(port)), timeout=TIMEOUT) as client:
		client.sendall(data)
		response = bytearray()
		while chunk := client.recv(4096):
			response += chunk
	assert response.startswith(b"HTTP/1.1 400 Bad Request\r\n")


# EOF
