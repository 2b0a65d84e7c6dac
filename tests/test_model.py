import asyncio

import pytest

from httpfs.http.model import HTTPRequest, HTTPRequestError, HTTPResponse
from httpfs.model import Application, Service, mount
from httpfs.services.files import FileService


class Echo(Service):
	def accepts(self, request: HTTPRequest) -> bool:
		return request.path.startswith("/echo")

	def process(self, request: HTTPRequest) -> HTTPResponse:
		return request.respond(request.path, contentType="text/plain")


class Failing(Service):
	async def process(self, request: HTTPRequest) -> HTTPResponse:
		raise HTTPRequestError("Nope", status=503)


def process(app: Application, method: str, path: str) -> HTTPResponse:
	return asyncio.run(app.process(HTTPRequest.Create(method, path)))


def test_first_accepting_service_processes_request(tmp_path):
	(tmp_path / "index.html").write_bytes(b"Hello!\n")
	app = mount(Echo(), FileService(tmp_path))
	res = process(app, "GET", "/echo/this")
	assert res.status == 200
	assert res.payload == b"/echo/this"
	res = process(app, "GET", "/")
	assert res.payload == b"Hello!\n"


def test_no_accepting_service_is_not_found():
	app = Application([Echo()])
	res = process(app, "GET", "/elsewhere")
	assert res.status == 404
	assert res.payload == b""


def test_request_error_becomes_status():
	res = process(mount(Failing()), "GET", "/")
	assert res.status == 503
	assert res.message == "Service Unavailable"
	assert res.payload == b""


def test_mounting_twice_fails():
	service = Echo()
	app = mount(service)
	assert service.app is app
	assert service.isMounted
	with pytest.raises(RuntimeError):
		Application().mount(service)
	app.unmount(service)
	assert not service.isMounted
	assert app.services == []


def test_mount_reuses_application():
	app = Application()
	assert mount(app, Echo()) is app
	assert len(app.services) == 1
	with pytest.raises(RuntimeError):
		mount("not a service")


def test_response_serialization():
	res = HTTPRequest.Create("GET", "/").respond(b"abc", contentType="text/plain")
	head = res.head()
	assert head.startswith(b"HTTP/1.1 200 OK\r\n")
	assert b"Content-Type: text/plain\r\n" in head
	assert b"Content-Length: 3\r\n" in head
	assert head.endswith(b"\r\n\r\n")


def test_response_without_body_keeps_length():
	res = HTTPResponse.Create(None, contentType="image/png", contentLength=42)
	assert res.body is None
	assert res.payload == b""
	assert res.header("content-length") == "42"
	assert res.head().startswith(b"HTTP/1.1 200 OK\r\n")


def test_empty_response():
	req = HTTPRequest.Create("GET", "/", protocol="HTTP/1.0")
	res = req.notFound()
	assert res.status == 404
	assert res.protocol == "HTTP/1.0"
	assert res.header("Content-Length") == "0"
	assert res.head().startswith(b"HTTP/1.0 404 Not Found\r\n")
	assert res.setHeader("X-Test", 1).header("x-test") == "1"
	assert res.setHeader("X-Test", None).header("x-test") is None


# EOF
