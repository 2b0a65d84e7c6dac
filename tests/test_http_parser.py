from httpfs.http.model import (
	HEADERNAME_CACHE,
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	HTTPResponse,
	headername,
)
from httpfs.http.parser import HTTPParser, parseQuery


def requests(parser: HTTPParser, *chunks: bytes) -> list[HTTPRequest]:
	return [
		atom
		for chunk in chunks
		for atom in parser.feed(chunk)
		if isinstance(atom, HTTPRequest)
	]


def test_request_in_one_chunk():
	parser = HTTPParser()
	atoms = list(
		parser.feed(b"GET /time/5?tz=utc HTTP/1.1\r\nHost: 127.0.0.1\r\n\r\n")
	)
	assert atoms[0] == HTTPRequestLine("GET", "/time/5", "tz=utc", "HTTP/1.1")
	assert isinstance(atoms[1], HTTPHeaders)
	req = atoms[2]
	assert isinstance(req, HTTPRequest)
	assert req.method == "GET"
	assert req.path == "/time/5"
	assert req.query == {"tz": "utc"}
	assert req.protocol == "HTTP/1.1"
	assert req.header("host") == "127.0.0.1"


def test_request_split_across_chunks():
	parser = HTTPParser()
	reqs = requests(
		parser,
		b"GET /time/5 ",
		b"HTTP/1.1\r\nHost: ",
		b"127.0.0.1\r",
		b"\nConn",
		b"ection: close\r\n",
		b"\r",
		b"\n",
	)
	assert len(reqs) == 1
	assert reqs[0].path == "/time/5"
	assert reqs[0].header("Connection") == "close"


def test_pipelined_requests():
	parser = HTTPParser()
	reqs = requests(
		parser,
		b"GET /a HTTP/1.1\r\nHost: x\r\n\r\nHEAD /b/ HTTP/1.1\r\nHost: x\r\n\r\nGET /c",
		b" HTTP/1.1\r\n\r\n",
	)
	assert [(_.method, _.path) for _ in reqs] == [
		("GET", "/a"),
		("HEAD", "/b/"),
		("GET", "/c"),
	]


def test_body_with_content_length():
	parser = HTTPParser()
	reqs = requests(
		parser,
		b"POST /upload HTTP/1.1\r\nContent-Length: 11\r\nContent-Type: text/plain\r\n\r\nhello",
		b" world",
		b"GET /next HTTP/1.1\r\n\r\n",
	)
	assert len(reqs) == 2
	assert reqs[0].body is not None
	assert reqs[0].body.payload == b"hello world"
	assert reqs[0].contentLength == 11
	assert reqs[0].contentType == "text/plain"
	assert reqs[1].path == "/next"


def test_body_is_not_read_past_content_length():
	parser = HTTPParser()
	reqs = requests(
		parser,
		b"PUT /x HTTP/1.1\r\nContent-Length: 2\r\n\r\nokGET /y HTTP/1.1\r\n\r\n",
	)
	assert [_.path for _ in reqs] == ["/x", "/y"]
	assert reqs[0].body is not None and reqs[0].body.payload == b"ok"


def test_malformed_request_line():
	parser = HTTPParser()
	atoms = list(parser.feed(b"garbage\r\n\r\n"))
	assert HTTPProcessingStatus.BadFormat in atoms
	assert not any(isinstance(_, HTTPRequest) for _ in atoms)


def test_non_numeric_status_is_bad_format():
	parser = HTTPParser()
	atoms = list(parser.feed(b"HTTP/1.1 abc\r\n\r\n"))
	assert atoms == [HTTPProcessingStatus.BadFormat]


def test_header_name_cache_is_bounded():
	parser = HTTPParser()
	for i in range(HEADERNAME_CACHE * 4):
		(req,) = requests(parser, f"GET / HTTP/1.1\r\nx-extra-{i}: 1\r\n\r\n".encode())
		assert req.header(f"X-Extra-{i}") == "1"
	assert headername.cache_info().currsize <= HEADERNAME_CACHE


def test_response_parsing():
	parser = HTTPParser()
	atoms = list(
		parser.feed(b"HTTP/1.1 404 Not Found\r\nContent-Length: 3\r\n\r\nabc")
	)
	res = atoms[-1]
	assert isinstance(res, HTTPResponse)
	assert res.status == 404
	assert res.message == "Not Found"
	assert res.payload == b"abc"


def test_parse_query():
	assert parseQuery("") == {}
	assert parseQuery("a=1&b") == {"a": "1", "b": ""}


# EOF
