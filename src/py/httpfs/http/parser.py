from typing import Iterator, Literal

from ..utils.io import LineParser
from .model import (
	HTTPAtom,
	HTTPBodyBlob,
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	HTTPResponse,
	HTTPResponseLine,
	headername,
)


class MessageParser:
	"""Parses an HTTP request or response line."""

	__slots__ = ["line", "value"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.value: HTTPRequestLine | HTTPResponseLine | None = None

	def flush(self) -> HTTPRequestLine | HTTPResponseLine | None:
		res = self.value
		self.reset()
		return res

	def reset(self) -> "MessageParser":
		self.line.reset()
		self.value = None
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		line, read = self.line.feed(chunk, start)
		if not line:
			# Either incomplete, or an empty line before the message, which
			# is tolerated.
			return None, read
		ln: str = line.decode("latin-1")
		if ln.startswith("HTTP/"):
			protocol, status, message = (ln.split(" ", 2) + [""])[:3]
			try:
				self.value = HTTPResponseLine(protocol, int(status), message)
			except ValueError:
				# Non numeric status, reported as a bad format
				self.value = HTTPRequestLine("", "", "", "")
		else:
			i = ln.find(" ")
			j = ln.rfind(" ")
			if i == -1 or i == j:
				# Not a request line, the caller gets a bad format status
				self.value = HTTPRequestLine("", "", "", "")
			else:
				p: list[str] = ln[i + 1 : j].split("?", 1)
				self.value = HTTPRequestLine(
					ln[0:i], p[0], p[1] if len(p) > 1 else "", ln[j + 1 :]
				)
		return True, read

	def __str__(self) -> str:
		return f"MessageParser({self.value})"


class HeadersParser:
	__slots__ = ["headers", "contentType", "contentLength", "line"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.headers: dict[str, str] = {}
		self.contentType: str | None = None
		self.contentLength: int | None = None

	def flush(self) -> HTTPHeaders:
		res = HTTPHeaders(self.headers, self.contentType, self.contentLength)
		self.reset()
		return res

	def reset(self) -> "HeadersParser":
		self.line.reset()
		self.headers = {}
		self.contentType = None
		self.contentLength = None
		return self

	def feed(
		self, chunk: bytes, start: int = 0
	) -> tuple[str | Literal[False] | None, int]:
		"""Feeds data from chunk, starting at `start` offset. Returns
		a value and the number of bytes read. When the value is `None`, no
		header has been extracted, when the value is `False` it's the empty
		line ending the headers, otherwise it's the name of the parsed header."""
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif not line:
			return False, read
		ln: str = line.decode("latin-1")
		i = ln.find(":")
		if i == -1:
			# Malformed header lines are skipped
			return None, read
		h = ln[:i].lower().strip()
		v = ln[i + 1 :].strip()
		if h == "content-length":
			try:
				self.contentLength = max(0, int(v))
			except ValueError:
				self.contentLength = None
		elif h == "content-type":
			self.contentType = v
		n: str = headername(h)
		self.headers[n] = v
		return n, read

	def __str__(self) -> str:
		return f"HeadersParser({self.headers})"


class BodyLengthParser:
	"""Parses the body of a message with `Content-Length` set"""

	__slots__ = ["expected", "read", "data"]

	def __init__(self) -> None:
		self.expected: int = 0
		self.read: int = 0
		self.data: list[bytes] = []

	def flush(self) -> HTTPBodyBlob:
		res = HTTPBodyBlob(b"".join(self.data), self.read)
		self.reset()
		return res

	def reset(self, length: int = 0) -> "BodyLengthParser":
		self.expected = length
		self.read = 0
		self.data.clear()
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		"""Returns `True` once the expected length has been read, `None`
		when more data is needed."""
		to_read: int = min(len(chunk) - start, self.expected - self.read)
		self.data.append(chunk[start : start + to_read])
		self.read += to_read
		return (True if self.read >= self.expected else None), to_read


class HTTPParser:
	"""A stateful HTTP parser, fed with chunks as they arrive, and producing
	atoms as soon as they are available. Several messages may be found in the
	same chunk (pipelining)."""

	def __init__(self) -> None:
		self.message: MessageParser = MessageParser()
		self.headers: HeadersParser = HeadersParser()
		self.bodyLength: BodyLengthParser = BodyLengthParser()
		self.parser: MessageParser | HeadersParser | BodyLengthParser = self.message
		self.requestLine: HTTPRequestLine | HTTPResponseLine | None = None
		self.requestHeaders: HTTPHeaders | None = None

	def reset(self) -> "HTTPParser":
		self.parser = self.message.reset()
		self.headers.reset()
		self.bodyLength.reset()
		self.requestLine = None
		self.requestHeaders = None
		return self

	def feed(self, chunk: bytes) -> Iterator[HTTPAtom]:
		size: int = len(chunk)
		offset: int = 0
		while offset < size:
			# Partially read lines are kept by the underlying parsers, so
			# chunks are never fed twice.
			ln, read = self.parser.feed(chunk, offset)
			offset += read
			if ln is None:
				continue
			elif self.parser is self.message:
				line = self.message.flush()
				if line is None:
					continue
				elif isinstance(line, HTTPRequestLine) and not line.method:
					yield HTTPProcessingStatus.BadFormat
					self.reset()
					# The rest of the chunk can't be trusted
					return
				self.requestLine = line
				self.requestHeaders = None
				yield line
				self.parser = self.headers
			elif self.parser is self.headers:
				if ln is not False:
					# `ln` is the name of the header that was just parsed
					continue
				headers = self.headers.flush()
				self.requestHeaders = headers
				yield headers
				if headers.contentLength:
					self.parser = self.bodyLength.reset(headers.contentLength)
					yield HTTPProcessingStatus.Body
				else:
					# Without `Content-Length`, a request has no body
					yield self.complete(HTTPBodyBlob())
			elif self.parser is self.bodyLength:
				yield self.complete(self.bodyLength.flush())
			else:
				raise RuntimeError(f"Unsupported parser: {self.parser}")

	def complete(self, body: HTTPBodyBlob) -> HTTPAtom:
		"""Produces the parsed message and gets ready for the next one."""
		line = self.requestLine
		headers = self.requestHeaders or HTTPHeaders({})
		self.parser = self.message.reset()
		self.requestLine = None
		self.requestHeaders = None
		if isinstance(line, HTTPRequestLine):
			return HTTPRequest(
				method=line.method,
				path=line.path,
				query=parseQuery(line.query),
				headers=headers,
				protocol=line.protocol,
				body=body,
			)
		elif isinstance(line, HTTPResponseLine):
			return HTTPResponse(
				protocol=line.protocol,
				status=line.status,
				message=line.message,
				headers=headers,
				body=body,
			)
		else:
			return HTTPProcessingStatus.BadFormat


def parseQuery(text: str) -> dict[str, str]:
	res: dict[str, str] = {}
	if not text:
		return res
	for item in text.split("&"):
		kv = item.split("=", 1)
		if len(kv) == 1:
			res[item] = ""
		else:
			res[kv[0]] = kv[1]
	return res


# EOF
