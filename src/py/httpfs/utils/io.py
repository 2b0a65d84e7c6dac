DEFAULT_ENCODING: str = "utf8"
EOL: bytes = b"\r\n"


def asBytes(value: str | bytes | None) -> bytes:
	if value is None:
		return b""
	elif isinstance(value, bytes):
		return value
	elif isinstance(value, str):
		return value.encode(DEFAULT_ENCODING)
	else:
		raise ValueError(f"Expected bytes or str, got: {value}")


class LineParser:
	"""Accumulates chunks until an end of line delimiter is found. Lines
	may be split across any number of chunks."""

	__slots__ = ["buffer", "line", "eol", "offset"]

	def __init__(self, eol: bytes = EOL) -> None:
		self.buffer: bytearray = bytearray()
		self.line: bytes | None = None
		# Where to resume the search for `eol` in the buffer
		self.offset: int = 0
		self.eol: bytes = eol

	def reset(self, eol: bytes = EOL) -> "LineParser":
		self.buffer.clear()
		self.line = None
		self.offset = 0
		self.eol = eol
		return self

	def flush(self) -> bytes | None:
		return self.line

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bytes | None, int]:
		"""Returns the line (without its delimiter) once complete, along with
		the number of bytes consumed from `chunk` starting at `start`. When
		the line is `None`, the whole remainder of the chunk was buffered."""
		previous: int = len(self.buffer)
		self.buffer += chunk[start:]
		end: int = self.buffer.find(self.eol, self.offset)
		if end == -1:
			# The delimiter may straddle two chunks
			self.offset = max(0, len(self.buffer) - len(self.eol) + 1)
			return None, len(chunk) - start
		else:
			self.line = bytes(self.buffer[:end])
			self.buffer.clear()
			self.offset = 0
			return self.line, end - previous + len(self.eol)


# EOF
