import asyncio
import os
from pathlib import Path
from typing import ClassVar

from ..config import INDEX, ROOT
from ..http.model import HTTPRequest, HTTPResponse
from ..model import Service
from ..utils.files import contentType
from ..utils.logging import error, info, warning


class FileService(Service):
	"""Serves files read from a single root directory. Only `GET` and `HEAD`
	are supported, paths ending with `/` are served their index document and
	nothing is ever listed or written."""

	METHODS: ClassVar[tuple[str, ...]] = ("GET", "HEAD")

	def __init__(
		self,
		root: str | Path | None = None,
		*,
		index: str = INDEX,
		confine: bool = True,
	):
		super().__init__()
		self.root: Path = Path(ROOT if root is None else root).absolute()
		self.index: str = index
		# When confined, paths resolving outside of the root are not found
		self.confine: bool = confine

	async def process(self, request: HTTPRequest) -> HTTPResponse:
		if request.method not in self.METHODS:
			return request.notAllowed(self.METHODS)
		path: str = request.path
		if path.endswith("/"):
			path += self.index
		local_path = self.resolvePath(path)
		if local_path is None:
			warning("Path outside of root", Path=path, Root=str(self.root))
			return request.notFound()
		info("Serving", Path=path)
		return await self.respondPath(request, local_path)

	def resolvePath(self, path: str) -> Path | None:
		"""Joins the request path beneath the root. Returns `None` when
		confined and the result would land outside of the root."""
		local_path = self.root / path.lstrip("/")
		if not self.confine:
			return local_path
		# The check is lexical, the kernel still resolves the joined path
		normalized = Path(os.path.normpath(local_path))
		if normalized.parts[: len(parts := self.root.parts)] != parts:
			return None
		return local_path

	async def respondPath(self, request: HTTPRequest, path: Path) -> HTTPResponse:
		try:
			# Blocking read, kept off the event loop
			data: bytes = await asyncio.to_thread(path.read_bytes)
		except FileNotFoundError as e:
			error("Error reading file", "ENOENT", Path=str(path), Error=str(e))
			return request.notFound()
		except (OSError, ValueError) as e:
			error(
				"Error reading file",
				e.__class__.__name__,
				Path=str(path),
				Error=str(e),
			)
			return request.fail()
		content_type: str = contentType(path)
		if request.method == "HEAD":
			return request.respond(
				None, contentType=content_type, contentLength=len(data)
			)
		else:
			return request.respond(data, contentType=content_type)

	def __repr__(self) -> str:
		return f"(FileService {self.root}{' :confined' if self.confine else ''})"


# EOF
