import asyncio

from .http.model import HTTPProcessingStatus, HTTPRequest, HTTPResponse
from .http.parser import HTTPParser
from .model import Application, Service, mount


class Bridge:
	"""Bridges act as an interface between an HTTP client and the application,
	here without any socket: raw request bytes go in and raw response bytes
	come out, which is what hosts that invoke a handler per request need."""

	def __init__(self, application: Application):
		self.application: Application = application
		if not self.application:
			raise ValueError("Bridge has not been given an application")

	async def process(self, request: HTTPRequest) -> HTTPResponse:
		return await self.application.process(request)

	def parse(self, data: bytes) -> HTTPRequest:
		"""Parses the first complete request found in `data`."""
		parser = HTTPParser()
		for atom in parser.feed(data):
			if isinstance(atom, HTTPRequest):
				return atom
			elif atom is HTTPProcessingStatus.BadFormat or isinstance(
				atom, HTTPResponse
			):
				break
		raise ValueError(f"Data does not contain a complete request: {data!r}")

	async def handle(self, data: bytes) -> bytes:
		request = self.parse(data)
		response = await self.process(request)
		return self.serialize(request, response)

	def request(self, data: bytes) -> bytes:
		"""Synchronous version of `handle`, for use outside of an event loop."""
		return asyncio.run(self.handle(data))

	@staticmethod
	def serialize(request: HTTPRequest, response: HTTPResponse) -> bytes:
		if request.method == "HEAD":
			return response.head()
		else:
			return response.head() + response.payload


def run(*components: Application | Service) -> Bridge:
	"""Mounts the given services/application behind an in-process bridge."""
	return Bridge(mount(*components))


# EOF
