from abc import ABC, abstractmethod
from inspect import isawaitable
from typing import Awaitable, Iterable, Optional

from mypy_extensions import mypyc_attr

from .http.model import HTTPRequest, HTTPRequestError, HTTPResponse
from .utils.logging import warning

# -----------------------------------------------------------------------------
#
# SERVICE
#
# -----------------------------------------------------------------------------


# Services are subclassed by applications, which stay interpreted when the
# package is compiled with mypyc.
@mypyc_attr(allow_interpreted_subclasses=True)
class Service(ABC):
	def __init__(self, name: Optional[str] = None) -> None:
		self.name: str = name or self.__class__.__name__
		self.app: Optional[Application] = None
		self.init()

	def init(self) -> None:
		pass

	async def start(self) -> None:
		"""Can be overridden to do asynchronous pre-start work"""
		pass

	async def stop(self) -> None:
		"""Can be overridden to do asynchronous post-stop work"""
		pass

	@property
	def isMounted(self) -> bool:
		return self.app is not None

	def accepts(self, request: HTTPRequest) -> bool:
		"""Tells if this service handles the given request."""
		return True

	@abstractmethod
	def process(
		self, request: HTTPRequest
	) -> HTTPResponse | Awaitable[HTTPResponse]: ...

	def __repr__(self) -> str:
		return f"(Service {self.name}{' :mounted' if self.isMounted else ''})"


# -----------------------------------------------------------------------------
#
# APPLICATION
#
# -----------------------------------------------------------------------------


class Application:
	"""Groups services, and hands each request to the first service that
	accepts it."""

	def __init__(self, services: list[Service] | None = None) -> None:
		self.services: list[Service] = []
		for service in services or ():
			self.mount(service)

	async def start(self) -> "Application":
		for srv in self.services:
			await srv.start()
		return self

	async def stop(self) -> "Application":
		for srv in self.services:
			await srv.stop()
		return self

	async def process(self, request: HTTPRequest) -> HTTPResponse:
		for service in self.services:
			if not service.accepts(request):
				continue
			try:
				r = service.process(request)
				return await r if isawaitable(r) else r
			except HTTPRequestError as e:
				warning(
					"Request aborted",
					Service=service.name,
					Status=e.status or 500,
					Reason=e.message,
				)
				return request.empty(e.status or 500)
		warning("No service accepts request", Method=request.method, Path=request.path)
		return request.notFound()

	def mount(self, service: Service) -> Service:
		if service.isMounted:
			raise RuntimeError(
				f"Cannot mount service, it is already mounted: {service}"
			)
		service.app = self
		self.services.append(service)
		return service

	def unmount(self, service: Service) -> Service:
		if service.app is not self:
			raise RuntimeError(
				f"Cannot unmount service, it is not mounted in this application: {service}"
			)
		self.services.remove(service)
		service.app = None
		return service


def mount(*components: Application | Service | Iterable[Service]) -> Application:
	"""Mounts the given services into an application, reusing the first
	application given if any."""
	apps: list[Application] = []
	services: list[Service] = []
	for item in components:
		if isinstance(item, Application):
			apps.append(item)
		elif isinstance(item, Service):
			services.append(item)
		elif isinstance(item, (list, tuple)):
			services += [_ for _ in item if isinstance(_, Service)]
		else:
			raise RuntimeError(f"Unsupported component type {type(item)}: {item}")
	app: Application = apps[0] if apps else Application()
	for service in services:
		app.mount(service)
	return app


# EOF
