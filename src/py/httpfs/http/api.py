from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from .status import HTTP_STATUS

T = TypeVar("T")

# -----------------------------------------------------------------------------
#
# API
#
# -----------------------------------------------------------------------------

# --
# == HTTP Request Response API
#
# Defines the high level API functions (orthogonal to the underlying model)
# to create responses from a request. Error responses carry no body: the
# reason phrase is in the status line and details only go to the logs.


class ResponseFactory(ABC, Generic[T]):
	@abstractmethod
	def respond(
		self,
		content: Any = None,
		contentType: str | None = None,
		contentLength: int | None = None,
		status: int = 200,
		headers: dict[str, str] | None = None,
		message: str | None = None,
	) -> T: ...

	def empty(
		self,
		status: int = 200,
		headers: dict[str, str] | None = None,
	) -> T:
		return self.respond(
			content=b"",
			status=status,
			message=HTTP_STATUS.get(status),
			headers=headers,
		)

	def notFound(self) -> T:
		return self.empty(404)

	def notAllowed(self, allowed: tuple[str, ...] | None = None) -> T:
		return self.empty(
			405, headers={"Allow": ", ".join(allowed)} if allowed else None
		)

	def fail(self, *, status: int = 500) -> T:
		return self.empty(status)


# EOF
