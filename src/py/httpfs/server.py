import asyncio
import socket
import threading
from dataclasses import dataclass, field
from signal import SIGINT, SIGTERM
from typing import Any, Callable, NamedTuple

from .config import HOST, LOG_REQUESTS, PORT
from .http.model import HTTPProcessingStatus, HTTPRequest, HTTPResponse
from .http.parser import HTTPParser
from .model import Application, Service, mount
from .utils.logging import debug, error, event, exception, info, logged, warning


@dataclass(slots=True)
class ServerState:
	"""Shared between the server coroutine and whoever controls it, possibly
	from another thread."""

	isRunning: bool = True
	# The port actually bound, which differs from the requested one when
	# binding to `0` or falling back to a neighbouring port.
	port: int | None = None
	ready: threading.Event = field(default_factory=threading.Event)

	def stop(self) -> None:
		info("Server stopping…")
		self.isRunning = False

	def onException(
		self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
	) -> None:
		e = context.get("exception")
		if e:
			exception(e)


class ServerOptions(NamedTuple):
	host: str = "0.0.0.0"  # nosec: B104
	port: int = 8000
	backlog: int = 10_000
	# This is the polling timeout for accepting new requests
	polling: float = 1.0
	readsize: int = 4_096
	keepalive: float = 3_600
	logRequests: bool = True
	condition: Callable[[], bool] | None = None
	stopSignals: bool = True


OPTIONS: ServerOptions = ServerOptions()

SERVER_ERROR: bytes = (
	b"HTTP/1.1 500 Internal Server Error\r\n"
	b"Content-Length: 0\r\n"
	b"Connection: close\r\n"
	b"\r\n"
)

BAD_REQUEST: bytes = (
	b"HTTP/1.1 400 Bad Request\r\n"
	b"Content-Length: 0\r\n"
	b"Connection: close\r\n"
	b"\r\n"
)


class AIOSocketServer:
	"""AsyncIO backend using sockets directly."""

	@classmethod
	async def OnRequest(
		cls,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
	) -> None:
		"""Asynchronous worker, processing a client socket in the context
		of an application, for as long as the connection is kept alive."""
		size: int = options.readsize
		buffer = bytearray(size)
		keep_alive: bool = True
		iteration: int = 0
		status: HTTPProcessingStatus = HTTPProcessingStatus.Processing
		read_count: int = 0
		res_count: int = 0
		req_count: int = 0
		try:
			parser: HTTPParser = HTTPParser()
			while keep_alive:
				try:
					n = await asyncio.wait_for(
						loop.sock_recv_into(client, buffer),
						timeout=options.keepalive,
					)
					read_count += n
				except asyncio.TimeoutError:
					status = HTTPProcessingStatus.Timeout
					break
				if not n:
					# A no-data means a close
					status = HTTPProcessingStatus.NoData
					break
				# With HTTP pipelining, the same chunk may hold more than
				# one request.
				for atom in parser.feed(bytes(buffer[:n])):
					logged(debug) and debug(
						"Request Atom", Atom=atom.__class__.__name__
					)
					# Clients send requests, a complete response is malformed too
					if atom is HTTPProcessingStatus.BadFormat or isinstance(
						atom, HTTPResponse
					):
						warning("Malformed request", Client=f"{id(client):x}")
						await loop.sock_sendall(client, BAD_REQUEST)
						keep_alive = False
						break
					elif isinstance(atom, HTTPRequest):
						req: HTTPRequest = atom
						if options.logRequests:
							event(req.method, req.path)
						req_count += 1
						if req.protocol == "HTTP/1.0" or (
							(req.header("Connection") or "").lower() == "close"
						):
							keep_alive = False
						res = await cls.SendResponse(req, app, client, loop=loop)
						if res:
							res_count += 1
						else:
							keep_alive = False
				iteration += 1

			if res_count != req_count:
				warning("Incomplete responses", Requests=req_count, Responses=res_count)
			if status is HTTPProcessingStatus.NoData and read_count and not res_count:
				warning(
					"Client did not feed a complete request",
					ReadCount=read_count,
					Iterations=iteration,
				)
			elif status is HTTPProcessingStatus.Timeout and req_count != res_count:
				warning(
					"Client timed out",
					ReadCount=read_count,
					Requests=req_count,
					Responses=res_count,
				)
		except Exception as e:
			exception(e)
		finally:
			# The loop above takes care of keep alive, so we always close
			# the connection on exit.
			client.close()

	@staticmethod
	async def SendResponse(
		request: HTTPRequest,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
	) -> HTTPResponse | None:
		"""Processes the request within the application and sends the response
		to the client. Returns `None` when no response could be sent."""
		res: HTTPResponse | None = None
		sent: bool = False
		try:
			res = await app.process(request)
		except Exception as e:
			exception(e, f"Processing {request.method} {request.path} failed")
		if res is not None:
			try:
				await loop.sock_sendall(client, res.head())
				sent = True
				# Responses to `HEAD` advertise a length but carry no body
				if request.method != "HEAD" and res.body and res.body.length:
					await loop.sock_sendall(client, res.body.payload)
			except BrokenPipeError:
				# Client did an early close
				sent = True
			except Exception as e:
				exception(e)
		if not sent:
			try:
				warning(
					"Server did not send a response",
					Method=request.method,
					Path=request.path,
				)
				await loop.sock_sendall(client, SERVER_ERROR)
			except Exception as e:
				exception(e)
			return None
		return res

	@classmethod
	async def Serve(
		cls,
		app: Application,
		options: ServerOptions = ServerOptions(),
		state: ServerState | None = None,
	) -> None:
		"""Main server coroutine."""
		server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
		server.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
		try:
			server.bind((options.host, options.port))
		except OSError as e:
			if not options.port:
				server.close()
				raise e from e
			warning(f"Could not bind to {options.host}:{options.port}, trying other ports.")
			bound: bool = False
			for p in range(options.port + 1, options.port + 5):
				try:
					server.bind((options.host, p))
					bound = True
					info(f"Found alternate available port: {p}")
					break
				except OSError:
					pass
			if not bound:
				error(
					f"Unable to bind to {options.host}:{options.port}, aborting.",
					"HOSTPORTERR",
				)
				server.close()
				raise e from e
		port: int = server.getsockname()[1]

		# The argument is the backlog of connections that will be accepted before
		# they are refused.
		server.listen(options.backlog)
		# This is what we need to use it with asyncio
		server.setblocking(False)

		tasks: set[asyncio.Task[None]] = set()
		loop = asyncio.get_running_loop()

		state = state or ServerState()
		# Signal handlers can only be installed from the main thread
		if (
			options.stopSignals
			and threading.current_thread() is threading.main_thread()
		):
			loop.add_signal_handler(SIGINT, lambda: state.stop())
			loop.add_signal_handler(SIGTERM, lambda: state.stop())
		loop.set_exception_handler(state.onException)

		await app.start()
		state.port = port
		state.ready.set()
		info(
			"HTTPFS Server listening",
			icon="🚀",
			Host=options.host,
			Port=port,
		)

		try:
			while state.isRunning:
				if options.condition and not options.condition():
					break
				try:
					res = await asyncio.wait_for(
						loop.sock_accept(server), timeout=options.polling or 1.0
					)
					if res is None:
						continue
					client = res[0]
					task = loop.create_task(
						cls.OnRequest(app, client, loop=loop, options=options)
					)
					tasks.add(task)
					task.add_done_callback(tasks.discard)
				except asyncio.TimeoutError:
					continue
				except OSError as e:
					# This can be: [OSError] [Errno 24] Too many open files
					if e.errno == 24:
						await asyncio.sleep(0.1)
					else:
						exception(e)
		finally:
			server.close()
			for task in tasks:
				task.cancel()
			await asyncio.gather(*tasks, return_exceptions=True)
			await app.stop()
			state.ready.clear()


def run(
	*components: Application | Service,
	host: str = HOST,
	port: int = PORT,
	backlog: int = OPTIONS.backlog,
	condition: Callable[[], bool] | None = None,
	polling: float = OPTIONS.polling,
	logRequests: bool = LOG_REQUESTS,
	keepalive: float = OPTIONS.keepalive,
	state: ServerState | None = None,
) -> None:
	"""High level function to run the server."""
	options = ServerOptions(
		host=host,
		port=port,
		backlog=backlog,
		condition=condition,
		polling=polling,
		logRequests=logRequests,
		keepalive=keepalive,
	)
	app = mount(*components)
	try:
		asyncio.run(AIOSocketServer.Serve(app, options, state))
	except KeyboardInterrupt:
		event("ManualShutdown")
	event("EOK")


# EOF
