import asyncio
from dataclasses import dataclass, field, replace
from inspect import isawaitable
from typing import (
	Any,
	AsyncIterator,
	Awaitable,
	Callable,
	Mapping,
	Protocol,
	TypeAlias,
	runtime_checkable,
)

from ..utils.io import asWritable

# -----------------------------------------------------------------------------
#
# HELPERS
#
# -----------------------------------------------------------------------------


def headername(name: str, *, headers: dict[str, str] = {}) -> str:
	"""Normalizes the header name as `Kebab-Case`."""
	key: str = name.lower()
	if key in headers:
		return headers[key]
	else:
		normalized: str = "-".join(_.capitalize() for _ in name.split("-"))
		headers[key] = normalized
		return normalized


def splitURI(uri: str) -> tuple[str, str]:
	"""Splits the given URI in path and query string."""
	path, _, query = uri.partition("?")
	return path or "/", query


# -----------------------------------------------------------------------------
#
# REQUESTS
#
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class HTTPRequest:
	"""A request as given by a transport adapter. Header names are expected
	to be lower case, and adapter-specific values go in `extra`. Requests are
	immutable: middleware pass `derive()`d copies down the stack."""

	method: str = "GET"
	pathInfo: str = "/"
	queryString: str = ""
	headers: dict[str, str] = field(default_factory=dict)
	body: bytes | None = None
	form: dict[str, str | list[str]] | None = None
	json: Any = None
	extra: dict[str, Any] = field(default_factory=dict)

	@staticmethod
	def Create(
		method: str = "GET",
		uri: str = "/",
		headers: Mapping[str, str] | None = None,
		body: bytes | str | None = None,
		**extra: Any,
	) -> "HTTPRequest":
		path, query = splitURI(uri)
		return HTTPRequest(
			method=method.upper(),
			pathInfo=path,
			queryString=query,
			headers={k.lower(): v for k, v in (headers or {}).items()},
			body=body.encode("utf8") if isinstance(body, str) else body,
			extra=extra,
		)

	@property
	def path(self) -> str:
		return self.pathInfo.partition("?")[0]

	@property
	def contentType(self) -> str | None:
		return self.headers.get("content-type")

	def header(self, name: str) -> str | None:
		return self.headers.get(name.lower())

	def derive(self, **changes: Any) -> "HTTPRequest":
		return replace(self, **changes)

	def __str__(self) -> str:
		return f"Request({self.method} {self.pathInfo}{f'?{self.queryString}' if self.queryString else ''})"


@dataclass(slots=True, frozen=True)
class RoutedRequest(HTTPRequest):
	"""The request given to the resolver, with a reference to the resolver
	and the values derived from the transport request."""

	router: Any = field(default=None, repr=False, compare=False)
	search: str = ""
	isXMLHttpRequest: bool = False

	@staticmethod
	def Decorate(router: Any, request: HTTPRequest) -> "RoutedRequest":
		query: str = request.queryString or request.pathInfo.partition("?")[2]
		requested_with: str | None = request.headers.get("x-requested-with")
		return RoutedRequest(
			method=request.method,
			pathInfo=request.pathInfo,
			queryString=request.queryString,
			headers=request.headers,
			body=request.body,
			form=request.form,
			json=request.json,
			extra=request.extra,
			router=router,
			search=f"?{query}" if query else "",
			isXMLHttpRequest=bool(requested_with),
		)


# -----------------------------------------------------------------------------
#
# BODY
#
# -----------------------------------------------------------------------------


@runtime_checkable
class SinkEnumerable(Protocol):
	"""A body that pushes its chunks to a sink. The returned awaitable (if any)
	completes once every chunk has been given to the sink."""

	def forEach(self, sink: Callable[[Any], Any]) -> Awaitable[Any] | None: ...


TChunk: TypeAlias = str | bytes
TBody: TypeAlias = Any

END_OF_BODY = object()


def isEnumerable(body: TBody) -> bool:
	"""Tells if the body can be enumerated as a sequence of chunks. Strings
	and bytes are not: a body is a sequence of them."""
	if body is None or isinstance(body, (str, bytes, bytearray)):
		return False
	else:
		return (
			isinstance(body, SinkEnumerable)
			or hasattr(body, "__aiter__")
			or hasattr(body, "__iter__")
		)


async def iterChunks(body: TBody) -> AsyncIterator[bytes]:
	"""Iterates on the chunks of any enumerable body, as bytes."""
	if isinstance(body, SinkEnumerable):
		queue: asyncio.Queue[Any] = asyncio.Queue()
		done = body.forEach(queue.put_nowait)
		task: asyncio.Future[Any] | None = None
		if isawaitable(done):
			task = asyncio.ensure_future(done)
			task.add_done_callback(lambda _: queue.put_nowait(END_OF_BODY))
		else:
			queue.put_nowait(END_OF_BODY)
		try:
			while (chunk := await queue.get()) is not END_OF_BODY:
				yield asWritable(chunk)
			if task:
				# Raises the error the body was rejected with, if any.
				task.result()
		finally:
			if task and not task.done():
				task.cancel()
	elif hasattr(body, "__aiter__"):
		async for chunk in body:
			yield asWritable(chunk)
	elif isEnumerable(body):
		for chunk in body:
			yield asWritable(chunk)
	else:
		raise ValueError(f"Body is not enumerable: {body!r}")


async def collect(body: TBody) -> bytes:
	"""Loads the whole body in memory."""
	res = bytearray()
	async for chunk in iterChunks(body):
		res += chunk
	return bytes(res)


# -----------------------------------------------------------------------------
#
# RESPONSE
#
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class HTTPResponse:
	"""The response record produced by handlers. A response is only valid
	once it has a status and an enumerable body."""

	status: int | None = None
	headers: dict[str, str] = field(default_factory=dict)
	body: TBody = None

	@staticmethod
	def FromMapping(value: Mapping[str, Any]) -> "HTTPResponse":
		return HTTPResponse(
			status=value.get("status"),
			headers=dict(value.get("headers") or {}),
			body=value.get("body"),
		)

	@property
	def isValid(self) -> bool:
		return self.status is not None and isEnumerable(self.body)

	def header(self, name: str) -> str | None:
		key: str = name.lower()
		for k, v in self.headers.items():
			if k.lower() == key:
				return v
		return None

	def setHeader(self, name: str, value: str | int | None) -> "HTTPResponse":
		key: str = name.lower()
		for k in [_ for _ in self.headers if _.lower() == key]:
			del self.headers[k]
		if value is not None:
			self.headers[headername(name)] = str(value)
		return self

	def __str__(self) -> str:
		return f"Response({self.status} {self.headers})"


# A handler takes a request and returns a response, possibly awaitable.
THandler: TypeAlias = Callable[[HTTPRequest], HTTPResponse | Awaitable[HTTPResponse]]


# EOF
