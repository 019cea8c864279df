import traceback
from inspect import isawaitable
from typing import (
	Any,
	Awaitable,
	Callable,
	Coroutine,
	Iterable,
	Mapping,
	NamedTuple,
	Protocol,
	TypeAlias,
)

from .config import ERROR_TRACES, LOG_REQUESTS, ROUTES_PATH
from .errors import ShapeError
from .http import responses
from .http.model import (
	HTTPRequest,
	HTTPResponse,
	RoutedRequest,
	THandler,
	isEnumerable,
)
from .routing import Route, Router, TRouteHandler
from .utils.htmpl import H, escape, html
from .utils.logging import debug, event, exception, logged

# --
# # Dispatch
#
# The dispatcher is the boundary between the application and the transport:
# whatever happens while resolving a request, the transport gets a valid
# response record. No-match gives a 404 (or the `notFound` handler's
# response), any failure gives a 500.
#
# Internally, each step returns either a response or a `Failure`, and
# failures are only turned into responses by `Dispatcher.finalize`.


class RouteInfo(Protocol):
	path: str
	paramNames: list[str]


class Resolver(Protocol):
	routes: Mapping[str, Iterable[RouteInfo]]

	def respond(
		self, request: HTTPRequest
	) -> HTTPResponse | Awaitable[HTTPResponse] | None: ...


class Failure(NamedTuple):
	"""An error that occurred while dispatching a request."""

	error: BaseException


TOutcome: TypeAlias = HTTPResponse | Failure


def validate(value: Any) -> TOutcome:
	"""Returns the value as a response, or a failure with a `ShapeError` if
	it is not a valid response record. Mappings are converted."""
	if isinstance(value, HTTPResponse):
		response: HTTPResponse = value
	elif isinstance(value, Mapping):
		try:
			response = HTTPResponse.FromMapping(value)
		except Exception as e:
			return Failure(ShapeError(f"Response mapping is malformed: {describe(e)}"))
	else:
		return Failure(
			ShapeError(f"Response must be an HTTPResponse, got: {type(value).__name__}")
		)
	if response.status is None:
		return Failure(ShapeError('Response must have "status" property'))
	elif response.body is None:
		return Failure(ShapeError('Response must have "body" property'))
	elif not isEnumerable(response.body):
		return Failure(
			ShapeError(
				f'Response "body" property must be enumerable, got: {type(response.body).__name__}'
			)
		)
	else:
		return response


def defaultNotFound(request: HTTPRequest) -> HTTPResponse:
	return responses.error(
		f"Not Found: {escape(request.pathInfo)}" if request.pathInfo else "Not Found",
		status=404,
	)


def routesPage(resolver: Resolver) -> HTTPResponse:
	"""Lists the `GET` routes known to the resolver."""
	routes: Iterable[RouteInfo] = getattr(resolver, "routes", {}).get("get") or ()
	return responses.html(
		html(
			"GET",
			H.br(),
			*(
				H.p("path: ", r.path, H.br(), "paramNames: ", ",".join(r.paramNames))
				for r in routes
			),
		)
	)


def describe(error: BaseException) -> str:
	"""Returns `Type: message`, falling back to the default representation
	when the error cannot be converted to a string."""
	name: str = error.__class__.__name__
	try:
		return f"{name}: {error}"
	except Exception:
		return f"{name}: {object.__repr__(error)}"


def formatTrace(error: BaseException) -> str | None:
	if not (ERROR_TRACES and error.__traceback__):
		return None
	try:
		return "".join(
			traceback.format_exception(type(error), error, error.__traceback__)
		)
	except Exception:
		return "".join(traceback.format_tb(error.__traceback__))


def errorPage(error: BaseException) -> HTTPResponse:
	trace: str | None = formatTrace(error)
	return responses.html(
		html(
			"Error",
			H.br(),
			describe(error),
			*((H.br(), trace) if trace else ()),
		),
		status=500,
	)


class Dispatcher:
	"""Wraps a resolver in a handler. The handler returns a response, or a
	coroutine when the resolver's result has to be awaited."""

	def __init__(self, resolver: Resolver, notFound: THandler | None = None):
		self.resolver: Resolver = resolver
		self.notFound: THandler | None = notFound

	def __call__(
		self, request: HTTPRequest
	) -> HTTPResponse | Coroutine[Any, Any, HTTPResponse]:
		if LOG_REQUESTS:
			event(request.method, request.pathInfo)
		outcome = self.dispatch(request)
		if isinstance(outcome, (HTTPResponse, Failure)):
			return self.finalize(request, outcome)
		else:
			return self.finalizeLater(request, outcome)

	def dispatch(
		self, request: HTTPRequest
	) -> TOutcome | Coroutine[Any, Any, TOutcome]:
		try:
			result = self.resolver.respond(RoutedRequest.Decorate(self.resolver, request))
			if result is None:
				result = self.unmatched(request)
			return self.awaited(result) if isawaitable(result) else validate(result)
		except Exception as e:
			return Failure(e)

	def unmatched(
		self, request: HTTPRequest
	) -> HTTPResponse | Awaitable[HTTPResponse]:
		if request.path == ROUTES_PATH:
			return routesPage(self.resolver)
		logged(debug) and debug(
			"No route found", Method=request.method, Path=request.pathInfo
		)
		if self.notFound:
			return self.notFound(request)
		else:
			return defaultNotFound(request)

	async def awaited(self, pending: Awaitable[Any]) -> TOutcome:
		try:
			return validate(await pending)
		except Exception as e:
			return Failure(e)

	async def finalizeLater(
		self, request: HTTPRequest, outcome: Awaitable[TOutcome]
	) -> HTTPResponse:
		return self.finalize(request, await outcome)

	def finalize(self, request: HTTPRequest, outcome: TOutcome) -> HTTPResponse:
		"""Turns failures into 500 responses."""
		if isinstance(outcome, Failure):
			exception(outcome.error, f"Failed to dispatch {request}")
			return errorPage(outcome.error)
		else:
			return outcome


class RouterDispatcher(Dispatcher):
	"""A dispatcher for a `Router`, exposing its registration methods."""

	def __init__(self, resolver: Router, notFound: THandler | None = None):
		super().__init__(resolver, notFound)
		self.router: Router = resolver

	@property
	def routes(self) -> dict[str, list[Route]]:
		return self.router.routes

	def get(self, path: str, handler: TRouteHandler | None = None) -> Any:
		return self.router.get(path, handler)

	def post(self, path: str, handler: TRouteHandler | None = None) -> Any:
		return self.router.post(path, handler)

	def put(self, path: str, handler: TRouteHandler | None = None) -> Any:
		return self.router.put(path, handler)

	def delete(self, path: str, handler: TRouteHandler | None = None) -> Any:
		return self.router.delete(path, handler)


def dispatcher(resolver: Resolver, notFound: THandler | None = None) -> Dispatcher:
	return Dispatcher(resolver, notFound)


def router(
	configure: Callable[[Router], Any] | None = None,
	notFound: THandler | None = None,
) -> RouterDispatcher:
	"""Creates a router, lets `configure` register its routes, and returns
	the handler dispatching requests to them."""
	res = Router()
	if configure:
		configure(res)
	return RouterDispatcher(res, notFound)


# EOF
