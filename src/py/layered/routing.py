import re
from typing import (
	Any,
	Awaitable,
	Callable,
	ClassVar,
	Iterable,
	NamedTuple,
	Pattern,
	TypeAlias,
)

from .http.model import HTTPRequest, HTTPResponse
from .utils.logging import debug, logged

THandlerResult: TypeAlias = HTTPResponse | Awaitable[HTTPResponse] | None
TRouteHandler: TypeAlias = Callable[..., Any]

# -----------------------------------------------------------------------------
#
# ROUTE
#
# -----------------------------------------------------------------------------
#
# Routes are paths where template expressions are like `{name}` or
# `{name:type}`. Each parameter is matched by the pattern registered for its
# type, and converted with the pattern's extractor. Untyped parameters use
# the pattern of the same name if there is one, `string` otherwise.


class RoutePattern(NamedTuple):
	"""Used in a parameter chunk to extract/match from the given path."""

	expr: str
	extractor: Callable[[str], Any]


class TextChunk(NamedTuple):
	text: str


class ParameterChunk(NamedTuple):
	name: str
	pattern: RoutePattern


TChunk = TextChunk | ParameterChunk


class Route:
	"""A route binds a path template to a handler for a given HTTP method."""

	RE_PATTERN_NAME: ClassVar[Pattern[str]] = re.compile("^[A-Za-z]+$")
	RE_TEMPLATE: ClassVar[Pattern[str]] = re.compile(
		r"\{(?P<name>[\w][_\w\d]*)(:(?P<type>[^}]+))?\}"
	)

	PATTERNS: ClassVar[dict[str, RoutePattern]] = {
		"id": RoutePattern(r"[a-zA-Z0-9\-_]+", str),
		"word": RoutePattern(r"\w+", str),
		"name": RoutePattern(r"\w[\-\w]*", str),
		"alpha": RoutePattern(r"[a-zA-Z]+", str),
		"string": RoutePattern(r"[^/]+", str),
		"segment": RoutePattern(r"[^/]+", str),
		"digits": RoutePattern(r"\d+", int),
		"int": RoutePattern(r"\-?\d+", int),
		"integer": RoutePattern(r"\-?\d+", int),
		"float": RoutePattern(r"\-?\d*\.?\d+", float),
		"number": RoutePattern(
			r"\-?\d*\.?\d+", lambda x: float(x) if "." in x else int(x)
		),
		"file": RoutePattern(r"\w+(\.\w+)", str),
		"path": RoutePattern(r"[^:@]+", str),
		"any": RoutePattern(r".*", str),
		"rest": RoutePattern(r".+", str),
	}

	@classmethod
	def AddPattern(
		cls, type: str, regexp: str, parser: Callable[[str], Any] = str
	) -> RoutePattern:
		"""Registers a new RoutePattern into `Route.PATTERNS`"""
		try:
			re.compile(regexp)
		except re.error as e:
			raise ValueError(f"Regular expression '{regexp}' is malformed: {e}")
		res: RoutePattern = RoutePattern(regexp, parser)
		cls.PATTERNS[type.lower()] = res
		return res

	@classmethod
	def Parse(cls, expression: str) -> list[TChunk]:
		"""Parses a path template into text and parameter chunks."""
		chunks: list[TChunk] = []
		offset: int = 0
		for match in cls.RE_TEMPLATE.finditer(expression):
			chunks.append(TextChunk(expression[offset : match.start()]))
			name: str = match.group("name")
			# An untyped parameter named after a pattern (like `{id}`) uses it
			pattern: str = (
				match.group("type")
				or (name if name.lower() in cls.PATTERNS else "string")
			).lower()
			if pattern in cls.PATTERNS:
				pat = cls.PATTERNS[pattern]
			elif cls.RE_PATTERN_NAME.match(pattern):
				raise ValueError(
					f"Route pattern '{pattern}' is not registered, pick one of: {', '.join(sorted(cls.PATTERNS.keys()))}"
				)
			else:
				# Not a named pattern, so we take it as a regular expression
				pat = RoutePattern(pattern, str)
			chunks.append(ParameterChunk(name, pat))
			offset = match.end()
		chunks.append(TextChunk(expression[offset:]))
		return chunks

	def __init__(self, method: str, path: str, handler: TRouteHandler):
		self.method: str = method.lower()
		self.path: str = path
		self.handler: TRouteHandler = handler
		self.chunks: list[TChunk] = self.Parse(path)
		self.params: dict[str, ParameterChunk] = {
			_.name: _ for _ in self.chunks if isinstance(_, ParameterChunk)
		}
		self._regexp: Pattern[str] | None = None

	@property
	def paramNames(self) -> list[str]:
		return list(self.params)

	@property
	def regexp(self) -> Pattern[str]:
		if not self._regexp:
			try:
				self._regexp = re.compile(f"^{self.toRegExp()}$")
			except re.error as e:
				raise ValueError(
					f"Route syntax is malformed: {repr(self.toRegExp())}: {e}"
				)
		return self._regexp

	def toRegExp(self) -> str:
		return "".join(
			re.escape(chunk.text)
			if isinstance(chunk, TextChunk)
			else f"(?P<{chunk.name}>{chunk.pattern.expr})"
			for chunk in self.chunks
		)

	def match(self, path: str) -> dict[str, Any] | None:
		matches = self.regexp.match(path)
		return (
			{k: v.pattern.extractor(matches.group(k)) for k, v in self.params.items()}
			if matches
			else None
		)

	def __repr__(self) -> str:
		return f"(Route {self.method.upper()} \"{self.path}\" ({' '.join(self.params)}))"


# -----------------------------------------------------------------------------
#
# ROUTER
#
# -----------------------------------------------------------------------------


class Router:
	"""Resolves requests to the handler of the first matching route. Handlers
	are called as `handler(request, **params)`, and `respond` returns `None`
	when no route matches."""

	METHODS: ClassVar[tuple[str, ...]] = ("get", "post", "put", "delete")

	def __init__(self) -> None:
		self.routes: dict[str, list[Route]] = {_: [] for _ in self.METHODS}

	def register(
		self, method: str, path: str, handler: TRouteHandler | None = None
	) -> Any:
		"""Registers the handler for the method and path. When no handler is
		given, returns a decorator."""

		def decorator(function: TRouteHandler) -> TRouteHandler:
			path_ = path if path.startswith("/") else f"/{path}"
			route: Route = Route(method, path_, function)
			# Compiles right away so that malformed routes fail at registration
			route.regexp
			self.routes.setdefault(route.method, []).append(route)
			logged(debug) and debug(
				"Registered route", Method=method.upper(), Path=path_
			)
			return function

		return decorator(handler) if handler else decorator

	def get(self, path: str, handler: TRouteHandler | None = None) -> Any:
		return self.register("get", path, handler)

	def post(self, path: str, handler: TRouteHandler | None = None) -> Any:
		return self.register("post", path, handler)

	def put(self, path: str, handler: TRouteHandler | None = None) -> Any:
		return self.register("put", path, handler)

	def delete(self, path: str, handler: TRouteHandler | None = None) -> Any:
		return self.register("delete", path, handler)

	def match(
		self, method: str, path: str
	) -> tuple[Route, dict[str, Any]] | tuple[None, None]:
		method = method.lower()
		routes: Iterable[Route] = self.routes.get(method) or (
			self.routes.get("get", []) if method == "head" else []
		)
		for route in routes:
			if (params := route.match(path)) is not None:
				return route, params
		return None, None

	def respond(self, request: HTTPRequest) -> THandlerResult:
		route, params = self.match(request.method, request.path)
		if route is None:
			return None
		else:
			return route.handler(request, **(params or {}))

	def __repr__(self) -> str:
		return f"(Router {' '.join(f'{k.upper()}:{len(v)}' for k, v in self.routes.items())})"


# EOF
