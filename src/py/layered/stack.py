from typing import Any, Callable, NamedTuple

from .errors import MiddlewareError
from .http.model import HTTPRequest, THandler
from .middleware import ParseForm, ParseJson
from .utils.logging import debug, logged

# --
# # Middleware stacks
#
# `build()` turns a configuration function into a single handler:
#
# ```
# app = build(lambda stack: (
#     stack.use(logRequests),
#     stack.use(authenticate, users),
#     stack.use(endpoint, router(routes)),
# ))
# ```
#
# The built-in layers come first, then the layers in the order they were
# declared, so that the last declared layer is the innermost one. It is
# typically the one producing the response, ignoring its inner handler.

TConstructor = Callable[..., THandler]

# Layers added before any user declaration, outermost first.
BUILTINS: tuple[TConstructor, ...] = (ParseForm, ParseJson)


class Layer(NamedTuple):
	"""A middleware declaration: the constructor and its leading arguments."""

	constructor: TConstructor
	args: tuple[Any, ...]


class TerminalHandler:
	"""The inner handler given to the innermost layer. It is falsy, and
	calling it means that no layer produced a response."""

	__slots__: list[str] = []

	def __call__(self, request: HTTPRequest) -> Any:
		raise MiddlewareError(
			f"Reached the end of the middleware stack without a response: {request}"
		)

	def __bool__(self) -> bool:
		return False

	def __repr__(self) -> str:
		return "TERMINAL"


TERMINAL: TerminalHandler = TerminalHandler()


class Stack:
	"""Collects the middleware declarations given by the configuration
	function of `build()`."""

	__slots__ = ["middleware", "isBuilt"]

	def __init__(self) -> None:
		self.middleware: list[Layer] = []
		self.isBuilt: bool = False

	def use(self, constructor: TConstructor, *args: Any) -> "Stack":
		self._ensureOpen()
		self.middleware.append(Layer(constructor, args))
		return self

	def clear(self) -> "Stack":
		"""Removes every declaration made so far, including the built-in
		ones, which need to be added back by the caller if needed."""
		self._ensureOpen()
		self.middleware = []
		return self

	def compose(self) -> THandler:
		"""Wraps each layer around the next one, starting from the last."""
		self._ensureOpen()
		self.isBuilt = True
		handler: THandler = TERMINAL
		for constructor, args in reversed(self.middleware):
			handler = constructor(*args, handler)
		logged(debug) and debug(
			"Built middleware stack",
			Layers=len(self.middleware),
			Order=[
				getattr(_.constructor, "__name__", repr(_.constructor))
				for _ in self.middleware
			],
		)
		return handler

	def _ensureOpen(self) -> None:
		if self.isBuilt:
			raise MiddlewareError("Middleware stack is already built")


def build(configure: Callable[[Stack], Any]) -> THandler:
	"""Creates a stack with the built-in layers, lets `configure` declare
	the application's layers and returns the composed handler."""
	stack = Stack()
	for constructor in BUILTINS:
		stack.use(constructor)
	configure(stack)
	return stack.compose()


def endpoint(handler: THandler, inner: THandler) -> THandler:
	"""A layer that terminates the stack with the given handler."""
	return handler


# EOF
