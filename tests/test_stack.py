import pytest

import layered.stack
from layered.errors import MiddlewareError
from layered.http.model import HTTPRequest
from layered.http.responses import text
from layered.middleware import ParseForm, ParseJson
from layered.stack import TERMINAL, Stack, build, endpoint


def tracing(name: str, trace: list[str], inner):
	"""A layer recording when it is entered, then delegating."""

	def handler(request):
		trace.append(name)
		return inner(request)

	return handler


def test_layers_run_in_declaration_order():
	trace: list[str] = []

	def respond(request):
		trace.append("endpoint")
		return text("ok")

	app = build(
		lambda stack: (
			stack.use(tracing, "first", trace),
			stack.use(tracing, "second", trace),
			stack.use(endpoint, respond),
		)
	)
	assert app(HTTPRequest.Create("GET", "/")).body == ["ok"]
	assert trace == ["first", "second", "endpoint"]


def test_builtins_come_first(monkeypatch):
	seen: list[str] = []

	def Builtin(inner):
		def handler(request):
			seen.append("builtin")
			return inner(request)

		return handler

	monkeypatch.setattr(layered.stack, "BUILTINS", (Builtin,))
	app = build(
		lambda stack: stack.use(tracing, "user", seen).use(endpoint, lambda r: text("ok"))
	)
	app(HTTPRequest.Create("GET", "/"))
	assert seen == ["builtin", "user"]


def test_builtins_parse_bodies():
	app = build(
		lambda stack: stack.use(endpoint, lambda r: text(f"{r.form} {r.json}"))
	)
	form = app(
		HTTPRequest.Create(
			"POST",
			"/",
			{"Content-Type": "application/x-www-form-urlencoded"},
			"a=1&b=2",
		)
	)
	assert form.body == ["{'a': '1', 'b': '2'} None"]


def test_clear_removes_builtins():
	def configure(stack: Stack):
		assert [_.constructor for _ in stack.middleware] == [ParseForm, ParseJson]
		stack.clear()
		stack.use(endpoint, lambda r: text(repr(r.form)))

	app = build(configure)
	response = app(
		HTTPRequest.Create(
			"POST", "/", {"Content-Type": "application/x-www-form-urlencoded"}, "a=1"
		)
	)
	assert response.body == ["None"]


def test_terminal_is_falsy_and_raises():
	assert not TERMINAL
	with pytest.raises(MiddlewareError):
		TERMINAL(HTTPRequest.Create())
	# A stack where every layer delegates ends up calling the terminal
	app = build(lambda stack: stack.use(tracing, "only", []))
	with pytest.raises(MiddlewareError):
		app(HTTPRequest.Create())


def test_innermost_layer_gets_terminal():
	inners: list = []

	def Innermost(inner):
		inners.append(inner)
		return lambda request: text("innermost")

	build(lambda stack: stack.clear().use(Innermost))
	assert inners == [TERMINAL]


def test_stack_is_closed_once_built():
	stack = Stack()
	stack.use(endpoint, text)
	stack.compose()
	with pytest.raises(MiddlewareError):
		stack.use(endpoint, text)
	with pytest.raises(MiddlewareError):
		stack.clear()



def test_builtins_then_declared_layers_then_terminal(monkeypatch):
	trace: list[str] = []
	parsed: list = []

	def traced(name: str, constructor):
		return lambda inner: tracing(name, trace, constructor(inner))

	def Observe(name: str, inner):
		def handler(request):
			trace.append(name)
			parsed.append((request.form, request.json))
			return inner(request)

		return handler

	# The real built-ins, recording when they are entered
	monkeypatch.setattr(
		layered.stack,
		"BUILTINS",
		(traced("ParseForm", ParseForm), traced("ParseJson", ParseJson)),
	)
	app = build(
		lambda stack: (
			stack.use(Observe, "M1"),
			stack.use(Observe, "M2"),
		)
	)
	with pytest.raises(MiddlewareError):
		app(
			HTTPRequest.Create(
				"POST", "/", {"Content-Type": "application/json"}, '{"a": 1}'
			)
		)
	assert trace == ["ParseForm", "ParseJson", "M1", "M2"]
	assert parsed == [(None, {"a": 1}), (None, {"a": 1})]


def test_declared_layers_see_parsed_bodies():
	seen: list = []

	def Observe(inner):
		def handler(request):
			seen.append((request.form, request.json))
			return inner(request)

		return handler

	app = build(
		lambda stack: stack.use(Observe).use(Observe).use(endpoint, lambda r: text("ok"))
	)
	app(HTTPRequest.Create("POST", "/", {"Content-Type": "application/json"}, "[1]"))
	app(
		HTTPRequest.Create(
			"POST", "/", {"Content-Type": "application/x-www-form-urlencoded"}, "a=1"
		)
	)
	assert seen == [(None, [1]), (None, [1]), ({"a": "1"}, None), ({"a": "1"}, None)]


def test_clear_after_use_removes_everything():
	trace: list[str] = []

	def configure(stack: Stack):
		stack.use(tracing, "dropped", trace)
		stack.clear()
		assert stack.middleware == []
		stack.use(endpoint, lambda r: text(repr(r.json)))

	app = build(configure)
	response = app(
		HTTPRequest.Create("POST", "/", {"Content-Type": "application/json"}, "[1]")
	)
	assert response.body == ["None"]
	assert trace == []


# EOF
