import asyncio
from typing import Any

from layered.bridge.asgi import asgi
from layered.dispatch import router
from layered.http.responses import json, text
from layered.stack import build, endpoint
from layered.streaming import stream


def serve(app, scope: dict[str, Any], *messages: dict[str, Any]) -> list[dict[str, Any]]:
	"""Runs the ASGI application, returning the messages it sent. Once the
	given messages are consumed, `receive` blocks as if the client was
	waiting for the response."""
	sent: list[dict[str, Any]] = []

	async def main():
		incoming = list(messages)
		forever = asyncio.Event()

		async def receive():
			if incoming:
				return incoming.pop(0)
			await forever.wait()

		async def send(message):
			sent.append(message)

		await asgi(app)(scope, receive, send)

	asyncio.run(main())
	return sent


def http(method: str, path: str, query: bytes = b"", headers=()) -> dict[str, Any]:
	return {
		"type": "http",
		"method": method,
		"path": path,
		"query_string": query,
		"headers": list(headers),
	}


def test_simple_response():
	app = build(
		lambda stack: stack.use(
			endpoint,
			router(lambda r: r.get("/hello/{name}", lambda request, name: text(f"Hi {name}"))),
		)
	)
	sent = serve(app, http("GET", "/hello/you"), {"type": "http.request", "body": b""})
	assert sent[0]["type"] == "http.response.start"
	assert sent[0]["status"] == 200
	assert (b"content-type", b"text/plain") in sent[0]["headers"]
	assert b"".join(_.get("body", b"") for _ in sent[1:]) == b"Hi you"
	assert sent[-1] == {"type": "http.response.body", "body": b"", "more_body": False}


def test_request_body_is_parsed():
	app = build(
		lambda stack: stack.use(endpoint, router(lambda r: r.post("/", lambda request: json(request.json))))
	)
	sent = serve(
		app,
		http("POST", "/", headers=[(b"Content-Type", b"application/json")]),
		{"type": "http.request", "body": b'{"a":', "more_body": True},
		{"type": "http.request", "body": b" 1}", "more_body": False},
	)
	assert sent[0]["status"] == 200
	assert b"".join(_.get("body", b"") for _ in sent[1:]) == b'{"a": 1}'


def test_streamed_response():
	def clock(request):
		streamer = stream()
		loop = asyncio.get_running_loop()
		streamer("tick\n")
		loop.call_soon(streamer, "tock\n")
		loop.call_soon(streamer.end)
		return streamer.respond()

	app = router(lambda r: r.get("/clock", clock))
	sent = serve(app, http("GET", "/clock"), {"type": "http.request"})
	assert sent[0]["status"] == 200
	assert [_["body"] for _ in sent[1:]] == [b"tick\n", b"tock\n", b""]


def test_invalid_response():
	sent = serve(lambda request: None, http("GET", "/"), {"type": "http.request"})
	assert sent[0]["status"] == 500


def test_disconnect_before_body():
	sent = serve(router(), http("GET", "/"), {"type": "http.disconnect"})
	assert sent == []


def test_disconnect_while_streaming():
	app = router(lambda r: r.get("/", lambda request: stream()("never ends").respond()))
	sent = serve(
		app,
		http("GET", "/"),
		{"type": "http.request"},
		{"type": "http.disconnect"},
	)
	# The response never completes, the writer is cancelled instead
	assert all(_.get("more_body", True) for _ in sent)


def test_lifespan():
	sent = serve(
		router(),
		{"type": "lifespan"},
		{"type": "lifespan.startup"},
		{"type": "lifespan.shutdown"},
	)
	assert [_["type"] for _ in sent] == [
		"lifespan.startup.complete",
		"lifespan.shutdown.complete",
	]


# EOF
