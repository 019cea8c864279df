import asyncio
from inspect import isawaitable
from typing import Any, Awaitable, Callable, TypeAlias

from ..http.model import HTTPRequest, HTTPResponse, THandler, iterChunks
from ..utils.logging import exception, info, logged, warning

# --
# ## ASGI Bridge
#
# Exposes a handler (typically the result of `build()`) as an ASGI
# application. The request body is read in full before the handler is
# called, while the response body is sent chunk by chunk as it is
# enumerated, which is what makes streamed responses work.
#
# SEE: https://asgi.readthedocs.io/en/latest/specs/www.html

TScope: TypeAlias = dict[str, Any]
TMessage: TypeAlias = dict[str, Any]
TReceive: TypeAlias = Callable[[], Awaitable[TMessage]]
TSend: TypeAlias = Callable[[TMessage], Awaitable[None]]
TApplication: TypeAlias = Callable[[TScope, TReceive, TSend], Awaitable[None]]

SERVER_ERROR: bytes = b"Internal server error: invalid response"


async def readRequest(scope: TScope, receive: TReceive) -> HTTPRequest | None:
	"""Reads the request body from ASGI, returning `None` if the client
	disconnected before it was complete."""
	body = bytearray()
	while True:
		message = await receive()
		if message["type"] == "http.disconnect":
			return None
		elif message["type"] == "http.request":
			body += message.get("body", b"")
			if not message.get("more_body", False):
				break
	query: bytes = scope.get("query_string") or b""
	return HTTPRequest(
		method=scope.get("method", "GET"),
		pathInfo=scope.get("path") or "/",
		queryString=query.decode("latin-1"),
		headers={
			k.decode("latin-1").lower(): v.decode("latin-1")
			for k, v in scope.get("headers") or ()
		},
		body=bytes(body) if body else None,
		extra={
			"scheme": scope.get("scheme", "http"),
			"client": scope.get("client"),
			"server": scope.get("server"),
			"rootPath": scope.get("root_path", ""),
			"httpVersion": scope.get("http_version", "1.1"),
		},
	)


async def writeResponse(response: Any, send: TSend) -> None:
	"""Sends the response start, then one message per body chunk."""
	if not isinstance(response, HTTPResponse) or not response.isValid:
		logged(warning) and warning("Handler returned an invalid response", Response=str(response))
		await send(
			{
				"type": "http.response.start",
				"status": 500,
				"headers": [
					(b"content-type", b"text/plain"),
					(b"content-length", str(len(SERVER_ERROR)).encode("latin-1")),
				],
			}
		)
		await send({"type": "http.response.body", "body": SERVER_ERROR})
		return None
	await send(
		{
			"type": "http.response.start",
			"status": response.status,
			"headers": [
				(k.lower().encode("latin-1"), str(v).encode("latin-1"))
				for k, v in response.headers.items()
			],
		}
	)
	async for chunk in iterChunks(response.body):
		await send({"type": "http.response.body", "body": chunk, "more_body": True})
	await send({"type": "http.response.body", "body": b"", "more_body": False})


async def waitDisconnect(receive: TReceive) -> None:
	while (await receive())["type"] != "http.disconnect":
		pass


async def lifespan(receive: TReceive, send: TSend) -> None:
	# SEE: https://asgi.readthedocs.io/en/latest/specs/lifespan.html
	while True:
		message = await receive()
		if message["type"] == "lifespan.startup":
			info("Application started")
			await send({"type": "lifespan.startup.complete"})
		elif message["type"] == "lifespan.shutdown":
			info("Application stopped")
			await send({"type": "lifespan.shutdown.complete"})
			return None


def asgi(handler: THandler) -> TApplication:
	"""Returns the ASGI application running the given handler."""

	async def application(scope: TScope, receive: TReceive, send: TSend) -> None:
		if scope["type"] == "lifespan":
			return await lifespan(receive, send)
		elif scope["type"] != "http":
			warning("Unsupported ASGI protocol", Protocol=scope["type"])
			return None
		request = await readRequest(scope, receive)
		if request is None:
			return None
		try:
			result = handler(request)
			response = await result if isawaitable(result) else result
		except Exception as e:
			# Handlers wrapped in a dispatcher never get there, but bare
			# stacks do.
			exception(e, f"Failed to handle {request}")
			response = None
		# The response is written while we watch for the client leaving, in
		# which case the writer (and the body it enumerates) is cancelled.
		writer = asyncio.create_task(writeResponse(response, send))
		watcher = asyncio.create_task(waitDisconnect(receive))
		done, pending = await asyncio.wait(
			{writer, watcher}, return_when=asyncio.FIRST_COMPLETED
		)
		for task in pending:
			task.cancel()
		await asyncio.gather(*pending, return_exceptions=True)
		if watcher in done:
			logged(warning) and warning("Client disconnected", Path=request.pathInfo)
		else:
			writer.result()

	return application


# EOF
