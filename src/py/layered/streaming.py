from typing import Any, AsyncIterator, Callable

from .errors import StreamError
from .http.model import HTTPResponse, TChunk
from .utils.deferred import Deferred
from .utils.logging import debug, logged

# --
# # Streaming
#
# A streamer lets a handler produce the body of its response over time:
#
# ```
# streamer = stream()
# streamer("Hello")
# loop.call_later(1.0, lambda: (streamer(", world"), streamer.end()))
# return streamer.respond(headers={"Content-Type": "text/plain"})
# ```
#
# Chunks are progress updates of a deferred that resolves on `end()`, and are
# delivered to the transport in the order they were emitted. Chunks emitted
# before the transport starts enumerating the body are kept until it does.
# A body that is never ended never completes: closing long-lived responses
# is up to the transport.


class StreamBody:
	"""A response body fed by a streamer. It can be enumerated once, either
	by giving a sink to `forEach` or by async iteration."""

	__slots__ = ["deferred", "isConsumed"]

	def __init__(self, deferred: Deferred[None]) -> None:
		self.deferred: Deferred[None] = deferred
		self.isConsumed: bool = False

	def forEach(self, sink: Callable[[TChunk], Any]) -> Deferred[None]:
		"""Gives every chunk to the sink, returning the deferred that
		completes when the stream ends."""
		if self.isConsumed:
			raise StreamError("Stream body is already being enumerated")
		self.isConsumed = True
		return self.deferred.subscribe(sink)

	def __aiter__(self) -> AsyncIterator[TChunk]:
		if self.isConsumed:
			raise StreamError("Stream body is already being enumerated")
		self.isConsumed = True
		return self.deferred.updates()

	def __repr__(self) -> str:
		return f"(StreamBody {self.deferred!r})"


class Streamer:
	"""The producer side of a stream: call it with chunks, then `end()`."""

	__slots__ = ["deferred", "body"]

	def __init__(self) -> None:
		self.deferred: Deferred[None] = Deferred()
		self.body: StreamBody | None = None

	@property
	def isEnded(self) -> bool:
		return not self.deferred.isPending

	def __call__(self, chunk: TChunk) -> "Streamer":
		self.deferred.progress(chunk)
		return self

	def end(self) -> "Streamer":
		logged(debug) and debug("Stream ended", Stream=f"{id(self):x}")
		self.deferred.resolve()
		return self

	def fail(self, error: BaseException) -> "Streamer":
		"""Ends the stream with an error, which is raised to the consumer
		waiting for the stream to complete."""
		logged(debug) and debug(
			"Stream failed", Stream=f"{id(self):x}", Error=str(error)
		)
		self.deferred.reject(error)
		return self

	def respond(
		self, *, status: int = 200, headers: dict[str, str] | None = None
	) -> HTTPResponse:
		"""Returns the response carrying this stream. There is no
		`Content-Length` as the length is not known upfront."""
		if self.body is not None:
			raise StreamError(
				"Stream already has a response, it would deliver chunks twice"
			)
		self.body = StreamBody(self.deferred)
		return HTTPResponse(
			status=status,
			headers=dict(headers) if headers else {"Content-Type": "text/plain"},
			body=self.body,
		)


def stream() -> Streamer:
	return Streamer()


# EOF
