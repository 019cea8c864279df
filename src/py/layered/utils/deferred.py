import asyncio
from enum import Enum
from typing import Any, AsyncIterator, Callable, Generator, Generic, TypeVar

from ..errors import DeferredStateError

T = TypeVar("T")

# --
# # Deferred
#
# A deferred is a value that settles exactly once, either resolved with a
# value or rejected with an error. While it is pending, it can emit any
# number of progress updates, which are delivered in order to the progress
# subscribers.
#
# Updates emitted before anybody subscribed are buffered, and replayed to
# the first progress subscriber. Later subscribers only see the updates
# emitted after they subscribed.
#
# Deferreds are meant for cooperative, single-threaded use: awaiting one
# creates a future on the running event loop, settled when the deferred is.


class DeferredState(Enum):
	Pending = 0
	Resolved = 1
	Rejected = 2


class Deferred(Generic[T]):
	__slots__ = [
		"state",
		"value",
		"error",
		"buffer",
		"onProgress",
		"onResolved",
		"onRejected",
		"waiters",
	]

	def __init__(self) -> None:
		self.state: DeferredState = DeferredState.Pending
		self.value: T | None = None
		self.error: BaseException | None = None
		self.buffer: list[Any] | None = []
		self.onProgress: list[Callable[[Any], Any]] = []
		self.onResolved: list[Callable[[T | None], Any]] = []
		self.onRejected: list[Callable[[BaseException], Any]] = []
		self.waiters: list[asyncio.Future[None]] = []

	@property
	def isPending(self) -> bool:
		return self.state is DeferredState.Pending

	@property
	def isResolved(self) -> bool:
		return self.state is DeferredState.Resolved

	@property
	def isRejected(self) -> bool:
		return self.state is DeferredState.Rejected

	# =========================================================================
	# PRODUCER
	# =========================================================================

	def progress(self, update: Any) -> "Deferred[T]":
		"""Emits a progress update, only allowed while pending."""
		if not self.isPending:
			raise DeferredStateError(
				f"Cannot emit progress on a deferred that is {self.state.name.lower()}"
			)
		if self.buffer is not None:
			self.buffer.append(update)
		for callback in tuple(self.onProgress):
			callback(update)
		return self

	def resolve(self, value: T | None = None) -> "Deferred[T]":
		self._settle(DeferredState.Resolved)
		self.value = value
		for callback in self.onResolved:
			callback(value)
		self._release()
		return self

	def reject(self, error: BaseException) -> "Deferred[T]":
		self._settle(DeferredState.Rejected)
		self.error = error
		for callback in self.onRejected:
			callback(error)
		self._release()
		return self

	def _settle(self, state: DeferredState) -> None:
		if not self.isPending:
			raise DeferredStateError(
				f"Cannot {'resolve' if state is DeferredState.Resolved else 'reject'} a deferred that is already {self.state.name.lower()}"
			)
		self.state = state

	def _release(self) -> None:
		# Callbacks won't be triggered again. The buffer is kept, as a
		# late subscriber still needs to get what was emitted.
		self.onProgress.clear()
		self.onResolved.clear()
		self.onRejected.clear()
		for waiter in self.waiters:
			if not waiter.done():
				waiter.set_result(None)
		self.waiters.clear()

	# =========================================================================
	# CONSUMER
	# =========================================================================

	def subscribe(
		self,
		onProgress: Callable[[Any], Any] | None = None,
		onResolved: Callable[[T | None], Any] | None = None,
		onRejected: Callable[[BaseException], Any] | None = None,
	) -> "Deferred[T]":
		"""Registers the given callbacks. Settlement callbacks registered on
		a settled deferred are called right away."""
		if onProgress:
			if self.buffer is not None:
				# The first progress subscriber gets the replay, after which
				# updates are delivered as they come.
				buffered, self.buffer = self.buffer, None
				for update in buffered:
					onProgress(update)
			if self.isPending:
				self.onProgress.append(onProgress)
		if self.isResolved:
			onResolved and onResolved(self.value)
		elif self.isRejected:
			if onRejected and self.error is not None:
				onRejected(self.error)
		else:
			onResolved and self.onResolved.append(onResolved)
			onRejected and self.onRejected.append(onRejected)
		return self

	async def updates(self) -> AsyncIterator[Any]:
		"""Iterates over the progress updates until the deferred resolves,
		raising the error if it is rejected."""
		queue: asyncio.Queue[tuple[bool, Any]] = asyncio.Queue()
		self.subscribe(
			lambda _: queue.put_nowait((True, _)),
			lambda _: queue.put_nowait((False, None)),
			lambda _: queue.put_nowait((False, _)),
		)
		while True:
			more, value = await queue.get()
			if more:
				yield value
			elif value is None:
				break
			else:
				raise value

	def __await__(self) -> Generator[Any, None, T | None]:
		if self.isPending:
			waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
			self.waiters.append(waiter)
			yield from waiter.__await__()
		if self.isRejected and self.error is not None:
			raise self.error
		return self.value

	def __repr__(self) -> str:
		return f"(Deferred :{self.state.name.lower()})"


# EOF
