# -----------------------------------------------------------------------------
#
# ERRORS
#
# -----------------------------------------------------------------------------


class LayeredError(Exception):
	"""Base class for the errors raised by the toolkit itself."""


class ShapeError(LayeredError):
	"""A handler produced something that is not a valid response record."""


class MiddlewareError(LayeredError):
	"""The middleware stack was misused, or its end was reached without
	any handler producing a response."""


class StreamError(LayeredError):
	"""A streamer was used in a way that would duplicate or lose chunks."""


class DeferredStateError(LayeredError):
	"""A deferred was updated or settled after it was settled."""


# EOF
