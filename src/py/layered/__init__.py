from .http.model import HTTPRequest, HTTPResponse, RoutedRequest  # NOQA: F401
from .http.responses import (
	text,
	html,
	json,
	error,
	redirect,
	permanentRedirect,
	notModified,
)  # NOQA: F401
from .stack import Stack, TERMINAL, build, endpoint  # NOQA: F401
from .middleware import ParseForm, ParseJson  # NOQA: F401
from .dispatch import Dispatcher, dispatcher, router  # NOQA: F401
from .streaming import Streamer, stream  # NOQA: F401
from .utils.deferred import Deferred  # NOQA: F401
from .errors import (
	LayeredError,
	ShapeError,
	MiddlewareError,
	StreamError,
	DeferredStateError,
)  # NOQA: F401

__version__: str = "0.1.0"

# EOF
