from json import JSONDecodeError
from urllib.parse import parse_qs

from .config import DEFAULT_ENCODING
from .http.model import HTTPRequest, HTTPResponse, THandler
from .http.responses import error
from .utils.json import unjson
from .utils.logging import logged, warning

# --
# # Middleware
#
# Middleware are constructors taking their arguments followed by the inner
# handler, and returning the handler wrapping it. `ParseForm` and `ParseJson`
# are always at the top of the stacks created by `build()`.

FORM_CONTENT_TYPE: str = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE: str = "application/json"


def hasContentType(request: HTTPRequest, contentType: str) -> bool:
	"""Tells if the request has a body of the given content type, ignoring
	parameters like `charset`."""
	value: str = request.contentType or ""
	return bool(request.body) and value.split(";", 1)[0].strip().lower() == contentType


def ParseForm(inner: THandler) -> THandler:
	"""Parses URL-encoded form bodies into `request.form`. Repeated fields
	are given as lists."""

	def handler(request: HTTPRequest):
		if not hasContentType(request, FORM_CONTENT_TYPE):
			return inner(request)
		fields: dict[str, list[str]] = parse_qs(
			(request.body or b"").decode(DEFAULT_ENCODING, errors="replace"),
			keep_blank_values=True,
		)
		return inner(
			request.derive(
				form={k: v[0] if len(v) == 1 else v for k, v in fields.items()}
			)
		)

	return handler


def ParseJson(inner: THandler) -> THandler:
	"""Parses JSON bodies into `request.json`, responding with a 400 when
	the body is malformed."""

	def handler(request: HTTPRequest):
		if not hasContentType(request, JSON_CONTENT_TYPE):
			return inner(request)
		try:
			value = unjson(request.body or b"")
		except (JSONDecodeError, UnicodeDecodeError) as e:
			logged(warning) and warning(
				"Malformed JSON body", Path=request.pathInfo, Error=str(e)
			)
			response: HTTPResponse = error(f"Bad Request: {e}", status=400)
			return response
		return inner(request.derive(json=value))

	return handler


# EOF
