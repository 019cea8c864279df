from typing import Any

from ..config import DEFAULT_ENCODING
from ..utils.json import json as asJSON
from .model import HTTPResponse
from .status import HTTP_STATUS

# --
# # Response builders
#
# Each builder returns a complete response record, with the body given as
# a single chunk and the `Content-Length` given in bytes.


def blob(
	content: str | bytes,
	contentType: str,
	*,
	status: int = 200,
	headers: dict[str, str] | None = None,
) -> HTTPResponse:
	payload: bytes = (
		content.encode(DEFAULT_ENCODING) if isinstance(content, str) else content
	)
	base: dict[str, str] = {
		"Content-Type": contentType,
		"Content-Length": str(len(payload)),
	}
	return HTTPResponse(
		status=status, headers=base | headers if headers else base, body=[content]
	)


def text(txt: str, *, status: int = 200) -> HTTPResponse:
	return blob(txt, "text/plain", status=status)


def html(markup: str | None = None, *, status: int = 200) -> HTTPResponse:
	return blob(markup or "", "text/html", status=status)


def json(value: Any, *, status: int = 200) -> HTTPResponse:
	return blob(asJSON(value), "application/json", status=status)


def error(message: str | None = None, *, status: int = 500) -> HTTPResponse:
	return blob(
		message or HTTP_STATUS.get(status, "Server Error"), "text/html", status=status
	)


def redirect(url: str) -> HTTPResponse:
	return HTTPResponse(status=302, headers={"Location": str(url)}, body=[])


def permanentRedirect(url: str) -> HTTPResponse:
	return HTTPResponse(status=301, headers={"Location": str(url)}, body=[])


def notModified() -> HTTPResponse:
	return HTTPResponse(status=304, body=[])


# EOF
