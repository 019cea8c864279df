from typing import Any

from ..config import DEFAULT_ENCODING
from .json import json


def asBytes(value: str | bytes | bytearray | None) -> bytes:
	if isinstance(value, bytes):
		return value
	elif isinstance(value, bytearray):
		return bytes(value)
	elif isinstance(value, str):
		return value.encode(DEFAULT_ENCODING)
	elif value is None:
		return b""
	else:
		raise ValueError(f"Expected bytes or str, got: {value}")


def asWritable(value: Any) -> bytes:
	"""Like `asBytes`, but serializes any other value as JSON."""
	if isinstance(value, (str, bytes, bytearray)) or value is None:
		return asBytes(value)
	else:
		return json(value)


# EOF
