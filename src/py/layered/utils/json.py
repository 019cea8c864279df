from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, TypeAlias, cast
import json as basejson

from ..config import DEFAULT_ENCODING

TJSON: TypeAlias = None | int | float | bool | str | list[Any] | dict[str, Any]


def asPrimitive(value: Any) -> Any:
	"""Converts the given value to a primitive value that can be
	serialized as JSON."""
	if value is None or type(value) in (bool, float, int, str):
		return value
	elif isinstance(value, tuple) and hasattr(value, "_fields"):
		return {k: asPrimitive(getattr(value, k)) for k in value._fields}
	elif isinstance(value, list) or isinstance(value, tuple) or isinstance(value, set):
		return [asPrimitive(v) for v in value]
	elif is_dataclass(value) and not isinstance(value, type):
		return {f.name: asPrimitive(getattr(value, f.name)) for f in fields(value)}
	elif isinstance(value, Enum):
		return asPrimitive(value.value)
	elif isinstance(value, dict):
		return {str(k): asPrimitive(v) for k, v in value.items()}
	elif isinstance(value, Decimal) or isinstance(value, Path):
		return str(value)
	elif isinstance(value, datetime) or isinstance(value, date):
		return value.isoformat()
	elif isinstance(value, bytes):
		return value.decode(DEFAULT_ENCODING)
	else:
		return value


def json(value: Any) -> bytes:
	"""Serializes the value as JSON-encoded bytes."""
	return basejson.dumps(asPrimitive(value)).encode(DEFAULT_ENCODING)


def unjson(value: bytes | str) -> TJSON:
	"""Parses a JSON-encoded payload."""
	return cast(TJSON, basejson.loads(value))


# EOF
