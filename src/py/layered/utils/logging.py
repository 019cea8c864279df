import os
import sys
import time
import traceback
from contextvars import ContextVar
from enum import Enum
from typing import Any, Callable, ClassVar, NamedTuple, TypeAlias

from ..config import LOG_LEVEL

# --
# # Logging
#
# Structured logging to stderr. Every entry carries an origin, a level and
# an ad-hoc context given as keyword arguments, which is rendered as
# `Key=value` pairs after the message.

ERR = sys.stderr

TPrimitive: TypeAlias = (
	bool | int | float | str | bytes | list[Any] | tuple[Any, ...] | dict[str, Any] | None
)
TStack: TypeAlias = list[str]

LogOrigin: ContextVar[str] = ContextVar("LogOrigin", default="layered")

# SEE: https://no-color.org/
NO_COLOR: bool = "NO_COLOR" in os.environ
FORCE_COLOR: bool = "FORCE_COLOR" in os.environ
COLOR: bool = FORCE_COLOR or not NO_COLOR


class Term:
	BOLD: ClassVar[str] = "\033[1m" if COLOR else ""
	RESET: ClassVar[str] = "\033[0m" if COLOR else ""

	@staticmethod
	def Color(color: int) -> str:
		return f"\033[0;38;5;{color}m" if COLOR else ""


class LogType(Enum):
	Message = 0
	Event = 20


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Checkpoint = 20
	Warning = 30
	Error = 40
	Exception = 50

	@staticmethod
	def Named(name: str) -> "LogLevel":
		for level in LogLevel:
			if level.name.lower() == name.strip().lower():
				return level
		raise ValueError(
			f"Unknown log level '{name}', pick one of: {', '.join(_.name.lower() for _ in LogLevel)}"
		)


LOG_LEVEL_COLOR: dict[LogLevel, int] = {
	LogLevel.Debug: 31,
	LogLevel.Info: 75,
	LogLevel.Checkpoint: 81,
	LogLevel.Warning: 202,
	LogLevel.Error: 160,
	LogLevel.Exception: 124,
}

THRESHOLD: LogLevel = LogLevel.Named(LOG_LEVEL)


def setLogLevel(level: str | LogLevel) -> LogLevel:
	"""Updates the level under which log entries are dropped."""
	global THRESHOLD
	THRESHOLD = level if isinstance(level, LogLevel) else LogLevel.Named(level)
	return THRESHOLD


class LogEntry(NamedTuple):
	origin: str
	time: float
	type: LogType = LogType.Message
	level: LogLevel = LogLevel.Info
	message: str | None = None
	name: str | None = None
	value: TPrimitive = None
	context: dict[str, TPrimitive] | None = None


def formatData(value: Any) -> str:
	if value is None or value == () or value == [] or value == {}:
		return "◌"
	elif isinstance(value, dict):
		return " ".join(
			f"{Term.BOLD}{k}{Term.RESET}={formatData(v)}" for k, v in value.items()
		)
	elif isinstance(value, list) or isinstance(value, tuple):
		return ",".join(formatData(v) for v in value)
	elif isinstance(value, str):
		return repr(value) if " " in value else value
	elif isinstance(value, bool):
		return "✓" if value else "✗"
	elif isinstance(value, float):
		return f"{value:0.2f}"
	else:
		return str(value)


def send(entry: LogEntry) -> LogEntry:
	if entry.level.value < THRESHOLD.value:
		return entry
	clr: str = Term.Color(LOG_LEVEL_COLOR[entry.level])
	if entry.type == LogType.Event:
		ERR.write(
			f"{clr}{Term.BOLD}[{entry.origin}] {entry.name}{Term.RESET} {formatData(entry.value)} {formatData(entry.context)}{Term.RESET}\n"
		)
	else:
		ERR.write(
			f"{clr}{Term.BOLD}[{entry.origin}]{Term.RESET} {entry.message} {formatData(entry.context)}{Term.RESET}\n"
		)
	ERR.flush()
	return entry


def log(
	level: LogLevel,
	message: str,
	origin: str | None = None,
	value: TPrimitive = None,
	context: dict[str, TPrimitive] | None = None,
) -> LogEntry:
	return send(
		LogEntry(
			origin=origin or LogOrigin.get(),
			time=time.time(),
			level=level,
			message=message,
			value=value,
			context=context,
		)
	)


def debug(message: str, *, origin: str | None = None, **context: TPrimitive) -> LogEntry:
	return log(LogLevel.Debug, message, origin, context=context)


def info(message: str, *, origin: str | None = None, **context: TPrimitive) -> LogEntry:
	return log(LogLevel.Info, message, origin, context=context)


def warning(
	message: str, *, origin: str | None = None, **context: TPrimitive
) -> LogEntry:
	return log(LogLevel.Warning, message, origin, context=context)


def error(
	message: str,
	code: int | str | None = None,
	*,
	origin: str | None = None,
	**context: TPrimitive,
) -> LogEntry:
	return log(LogLevel.Error, message, origin, value=code, context=context)


def event(
	name: str,
	value: Any = None,
	*,
	origin: str | None = None,
	**context: TPrimitive,
) -> LogEntry:
	return send(
		LogEntry(
			origin=origin or LogOrigin.get(),
			time=time.time(),
			type=LogType.Event,
			name=name,
			value=value,
			context=context,
		)
	)


def exception(exception: BaseException, message: str | None = None) -> BaseException:
	"""Writes the exception and its traceback, returning the exception so that
	it can be used as `raise exception(e)`."""
	try:
		clr: str = Term.Color(LOG_LEVEL_COLOR[LogLevel.Exception])
		name: str = exception.__class__.__name__
		ERR.write(
			f"{clr}!!! EXCP {f'{message}: [{name}] {exception}' if message else f'[{name}] {exception}'}{Term.RESET}\n"
		)
		for frame in traceback.extract_tb(exception.__traceback__):
			ERR.write(
				f"... in {frame.name:15s} at {frame.lineno or 0:4d} in {frame.filename}\n"
			)
		ERR.flush()
	except Exception:  # nosec: B110
		# Called from exception handlers, so it must never raise.
		pass
	return exception


def logged(item: Callable[..., LogEntry]) -> bool:
	"""Tells if the given logging function would output anything at the
	current threshold, so that callers can skip building costly entries."""
	level: LogLevel = {
		debug: LogLevel.Debug,
		info: LogLevel.Info,
		warning: LogLevel.Warning,
		error: LogLevel.Error,
		event: LogLevel.Info,
	}.get(item, LogLevel.Info)
	return level.value >= THRESHOLD.value


# EOF
