"""femtologging wrappers shared by every pumpfeed module.

femtologging hands records to a worker thread, so messages are interpolated
here, on the calling task, and only finished strings cross the thread
boundary. Log levels coming from the environment are normalised in one place.

Example:
>>> from pumpfeed.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Subscribed to %s", "upstream")

"""

from __future__ import annotations

import enum
import typing as typ

from femtologging import basicConfig, get_logger

_FALLBACK_LEVEL = "INFO"


class LogLevel(enum.StrEnum):
    """Level names femtologging accepts."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Return ``(level, invalid)`` for a raw ``PUMPFEED_LOG_LEVEL`` value.

    Matching is case-insensitive and ignores surrounding whitespace. Missing
    or unknown names resolve to ``INFO`` with ``invalid`` set so the caller
    can warn once logging is up.
    """
    candidate = (level or "").strip().upper()
    if candidate in LogLevel.__members__:
        return (candidate, False)
    return (_FALLBACK_LEVEL, True)


def configure_logging(level: str, *, force: bool = False) -> tuple[str, bool]:
    """Install the root femtologging handler at the normalised *level*.

    Parameters
    ----------
    level : str
        Raw level name, usually from the environment.
    force : bool, optional
        Replace handlers installed by an earlier call.

    Returns
    -------
    tuple[str, bool]
        The level applied and whether *level* had to be replaced.

    """
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


def format_log_message(template: str, *args: object) -> str:
    """Interpolate percent-style *args* into *template*."""
    return template % args


class _SupportsLog(typ.Protocol):
    """The slice of the femtologging logger API pumpfeed relies on."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _emit(
    logger: _SupportsLog,
    level: str,
    template: str,
    args: tuple[object, ...],
    exc_info: object | None = None,
) -> None:
    logger.log(
        level,
        format_log_message(template, *args),
        exc_info=exc_info,
        stack_info=False,
    )


def log_debug(logger: _SupportsLog, template: str, *args: object) -> None:
    """Log at DEBUG; used for expected noise such as malformed updates."""
    _emit(logger, "DEBUG", template, args)


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log at INFO after percent-formatting *template* with *args*.

    Parameters
    ----------
    logger : _SupportsLog
        Destination logger, normally from :func:`get_logger`.
    template : str
        ``%``-style message template.
    *args : object
        Values substituted into *template*.
    exc_info : object | None, optional
        Exception attached to the record.

    """
    _emit(logger, "INFO", template, args, exc_info)


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log at WARNING; see :func:`log_info` for the arguments."""
    _emit(logger, "WARNING", template, args, exc_info)


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log at ERROR; see :func:`log_info` for the arguments."""
    _emit(logger, "ERROR", template, args, exc_info)


def log_exception(logger: _SupportsLog, message: str, exc: BaseException) -> None:
    """Log a finished *message* at ERROR with *exc* attached."""
    logger.log("ERROR", message, exc_info=exc, stack_info=False)


__all__ = [
    "LogLevel",
    "configure_logging",
    "format_log_message",
    "get_logger",
    "log_debug",
    "log_error",
    "log_exception",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
