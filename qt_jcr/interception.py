"""Capture the query engine's log lines under a correlation key.

The engine reports its per-index cost estimates only through its logger.
:class:`QueryLogInterception` is a :class:`logging.Filter` attached to that
logger. While an interception window is open, the window's key sits in a
context variable and every record the logger emits in that context is
formatted and stored under the key. The filter never suppresses or alters a
record.

Storage is keyed process-wide state with an explicit lifecycle: a key's lines
appear on first write and disappear only through :meth:`stop_interception`
(which closing a window always calls). There is no implicit expiry.

Engines that log from worker threads must run that work in a copy of the
caller's context (``contextvars.copy_context().run``), otherwise the worker
sees no active key and nothing is captured.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

from .config import OAK_QUERY_LOGGER, get_settings

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_COUNT_LIMIT = 500

interception_key: ContextVar[Optional[str]] = ContextVar(
    "qt_jcr_interception_key", default=None
)

# Open windows and pre-window level per intercepted logger, across instances
_LEVEL_LOCK = threading.Lock()
_OPEN_WINDOWS: dict[str, int] = {}
_ORIGINAL_LEVELS: dict[str, int] = {}


def format_message(template: Any, args: Any = None) -> Optional[str]:
    """Render a log template against its arguments.

    ``{}`` placeholders are substituted SLF4J-style, left to right (``\\{}``
    stays a literal ``{}``). Templates without ``{}`` are rendered the way
    :meth:`logging.LogRecord.getMessage` does, with ``%``-formatting.

    Returns None for a None template or one its arguments cannot fill.
    """
    if template is None:
        return None
    template = str(template)
    if not args:
        return template

    if "{}" in template:
        if isinstance(args, Mapping) or not isinstance(args, (tuple, list)):
            args = (args,)
        return _substitute_placeholders(template, args)

    try:
        return template % args
    except (TypeError, ValueError, KeyError):
        logger.debug("Cannot format %r with %r", template, args)
        return None


def _substitute_placeholders(template: str, args: tuple | list) -> str:
    parts: list[str] = []
    pos = 0
    arg_index = 0
    while arg_index < len(args):
        found = template.find("{}", pos)
        if found == -1:
            break
        if found > 0 and template[found - 1] == "\\":
            parts.append(template[pos:found - 1])
            parts.append("{}")
        else:
            parts.append(template[pos:found])
            parts.append(str(args[arg_index]))
            arg_index += 1
        pos = found + 2
    parts.append(template[pos:])
    return "".join(parts)


class QueryLogInterception(logging.Filter):
    """Bounded, thread-safe capture of one logger's records per correlation key.

    Args:
        logger_name: Name of the only logger whose records are captured.
        message_count_limit: Lines kept per key. Lines past the limit are
            dropped; the first ``message_count_limit`` lines are retained.
    """

    def __init__(
        self,
        logger_name: str = OAK_QUERY_LOGGER,
        message_count_limit: int = DEFAULT_MESSAGE_COUNT_LIMIT,
    ):
        super().__init__()
        self.logger_name = logger_name
        self.message_count_limit = message_count_limit
        self._saved: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    def decide(
        self,
        logger_name: str,
        level: int,
        template: Any,
        args: Any = None,
        exc_info: Any = None,
    ) -> bool:
        """Store one log event under the active key if it qualifies.

        Always returns True: the event continues through the logging
        pipeline unchanged.
        """
        key = interception_key.get()
        if key is None or logger_name != self.logger_name:
            return True

        message = format_message(template, args)
        if message is None:
            return True

        with self._lock:
            lines = self._saved.setdefault(key, [])
            if len(lines) < self.message_count_limit:
                lines.append(message + "\n")
        return True

    def filter(self, record: logging.LogRecord) -> bool:
        return self.decide(
            record.name, record.levelno, record.msg, record.args, record.exc_info
        )

    def saved_logs(self, key: str) -> list[str]:
        """Return a snapshot of the lines captured under ``key``.

        Only complete once the call that produces the logs has returned;
        reading earlier is a usage error that this method does not detect.
        Unknown keys give an empty list.
        """
        with self._lock:
            lines = list(self._saved.get(key, ()))
        logger.debug("For interception key %r these log lines were intercepted: %s", key, lines)
        return lines

    def stop_interception(self, key: str) -> None:
        """Forget everything captured under ``key``."""
        with self._lock:
            self._saved.pop(key, None)

    def install(self) -> None:
        """Attach this filter to the intercepted logger (idempotent)."""
        logging.getLogger(self.logger_name).addFilter(self)

    def uninstall(self) -> None:
        """Detach this filter from the intercepted logger."""
        logging.getLogger(self.logger_name).removeFilter(self)

    @contextmanager
    def window(self) -> Iterator[str]:
        """Capture records under a fresh key for the duration of the block.

        Yields the key. On exit the key is deactivated and its lines are
        discarded, whether the block succeeded or raised.
        """
        key = str(uuid.uuid4())
        token = interception_key.set(key)
        self._open_window()
        logger.debug("Interception window %s opened", key)
        try:
            yield key
        finally:
            interception_key.reset(token)
            self._close_window()
            self.stop_interception(key)
            logger.debug("Interception window %s closed", key)

    def _open_window(self) -> None:
        """Make the intercepted logger emit DEBUG while any window is open."""
        name = self.logger_name
        target = logging.getLogger(name)
        with _LEVEL_LOCK:
            if _OPEN_WINDOWS.get(name, 0) == 0:
                _ORIGINAL_LEVELS[name] = target.level
                if target.getEffectiveLevel() > logging.DEBUG:
                    target.setLevel(logging.DEBUG)
            _OPEN_WINDOWS[name] = _OPEN_WINDOWS.get(name, 0) + 1

    def _close_window(self) -> None:
        """Restore the intercepted logger's level when its last window ends.

        Windows are counted per logger across every interception instance.
        """
        name = self.logger_name
        with _LEVEL_LOCK:
            remaining = max(0, _OPEN_WINDOWS.get(name, 0) - 1)
            if remaining:
                _OPEN_WINDOWS[name] = remaining
                return
            _OPEN_WINDOWS.pop(name, None)
            original = _ORIGINAL_LEVELS.pop(name, None)
            if original is not None:
                logging.getLogger(name).setLevel(original)


_DEFAULT_INTERCEPTION: Optional[QueryLogInterception] = None
_DEFAULT_LOCK = threading.Lock()


def get_interception() -> QueryLogInterception:
    """Return the process-wide interception, installed on first use."""
    global _DEFAULT_INTERCEPTION
    with _DEFAULT_LOCK:
        if _DEFAULT_INTERCEPTION is None:
            settings = get_settings()
            _DEFAULT_INTERCEPTION = QueryLogInterception(
                logger_name=settings.intercepted_logger,
                message_count_limit=settings.message_count_limit,
            )
            _DEFAULT_INTERCEPTION.install()
        return _DEFAULT_INTERCEPTION
