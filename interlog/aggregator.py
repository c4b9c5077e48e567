from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from .capture import LoadRecorder, MessageCursor, PendingBuffer
from .config import default_config, validate_config
from .render import FlushEngine, LogView, OutputLog
from .retention import RetentionManager
from .scheduler import AsyncioTimers, Scheduler
from .types import CHANGE_NONE, InteractionLogConfig, LogEntry
from .utils import setup_logger


logger = setup_logger("interlog")


class EventScope:
    """Handle yielded by ``InteractionLog.capture``; set ``change_state`` before exit."""

    def __init__(self, entry: Optional[LogEntry]) -> None:
        self.entry = entry
        self.change_state = CHANGE_NONE


class InteractionLog:
    """Owns the whole capture, flush and retention pipeline for one host.

    The host calls ``pre_event``/``post_event`` around every interactive
    event, ``note_load`` for resource loads, and writes free text to the
    message stream. Rendering happens on the idle tick (or ``flush_now``).
    """

    def __init__(
        self,
        config: Optional[InteractionLogConfig] = None,
        messages=None,
        is_sensitive: Optional[Callable[[], bool]] = None,
        is_idle: Optional[Callable[[float], bool]] = None,
        is_focused: Optional[Callable[[], bool]] = None,
        timers=None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config if config is not None else default_config()
        errors = validate_config(self.config)
        if errors:
            raise ValueError("Invalid interaction log config: " + "; ".join(errors))

        self.cursor = MessageCursor(messages)
        self.buffer = PendingBuffer(self.cursor, is_sensitive=is_sensitive, mask_token=self.config.mask_token)
        self.engine = FlushEngine(self.buffer, self.cursor, tail_follow=self.config.tail_follow)
        self.retention = RetentionManager(self.config.retention_max, is_focused=is_focused)
        self.loads = LoadRecorder()

        self.timers = timers if timers is not None else AsyncioTimers()
        if clock is None:
            clock = getattr(self.timers, "clock", None) if timers is not None else None
        self._clock = clock or time.monotonic
        self.scheduler = Scheduler(
            self.timers,
            idle_threshold=self.config.idle_threshold,
            retention_interval=self.config.retention_interval,
            is_idle=is_idle or self.idle_for,
            on_idle=self.flush_now,
            on_retention=self.trim_now,
        )

        self._enabled = False
        self._capturing = False
        # (message mark, load count) taken when an ignored event started
        self._ignoring: Optional[Tuple[int, int]] = None
        self._last_activity = self._clock()

    # lifecycle

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        if self._enabled:
            return
        self.cursor.skip_to_end()
        self._last_activity = self._clock()
        try:
            self.scheduler.start()
        except Exception as exc:
            # e.g. no running event loop for the default timers
            self.scheduler.stop()
            logger.warning("Interaction log not enabled, timers unavailable: %s", exc)
            return
        self._enabled = True
        logger.info("Interaction log enabled")

    def disable(self) -> None:
        if not self._enabled:
            return
        self.scheduler.stop()
        dropped = len(self.buffer)
        self.buffer.clear()
        self.loads.take()
        self.engine.reset()
        self._capturing = False
        self._ignoring = None
        self._enabled = False
        logger.info("Interaction log disabled (%d pending entries dropped)", dropped)

    # capture hooks

    def _touch(self) -> None:
        self._last_activity = self._clock()

    def idle_for(self, threshold: float) -> bool:
        return self._clock() - self._last_activity >= threshold

    def _ignored(self, command, context_label) -> bool:
        return command in self.config.ignored_commands or context_label in self.config.ignored_contexts

    def pre_event(self, keys: Sequence[str], command: Optional[str], context_label: Optional[str]) -> Optional[LogEntry]:
        self._touch()
        self._capturing = False
        self._ignoring = None
        if not self._enabled or self.engine.rendering:
            return None
        try:
            if self._ignored(command, context_label):
                self._ignoring = (self.cursor.mark(), len(self.loads))
                return None
            entry = self.buffer.record(keys, command, context_label)
        except Exception as exc:
            logger.debug("Capture failed before event %r: %s", command, exc)
            return None
        self._capturing = True
        return entry

    def post_event(self, change_state: str = CHANGE_NONE) -> Optional[LogEntry]:
        self._touch()
        if not self._enabled or self.engine.rendering:
            return None
        if self._ignoring is not None:
            # drop what the ignored event printed and loaded
            mark, loads = self._ignoring
            self._ignoring = None
            self.cursor.discard_after(mark)
            self.loads.discard_after(loads)
            return None
        if not self._capturing:
            return None
        self._capturing = False
        try:
            return self.buffer.finalize_last(change_state, self.loads.take())
        except Exception as exc:
            logger.debug("Capture failed after event: %s", exc)
            return None

    def note_load(self, resource: str, parent: Optional[str] = None) -> None:
        if not self._enabled or self.engine.rendering:
            return
        self.loads.note(resource, parent)

    @contextmanager
    def capture(self, keys: Sequence[str], command: Optional[str], context_label: Optional[str]) -> Iterator[EventScope]:
        scope = EventScope(self.pre_event(keys, command, context_label))
        try:
            yield scope
        finally:
            self.post_event(scope.change_state)

    # output

    @property
    def output(self) -> Optional[OutputLog]:
        return self.engine.output

    def flush_now(self) -> bool:
        return self.engine.flush()

    def trim_now(self) -> int:
        removed = self.retention.trim(self.engine.output)
        if removed:
            self.engine.notify()
        return removed

    def add_listener(self, listener: Callable[[OutputLog], None]) -> None:
        self.engine.add_listener(listener)

    def remove_listener(self, listener: Callable[[OutputLog], None]) -> None:
        self.engine.remove_listener(listener)

    def open_view(
        self,
        name: str,
        probe: Optional[Callable[[int], Optional[int]]] = None,
        on_advance: Optional[Callable[[int], None]] = None,
    ) -> LogView:
        return self.engine.ensure_output().open_view(name, probe=probe, on_advance=on_advance)

    def close_view(self, name: str) -> None:
        if self.engine.output is not None:
            self.engine.output.close_view(name)

    def pending(self) -> List[LogEntry]:
        return self.buffer.peek()
