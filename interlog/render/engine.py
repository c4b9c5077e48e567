from __future__ import annotations

from typing import Callable, List, Optional

from ..capture.buffer import PendingBuffer
from ..capture.cursor import MessageCursor
from ..types import TAG_COMMAND, TAG_CONTEXT, TAG_KEYS, TAG_LOAD, TAG_MESSAGE, LogEntry, LogLine
from ..utils import setup_logger
from .output import LogView, OutputLog


logger = setup_logger("interlog.render")

KEY_COLUMN_WIDTH = 14


def message_lines(text: str) -> List[str]:
    return [line.rstrip() for line in text.splitlines() if line.strip()]


def _message(text: str) -> LogLine:
    return LogLine(block_id=0, tag=TAG_MESSAGE, text=text)


def format_header(entry: LogEntry) -> LogLine:
    label = entry.key_description()
    if entry.repeat_count > 1:
        label = f"{entry.repeat_count}x {label}"
    context = f"[{entry.context_label}]" if entry.context_label else ""
    return LogLine(
        block_id=0,
        tag=TAG_COMMAND,
        text=entry.command,
        segments=[
            (f"{label:<{KEY_COLUMN_WIDTH}}", TAG_KEYS),
            (entry.command, TAG_COMMAND),
            (context, TAG_CONTEXT),
        ],
        change_state=entry.change_state,
    )


def format_post_text(entry: LogEntry) -> List[LogLine]:
    """Tag post-text lines, giving lines that belong to a load its depth.

    Loads are matched in order against the lines that mention them; loads
    that left no message get a synthetic line.
    """
    loads = entry.load_lines
    lines: List[LogLine] = []
    matched = 0
    for text in message_lines(entry.post_text):
        if matched < len(loads) and loads[matched].resource in text:
            lines.append(LogLine(block_id=0, tag=TAG_LOAD, text=text, depth=loads[matched].depth))
            matched += 1
        elif matched and loads[matched - 1].resource in text:
            lines.append(LogLine(block_id=0, tag=TAG_LOAD, text=text, depth=loads[matched - 1].depth))
        else:
            lines.append(_message(text))
    for load in loads[matched:]:
        lines.append(LogLine(block_id=0, tag=TAG_LOAD, text=f"Loading {load.resource}", depth=load.depth))
    return lines


def format_entry(entry: LogEntry) -> List[LogLine]:
    lines = [_message(text) for text in message_lines(entry.pre_text)]
    lines.append(format_header(entry))
    lines.extend(format_post_text(entry))
    return lines


class FlushEngine:
    """Drains pending entries into the output log.

    The most recently rendered entry is remembered so that an identical
    occurrence in the next flush replaces its block with a combined count.
    While ``rendering`` is set, nested flushes are ignored and capture hooks
    stay quiet; listeners run inside that window too.
    """

    def __init__(
        self,
        buffer: PendingBuffer,
        cursor: MessageCursor,
        output: Optional[OutputLog] = None,
        tail_follow: bool = True,
    ) -> None:
        self.buffer = buffer
        self.cursor = cursor
        self.output = output
        self.tail_follow = tail_follow
        self._listeners: List[Callable[[OutputLog], None]] = []
        self._rendering = False
        self._last_rendered: Optional[LogEntry] = None
        self._last_block_id: Optional[int] = None

    @property
    def rendering(self) -> bool:
        return self._rendering

    @property
    def last_rendered(self) -> Optional[LogEntry]:
        return self._last_rendered

    def ensure_output(self) -> OutputLog:
        if self.output is None:
            self.output = OutputLog()
        return self.output

    def reset(self) -> None:
        self._last_rendered = None
        self._last_block_id = None

    def add_listener(self, listener: Callable[[OutputLog], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[OutputLog], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def flush(self) -> bool:
        """Render everything pending. Returns True when the output changed."""
        if self._rendering:
            logger.debug("Ignoring flush requested while rendering")
            return False
        self._rendering = True
        try:
            changed = self._flush()
            if changed:
                self._notify()
            return changed
        finally:
            self._rendering = False

    def notify(self) -> None:
        """Tell listeners the output changed outside a flush (e.g. after a trim)."""
        if self._rendering or self.output is None:
            return
        self._rendering = True
        try:
            self._notify()
        finally:
            self._rendering = False

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.output)
            except Exception as exc:
                logger.debug("Output listener %r failed: %s", listener, exc)

    def _flush(self) -> bool:
        entries = self.buffer.drain_all()
        if not entries:
            lines = message_lines(self.cursor.drain())
            if not lines:
                return False
            output = self.ensure_output()
            following = self._following(output)
            output.append_block([_message(text) for text in lines])
            self.reset()
            output.advance_views(following)
            return True

        output = self.ensure_output()
        following = self._following(output)
        first = entries[0]
        previous = self._last_rendered
        if (
            previous is not None
            and self._last_block_id is not None
            and output.last_block_id() == self._last_block_id
            and first.continues(previous)
        ):
            first.repeat_count += previous.repeat_count
            output.erase_block(self._last_block_id)

        block_id = None
        for entry in entries:
            block_id = output.append_block(format_entry(entry))

        last = entries[-1]
        if last.post_text:
            self.reset()
        else:
            self._last_rendered = last
            self._last_block_id = block_id
        output.advance_views(following)
        return True

    def _following(self, output: OutputLog) -> List[LogView]:
        output.sync_views()
        if not self.tail_follow:
            return []
        return output.following_views()
