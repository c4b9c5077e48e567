from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from ..types import CHANGE_NONE, CHANGE_STATES, MASK_TOKEN, NO_COMMAND, LoadEvent, LogEntry
from ..utils import setup_logger
from .cursor import MessageCursor
from .loads import build_load_lines


logger = setup_logger("interlog.capture")


def _normalize_keys(keys) -> tuple:
    if keys is None:
        return ()
    if isinstance(keys, str):
        return (keys,)
    return tuple(str(key) for key in keys)


class PendingBuffer:
    """Entries captured since the last flush, oldest first.

    Consecutive identical occurrences are folded into one entry by bumping
    its ``repeat_count``. Text and loads are never concatenated.
    """

    def __init__(
        self,
        cursor: MessageCursor,
        is_sensitive: Optional[Callable[[], bool]] = None,
        mask_token: str = MASK_TOKEN,
    ) -> None:
        self.cursor = cursor
        self.is_sensitive = is_sensitive
        self.mask_token = mask_token
        self._entries: List[LogEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self) -> List[LogEntry]:
        return list(self._entries)

    def _sensitive(self) -> bool:
        if self.is_sensitive is None:
            return False
        try:
            return bool(self.is_sensitive())
        except Exception as exc:
            # mask when in doubt
            logger.debug("Sensitive-input predicate failed: %s", exc)
            return True

    def record(self, keys: Sequence[str], command: Optional[str], context_label: Optional[str]) -> LogEntry:
        pre_text = self.cursor.drain()
        if self._sensitive():
            keys = (self.mask_token,)
            command = self.mask_token
        else:
            keys = _normalize_keys(keys)
            command = str(command) if command else NO_COMMAND
        context_label = str(context_label) if context_label is not None else ""

        if self._entries:
            tail = self._entries[-1]
            if tail.accepts(keys, command, context_label, pre_text):
                tail.repeat_count += 1
                return tail

        entry = LogEntry(keys=tuple(keys), command=command, context_label=context_label, pre_text=pre_text)
        self._entries.append(entry)
        return entry

    def finalize_last(self, change_state: str = CHANGE_NONE, load_events: Sequence[LoadEvent] = ()) -> Optional[LogEntry]:
        if not self._entries:
            # nothing to attach to; pending text stays in the stream
            return None
        tail = self._entries[-1]
        tail.post_text += self.cursor.drain()
        tail.change_state = change_state if change_state in CHANGE_STATES else CHANGE_NONE
        if load_events:
            tail.load_events.extend(load_events)
            tail.load_lines.extend(build_load_lines(tail.load_events))
            tail.load_events = []
        return tail

    def drain_all(self) -> List[LogEntry]:
        entries, self._entries = self._entries, []
        return entries

    def clear(self) -> None:
        self._entries = []
