"""Message streams and the cursor that consumes them.

A message stream is any append-only text source exposing ``size()`` and
``read(start, end)``. The cursor remembers how far it has read and hands
out only what was appended since the previous ``drain()``.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import List

from ..errors import StreamUnavailable
from ..utils import setup_logger


logger = setup_logger("interlog.capture")


class MessageStream:
    """In-memory append-only message stream."""

    def __init__(self) -> None:
        self._chunks: List[str] = []
        self._size = 0
        self._lock = threading.Lock()

    def write(self, text: str) -> None:
        if not text:
            return
        with self._lock:
            self._chunks.append(text)
            self._size += len(text)

    def message(self, text: str) -> None:
        """Append ``text`` as one message line."""
        self.write(text if text.endswith("\n") else text + "\n")

    def size(self) -> int:
        return self._size

    def read(self, start: int, end: int) -> str:
        with self._lock:
            if len(self._chunks) > 1:
                self._chunks = ["".join(self._chunks)]
            data = self._chunks[0] if self._chunks else ""
        return data[start:end]


def _incomplete_utf8_tail(data: bytes) -> int:
    """Number of trailing bytes that start a UTF-8 sequence not yet fully written."""
    for back in range(1, min(4, len(data)) + 1):
        byte = data[-back]
        if byte & 0xC0 == 0x80:
            continue
        if byte >= 0xF0:
            needed = 4
        elif byte >= 0xE0:
            needed = 3
        elif byte >= 0xC0:
            needed = 2
        else:
            needed = 1
        return back if back < needed else 0
    return 0


class FileMessageStream:
    """Message stream backed by a log file that another process appends to.

    ``size()`` stops short of a multibyte character whose bytes are still
    arriving, so a drain never splits one.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def size(self) -> int:
        try:
            with open(self.path, "rb") as handle:
                handle.seek(0, os.SEEK_END)
                total = handle.tell()
                if not total:
                    return 0
                handle.seek(max(0, total - 4))
                tail = handle.read(4)
        except FileNotFoundError:
            return 0
        except OSError as exc:
            raise StreamUnavailable(str(exc)) from exc
        return total - _incomplete_utf8_tail(tail)

    def read(self, start: int, end: int) -> str:
        try:
            with open(self.path, "rb") as handle:
                handle.seek(start)
                data = handle.read(end - start)
        except OSError as exc:
            raise StreamUnavailable(str(exc)) from exc
        return data.decode("utf-8", errors="replace")


class MessageStreamHandler(logging.Handler):
    """Route log records into a message stream as message lines."""

    def __init__(self, stream: MessageStream, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.stream = stream
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.stream.message(self.format(record))
        except Exception:
            self.handleError(record)


class MessageCursor:
    def __init__(self, stream=None) -> None:
        self.stream = stream
        self.position = 0
        self._held = ""

    def drain(self) -> str:
        """Return everything appended since the last call and advance past it."""
        held, self._held = self._held, ""
        return held + self._read_new()

    def _read_new(self) -> str:
        if self.stream is None:
            return ""
        try:
            end = self.stream.size()
            if end < self.position:
                # stream was truncated or rotated
                self.position = 0
            if end == self.position:
                return ""
            text = self.stream.read(self.position, end)
        except Exception as exc:
            logger.debug("Message stream unreadable: %s", exc)
            return ""
        self.position = end
        return text

    def mark(self) -> int:
        """Current end of the stream, for a later ``discard_after``."""
        if self.stream is None:
            return self.position
        try:
            return self.stream.size()
        except Exception as exc:
            logger.debug("Message stream unreadable: %s", exc)
            return self.position

    def discard_after(self, mark: int) -> None:
        """Skip text appended after ``mark``; earlier unread text is kept for the next drain."""
        if self.stream is None:
            return
        try:
            end = self.stream.size()
            if self.position <= mark <= end and mark > self.position:
                self._held += self.stream.read(self.position, mark)
            self.position = end
        except Exception as exc:
            logger.debug("Message stream unreadable: %s", exc)

    def skip_to_end(self) -> None:
        self._held = ""
        if self.stream is None:
            return
        try:
            self.position = self.stream.size()
        except Exception as exc:
            logger.debug("Message stream unreadable: %s", exc)
