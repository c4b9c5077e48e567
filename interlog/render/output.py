"""The rendered interaction log and the views that read it.

The log is an ordered list of tagged ``LogLine`` objects. Lines sharing a
``block_id`` were written together for one entry (or one standalone
message) and only the most recent block can be replaced.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from ..types import LogLine


class LogView:
    """A reader of the output log with its own cursor position.

    ``probe`` reports the real position of a presentation widget (or raises
    ``ViewUnavailable`` once the widget is gone). ``on_advance`` is told the
    new end-of-log when the view follows the tail.
    """

    def __init__(
        self,
        name: str,
        probe: Optional[Callable[[int], Optional[int]]] = None,
        on_advance: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.name = name
        self.probe = probe
        self.on_advance = on_advance
        self.position = 0

    def at_end(self, total: int) -> bool:
        return self.position >= total

    def sync(self, total: int) -> None:
        if self.probe is None:
            return
        position = self.probe(total)
        if position is not None:
            self.position = max(0, min(int(position), total))

    def advance(self, total: int) -> None:
        self.position = total
        if self.on_advance is not None:
            self.on_advance(total)


class OutputLog:
    def __init__(self) -> None:
        self._lines: List[LogLine] = []
        self._next_block_id = 1
        self._views: Dict[str, LogView] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def lines(self, hidden_tags: Sequence[str] = ()) -> List[LogLine]:
        return [line for line in self._lines if line.tag not in hidden_tags]

    def text(self, hidden_tags: Sequence[str] = ()) -> str:
        return "\n".join(line.plain(hidden_tags) for line in self.lines(hidden_tags))

    def blocks(self) -> List[List[LogLine]]:
        grouped: List[List[LogLine]] = []
        for line in self._lines:
            if grouped and grouped[-1][0].block_id == line.block_id:
                grouped[-1].append(line)
            else:
                grouped.append([line])
        return grouped

    def last_block_id(self) -> Optional[int]:
        return self._lines[-1].block_id if self._lines else None

    def append_block(self, lines: Sequence[LogLine]) -> int:
        block_id = self._next_block_id
        self._next_block_id += 1
        for line in lines:
            line.block_id = block_id
            self._lines.append(line)
        return block_id

    def erase_block(self, block_id: int) -> int:
        """Remove the trailing block ``block_id``; other blocks are immutable."""
        removed = 0
        while self._lines and self._lines[-1].block_id == block_id:
            self._lines.pop()
            removed += 1
        if removed:
            total = len(self._lines)
            for view in self._views.values():
                view.position = min(view.position, total)
        return removed

    def trim(self, max_lines: int) -> int:
        excess = len(self._lines) - max_lines
        if excess <= 0:
            return 0
        del self._lines[:excess]
        for view in self._views.values():
            view.position = max(0, view.position - excess)
        return excess

    def clear(self) -> None:
        self._lines = []
        for view in self._views.values():
            view.position = 0

    # views

    def open_view(
        self,
        name: str,
        probe: Optional[Callable[[int], Optional[int]]] = None,
        on_advance: Optional[Callable[[int], None]] = None,
        at_end: bool = True,
    ) -> LogView:
        view = LogView(name, probe=probe, on_advance=on_advance)
        if at_end:
            view.position = len(self._lines)
        self._views[name] = view
        return view

    def close_view(self, name: str) -> None:
        self._views.pop(name, None)

    def view(self, name: str) -> Optional[LogView]:
        return self._views.get(name)

    def views(self) -> List[LogView]:
        return list(self._views.values())

    def sync_views(self) -> None:
        total = len(self._lines)
        for view in self.views():
            try:
                view.sync(total)
            except Exception:
                self.close_view(view.name)

    def following_views(self) -> List[LogView]:
        total = len(self._lines)
        return [view for view in self._views.values() if view.at_end(total)]

    def advance_views(self, views: Sequence[LogView]) -> None:
        total = len(self._lines)
        for view in views:
            if self._views.get(view.name) is not view:
                continue
            try:
                view.advance(total)
            except Exception:
                self.close_view(view.name)
