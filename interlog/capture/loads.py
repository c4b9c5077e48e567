from __future__ import annotations

from typing import List, Optional, Sequence

from ..types import LoadEvent, LoadLine


def compute_load_depths(events: Sequence[LoadEvent]) -> List[int]:
    """Derive a nesting depth for each ``(parent, child)`` load, in order.

    The active chain holds the innermost open load first. A top-level load
    restarts the chain. A load whose parent is on the chain is nested under
    that ancestor. Otherwise the parent is put back right after the child,
    in place of the old head of the chain.
    """
    chain: List[str] = []
    depths: List[int] = []
    for parent, child in events:
        if parent is None:
            chain = [child]
        elif parent in chain:
            chain = [child] + chain[chain.index(parent):]
        else:
            chain = [child, parent] + chain[1:]
        depths.append(len(chain) - 1)
    return depths


def build_load_lines(events: Sequence[LoadEvent]) -> List[LoadLine]:
    depths = compute_load_depths(events)
    return [LoadLine(resource=child, depth=depth) for (_parent, child), depth in zip(events, depths)]


class LoadRecorder:
    """Collects load notifications raised while one event executes."""

    def __init__(self) -> None:
        self._events: List[LoadEvent] = []

    def note(self, child: str, parent: Optional[str] = None) -> None:
        if not child:
            return
        self._events.append((parent or None, str(child)))

    def take(self) -> List[LoadEvent]:
        events, self._events = self._events, []
        return events

    def discard_after(self, count: int) -> None:
        del self._events[count:]

    def __len__(self) -> int:
        return len(self._events)
