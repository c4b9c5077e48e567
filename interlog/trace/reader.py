from __future__ import annotations

from typing import Any, Dict, Iterator

from ..utils import iter_jsonl, setup_logger


logger = setup_logger("interlog.trace")

EVENT_TYPES = ("message", "event", "load", "idle", "trim")


def read_events(path: str) -> Iterator[Dict[str, Any]]:
    """Yield recorded host events from a JSONL file, skipping unreadable lines."""
    try:
        for lineno, event in iter_jsonl(path):
            if event is None:
                logger.debug("Skipping malformed line %d in %s", lineno, path)
                continue
            if not isinstance(event, dict) or event.get("type") not in EVENT_TYPES:
                logger.debug("Skipping unknown event on line %d in %s", lineno, path)
                continue
            yield event
    except FileNotFoundError:
        logger.warning("Replay script %s not found", path)
        return
