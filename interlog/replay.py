"""Feed a recorded host-event script through an ``InteractionLog``.

Each script record is a dict with a ``type``:

- ``message``: ``text`` is written to the message stream.
- ``event``: one interactive event (``keys``, ``command``, ``context``,
  optional ``messages`` printed while it runs, ``loads`` as
  ``[parent, child]`` pairs, ``change`` and ``sensitive``).
- ``load``: a load outside any event (``resource``, ``parent``).
- ``idle``: the host goes idle for ``seconds`` (timers fire).
- ``trim``: a manual retention pass.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from .aggregator import InteractionLog
from .capture import MessageStream
from .render import OutputLog
from .scheduler import ManualTimers
from .types import CHANGE_NONE, InteractionLogConfig
from .utils import setup_logger


logger = setup_logger("interlog.replay")

# time the host spends on one event; keeps the idle tick quiet mid-burst
EVENT_DURATION = 0.001


class ReplayHost:
    def __init__(self, config: Optional[InteractionLogConfig] = None) -> None:
        self.stream = MessageStream()
        self.timers = ManualTimers()
        self.sensitive = False
        self.log = InteractionLog(
            config=config,
            messages=self.stream,
            is_sensitive=lambda: self.sensitive,
            timers=self.timers,
        )

    def apply(self, record: Dict[str, Any]) -> None:
        kind = record.get("type")
        if kind == "message":
            self.stream.message(str(record.get("text", "")))
        elif kind == "event":
            self._event(record)
        elif kind == "load":
            self.log.note_load(record.get("resource"), record.get("parent"))
        elif kind == "idle":
            seconds = record.get("seconds")
            if seconds is None:
                seconds = self.log.config.idle_threshold * 2
            self.timers.advance(float(seconds))
        elif kind == "trim":
            self.log.trim_now()
        else:
            logger.debug("Ignoring replay record of type %r", kind)

    def _event(self, record: Dict[str, Any]) -> None:
        self.sensitive = bool(record.get("sensitive", False))
        try:
            with self.log.capture(record.get("keys") or (), record.get("command"), record.get("context")) as scope:
                for text in record.get("messages") or []:
                    self.stream.message(str(text))
                for pair in record.get("loads") or []:
                    if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                        logger.debug("Skipping malformed load %r", pair)
                        continue
                    self.log.note_load(pair[1], pair[0])
                scope.change_state = record.get("change", CHANGE_NONE)
        finally:
            self.sensitive = False
        self.timers.advance(EVENT_DURATION)


def replay_events(
    records: Iterable[Dict[str, Any]],
    config: Optional[InteractionLogConfig] = None,
) -> OutputLog:
    host = ReplayHost(config)
    host.log.enable()
    for record in records:
        host.apply(record)
    host.log.flush_now()
    output = host.log.engine.ensure_output()
    host.log.disable()
    return output
