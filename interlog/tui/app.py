from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Optional, Tuple

try:
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal, Vertical
    from textual.widgets import Footer, Header, Input, Static
except Exception as exc:  # pragma: no cover - handled by the CLI
    raise RuntimeError("textual and rich are required for the TUI") from exc

from ..aggregator import InteractionLog
from ..capture import MessageStream, MessageStreamHandler
from ..types import CHANGE_ECHOED, CHANGE_MUTATED, CHANGE_NONE, TAG_CONTEXT, TAG_LOAD, TAG_MESSAGE, InteractionLogConfig
from .widgets import InteractionLogView


DEMO_PLUGINS = (
    (None, "plugins"),
    ("plugins", "plugins.colors"),
    ("plugins.colors", "plugins.colors.palette"),
    ("plugins", "plugins.keys"),
)


class TimerCall:
    def __init__(self, timer) -> None:
        self.timer = timer

    def cancel(self) -> None:
        self.timer.stop()


class TextualTimers:
    """Timer primitives backed by ``App.set_interval``."""

    def __init__(self, app: App) -> None:
        self.app = app

    def every(self, interval: float, callback: Callable[[], None]) -> TimerCall:
        return TimerCall(self.app.set_interval(interval, callback))


class KeyEventTracker:
    """Pairs the pre and post hooks of key events whose post hook is deferred.

    The post hook normally runs after the next refresh. A key arriving
    before that finishes the previous event first, so each post hook
    applies to its own entry.
    """

    def __init__(self, log: InteractionLog, snapshot: Callable[[], Tuple[Any, ...]]) -> None:
        self.log = log
        self.snapshot = snapshot
        self.echoed = False
        self._tokens = itertools.count(1)
        self._pending: Optional[Tuple[int, Tuple[Any, ...]]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def begin(self, keys: Tuple[str, ...], command: Optional[str], context_label: str) -> int:
        self.finish()
        self.echoed = False
        token = next(self._tokens)
        self._pending = (token, self.snapshot())
        self.log.pre_event(keys, command, context_label)
        return token

    def finish(self, token: Optional[int] = None) -> bool:
        """Run the post hook for the pending event (only if it is ``token``, when given)."""
        if self._pending is None:
            return False
        pending_token, before = self._pending
        if token is not None and token != pending_token:
            return False
        self._pending = None
        if self.echoed:
            change_state = CHANGE_ECHOED
        elif self.snapshot() != before:
            change_state = CHANGE_MUTATED
        else:
            change_state = CHANGE_NONE
        self.log.post_event(change_state)
        return True


def resolve_binding(app: App, key: str) -> Optional[str]:
    """Action bound to ``key`` in the current focus chain, if any."""
    try:
        bindings = app.screen.active_bindings
    except Exception:
        return None
    active = bindings.get(key)
    if active is None:
        return None
    binding = getattr(active, "binding", None)
    if binding is None and isinstance(active, tuple) and len(active) > 1:
        binding = active[1]
    return getattr(binding, "action", None)


class InteractionLogDemo(App):
    CSS = """
    Screen { layout: vertical; }
    #main { height: 1fr; }
    #editor { width: 40%; padding: 1; }
    #interaction-log { width: 60%; }
    #help { color: $text-muted; margin-top: 1; }
    """

    BINDINGS = [
        ("f2", "toggle_messages", "Messages"),
        ("f3", "toggle_context", "Context"),
        ("f4", "toggle_loads", "Loads"),
        ("f5", "trim", "Trim"),
        ("f6", "flush", "Flush"),
        ("f7", "load_plugins", "Load plugins"),
        ("f8", "toggle_view", "Log view"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, config: Optional[InteractionLogConfig] = None) -> None:
        super().__init__()
        self.message_stream = MessageStream()
        self.interaction_log = InteractionLog(
            config=config,
            messages=self.message_stream,
            is_sensitive=self._secret_focused,
            is_focused=lambda: isinstance(self.focused, InteractionLogView),
            timers=TextualTimers(self),
        )
        self.demo_logger = logging.getLogger("interlog.demo")
        self.demo_logger.setLevel(logging.INFO)
        self.demo_logger.propagate = False
        self._handler = MessageStreamHandler(self.message_stream)
        self.key_events = KeyEventTracker(self.interaction_log, self._snapshot)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main"):
            with Vertical(id="editor"):
                yield Input(placeholder="Type something...", id="notes")
                yield Input(placeholder="Password (masked in the log)", password=True, id="secret")
                yield Static(
                    "F2 messages | F3 context | F4 loads | F5 trim | F6 flush | F7 load plugins | F8 log view",
                    id="help",
                )
            view = InteractionLogView(self.interaction_log)
            view.display = self.interaction_log.config.initially_visible
            yield view
        yield Footer()

    def on_mount(self) -> None:
        self.demo_logger.addHandler(self._handler)
        self.interaction_log.enable()

    def on_unmount(self) -> None:
        self.key_events.finish()
        self.interaction_log.disable()
        self.demo_logger.removeHandler(self._handler)

    # capture

    def _secret_focused(self) -> bool:
        return isinstance(self.focused, Input) and bool(self.focused.password)

    def _context_label(self) -> str:
        focused = self.focused
        if focused is None:
            return "screen"
        return focused.id or type(focused).__name__

    def _snapshot(self) -> Tuple[Any, ...]:
        return tuple(widget.value for widget in self.query(Input))

    def _command_for(self, event: events.Key) -> Optional[str]:
        action = resolve_binding(self, event.key)
        if action:
            return action
        if event.is_printable and isinstance(self.focused, Input):
            return "insert_text"
        return None

    async def on_event(self, event: events.Event) -> None:
        if not isinstance(event, events.Key) or not self.interaction_log.enabled:
            await super().on_event(event)
            return
        token = self.key_events.begin((event.key,), self._command_for(event), self._context_label())
        await super().on_event(event)
        self.call_after_refresh(self.key_events.finish, token)

    def notify(self, message, **kwargs) -> None:
        self.message_stream.message(str(message))
        self.key_events.echoed = True
        super().notify(message, **kwargs)

    # actions

    def _log_view(self) -> InteractionLogView:
        return self.query_one(InteractionLogView)

    def _toggle(self, tag: str, label: str) -> None:
        visible = self._log_view().toggle_tag(tag)
        self.notify(f"{label} {'shown' if visible else 'hidden'}")

    def action_toggle_messages(self) -> None:
        self._toggle(TAG_MESSAGE, "Messages")

    def action_toggle_context(self) -> None:
        self._toggle(TAG_CONTEXT, "Context labels")

    def action_toggle_loads(self) -> None:
        self._toggle(TAG_LOAD, "Load lines")

    def action_toggle_view(self) -> None:
        view = self._log_view()
        view.display = not view.display

    def action_trim(self) -> None:
        removed = self.interaction_log.trim_now()
        self.demo_logger.info("Trimmed %d lines", removed)

    def action_flush(self) -> None:
        self.interaction_log.flush_now()

    def action_load_plugins(self) -> None:
        for parent, child in DEMO_PLUGINS:
            self.interaction_log.note_load(child, parent)
            self.message_stream.message(f"Loading {child}...done")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.password:
            self.demo_logger.info("Secret accepted")
        else:
            self.demo_logger.info("Submitted %d characters", len(event.value))
        event.input.value = ""


__all__ = ["InteractionLogDemo", "KeyEventTracker", "TextualTimers", "resolve_binding"]
