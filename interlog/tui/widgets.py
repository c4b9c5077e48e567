from __future__ import annotations

from typing import Iterable, List, Optional

try:
    from rich.text import Text
    from textual.widgets import RichLog
except Exception as exc:  # pragma: no cover - handled by the CLI
    raise RuntimeError("textual and rich are required for the TUI") from exc

from ..aggregator import InteractionLog
from ..errors import ViewUnavailable
from ..render import OutputLog
from ..types import (
    CHANGE_ECHOED,
    CHANGE_MUTATED,
    TAG_COMMAND,
    TAG_CONTEXT,
    TAG_KEYS,
    TAG_LOAD,
    TAG_MESSAGE,
    LogLine,
)


TAG_STYLES = {
    TAG_KEYS: "bold",
    TAG_COMMAND: "cyan",
    TAG_CONTEXT: "dim",
    TAG_MESSAGE: "italic grey62",
    TAG_LOAD: "green",
}

CHANGE_STYLES = {
    CHANGE_MUTATED: "bold magenta",
    CHANGE_ECHOED: "yellow",
}


def style_line(line: LogLine, hidden_tags: Iterable[str] = ()) -> Text:
    hidden = set(hidden_tags)
    if not line.segments:
        return Text(line.plain(), style=TAG_STYLES.get(line.tag, ""))
    text = Text()
    for segment, tag in line.segments:
        if tag in hidden or not segment:
            continue
        if text.plain:
            text.append("  ")
        style = TAG_STYLES.get(tag, "")
        if tag == TAG_COMMAND:
            style = CHANGE_STYLES.get(line.change_state, style)
        text.append(segment, style=style)
    text.rstrip()
    return text


class InteractionLogView(RichLog):
    """Live view of an ``InteractionLog`` that follows the tail while at the bottom."""

    DEFAULT_CSS = """
    InteractionLogView { background: $panel; }
    """

    def __init__(self, log: InteractionLog, hidden_tags: Optional[Iterable[str]] = None, **kwargs) -> None:
        kwargs.setdefault("id", "interaction-log")
        super().__init__(auto_scroll=False, wrap=False, highlight=False, markup=False, **kwargs)
        self.log_source = log
        self.hidden_tags: List[str] = list(hidden_tags if hidden_tags is not None else log.config.hidden_tags)
        self._follow = True

    @property
    def view_name(self) -> str:
        return self.id or "interaction-log"

    def on_mount(self) -> None:
        self.log_source.open_view(self.view_name, probe=self._probe, on_advance=self._advance)
        self.log_source.add_listener(self._on_output)
        self.rerender()

    def on_unmount(self) -> None:
        self.log_source.close_view(self.view_name)
        self.log_source.remove_listener(self._on_output)

    def toggle_tag(self, tag: str) -> bool:
        """Flip visibility of ``tag``. Returns True when it is now visible."""
        if tag in self.hidden_tags:
            self.hidden_tags.remove(tag)
            visible = True
        else:
            self.hidden_tags.append(tag)
            visible = False
        self.rerender()
        return visible

    def _probe(self, total: int) -> Optional[int]:
        # scroll rows do not map to log lines once tags are hidden; only "at end" is reported exactly
        if not self.is_attached:
            raise ViewUnavailable(self.view_name)
        if self.is_vertical_scroll_end:
            return total
        self._follow = False
        return max(0, total - 1)

    def _advance(self, total: int) -> None:
        if not self.is_attached:
            raise ViewUnavailable(self.view_name)
        self._follow = True

    def _on_output(self, output: OutputLog) -> None:
        self.rerender(output)

    def rerender(self, output: Optional[OutputLog] = None) -> None:
        output = output if output is not None else self.log_source.output
        saved_y = self.scroll_y
        self.clear()
        if output is None:
            return
        for line in output.lines(self.hidden_tags):
            self.write(style_line(line, self.hidden_tags), scroll_end=False)
        if self._follow:
            self.scroll_end(animate=False)
        else:
            self.scroll_to(y=saved_y, animate=False)
