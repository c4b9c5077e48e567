from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple


# change states
CHANGE_NONE = "none"
CHANGE_MUTATED = "mutated"
CHANGE_ECHOED = "echoed"
CHANGE_STATES = (CHANGE_NONE, CHANGE_MUTATED, CHANGE_ECHOED)

# sentinels
NO_COMMAND = "<unbound>"
MASK_TOKEN = "<masked>"

# line and segment tags
TAG_COMMAND = "command"
TAG_KEYS = "keys"
TAG_CONTEXT = "context"
TAG_MESSAGE = "message"
TAG_LOAD = "load"
LINE_TAGS = (TAG_COMMAND, TAG_KEYS, TAG_CONTEXT, TAG_MESSAGE, TAG_LOAD)

LoadEvent = Tuple[Optional[str], str]


@dataclass
class LoadLine:
    resource: str
    depth: int


@dataclass
class LogEntry:
    """One captured interaction, mutable until it is flushed."""

    keys: Tuple[str, ...]
    command: str
    context_label: str
    pre_text: str = ""
    post_text: str = ""
    change_state: str = CHANGE_NONE
    load_events: List[LoadEvent] = field(default_factory=list)
    load_lines: List[LoadLine] = field(default_factory=list)
    repeat_count: int = 1

    def same_occurrence(self, keys: Sequence[str], command: str, context_label: str) -> bool:
        return (
            tuple(keys) == self.keys
            and command == self.command
            and context_label == self.context_label
        )

    def has_loads(self) -> bool:
        return bool(self.load_events or self.load_lines)

    def accepts(self, keys: Sequence[str], command: str, context_label: str, pre_text: str) -> bool:
        """Whether a new occurrence can be folded into this entry."""
        return (
            self.same_occurrence(keys, command, context_label)
            and not pre_text
            and not self.post_text
            and not self.has_loads()
        )

    def continues(self, previous: "LogEntry") -> bool:
        """Whether this entry repeats ``previous`` across a flush boundary."""
        if not self.same_occurrence(previous.keys, previous.command, previous.context_label):
            return False
        if self.pre_text or self.post_text or previous.pre_text or previous.post_text:
            return False
        if self.has_loads() or previous.has_loads():
            return False
        return self.change_state == previous.change_state

    def key_description(self) -> str:
        return " ".join(self.keys)


@dataclass
class LogLine:
    block_id: int
    tag: str
    text: str
    depth: int = 0
    segments: List[Tuple[str, str]] = field(default_factory=list)
    change_state: Optional[str] = None

    def plain(self, hidden_tags: Sequence[str] = ()) -> str:
        if self.segments:
            parts = [text for text, tag in self.segments if tag not in hidden_tags]
            return "  ".join(part for part in parts if part).rstrip()
        indent = "  " * (self.depth + 1) if self.tag in (TAG_MESSAGE, TAG_LOAD) else ""
        return indent + self.text


@dataclass
class InteractionLogConfig:
    idle_threshold: float = 0.1
    retention_max: Optional[int] = 1000  # None means unlimited
    retention_interval: float = 30.0
    tail_follow: bool = True
    initially_visible: bool = False
    hidden_tags: List[str] = field(default_factory=list)
    ignored_commands: List[str] = field(default_factory=list)
    ignored_contexts: List[str] = field(default_factory=list)
    mask_token: str = MASK_TOKEN
