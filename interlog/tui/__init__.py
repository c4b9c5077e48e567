from .app import InteractionLogDemo, KeyEventTracker, TextualTimers
from .widgets import InteractionLogView, style_line

__all__ = ["InteractionLogDemo", "KeyEventTracker", "TextualTimers", "InteractionLogView", "style_line"]
