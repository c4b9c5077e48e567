from .engine import FlushEngine, format_entry, format_header, format_post_text, message_lines
from .output import LogView, OutputLog

__all__ = [
    "FlushEngine",
    "format_entry",
    "format_header",
    "format_post_text",
    "message_lines",
    "LogView",
    "OutputLog",
]
