from .buffer import PendingBuffer
from .cursor import FileMessageStream, MessageCursor, MessageStream, MessageStreamHandler
from .loads import LoadRecorder, build_load_lines, compute_load_depths

__all__ = [
    "PendingBuffer",
    "FileMessageStream",
    "MessageCursor",
    "MessageStream",
    "MessageStreamHandler",
    "LoadRecorder",
    "build_load_lines",
    "compute_load_depths",
]
