from .aggregator import EventScope, InteractionLog
from .capture import FileMessageStream, MessageCursor, MessageStream, MessageStreamHandler, compute_load_depths
from .config import config_from_env, config_to_dict, default_config, load_config, validate_config
from .render import LogView, OutputLog
from .scheduler import AsyncioTimers, ManualTimers
from .types import (
    CHANGE_ECHOED,
    CHANGE_MUTATED,
    CHANGE_NONE,
    InteractionLogConfig,
    LogEntry,
    LogLine,
)

__all__ = [
    "EventScope",
    "InteractionLog",
    "FileMessageStream",
    "MessageCursor",
    "MessageStream",
    "MessageStreamHandler",
    "compute_load_depths",
    "config_from_env",
    "config_to_dict",
    "default_config",
    "load_config",
    "validate_config",
    "LogView",
    "OutputLog",
    "AsyncioTimers",
    "ManualTimers",
    "CHANGE_ECHOED",
    "CHANGE_MUTATED",
    "CHANGE_NONE",
    "InteractionLogConfig",
    "LogEntry",
    "LogLine",
]
