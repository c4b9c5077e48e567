from .reader import EVENT_TYPES, read_events

__all__ = ["EVENT_TYPES", "read_events"]
