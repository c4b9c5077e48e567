from __future__ import annotations


class InteractionLogError(RuntimeError):
    """Base class for errors raised inside the interaction log."""


class StreamUnavailable(InteractionLogError):
    """The host message stream cannot be read right now."""


class ViewUnavailable(InteractionLogError):
    """A view referenced by the output log no longer exists."""


__all__ = ["InteractionLogError", "StreamUnavailable", "ViewUnavailable"]
