from __future__ import annotations

from typing import Callable, Optional

from .render.output import OutputLog
from .utils import setup_logger


logger = setup_logger("interlog.retention")


class RetentionManager:
    """Keeps the output log within ``max_lines`` by dropping its oldest lines.

    Trimming is skipped while the log view has focus so an in-progress read
    is not disturbed.
    """

    def __init__(
        self,
        max_lines: Optional[int],
        is_focused: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.max_lines = max_lines
        self.is_focused = is_focused

    def _focused(self) -> bool:
        if self.is_focused is None:
            return False
        try:
            return bool(self.is_focused())
        except Exception as exc:
            logger.debug("Focus predicate failed: %s", exc)
            return True

    def trim(self, output: Optional[OutputLog]) -> int:
        """Run one retention pass. Returns the number of lines removed."""
        if output is None or self.max_lines is None:
            return 0
        if self._focused():
            return 0
        removed = output.trim(self.max_lines)
        if removed:
            logger.debug("Trimmed %d lines (max %d)", removed, self.max_lines)
        return removed
