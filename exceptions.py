"""
OptiSaw - exception hierarchy for the cutting optimizer.
"""

from typing import List, Optional


class OptimizationError(Exception):
    """Base exception for all optimizer errors."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


class InvalidConfigError(OptimizationError):
    """Board/kerf/trim settings are out of range or leave no usable area."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, code="INVALID_CONFIG", details=details)


class InvalidPanelError(OptimizationError):
    """A panel row has an invalid size, quantity or duplicate id."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, code="INVALID_PANEL", details=details)


class UnplaceablePanelError(OptimizationError):
    """A panel is larger than the usable board in every allowed orientation."""

    def __init__(self, panel_id: str, width: int, height: int,
                 usable_width: int, usable_height: int):
        super().__init__(
            f"Panel {panel_id} ({width}x{height}) does not fit the usable board "
            f"({usable_width}x{usable_height})",
            code="UNPLACEABLE_PANEL",
            details={
                "panel_id": panel_id,
                "width": width,
                "height": height,
                "usable_width": usable_width,
                "usable_height": usable_height,
            }
        )
        self.panel_id = panel_id


class InternalDeadlockError(OptimizationError):
    """The board allocator stopped making progress. Indicates a packer bug."""

    def __init__(self, board_index: int, pending_ids: List[str],
                 usable_width: int, usable_height: int, reason: Optional[str] = None):
        super().__init__(
            reason or f"Board {board_index} placed no panels while {len(pending_ids)} remain",
            code="INTERNAL_DEADLOCK",
            details={
                "board_index": board_index,
                "pending_ids": list(pending_ids),
                "usable_width": usable_width,
                "usable_height": usable_height,
            }
        )
        self.board_index = board_index
        self.pending_ids = list(pending_ids)
