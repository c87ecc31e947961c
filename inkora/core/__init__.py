"""Core editing logic."""

from inkora.core.config_manager import ConfigManager, get_config, get_settings
from inkora.core.geometry import (
    DisplayRect,
    Rect,
    ResizeHandle,
    hit_test_boxes,
    hit_test_handle,
    normalize_rect,
    point_in_box,
    resize_rect,
    to_logical_point,
)
from inkora.core.interaction import (
    DraggingState,
    DrawingState,
    EditorMode,
    IdleState,
    InteractionStateMachine,
    ResizingState,
)

__all__ = [
    # Configuration
    "ConfigManager",
    "get_config",
    "get_settings",
    # Geometry
    "DisplayRect",
    "Rect",
    "ResizeHandle",
    "hit_test_boxes",
    "hit_test_handle",
    "normalize_rect",
    "point_in_box",
    "resize_rect",
    "to_logical_point",
    # Interaction
    "DraggingState",
    "DrawingState",
    "EditorMode",
    "IdleState",
    "InteractionStateMachine",
    "ResizingState",
]
