"""UI widgets."""

from inkora.ui.widgets.editor_canvas import EditorCanvas

__all__ = ["EditorCanvas"]
