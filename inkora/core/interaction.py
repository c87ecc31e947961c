"""Pointer interaction state machine.

Turns pointer-down / move / up events (mouse and touch alike, in client
coordinates) into select, draw, drag and resize gestures on a template.

States:
    Idle -> Drawing (text/color mode) -> Idle, creating a box on release
    Idle -> Dragging (select mode, inside the selected box) -> Idle
    Idle -> Resizing (select mode, on a handle of the selected box) -> Idle
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from inkora.core.geometry import (
    DisplayRect,
    Point,
    Rect,
    ResizeHandle,
    hit_test_boxes,
    hit_test_handle,
    normalize_rect,
    point_in_box,
    resize_rect,
    to_logical_point,
)
from inkora.models.template import AnyBox, BoxKind, ColorBox, Template, TextBox
from inkora.utils.constants import HANDLE_TOLERANCE, MIN_BOX_SIZE
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)


class EditorMode(str, Enum):
    """What a pointer-down starts."""

    SELECT = "select"
    TEXT = "text"
    COLOR = "color"


# ===================
# States
# ===================


@dataclass(frozen=True)
class IdleState:
    """No gesture in progress."""


@dataclass(frozen=True)
class DrawingState:
    kind: BoxKind
    start: Point
    current: Point


@dataclass(frozen=True)
class DraggingState:
    box_id: str
    grab_offset: Point  # pointer minus box origin at pointer-down


@dataclass(frozen=True)
class ResizingState:
    box_id: str
    handle: ResizeHandle
    anchor: Point  # pointer position at the last applied update


InteractionState = Union[IdleState, DrawingState, DraggingState, ResizingState]

_MODE_KIND = {EditorMode.TEXT: BoxKind.TEXT, EditorMode.COLOR: BoxKind.COLOR}


class InteractionStateMachine:
    """Direct-manipulation state machine for one template.

    The machine never renders; it mutates the template and exposes the
    selection and the live drawing rectangle for the renderer overlay.

    Example:
        >>> machine = InteractionStateMachine(template)
        >>> machine.set_mode(EditorMode.TEXT)
        >>> machine.pointer_down(10, 10)
        >>> machine.pointer_move(200, 60)
        >>> machine.pointer_up()
        >>> machine.selected_box_id  # the new text box
        'text_...'
    """

    def __init__(
        self,
        template: Template,
        mode: EditorMode = EditorMode.SELECT,
        tolerance: float = HANDLE_TOLERANCE,
        min_size: float = MIN_BOX_SIZE,
        viewport: Optional[DisplayRect] = None,
        on_template_changed: Optional[Callable[[], None]] = None,
        on_selection_changed: Optional[Callable[[Optional[str]], None]] = None,
    ) -> None:
        """Initialize the state machine.

        Args:
            template: Template to edit (mutated in place)
            mode: Initial mode
            tolerance: Resize handle hit tolerance in image pixels
            min_size: Box size floor per axis
            viewport: Displayed image rectangle in client coordinates,
                defaults to the image at 1:1 at the origin
            on_template_changed: Called after every template mutation
            on_selection_changed: Called with the new selected id
        """
        self.template = template
        self.tolerance = tolerance
        self.min_size = min_size
        self.viewport = viewport or DisplayRect(0, 0, template.width, template.height)
        self.on_template_changed = on_template_changed
        self.on_selection_changed = on_selection_changed

        self._mode = mode
        self._state: InteractionState = IdleState()
        self._selected_box_id: Optional[str] = None

    # ========================
    # Properties
    # ========================

    @property
    def mode(self) -> EditorMode:
        return self._mode

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return isinstance(self._state, IdleState)

    @property
    def selected_box_id(self) -> Optional[str]:
        return self._selected_box_id

    @property
    def selected_box(self) -> Optional[AnyBox]:
        if self._selected_box_id is None:
            return None
        return self.template.get_box(self._selected_box_id)

    @property
    def drawing_rect(self) -> Optional[Rect]:
        """Live rectangle of the Drawing gesture, if any."""
        if isinstance(self._state, DrawingState):
            return normalize_rect(self._state.start, self._state.current)
        return None

    @property
    def drawing_kind(self) -> Optional[BoxKind]:
        if isinstance(self._state, DrawingState):
            return self._state.kind
        return None

    # ========================
    # Mode and selection
    # ========================

    def set_mode(self, mode: EditorMode) -> None:
        """Switch mode; an active gesture is cancelled."""
        if not self.is_idle:
            logger.debug(f"Mode change cancels gesture: {type(self._state).__name__}")
            self._state = IdleState()
        self._mode = mode

    def select(self, box_id: Optional[str]) -> None:
        """Select a box by id, or clear the selection with None."""
        if box_id is not None and not self.template.has_box(box_id):
            box_id = None
        if box_id == self._selected_box_id:
            return
        self._selected_box_id = box_id
        if self.on_selection_changed:
            self.on_selection_changed(box_id)

    def clear_selection(self) -> None:
        self.select(None)

    def set_template(self, template: Template) -> None:
        """Replace the edited template, resetting gesture and selection."""
        self.template = template
        self._state = IdleState()
        self.clear_selection()

    # ========================
    # Pointer events
    # ========================

    def to_logical(self, client_x: float, client_y: float) -> Point:
        return to_logical_point(client_x, client_y, self.viewport, self.template.size)

    def pointer_down(self, client_x: float, client_y: float) -> None:
        """Start a gesture at a client-space point."""
        point = self.to_logical(client_x, client_y)

        if self._mode != EditorMode.SELECT:
            self._state = DrawingState(kind=_MODE_KIND[self._mode], start=point, current=point)
            return

        box = self.selected_box
        if box is not None:
            handle = hit_test_handle(point, box, self.tolerance)
            if handle is not None:
                self._state = ResizingState(box_id=box.id, handle=handle, anchor=point)
                return
            if point_in_box(point, box):
                offset = (point[0] - box.x, point[1] - box.y)
                self._state = DraggingState(box_id=box.id, grab_offset=offset)
                return

        hit: Optional[AnyBox] = hit_test_boxes(point, self.template.text_boxes)
        if hit is None:
            hit = hit_test_boxes(point, self.template.color_boxes)
        self.select(hit.id if hit is not None else None)

    def pointer_move(self, client_x: float, client_y: float) -> None:
        """Update the active gesture."""
        state = self._state
        if isinstance(state, IdleState):
            return

        point = self.to_logical(client_x, client_y)

        if isinstance(state, DrawingState):
            self._state = DrawingState(kind=state.kind, start=state.start, current=point)
        elif isinstance(state, DraggingState):
            x = point[0] - state.grab_offset[0]
            y = point[1] - state.grab_offset[1]
            if self.template.move_box(state.box_id, x, y) is not None:
                self._notify_template_changed()
        elif isinstance(state, ResizingState):
            box = self.template.get_box(state.box_id)
            if box is None:
                self._state = IdleState()
                return
            dx = point[0] - state.anchor[0]
            dy = point[1] - state.anchor[1]
            rect = resize_rect(Rect.of(box), state.handle, dx, dy, self.min_size)
            self.template.set_box_rect(
                box.id, rect.x, rect.y, rect.width, rect.height, min_size=self.min_size
            )
            self._state = ResizingState(box_id=state.box_id, handle=state.handle, anchor=point)
            self._notify_template_changed()

    def pointer_up(
        self,
        client_x: Optional[float] = None,
        client_y: Optional[float] = None,
    ) -> None:
        """Finish the active gesture.

        A Drawing gesture creates a box when both sides reach the minimum
        size; the new box is selected and the mode returns to select.
        """
        state = self._state
        self._state = IdleState()

        if not isinstance(state, DrawingState):
            return

        current = state.current
        if client_x is not None and client_y is not None:
            current = self.to_logical(client_x, client_y)

        rect = normalize_rect(state.start, current)
        if rect.width < self.min_size or rect.height < self.min_size:
            logger.debug(f"Drawing discarded, too small: {rect.width:.0f}x{rect.height:.0f}")
            return

        box: AnyBox
        if state.kind == BoxKind.TEXT:
            box = self.template.add_text_box(
                TextBox.create(
                    rect.x, rect.y, rect.width, rect.height, self.template.next_field_name()
                )
            )
        else:
            box = self.template.add_color_box(
                ColorBox.create(rect.x, rect.y, rect.width, rect.height)
            )
        logger.debug(f"Box created: {box.id}")

        self._notify_template_changed()
        self.select(box.id)
        self._mode = EditorMode.SELECT

    def pointer_leave(self) -> None:
        """Pointer left the surface: end the gesture, discarding a drawing."""
        self._state = IdleState()

    def pointer_cancel(self) -> None:
        """Gesture interrupted by the host (e.g. touch cancel)."""
        self._state = IdleState()

    # ========================
    # Box operations
    # ========================

    def delete_selected(self) -> bool:
        """Delete the selected box.

        Returns:
            Whether a box was removed
        """
        box_id = self._selected_box_id
        if box_id is None:
            return False
        removed = self.template.delete_box(box_id)
        if isinstance(self._state, (DraggingState, ResizingState)):
            self._state = IdleState()
        self.clear_selection()
        if removed:
            self._notify_template_changed()
        return removed

    def _notify_template_changed(self) -> None:
        if self.on_template_changed:
            self.on_template_changed()
