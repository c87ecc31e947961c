"""Editor session.

Owns one loaded template while it is being edited: the interaction state
machine, keyboard intents, the eyedropper and saving through the store.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Mapping, Optional

from PIL import Image

from inkora.core.config_manager import get_settings
from inkora.core.geometry import DisplayRect, Point
from inkora.core.interaction import EditorMode, InteractionStateMachine
from inkora.models.app_settings import Settings
from inkora.models.template import AnyBox, ColorBox, Template, TextBox
from inkora.services.color_sampler import ColorSampler, ImageColorSampler
from inkora.services.template_renderer import EditorOverlay, RenderMode, TemplateRenderer
from inkora.services.template_store import TemplateStore
from inkora.utils.exceptions import (
    ColorSamplingUnsupportedError,
    StorageWriteError,
    TemplateNotFoundError,
)
from inkora.utils.image_utils import decode_image_data
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)


class KeyIntent(str, Enum):
    """Editor keyboard intents."""

    DELETE_SELECTION = "delete_selection"  # Delete
    CLEAR_SELECTION = "clear_selection"  # Escape
    PERSIST = "persist"  # Ctrl+S


class EyedropperTarget(str, Enum):
    """Box property receiving a sampled color."""

    TEXT_COLOR = "text_color"
    BACKGROUND_COLOR = "background_color"
    FILL_COLOR = "fill_color"
    FILL_COLOR2 = "fill_color2"


_TEXT_TARGETS = {
    EyedropperTarget.TEXT_COLOR: "color",
    EyedropperTarget.BACKGROUND_COLOR: "background_color",
}
_COLOR_TARGETS = {
    EyedropperTarget.FILL_COLOR: "fill_color",
    EyedropperTarget.FILL_COLOR2: "fill_color2",
}


def key_intent(key: str, ctrl: bool = False) -> Optional[KeyIntent]:
    """Map a key press to an intent.

    Args:
        key: Key name (``Delete``, ``Escape``, ``s``, ...)
        ctrl: Whether Ctrl is held

    Returns:
        The intent, or None for unbound keys
    """
    if ctrl and key.lower() == "s":
        return KeyIntent.PERSIST
    if key == "Delete":
        return KeyIntent.DELETE_SELECTION
    if key == "Escape":
        return KeyIntent.CLEAR_SELECTION
    return None


class EditorSession:
    """Editing session for one template.

    The session owns the template; ``snapshot()`` hands out deep copies for
    persisting. After ``close()`` input is ignored.

    Example:
        >>> session = EditorSession.load(store, "template_1718000000000")
        >>> session.set_mode(EditorMode.TEXT)
        >>> session.pointer_down(10, 10)
        >>> session.pointer_move(220, 60)
        >>> session.pointer_up()
        >>> session.handle_key("s", ctrl=True)
        <KeyIntent.PERSIST: 'persist'>
    """

    def __init__(
        self,
        template: Template,
        store: Optional[TemplateStore] = None,
        settings: Optional[Settings] = None,
        renderer: Optional[TemplateRenderer] = None,
        sampler: Optional[ColorSampler] = None,
        on_template_changed: Optional[Callable[[], None]] = None,
        on_selection_changed: Optional[Callable[[Optional[str]], None]] = None,
    ) -> None:
        """Initialize the session.

        Args:
            template: Template to edit
            store: Store used by ``save()``
            settings: Settings for tolerance and box size floor
            renderer: Compositing renderer
            sampler: Color sampler, defaults to sampling the rendered template
            on_template_changed: Called after every template mutation
            on_selection_changed: Called with the new selected box id
        """
        self._settings = settings or get_settings()
        self._store = store
        self._renderer = renderer or TemplateRenderer()
        self._sampler = sampler
        self._rendered_sampler: Optional[ImageColorSampler] = None
        self.on_template_changed = on_template_changed
        self.on_selection_changed = on_selection_changed

        self._machine = InteractionStateMachine(
            template,
            tolerance=self._settings.handle_tolerance,
            min_size=self._settings.min_box_size,
            on_template_changed=self._handle_template_changed,
            on_selection_changed=self._handle_selection_changed,
        )
        self._source: Optional[Image.Image] = None
        self._display_scale = 1.0
        self._closed = False
        self._dirty = False

        self._eyedropper_target: Optional[EyedropperTarget] = None
        self._eyedropper_supported = True

    @classmethod
    def load(cls, store: TemplateStore, template_id: str, **kwargs: Any) -> "EditorSession":
        """Open a stored template for editing.

        Raises:
            TemplateNotFoundError: No such template
        """
        template = store.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        logger.info(f"Editing template: {template.name} ({template.id})")
        return cls(template, store=store, **kwargs)

    # ========================
    # Properties
    # ========================

    @property
    def template(self) -> Template:
        return self._machine.template

    @property
    def machine(self) -> InteractionStateMachine:
        return self._machine

    @property
    def mode(self) -> EditorMode:
        return self._machine.mode

    @property
    def selected_box_id(self) -> Optional[str]:
        return self._machine.selected_box_id

    @property
    def selected_box(self) -> Optional[AnyBox]:
        return self._machine.selected_box

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def has_unsaved_changes(self) -> bool:
        """Whether the template changed since the last successful save."""
        return self._dirty

    @property
    def eyedropper_active(self) -> bool:
        return self._eyedropper_target is not None

    @property
    def eyedropper_target(self) -> Optional[EyedropperTarget]:
        return self._eyedropper_target

    @property
    def eyedropper_supported(self) -> bool:
        """False once the sampler reported that sampling is unsupported."""
        return self._eyedropper_supported

    @property
    def source_image(self) -> Image.Image:
        """Decoded source image, decoded once per session.

        Raises:
            ImageDecodeError: The embedded image cannot be decoded
        """
        if self._source is None:
            self._source = decode_image_data(self.template.image)
        return self._source

    # ========================
    # Viewport and mode
    # ========================

    def set_viewport(self, display_rect: DisplayRect, scale: float = 1.0) -> None:
        """Update where the image is displayed, in client coordinates."""
        self._machine.viewport = display_rect
        self._display_scale = scale

    def set_mode(self, mode: EditorMode) -> None:
        if self._closed:
            return
        self._machine.set_mode(mode)

    def select(self, box_id: Optional[str]) -> None:
        if self._closed:
            return
        self._machine.select(box_id)

    # ========================
    # Pointer input
    # ========================

    def pointer_down(self, client_x: float, client_y: float) -> None:
        """Pointer pressed; picks a color instead while the eyedropper is active."""
        if self._closed:
            return
        if self.eyedropper_active:
            self.pick_color(self._machine.to_logical(client_x, client_y))
            return
        self._machine.pointer_down(client_x, client_y)

    def pointer_move(self, client_x: float, client_y: float) -> None:
        if not self._closed:
            self._machine.pointer_move(client_x, client_y)

    def pointer_up(self, client_x: Optional[float] = None, client_y: Optional[float] = None) -> None:
        if not self._closed:
            self._machine.pointer_up(client_x, client_y)

    def pointer_leave(self) -> None:
        if not self._closed:
            self._machine.pointer_leave()

    def pointer_cancel(self) -> None:
        if not self._closed:
            self._machine.pointer_cancel()

    # ========================
    # Keyboard input
    # ========================

    def handle_key(self, key: str, ctrl: bool = False) -> Optional[KeyIntent]:
        """Apply a key press.

        Args:
            key: Key name
            ctrl: Whether Ctrl is held

        Returns:
            The applied intent, or None when the key is unbound or the
            session is closed
        """
        if self._closed:
            return None

        intent = key_intent(key, ctrl)
        if intent == KeyIntent.DELETE_SELECTION:
            self.delete_selected()
        elif intent == KeyIntent.CLEAR_SELECTION:
            self._machine.clear_selection()
            self._machine.set_mode(EditorMode.SELECT)
            self.cancel_eyedropper()
        elif intent == KeyIntent.PERSIST:
            self.save()
        return intent

    # ========================
    # Box editing
    # ========================

    def delete_selected(self) -> bool:
        """Delete the selected box."""
        if self._closed:
            return False
        return self._machine.delete_selected()

    def update_box(self, box_id: str, **updates: Any) -> Optional[AnyBox]:
        """Edit box properties (font, colors, opacity, ...).

        Raises:
            pydantic.ValidationError: Invalid values
        """
        if self._closed:
            return None
        box = self.template.update_box(
            box_id, min_size=self._settings.min_box_size, **updates
        )
        if box is not None:
            self._handle_template_changed()
        return box

    # ========================
    # Eyedropper
    # ========================

    def activate_eyedropper(self, target: EyedropperTarget) -> bool:
        """Wait for the next pointer-down to sample a color.

        Returns:
            False when sampling is unsupported
        """
        if self._closed or not self._eyedropper_supported:
            return False
        self._eyedropper_target = target
        self._machine.set_mode(EditorMode.SELECT)
        logger.debug(f"Eyedropper activated: {target.value}")
        return True

    def cancel_eyedropper(self) -> None:
        self._eyedropper_target = None

    def pick_color(self, point: Point) -> Optional[str]:
        """Sample a color and apply it to the selected box.

        The eyedropper is deactivated afterwards whatever the outcome.

        Args:
            point: Point in image pixels

        Returns:
            The applied ``#RRGGBB`` color, or None when nothing was applied
        """
        target = self._eyedropper_target
        self._eyedropper_target = None
        if target is None:
            return None

        try:
            sampled = self._get_sampler().sample_color(point)
        except ColorSamplingUnsupportedError as e:
            logger.warning(f"Eyedropper disabled: {e}")
            self._eyedropper_supported = False
            return None

        # Box colors are 6-digit; sampled alpha is dropped
        color = sampled[:7]

        box = self.selected_box
        if isinstance(box, TextBox) and target in _TEXT_TARGETS:
            field = _TEXT_TARGETS[target]
        elif isinstance(box, ColorBox) and target in _COLOR_TARGETS:
            field = _COLOR_TARGETS[target]
        else:
            logger.debug("Eyedropper pick ignored: no matching selected box")
            return None

        self.update_box(box.id, **{field: color})
        return color

    def _get_sampler(self) -> ColorSampler:
        if self._sampler is not None:
            return self._sampler
        if self._rendered_sampler is None:
            self._rendered_sampler = ImageColorSampler(
                self._renderer.render(self.template, {}, RenderMode.FINAL, source=self.source_image)
            )
        return self._rendered_sampler

    # ========================
    # Rendering
    # ========================

    def render_preview(self) -> Image.Image:
        """Editor-mode render with the current overlay state."""
        overlay = EditorOverlay(
            selected_box_id=self._machine.selected_box_id,
            show_handles=self._machine.mode == EditorMode.SELECT,
            drawing_rect=self._machine.drawing_rect,
            drawing_kind=self._machine.drawing_kind,
            scale=self._display_scale,
        )
        return self._renderer.render(
            self.template,
            mode=RenderMode.EDITOR_PREVIEW,
            source=self.source_image,
            overlay=overlay,
        )

    def render_final(self, values: Mapping[str, str]) -> Image.Image:
        """Final-mode render of the current template."""
        return self._renderer.render(self.template, values, RenderMode.FINAL, source=self.source_image)

    # ========================
    # Persistence
    # ========================

    def snapshot(self) -> Template:
        """Deep copy of the current template."""
        return self.template.snapshot()

    def save(self) -> bool:
        """Persist the template through the store.

        On failure the template stays in memory and is marked unsaved.

        Returns:
            Whether the template was saved
        """
        if self._store is None:
            logger.warning("No template store attached, nothing saved")
            return False

        try:
            stored = self._store.put(self.snapshot())
        except StorageWriteError as e:
            logger.error(f"Save failed, changes kept in memory: {e}")
            self._dirty = True
            return False

        self.template.updated_at = stored.updated_at
        self.template.created_at = stored.created_at
        self._dirty = False
        return True

    def close(self) -> None:
        """End the session; later input is ignored."""
        if self._closed:
            return
        self._machine.pointer_cancel()
        self._eyedropper_target = None
        self._closed = True
        logger.debug(f"Editor session closed: {self.template.id}")

    # ========================
    # Callbacks
    # ========================

    def _handle_template_changed(self) -> None:
        self._dirty = True
        self._rendered_sampler = None
        if self.on_template_changed:
            self.on_template_changed()

    def _handle_selection_changed(self, box_id: Optional[str]) -> None:
        if self.on_selection_changed:
            self.on_selection_changed(box_id)
