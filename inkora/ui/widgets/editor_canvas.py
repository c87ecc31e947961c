"""Template editor canvas.

Displays the editor preview of a session and feeds it pointer and keyboard
input.

Features:
    - Fit-to-widget display of the editor preview
    - Mouse and single-touch input mapped to session pointer events
    - Delete / Escape / Ctrl+S while a session is attached
    - Signals for template and selection changes
"""

from __future__ import annotations

from typing import Optional

from PIL import Image
from PyQt6.QtCore import QEvent, QPointF, QRectF, Qt, pyqtSignal
from PyQt6.QtGui import (
    QColor,
    QImage,
    QKeyEvent,
    QMouseEvent,
    QPainter,
    QPaintEvent,
    QPixmap,
    QResizeEvent,
    QTouchEvent,
)
from PyQt6.QtWidgets import QWidget

from inkora.core.editor_session import EditorSession
from inkora.core.geometry import DisplayRect
from inkora.utils.error_handler import handle_errors
from inkora.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# Constants
# ===================

CANVAS_BACKGROUND = QColor(245, 245, 245)

# Space kept around the image
CANVAS_MARGIN = 20

_KEY_NAMES = {
    Qt.Key.Key_Delete: "Delete",
    Qt.Key.Key_Escape: "Escape",
    Qt.Key.Key_S: "s",
}


def pil_to_qimage(image: Image.Image) -> QImage:
    """Convert a PIL image to a detached QImage."""
    rgba = image.convert("RGBA")
    data = rgba.tobytes("raw", "RGBA")
    qimage = QImage(data, rgba.width, rgba.height, rgba.width * 4, QImage.Format.Format_RGBA8888)
    return qimage.copy()


class EditorCanvas(QWidget):
    """Template editor canvas.

    Signals:
        template_changed: The template was mutated
        selection_changed: The selected box changed (box id or None)

    Example:
        >>> canvas = EditorCanvas()
        >>> canvas.set_session(EditorSession(template))
        >>> canvas.show()
    """

    template_changed = pyqtSignal()
    selection_changed = pyqtSignal(object)  # Optional[str]

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        """Initialize the canvas."""
        super().__init__(parent)

        self._session: Optional[EditorSession] = None
        self._pixmap: Optional[QPixmap] = None
        self._preview_dirty = True

        self._setup_ui()

    def _setup_ui(self) -> None:
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMouseTracking(True)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setMinimumSize(200, 200)

    # ========================
    # Session
    # ========================

    @property
    def session(self) -> Optional[EditorSession]:
        return self._session

    def set_session(self, session: Optional[EditorSession]) -> None:
        """Attach a session, detaching the previous one."""
        self.detach()
        if session is None or session.is_closed:
            return

        self._session = session
        session.on_template_changed = self.template_changed.emit
        session.on_selection_changed = self.selection_changed.emit
        self._update_viewport()
        self.refresh()
        logger.debug(f"Canvas attached to template: {session.template.id}")

    def detach(self) -> None:
        """Stop forwarding input to the session."""
        if self._session is None:
            return
        self._session.on_template_changed = None
        self._session.on_selection_changed = None
        self._session = None
        self._pixmap = None
        self.update()

    def close_session(self) -> None:
        """Close the attached session and detach from it."""
        if self._session is not None:
            self._session.close()
        self.detach()

    def refresh(self) -> None:
        """Re-render the preview on the next paint."""
        self._preview_dirty = True
        self.update()

    # ========================
    # Geometry
    # ========================

    def display_rect(self) -> Optional[DisplayRect]:
        """Rectangle where the image is drawn, in widget coordinates."""
        if self._session is None:
            return None
        template = self._session.template
        available_w = max(1, self.width() - 2 * CANVAS_MARGIN)
        available_h = max(1, self.height() - 2 * CANVAS_MARGIN)
        scale = min(available_w / template.width, available_h / template.height, 1.0)
        width = template.width * scale
        height = template.height * scale
        return DisplayRect(
            left=(self.width() - width) / 2,
            top=(self.height() - height) / 2,
            width=width,
            height=height,
        )

    def _update_viewport(self) -> None:
        rect = self.display_rect()
        if self._session is None or rect is None:
            return
        self._session.set_viewport(rect, rect.width / self._session.template.width)

    # ========================
    # Painting
    # ========================

    @handle_errors(default=None)
    def _render_pixmap(self) -> Optional[QPixmap]:
        if self._session is None:
            return None
        return QPixmap.fromImage(pil_to_qimage(self._session.render_preview()))

    def paintEvent(self, event: QPaintEvent) -> None:
        """Paint the editor preview."""
        painter = QPainter(self)
        painter.fillRect(self.rect(), CANVAS_BACKGROUND)

        rect = self.display_rect()
        if rect is not None:
            if self._preview_dirty or self._pixmap is None:
                self._pixmap = self._render_pixmap()
                self._preview_dirty = False
            if self._pixmap is not None:
                painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
                target = QRectF(rect.left, rect.top, rect.width, rect.height)
                painter.drawPixmap(target, self._pixmap, QRectF(self._pixmap.rect()))

        painter.end()

    def resizeEvent(self, event: QResizeEvent) -> None:
        """Keep the viewport in sync with the widget size."""
        super().resizeEvent(event)
        self._update_viewport()
        self.refresh()

    # ========================
    # Mouse input
    # ========================

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Mouse pressed."""
        if self._session is None or event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        self.setFocus()
        pos = event.position()
        self._session.pointer_down(pos.x(), pos.y())
        self.refresh()
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """Mouse moved."""
        if self._session is None:
            super().mouseMoveEvent(event)
            return
        if not self._session.machine.is_idle:
            pos = event.position()
            self._session.pointer_move(pos.x(), pos.y())
            self.refresh()
        event.accept()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """Mouse released."""
        if self._session is None or event.button() != Qt.MouseButton.LeftButton:
            super().mouseReleaseEvent(event)
            return
        pos = event.position()
        self._session.pointer_up(pos.x(), pos.y())
        self.refresh()
        event.accept()

    def leaveEvent(self, event: QEvent) -> None:
        """Pointer left the canvas."""
        if self._session is not None and not self._session.machine.is_idle:
            self._session.pointer_leave()
            self.refresh()
        super().leaveEvent(event)

    # ========================
    # Touch input
    # ========================

    def event(self, event: QEvent) -> bool:
        """Route single-touch events to the session's pointer path."""
        touch_types = (
            QEvent.Type.TouchBegin,
            QEvent.Type.TouchUpdate,
            QEvent.Type.TouchEnd,
            QEvent.Type.TouchCancel,
        )
        if event.type() in touch_types and self._session is not None:
            self._handle_touch(event)
            event.accept()
            return True
        return super().event(event)

    def _handle_touch(self, event: QTouchEvent) -> None:
        if event.type() == QEvent.Type.TouchCancel:
            self._session.pointer_cancel()
            self.refresh()
            return

        points = event.points()
        if not points:
            return
        pos: QPointF = points[0].position()

        if event.type() == QEvent.Type.TouchBegin:
            self._session.pointer_down(pos.x(), pos.y())
        elif event.type() == QEvent.Type.TouchUpdate:
            self._session.pointer_move(pos.x(), pos.y())
        else:
            self._session.pointer_up(pos.x(), pos.y())
        self.refresh()

    # ========================
    # Keyboard input
    # ========================

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Delete, Escape and Ctrl+S."""
        key_name = _KEY_NAMES.get(Qt.Key(event.key()))
        if self._session is None or key_name is None:
            super().keyPressEvent(event)
            return

        ctrl = bool(event.modifiers() & Qt.KeyboardModifier.ControlModifier)
        if self._session.handle_key(key_name, ctrl=ctrl) is None:
            super().keyPressEvent(event)
            return

        self.refresh()
        event.accept()
