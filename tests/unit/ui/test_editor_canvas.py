"""Editor canvas unit tests."""

import pytest
from PIL import Image
from PyQt6.QtCore import QPoint, Qt

from inkora.core.editor_session import EditorSession
from inkora.core.interaction import EditorMode
from inkora.models.template import TextBox
from inkora.services.template_store import TemplateStore
from inkora.ui.widgets.editor_canvas import CANVAS_MARGIN, EditorCanvas, pil_to_qimage


# ===================
# Fixtures
# ===================


@pytest.fixture
def store(tmp_path):
    return TemplateStore(tmp_path / "templates")


@pytest.fixture
def session(template, store, settings):
    template.add_text_box(TextBox(id="text_a", x=100, y=100, width=200, height=60))
    return EditorSession(template, store=store, settings=settings)


@pytest.fixture
def canvas(qtbot, session):
    """Canvas showing the 400x300 template at 1:1, offset by the margin."""
    widget = EditorCanvas()
    qtbot.addWidget(widget)
    widget.resize(400 + 2 * CANVAS_MARGIN, 300 + 2 * CANVAS_MARGIN)
    widget.set_session(session)
    widget.show()
    qtbot.waitExposed(widget)
    return widget


def client(x, y):
    """Widget position of an image point."""
    return QPoint(x + CANVAS_MARGIN, y + CANVAS_MARGIN)


# ===================
# Conversion
# ===================


class TestPilToQImage:
    """PIL to Qt conversion."""

    def test_should_keep_size_and_pixels(self, qtbot):
        image = Image.new("RGBA", (30, 20), (10, 20, 30, 255))

        qimage = pil_to_qimage(image)

        assert (qimage.width(), qimage.height()) == (30, 20)
        color = qimage.pixelColor(5, 5)
        assert (color.red(), color.green(), color.blue()) == (10, 20, 30)


# ===================
# Canvas
# ===================


class TestEditorCanvas:
    """Canvas input and geometry."""

    def test_should_initialize_without_session(self, qtbot):
        widget = EditorCanvas()
        qtbot.addWidget(widget)

        assert widget.session is None
        assert widget.display_rect() is None

    def test_should_center_image_without_upscaling(self, qtbot, session):
        widget = EditorCanvas()
        qtbot.addWidget(widget)
        widget.resize(1000, 800)
        widget.set_session(session)

        rect = widget.display_rect()

        assert (rect.width, rect.height) == (400, 300)
        assert (rect.left, rect.top) == (300, 250)

    def test_should_scale_down_to_fit(self, qtbot, session):
        widget = EditorCanvas()
        qtbot.addWidget(widget)
        widget.resize(240, 340)
        widget.set_session(session)

        rect = widget.display_rect()

        assert rect.width == pytest.approx(200)
        assert rect.height == pytest.approx(150)

    def test_should_draw_box_with_mouse(self, qtbot, canvas, session):
        session.set_mode(EditorMode.COLOR)

        with qtbot.waitSignal(canvas.template_changed, timeout=1000):
            qtbot.mousePress(canvas, Qt.MouseButton.LeftButton, pos=client(10, 10))
            qtbot.mouseRelease(canvas, Qt.MouseButton.LeftButton, pos=client(110, 60))

        box = session.template.color_boxes[0]
        assert (box.x, box.y, box.width, box.height) == (10, 10, 100, 50)
        assert session.mode == EditorMode.SELECT

    def test_should_emit_selection_changes(self, qtbot, canvas, session):
        with qtbot.waitSignal(canvas.selection_changed, timeout=1000) as blocker:
            qtbot.mousePress(canvas, Qt.MouseButton.LeftButton, pos=client(150, 120))

        assert blocker.args == ["text_a"]

    def test_should_ignore_right_button(self, qtbot, canvas, session):
        qtbot.mousePress(canvas, Qt.MouseButton.RightButton, pos=client(150, 120))
        assert session.selected_box_id is None

    def test_should_delete_selection_with_key(self, qtbot, canvas, session):
        session.select("text_a")

        qtbot.keyClick(canvas, Qt.Key.Key_Delete)

        assert session.template.box_count == 0

    def test_should_save_with_ctrl_s(self, qtbot, canvas, session, store):
        qtbot.keyClick(canvas, Qt.Key.Key_S, Qt.KeyboardModifier.ControlModifier)

        assert store.get(session.template.id) is not None

    def test_should_ignore_keys_after_close(self, qtbot, canvas, session):
        session.select("text_a")

        canvas.close_session()
        qtbot.keyClick(canvas, Qt.Key.Key_Delete)

        assert session.is_closed
        assert canvas.session is None
        assert session.template.box_count == 1

    def test_should_paint_preview(self, qtbot, canvas):
        pixmap = canvas.grab()
        assert not pixmap.isNull()
