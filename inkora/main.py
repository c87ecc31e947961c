"""Inkora template editor - application entry point."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

# User config key of the template reopened when no argument is given
LAST_TEMPLATE_KEY = "last_template_id"


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="inkora", description="Inkora template editor")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("image", nargs="?", type=Path, help="image to start a new template from")
    group.add_argument(
        "--template",
        dest="template_id",
        help="id of a stored template to edit, defaults to the last one edited",
    )
    parser.add_argument("--name", help="name of the new template")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Application entry point.

    Returns:
        Exit code, 0 on normal exit
    """
    from PyQt6.QtGui import QAction
    from PyQt6.QtWidgets import QApplication, QMainWindow, QToolBar

    from inkora.core.config_manager import get_config
    from inkora.core.editor_session import EditorSession
    from inkora.core.interaction import EditorMode
    from inkora.models.template import Template
    from inkora.services.template_store import TemplateStore
    from inkora.ui.widgets.editor_canvas import EditorCanvas
    from inkora.utils.constants import APP_NAME, APP_VERSION
    from inkora.utils.error_handler import get_user_friendly_message
    from inkora.utils.exceptions import AppException
    from inkora.utils.image_utils import compress_image, create_thumbnail, decode_image_data
    from inkora.utils.logger import set_log_dir, setup_logger

    logger = setup_logger(__name__)
    args = _parse_args(argv)

    try:
        config = get_config()
        settings = config.settings
        set_log_dir(settings.app_data_dir / "logs")
        store = TemplateStore(settings.templates_dir)

        template_id = args.template_id
        if args.image is None and template_id is None:
            template_id = config.get_user_config(LAST_TEMPLATE_KEY)
            if template_id is None:
                print("No template edited yet, pass an image to start one", file=sys.stderr)
                return 2

        if template_id:
            session = EditorSession.load(store, template_id, settings=settings)
        else:
            image_data = compress_image(args.image.read_bytes())
            width, height = decode_image_data(image_data).size
            template = Template.create(
                image=image_data,
                width=width,
                height=height,
                name=args.name or args.image.stem,
                thumbnail=create_thumbnail(image_data),
            )
            session = EditorSession(template, store=store, settings=settings)
    except (AppException, OSError) as e:
        logger.error(f"Failed to open template: {e}")
        print(get_user_friendly_message(e), file=sys.stderr)
        return 1

    logger.info(f"Starting {APP_NAME} {APP_VERSION}")

    qt_app = QApplication(sys.argv[:1])
    qt_app.setApplicationName(APP_NAME)
    qt_app.setApplicationVersion(APP_VERSION)

    window = QMainWindow()
    window.setWindowTitle(f"{APP_NAME} - {session.template.name}")
    canvas = EditorCanvas(window)
    canvas.set_session(session)
    window.setCentralWidget(canvas)

    toolbar = QToolBar("Tools", window)
    window.addToolBar(toolbar)
    for label, mode in (("Select", EditorMode.SELECT), ("Text", EditorMode.TEXT), ("Color", EditorMode.COLOR)):
        action = QAction(label, window)
        action.triggered.connect(lambda _checked=False, m=mode: (session.set_mode(m), canvas.refresh()))
        toolbar.addAction(action)
    save_action = QAction("Save", window)
    save_action.triggered.connect(session.save)
    toolbar.addAction(save_action)

    window.resize(1000, 800)
    window.show()

    exit_code = qt_app.exec()
    canvas.close_session()

    if store.get(session.template.id) is not None:
        config.set_user_config(LAST_TEMPLATE_KEY, session.template.id)

    logger.info(f"Exited with code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
