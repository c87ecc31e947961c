"""Pytest configuration and shared fixtures."""

import io
import os
import tempfile
from pathlib import Path

import pytest
from PIL import Image

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Must run before any inkora module sets up its logger
from inkora.utils.logger import set_log_dir  # noqa: E402

set_log_dir(Path(tempfile.mkdtemp(prefix="inkora-test-logs-")))

from inkora.core.config_manager import ConfigManager  # noqa: E402
from inkora.models.app_settings import Settings  # noqa: E402
from inkora.models.template import Template  # noqa: E402
from inkora.services.generation_service import reset_generation_service  # noqa: E402
from inkora.utils.image_utils import to_data_url  # noqa: E402


def png_data_url(width: int, height: int, color=(200, 200, 200)) -> str:
    """Solid color PNG as a data URL."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return to_data_url(buffer.getvalue(), "PNG")


# ===================
# Isolation
# ===================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the data directory at a temp dir and reset singletons."""
    monkeypatch.setenv("INKORA_DATA_DIR", str(tmp_path))
    ConfigManager._instance = None
    reset_generation_service()
    yield
    ConfigManager._instance = None
    reset_generation_service()


# ===================
# Shared fixtures
# ===================


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings without cooperative delays."""
    return Settings(data_dir=tmp_path, yield_delay=0)


@pytest.fixture
def make_image_data():
    """Factory for solid color PNG data URLs."""
    return png_data_url


@pytest.fixture
def make_template():
    """Factory for empty templates over a solid color image."""

    def _make(
        width: int = 400,
        height: int = 300,
        color=(200, 200, 200),
        template_id: str = "template_1",
        name: str = "Wedding",
    ) -> Template:
        template = Template.create(
            image=png_data_url(width, height, color),
            width=width,
            height=height,
            name=name,
        )
        template.id = template_id
        return template

    return _make


@pytest.fixture
def template(make_template) -> Template:
    """Empty 400x300 template."""
    return make_template()
