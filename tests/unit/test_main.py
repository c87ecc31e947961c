"""Entry point unit tests."""

import pytest

from inkora.core.config_manager import get_config
from inkora.main import LAST_TEMPLATE_KEY, main
from inkora.utils.logger import get_log_dir, set_log_dir


@pytest.fixture(autouse=True)
def restore_log_dir():
    previous = get_log_dir()
    yield
    set_log_dir(previous)


class TestMain:
    """Startup paths that exit before the window opens."""

    def test_should_write_logs_under_data_dir(self, tmp_path):
        assert main([str(tmp_path / "missing.png")]) == 1
        assert get_log_dir() == tmp_path / "logs"

    def test_should_require_image_without_last_template(self, capsys):
        assert main([]) == 2
        assert "pass an image" in capsys.readouterr().err

    def test_should_reopen_last_template(self, capsys):
        get_config().set_user_config(LAST_TEMPLATE_KEY, "template_gone")

        assert main([]) == 1
        assert "Template not found" in capsys.readouterr().err
