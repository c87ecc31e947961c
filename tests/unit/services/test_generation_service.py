"""Single generation service unit tests."""

import io
import re

import pytest
from PIL import Image

from inkora.models.template import TextBox
from inkora.services.generation_service import (
    GenerationService,
    get_generation_service,
    reset_generation_service,
    single_output_filename,
)


@pytest.fixture
def invitation(template):
    template.add_text_box(TextBox(id="text_name", x=20, y=20, width=300, height=60, field_name="Name"))
    template.add_text_box(TextBox(id="text_date", x=20, y=120, width=300, height=60, field_name="Date"))
    return template


class TestSingleOutputFilename:
    """Download names."""

    def test_should_use_first_text_box_value(self, invitation):
        name = single_output_filename(invitation, {"text_name": "Asha Rao", "text_date": "1/6/2024"}, 1718000000000)
        assert name == "Asha_Rao_1718000000000.jpg"

    def test_should_fall_back_to_invitation(self, invitation):
        assert single_output_filename(invitation, {"text_date": "x"}, 5) == "invitation_5.jpg"

    def test_should_fall_back_without_text_boxes(self, template):
        assert single_output_filename(template, {}, 5) == "invitation_5.jpg"


class TestGenerationService:
    """Rendering one image."""

    def test_should_generate_jpeg(self, invitation, settings):
        service = GenerationService(settings=settings)

        output = service.generate_single(invitation, {"text_name": "Asha Rao"})

        assert re.fullmatch(r"Asha_Rao_\d+\.jpg", output.name)
        image = Image.open(io.BytesIO(output.data))
        assert image.format == "JPEG"
        assert image.size == (400, 300)

    def test_should_render_missing_values_as_empty(self, invitation, settings):
        service = GenerationService(settings=settings)

        with_empty = service.render(invitation, {"text_name": "", "text_date": ""})
        with_missing = service.render(invitation, {})

        assert with_empty.tobytes() == with_missing.tobytes()

    def test_should_honor_quality(self, invitation, settings):
        service = GenerationService(settings=settings)
        values = {"text_name": "Asha Rao"}

        low = service.generate_single(invitation, values, quality=0.1)
        high = service.generate_single(invitation, values, quality=1.0)

        assert len(low.data) < len(high.data)

    def test_singleton(self):
        first = get_generation_service()
        assert get_generation_service() is first

        reset_generation_service()
        assert get_generation_service() is not first
