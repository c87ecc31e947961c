"""Color sampler unit tests."""

import pytest
from PIL import Image

from inkora.services.color_sampler import (
    ColorSampler,
    ImageColorSampler,
    UnsupportedColorSampler,
    rgba_to_hex,
)
from inkora.utils.exceptions import ColorSamplingUnsupportedError


class TestRgbaToHex:
    """Hex formatting."""

    def test_opaque_color(self):
        assert rgba_to_hex(200, 50, 5) == "#C83205"

    def test_nearly_opaque_color(self):
        assert rgba_to_hex(255, 255, 255, 0.995) == "#FFFFFF"

    def test_translucent_color(self):
        assert rgba_to_hex(0, 0, 0, 0.5) == "#00000080"


class TestImageColorSampler:
    """Sampling rendered pixels."""

    @pytest.fixture
    def sampler(self):
        image = Image.new("RGB", (10, 10), (255, 0, 0))
        image.putpixel((9, 9), (0, 0, 255))
        return ImageColorSampler(image)

    def test_sample_color(self, sampler):
        assert sampler.sample_color((2.7, 3.2)) == "#FF0000"

    def test_sample_clamps_to_bounds(self, sampler):
        assert sampler.sample_color((50, 50)) == "#0000FF"
        assert sampler.sample_rgba((-5, -5)) == (255, 0, 0, 255)

    def test_satisfies_protocol(self, sampler):
        assert isinstance(sampler, ColorSampler)


class TestUnsupportedColorSampler:
    """Hosts without pixel access."""

    def test_raises(self):
        sampler = UnsupportedColorSampler("headless")

        with pytest.raises(ColorSamplingUnsupportedError, match="headless"):
            sampler.sample_color((0, 0))
        assert isinstance(sampler, ColorSampler)
