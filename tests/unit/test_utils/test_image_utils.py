"""
Unit tests for utils.image_utils module.
"""
import base64
from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from core.exceptions import RegionRecognitionFailure
from core.models import Region, Shape
from utils.image_utils import (
    clamp_box,
    crop_region,
    get_image_dimensions,
    image_to_base64,
    load_image,
    prepare_region_image,
    to_pil_image,
    upscale_image
)


def _region(x, y, width, height):
    return Region(id='r', shape=Shape.RECTANGLE, x=x, y=y, width=width, height=height, field_name='Tag')


class TestToPilImage:
    """Tests for to_pil_image."""

    def test_pil_passthrough(self):
        img = Image.new('RGB', (10, 10))

        assert to_pil_image(img) is img

    def test_numpy_array(self):
        array = np.zeros((20, 30, 3), dtype=np.uint8)

        assert to_pil_image(array).size == (30, 20)

    def test_numpy_float_array(self):
        array = np.full((5, 6), 300.0)
        img = to_pil_image(array)

        assert img.getpixel((0, 0)) == 255

    def test_unsupported(self):
        with pytest.raises(TypeError):
            to_pil_image("not an image")


class TestCrop:
    """Tests for cropping."""

    def test_clamp_box(self):
        assert clamp_box((-5, 10, 120, 90), 100, 80) == (0, 10, 100, 80)

    def test_crop_inside(self):
        img = Image.new('RGB', (200, 100))

        assert crop_region(img, _region(10, 20, 50, 30)).size == (50, 30)

    def test_crop_partially_outside(self):
        """Test crops are clipped to the page."""
        img = Image.new('RGB', (200, 100))

        assert crop_region(img, _region(180, 80, 50, 50)).size == (20, 20)

    def test_crop_outside(self):
        img = Image.new('RGB', (200, 100))

        with pytest.raises(RegionRecognitionFailure):
            crop_region(img, _region(300, 300, 50, 50))


class TestPrepare:
    """Tests for upscaling and preparation."""

    def test_upscale(self):
        img = Image.new('RGB', (30, 10))

        assert upscale_image(img, 2.0).size == (60, 20)
        assert upscale_image(img, 1).size == (30, 10)

    def test_prepare_converts_rgba(self):
        page = Image.new('RGBA', (100, 100))
        crop = prepare_region_image(page, _region(0, 0, 40, 20), upscale_factor=2.0)

        assert crop.mode == 'RGB'
        assert crop.size == (80, 40)

    def test_page_not_modified(self):
        """Test the page surface is only read."""
        array = np.full((50, 50, 3), 7, dtype=np.uint8)
        prepare_region_image(array, _region(0, 0, 20, 20))

        assert (array == 7).all()


class TestEncoding:
    """Tests for load and base64 helpers."""

    def test_load_image(self, sample_png_bytes):
        img = load_image(sample_png_bytes)

        assert img.mode == 'RGB'
        assert img.size == (120, 80)

    def test_base64_round_trip(self):
        img = Image.new('RGB', (12, 8), color='red')
        decoded = Image.open(BytesIO(base64.b64decode(image_to_base64(img))))

        assert decoded.size == (12, 8)
        assert decoded.getpixel((0, 0)) == (255, 0, 0)

    def test_dimensions(self):
        assert get_image_dimensions(np.zeros((20, 30))) == (30, 20)
        assert get_image_dimensions(Image.new('L', (7, 9))) == (7, 9)
