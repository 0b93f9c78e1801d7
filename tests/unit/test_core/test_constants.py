"""
Unit tests for core.constants module.
"""
import pytest
from core.constants import (
    CONFIDENCE_BANDS,
    CSV_FILENAMES,
    CSV_HEADERS,
    DEFAULT_OCR_PARAMS,
    DEFAULT_RENDER_OPTIONS,
    LEGACY_SHAPE_ALIASES,
    MIN_REGION_SIZE,
    RENDER_LIMITS,
    SHAPE_TYPES
)


class TestOcrParams:
    """Tests for DEFAULT_OCR_PARAMS constant."""

    def test_recognition_defaults(self):
        """Test language and upscale defaults."""
        assert DEFAULT_OCR_PARAMS['language'] == 'eng'
        assert DEFAULT_OCR_PARAMS['upscale_factor'] == 2.0

    def test_throttle_delay_is_short(self):
        """Test the inter-call delay is a small positive number of seconds."""
        assert 0 < DEFAULT_OCR_PARAMS['throttle_delay'] < 1


class TestRenderDefaults:
    """Tests for render defaults and limits."""

    def test_defaults_within_limits(self):
        """Test default scale and quality fall inside the limits."""
        assert RENDER_LIMITS['min_scale'] <= DEFAULT_RENDER_OPTIONS['scale'] <= RENDER_LIMITS['max_scale']
        assert RENDER_LIMITS['min_quality'] <= DEFAULT_RENDER_OPTIONS['quality'] <= RENDER_LIMITS['max_quality']


class TestShapes:
    """Tests for shape names."""

    def test_shape_types(self):
        assert SHAPE_TYPES == ['rectangle', 'ellipse']

    def test_legacy_alias_targets_known_shape(self):
        for target in LEGACY_SHAPE_ALIASES.values():
            assert target in SHAPE_TYPES


class TestCsvConstants:
    """Tests for CSV headers and filenames."""

    @pytest.mark.parametrize("mode,width", [('full', 9), ('summary', 3), ('grouped_by_page', 4)])
    def test_header_widths(self, mode, width):
        """Test each layout has the expected number of columns."""
        assert len(CSV_HEADERS[mode]) == width

    def test_filenames_cover_all_modes(self):
        """Test every layout has a dated filename."""
        assert set(CSV_FILENAMES) == set(CSV_HEADERS)
        for pattern in CSV_FILENAMES.values():
            assert '{date}' in pattern
            assert pattern.endswith('.csv')


def test_confidence_bands_ordered():
    """Test band thresholds are descending from high to low."""
    assert CONFIDENCE_BANDS['high'] > CONFIDENCE_BANDS['medium'] > CONFIDENCE_BANDS['low']


def test_min_region_size():
    assert MIN_REGION_SIZE == 10
