"""
Unit tests for core.geometry module.
"""
import pytest
from core.geometry import (
    DrawSession,
    create_region,
    normalize_box,
    parse_shape,
    passes_size_gate
)
from core.models import DataField, Shape


class TestParseShape:
    """Tests for parse_shape."""

    def test_known_names(self):
        assert parse_shape('rectangle') is Shape.RECTANGLE
        assert parse_shape(' Ellipse ') is Shape.ELLIPSE
        assert parse_shape(Shape.ELLIPSE) is Shape.ELLIPSE

    def test_legacy_circle(self):
        """Test 'circle' maps to ellipse."""
        assert parse_shape('circle') is Shape.ELLIPSE

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            parse_shape('polygon')


class TestSizeGate:
    """Tests for the region acceptance gate."""

    def test_strictly_greater(self):
        """Test both extents must exceed the threshold."""
        assert passes_size_gate(11, 11)
        assert not passes_size_gate(10, 50)
        assert not passes_size_gate(50, 10)

    def test_custom_threshold(self):
        assert passes_size_gate(6, 6, min_size=5)


class TestCreateRegion:
    """Tests for create_region."""

    def test_normalizes_reversed_corners(self):
        """Test corners dragged up-left give the same box."""
        assert normalize_box(100, 80, 20, 30) == (20, 30, 80, 50)

        region = create_region('rectangle', 100, 80, 20, 30, field_name='Tag')
        assert (region.x, region.y, region.width, region.height) == (20, 30, 80, 50)

    def test_rejects_small_box(self):
        """Test tiny gestures produce no region."""
        assert create_region('ellipse', 0, 0, 10, 40) is None
        assert create_region('ellipse', 0, 0, 40, 5) is None

    def test_default_field_name(self):
        """Test a missing name falls back to the positional placeholder."""
        region = create_region('rectangle', 0, 0, 30, 30, field_name='  ', position=3)

        assert region.field_name == 'Field 3'

    def test_explicit_id(self):
        region = create_region(Shape.ELLIPSE, 0, 0, 30, 30, region_id='fixed')

        assert region.id == 'fixed'
        assert region.shape is Shape.ELLIPSE
        assert region.page_number is None


class TestDrawSession:
    """Tests for DrawSession."""

    def test_commit_without_gesture(self):
        """Test committing while idle yields nothing."""
        assert DrawSession().commit_draw() is None

    def test_preview_follows_pointer(self):
        session = DrawSession()
        assert session.preview() is None

        session.begin_draw(50, 50)
        session.update_draw(10, 20)

        assert session.is_drawing
        assert session.preview() == (10, 20, 40, 30)

    def test_fields_auto_advance(self):
        """Test regions take field names in order and stay on the last one."""
        fields = [DataField(name='Tag'), DataField(name='Rev')]
        session = DrawSession(data_fields=fields)
        names = []
        for offset in range(3):
            session.begin_draw(offset * 100, 0)
            session.update_draw(offset * 100 + 50, 40)
            names.append(session.commit_draw().field_name)

        assert names == ['Tag', 'Rev', 'Rev']
        assert session.committed == 3
        assert not session.is_drawing

    def test_small_box_does_not_advance(self):
        """Test rejected gestures keep the current field."""
        session = DrawSession(data_fields=[DataField(name='Tag'), DataField(name='Rev')])
        session.begin_draw(0, 0)
        session.update_draw(5, 5)

        assert session.commit_draw() is None
        assert session.current_field_name == 'Tag'
        assert session.committed == 0

    def test_default_names_without_fields(self):
        """Test positional names when no data fields were defined."""
        session = DrawSession(committed=2)
        session.begin_draw(0, 0, shape='circle')
        session.update_draw(30, 30)
        region = session.commit_draw()

        assert region.field_name == 'Field 3'
        assert region.shape is Shape.ELLIPSE

    def test_select_field(self):
        session = DrawSession(data_fields=[DataField(name='Tag'), DataField(name='Rev')])
        session.select_field(1)

        assert session.current_field_name == 'Rev'
        with pytest.raises(IndexError):
            session.select_field(5)

    def test_cancel_and_reset(self):
        session = DrawSession(data_fields=[DataField(name='Tag'), DataField(name='Rev')])
        session.begin_draw(0, 0)
        session.update_draw(40, 40)
        session.commit_draw()
        session.begin_draw(0, 0)
        session.cancel_draw()

        assert session.commit_draw() is None

        session.reset()
        assert session.committed == 0
        assert session.current_field_name == 'Tag'
