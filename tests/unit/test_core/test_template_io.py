"""
Unit tests for core.template_io module.
"""
import json

import pytest
from core.exceptions import MalformedTemplate
from core.models import Shape, Template
from core.template_io import (
    deserialize_template,
    serialize_template,
    template_export_filename,
    template_to_json
)


def _region_form(region_id='r1', **overrides):
    form = {
        'id': region_id,
        'shape': 'rectangle',
        'x': 10,
        'y': 20,
        'width': 100,
        'height': 40,
        'fieldName': 'Tag',
    }
    form.update(overrides)
    return form


def _template_form(**overrides):
    form = {
        'id': 'tpl-1',
        'name': 'Title Block',
        'regions': [_region_form()],
        'createdAt': '2024-03-01T10:00:00+00:00',
        'updatedAt': '2024-03-02T12:30:00+00:00',
    }
    form.update(overrides)
    return form


class TestSerialize:
    """Tests for serialize_template."""

    def test_keys_and_order(self, sample_template):
        """Test the exported document layout."""
        payload = serialize_template(sample_template)

        assert list(payload) == ['id', 'name', 'description', 'regions', 'createdAt', 'updatedAt']
        assert payload['regions'][0] == {
            'id': 'r-tag', 'shape': 'rectangle', 'x': 10, 'y': 10,
            'width': 100, 'height': 40, 'fieldName': 'Tag',
        }
        assert payload['regions'][1]['shape'] == 'ellipse'

    def test_description_omitted_when_absent(self, sample_regions):
        payload = serialize_template(Template.create('Legend', regions=sample_regions))

        assert 'description' not in payload

    def test_unnamed_template_refused(self, sample_regions):
        """Test a draft without a name cannot be exported."""
        draft = Template.create('', regions=sample_regions)

        with pytest.raises(MalformedTemplate, match='needs a name'):
            serialize_template(draft)
        with pytest.raises(MalformedTemplate):
            template_to_json(draft)

    def test_json_text(self, sample_template):
        """Test JSON export is valid and readable."""
        text = template_to_json(sample_template)

        assert json.loads(text)['name'] == 'Title Block'
        assert '\n  ' in text


class TestRoundTrip:
    """Tests for export followed by import."""

    def test_equal_after_round_trip(self, sample_template):
        """Test a template survives export and import unchanged."""
        restored = deserialize_template(template_to_json(sample_template))

        assert restored == sample_template


class TestDeserialize:
    """Tests for deserialize_template."""

    def test_valid_form(self):
        template = deserialize_template(_template_form(description='Main sheet'))

        assert template.id == 'tpl-1'
        assert template.description == 'Main sheet'
        assert template.regions[0].shape is Shape.RECTANGLE
        assert template.regions[0].page_number is None
        assert template.created_at.year == 2024

    def test_legacy_selections(self):
        """Test older exports with 'selections' and 'type: circle'."""
        legacy = _template_form()
        legacy['selections'] = [{'id': 's1', 'type': 'circle', 'x': 0, 'y': 0,
                                 'width': 30, 'height': 30, 'fieldName': 'Valve'}]
        del legacy['regions']
        template = deserialize_template(legacy)

        assert template.regions[0].shape is Shape.ELLIPSE
        assert template.regions[0].field_name == 'Valve'

    def test_missing_field_name_uses_placeholder(self):
        form = _template_form(regions=[_region_form('a'), _region_form('b', fieldName='')])
        template = deserialize_template(form)

        assert template.regions[1].field_name == 'Field 2'

    def test_naive_timestamps_become_utc(self):
        template = deserialize_template(_template_form(createdAt='2024-03-01T10:00:00'))

        assert template.created_at.tzinfo is not None

    def test_invalid_json(self):
        with pytest.raises(MalformedTemplate, match='not valid JSON'):
            deserialize_template('{"id": ')

    def test_not_an_object(self):
        with pytest.raises(MalformedTemplate):
            deserialize_template('[1, 2, 3]')

    @pytest.mark.parametrize("missing", ['id', 'name', 'regions', 'createdAt'])
    def test_missing_required_key(self, missing):
        """Test each required key is enforced."""
        form = _template_form()
        del form[missing]

        with pytest.raises(MalformedTemplate) as exc_info:
            deserialize_template(form)
        assert exc_info.value.errors

    def test_blank_name(self):
        with pytest.raises(MalformedTemplate):
            deserialize_template(_template_form(name='   '))

    def test_bad_coordinate_type(self):
        form = _template_form(regions=[_region_form(x='left')])

        with pytest.raises(MalformedTemplate):
            deserialize_template(form)

    def test_unknown_shape(self):
        form = _template_form(regions=[_region_form(shape='triangle')])

        with pytest.raises(MalformedTemplate):
            deserialize_template(form)

    def test_duplicate_region_ids(self):
        form = _template_form(regions=[_region_form('same'), _region_form('same')])

        with pytest.raises(MalformedTemplate, match='Duplicate'):
            deserialize_template(form)

    def test_region_below_size_gate(self):
        form = _template_form(regions=[_region_form(width=10)])

        with pytest.raises(MalformedTemplate, match='too small'):
            deserialize_template(form)


def test_export_filename(sample_template):
    """Test non-alphanumerics are replaced in the export filename."""
    assert template_export_filename(sample_template) == 'Title_Block_template.json'
