"""
Template interchange format.

A template is exported and imported as a JSON document:

    {
      "id": "...", "name": "...", "description": "...",
      "regions": [{"id", "shape", "x", "y", "width", "height", "fieldName"}],
      "createdAt": "<ISO 8601>", "updatedAt": "<ISO 8601>"
    }

Exports from the earlier wizard used "selections" and "type"/"circle";
both are accepted on import.
"""
import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, FiniteFloat, ValidationError, field_validator

from .constants import MIN_REGION_SIZE, TEMPLATE_FILENAME_SUFFIX
from .exceptions import MalformedTemplate
from .geometry import default_field_name, parse_shape, passes_size_gate
from .models import Region, Template


class RegionSchema(BaseModel):
    """Serialized region."""
    model_config = ConfigDict(extra='ignore')

    id: str = Field(min_length=1)
    shape: str = Field(validation_alias=AliasChoices('shape', 'type'))
    x: FiniteFloat
    y: FiniteFloat
    width: FiniteFloat
    height: FiniteFloat
    field_name: Optional[str] = Field(default=None, validation_alias=AliasChoices('fieldName', 'field_name'))

    @field_validator('shape')
    @classmethod
    def check_shape(cls, value: str) -> str:
        return parse_shape(value).value


class TemplateSchema(BaseModel):
    """Serialized template."""
    model_config = ConfigDict(extra='ignore')

    id: str = Field(min_length=1)
    name: str
    description: Optional[str] = None
    regions: List[RegionSchema] = Field(validation_alias=AliasChoices('regions', 'selections'))
    created_at: datetime = Field(validation_alias=AliasChoices('createdAt', 'created_at'))
    updated_at: datetime = Field(validation_alias=AliasChoices('updatedAt', 'updated_at'))

    @field_validator('name')
    @classmethod
    def check_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError('template name must not be empty')
        return value

    @field_validator('created_at', 'updated_at')
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def serialize_region(region: Region) -> Dict[str, Any]:
    return {
        'id': region.id,
        'shape': region.shape.value,
        'x': region.x,
        'y': region.y,
        'width': region.width,
        'height': region.height,
        'fieldName': region.field_name,
    }


def serialize_template(template: Template) -> Dict[str, Any]:
    """
    Convert a template into its interchange form.

    Args:
        template: Template to export

    Returns:
        JSON-compatible dictionary

    Raises:
        MalformedTemplate: If the template has no name, since it could not
            be imported again
    """
    if not template.name.strip():
        raise MalformedTemplate("Template needs a name before it can be exported")

    payload = {
        'id': template.id,
        'name': template.name,
    }
    if template.description is not None:
        payload['description'] = template.description
    payload['regions'] = [serialize_region(r) for r in template.regions]
    payload['createdAt'] = template.created_at.isoformat()
    payload['updatedAt'] = template.updated_at.isoformat()
    return payload


def template_to_json(template: Template) -> str:
    return json.dumps(serialize_template(template), indent=2, ensure_ascii=False)


def deserialize_template(
    form: Union[Dict[str, Any], str, bytes],
    min_size: float = MIN_REGION_SIZE
) -> Template:
    """
    Build a Template from its interchange form.

    Args:
        form: Parsed dictionary or raw JSON text
        min_size: Region acceptance threshold

    Returns:
        Fully populated Template

    Raises:
        MalformedTemplate: On invalid JSON, missing fields, bad types,
            duplicate region ids or regions failing the size gate
    """
    if isinstance(form, (str, bytes, bytearray)):
        try:
            form = json.loads(form)
        except ValueError as e:
            raise MalformedTemplate(f"Template is not valid JSON: {e}") from e

    if not isinstance(form, dict):
        raise MalformedTemplate(f"Template must be a JSON object, got {type(form).__name__}")

    try:
        schema = TemplateSchema.model_validate(form)
    except ValidationError as e:
        raise MalformedTemplate(
            f"Invalid template: {e.error_count()} validation error(s)",
            errors=e.errors(include_url=False)
        ) from e

    regions = []
    seen_ids = set()
    for position, item in enumerate(schema.regions, start=1):
        if item.id in seen_ids:
            raise MalformedTemplate(f"Duplicate region id '{item.id}'")
        seen_ids.add(item.id)

        if not passes_size_gate(item.width, item.height, min_size):
            raise MalformedTemplate(
                f"Region '{item.id}' is too small "
                f"({item.width}x{item.height}, minimum is more than {min_size})"
            )

        regions.append(Region(
            id=item.id,
            shape=parse_shape(item.shape),
            x=item.x,
            y=item.y,
            width=item.width,
            height=item.height,
            field_name=item.field_name if (item.field_name or '').strip() else default_field_name(position),
        ))

    return Template(
        id=schema.id,
        name=schema.name,
        description=schema.description,
        regions=tuple(regions),
        created_at=schema.created_at,
        updated_at=schema.updated_at,
    )


def template_export_filename(template: Template) -> str:
    """Filename for exporting a template, e.g. 'Title_Block_template.json'."""
    return re.sub(r'[^a-zA-Z0-9]', '_', template.name) + TEMPLATE_FILENAME_SUFFIX
