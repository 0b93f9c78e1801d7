"""Core package - Domain models, geometry, template codec and constants."""

from .models import (
    Shape,
    Region,
    Template,
    DataField,
    RenderOptions,
    PageImage,
    RecognitionOutput,
    ExtractionResult,
    ProgressEvent,
    RunSummary
)
from .exceptions import (
    ExtractionError,
    EmptyTemplate,
    NoPages,
    MalformedTemplate,
    RegionRecognitionFailure,
    UnsupportedRecognizerOutput,
    RenderError,
    UnsupportedEngine
)
from .geometry import create_region, passes_size_gate, DrawSession
from .template_io import serialize_template, deserialize_template, template_to_json
from .constants import (
    MIN_REGION_SIZE,
    DEFAULT_OCR_PARAMS,
    DEFAULT_RENDER_OPTIONS,
    CSV_HEADERS
)

__all__ = [
    # Models
    'Shape',
    'Region',
    'Template',
    'DataField',
    'RenderOptions',
    'PageImage',
    'RecognitionOutput',
    'ExtractionResult',
    'ProgressEvent',
    'RunSummary',

    # Errors
    'ExtractionError',
    'EmptyTemplate',
    'NoPages',
    'MalformedTemplate',
    'RegionRecognitionFailure',
    'UnsupportedRecognizerOutput',
    'RenderError',
    'UnsupportedEngine',

    # Geometry and templates
    'create_region',
    'passes_size_gate',
    'DrawSession',
    'serialize_template',
    'deserialize_template',
    'template_to_json',

    # Constants
    'MIN_REGION_SIZE',
    'DEFAULT_OCR_PARAMS',
    'DEFAULT_RENDER_OPTIONS',
    'CSV_HEADERS'
]
