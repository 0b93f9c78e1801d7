"""
Core domain models for template-driven extraction.

These are pure data structures; rendering, recognition and persistence live
in services/ and data/.
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .constants import CONFIDENCE_BANDS, DEFAULT_RENDER_OPTIONS, IMAGE_FORMATS, RENDER_LIMITS


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """Generate an opaque unique identifier."""
    return str(uuid.uuid4())


class Shape(str, Enum):
    """Outline of an extraction region."""
    RECTANGLE = 'rectangle'
    ELLIPSE = 'ellipse'


@dataclass(frozen=True)
class Region:
    """
    A named extraction area in page-pixel coordinates.

    Ellipses share the bounding-box representation of rectangles. Regions
    inside a Template carry no page number; results attach one with on_page().
    """
    id: str
    shape: Shape
    x: float
    y: float
    width: float
    height: float
    field_name: str
    page_number: Optional[int] = None

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def radii(self) -> Tuple[float, float]:
        return (self.width / 2, self.height / 2)

    @property
    def crop_box(self) -> Tuple[int, int, int, int]:
        """Integer bounding box (left, top, right, bottom) used for cropping."""
        return (
            int(round(self.x)),
            int(round(self.y)),
            int(round(self.x2)),
            int(round(self.y2)),
        )

    def on_page(self, page_number: int) -> 'Region':
        """Return a copy of this region attached to a page."""
        return replace(self, page_number=page_number)


@dataclass(frozen=True)
class Template:
    """
    Named, ordered collection of page-independent regions.

    Edits return new versions; the receiver is never mutated.
    """
    id: str
    name: str
    regions: Tuple[Region, ...] = ()
    description: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(cls, name: str, description: Optional[str] = None, regions=()) -> 'Template':
        now = utc_now()
        return cls(
            id=generate_id(),
            name=name.strip(),
            description=(description or '').strip() or None,
            regions=tuple(regions),
            created_at=now,
            updated_at=now,
        )

    @property
    def is_complete(self) -> bool:
        """A template can be saved and applied once it has a name and regions."""
        return bool(self.name.strip()) and len(self.regions) > 0

    def get_region(self, region_id: str) -> Optional[Region]:
        for region in self.regions:
            if region.id == region_id:
                return region
        return None

    def add_region(self, region: Region) -> 'Template':
        """Append a region at the end of the ordered sequence."""
        if region.page_number is not None:
            region = replace(region, page_number=None)
        return replace(self, regions=self.regions + (region,), updated_at=utc_now())

    def remove_region(self, region_id: str) -> 'Template':
        """Remove a region by id. Unknown ids leave the template unchanged."""
        if self.get_region(region_id) is None:
            return self
        remaining = tuple(r for r in self.regions if r.id != region_id)
        return replace(self, regions=remaining, updated_at=utc_now())

    def with_details(self, name: Optional[str] = None, description: Optional[str] = None) -> 'Template':
        """Return a copy with a new name and/or description."""
        new_name = self.name if name is None else name.strip()
        new_description = self.description if description is None else (description.strip() or None)
        if new_name == self.name and new_description == self.description:
            return self
        return replace(self, name=new_name, description=new_description, updated_at=utc_now())


@dataclass
class DataField:
    """A field the user wants to extract; names regions as they are drawn."""
    name: str
    id: str = field(default_factory=generate_id)
    description: Optional[str] = None


@dataclass
class RenderOptions:
    """Rendering options for the page renderer, clamped to supported ranges."""
    scale: float = DEFAULT_RENDER_OPTIONS['scale']
    quality: float = DEFAULT_RENDER_OPTIONS['quality']
    image_format: str = DEFAULT_RENDER_OPTIONS['image_format']
    antialiasing: bool = DEFAULT_RENDER_OPTIONS['antialiasing']

    def __post_init__(self):
        self.scale = min(max(float(self.scale), RENDER_LIMITS['min_scale']), RENDER_LIMITS['max_scale'])
        self.quality = min(max(float(self.quality), RENDER_LIMITS['min_quality']), RENDER_LIMITS['max_quality'])
        self.image_format = (self.image_format or 'png').lower()
        if self.image_format == 'jpg':
            self.image_format = 'jpeg'
        if self.image_format not in IMAGE_FORMATS:
            raise ValueError(f"Unsupported image format: {self.image_format}")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'scale': self.scale,
            'quality': self.quality,
            'image_format': self.image_format,
            'antialiasing': self.antialiasing,
        }


@dataclass
class PageImage:
    """One rendered page; pixel_data is owned by the caller and only read."""
    page_number: int
    source_id: str
    width: int
    height: int
    pixel_data: Any = field(repr=False, compare=False)
    file_index: int = 0


@dataclass
class RecognitionOutput:
    """Raw output of a text recognizer for one image."""
    text: str
    confidence: float


@dataclass
class ExtractionResult:
    """
    OCR outcome for one (page, region) pair.

    Only text is meant to change after a run (manual review). error is set
    when the recognition failed and the result was filled with empty text.
    """
    id: str
    field_name: str
    region: Region
    page_number: int
    source_id: str
    text: str = ""
    confidence: float = 0.0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'field_name': self.field_name,
            'page_number': self.page_number,
            'source_id': self.source_id,
            'text': self.text,
            'confidence': self.confidence,
            'error': self.error,
            'region': {
                'id': self.region.id,
                'shape': self.region.shape.value,
                'x': self.region.x,
                'y': self.region.y,
                'width': self.region.width,
                'height': self.region.height,
                'field_name': self.region.field_name,
                'page_number': self.region.page_number,
            },
        }


@dataclass(frozen=True)
class ProgressEvent:
    """Progress of an extraction run, reported before each recognition."""
    op: int
    total: int
    page_number: int
    field_name: str
    source_id: str
    file_index: int
    total_files: int
    page_index: int
    total_pages: int

    @property
    def fraction(self) -> float:
        return self.op / self.total if self.total else 0.0


@dataclass
class RunSummary:
    """Aggregate figures for a list of extraction results."""
    total: int = 0
    failed: int = 0
    empty: int = 0
    average_confidence: float = 0.0
    by_band: Dict[str, int] = field(default_factory=lambda: {band: 0 for band in CONFIDENCE_BANDS})
