"""
Region geometry: corner normalization, the size acceptance gate and the
draw session that turns pointer gestures into regions.
"""
from typing import List, Optional, Sequence, Union

from .constants import DEFAULT_FIELD_NAME, LEGACY_SHAPE_ALIASES, MIN_REGION_SIZE
from .models import DataField, Region, Shape, generate_id


def parse_shape(value: Union[str, Shape]) -> Shape:
    """
    Convert a shape name into a Shape.

    Accepts 'rectangle', 'ellipse' and the legacy 'circle'.

    Raises:
        ValueError: If the name is not a known shape
    """
    if isinstance(value, Shape):
        return value
    name = str(value).strip().lower()
    name = LEGACY_SHAPE_ALIASES.get(name, name)
    return Shape(name)


def passes_size_gate(width: float, height: float, min_size: float = MIN_REGION_SIZE) -> bool:
    """True when both extents are strictly larger than min_size."""
    return width > min_size and height > min_size


def default_field_name(position: int) -> str:
    return DEFAULT_FIELD_NAME.format(position=position)


def normalize_box(x0: float, y0: float, x1: float, y1: float):
    """
    Normalize two arbitrary corners into (x, y, width, height).

    Returns:
        Tuple with the top-left corner and non-negative extents
    """
    return (
        min(x0, x1),
        min(y0, y1),
        abs(x1 - x0),
        abs(y1 - y0),
    )


def create_region(
    shape: Union[str, Shape],
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    field_name: Optional[str] = None,
    region_id: Optional[str] = None,
    position: int = 1,
    min_size: float = MIN_REGION_SIZE
) -> Optional[Region]:
    """
    Build a region from two corner points.

    Args:
        shape: 'rectangle' or 'ellipse' (a Shape is accepted too)
        x0, y0: First corner in page pixels
        x1, y1: Opposite corner in page pixels
        field_name: Label for the region; defaults to 'Field {position}'
        region_id: Identifier; a new one is generated when omitted
        position: 1-based position used for the default label
        min_size: Acceptance threshold for both extents

    Returns:
        The Region, or None when the box is too small
    """
    x, y, width, height = normalize_box(x0, y0, x1, y1)
    if not passes_size_gate(width, height, min_size):
        return None

    name = (field_name or '').strip() or default_field_name(position)
    return Region(
        id=region_id or generate_id(),
        shape=parse_shape(shape),
        x=x,
        y=y,
        width=width,
        height=height,
        field_name=name,
    )


class DrawSession:
    """
    Short-lived command object for drawing regions.

    begin_draw / update_draw / commit_draw replace the pointer state of an
    editor. Committed regions take their names from the data fields in order;
    once the last field is reached it keeps being used.
    """

    def __init__(
        self,
        data_fields: Optional[Sequence[DataField]] = None,
        shape: Union[str, Shape] = Shape.RECTANGLE,
        min_size: float = MIN_REGION_SIZE,
        committed: int = 0
    ):
        self.data_fields: List[DataField] = list(data_fields or [])
        self.shape = parse_shape(shape)
        self.min_size = min_size
        self.committed = committed
        self.field_index = 0
        self._start = None
        self._end = None

    @classmethod
    def from_settings(cls, data_fields: Optional[Sequence[DataField]] = None, app_settings=None) -> 'DrawSession':
        """Session using the configured MIN_REGION_SIZE."""
        if app_settings is None:
            from config.settings import settings as app_settings
        return cls(data_fields=data_fields, min_size=app_settings.min_region_size)

    @property
    def is_drawing(self) -> bool:
        return self._start is not None

    @property
    def current_field_name(self) -> Optional[str]:
        if self.field_index < len(self.data_fields):
            return self.data_fields[self.field_index].name
        return None

    def select_field(self, index: int) -> None:
        if not 0 <= index < len(self.data_fields):
            raise IndexError(f"No data field at index {index}")
        self.field_index = index

    def begin_draw(self, x: float, y: float, shape: Union[str, Shape, None] = None) -> None:
        if shape is not None:
            self.shape = parse_shape(shape)
        self._start = (x, y)
        self._end = (x, y)

    def update_draw(self, x: float, y: float) -> None:
        if self._start is None:
            return
        self._end = (x, y)

    def preview(self):
        """Current box as (x, y, width, height), or None when not drawing."""
        if self._start is None:
            return None
        return normalize_box(*self._start, *self._end)

    def commit_draw(self) -> Optional[Region]:
        """
        Finish the gesture.

        Returns:
            The new Region, or None if nothing was drawn or the box was too small
        """
        if self._start is None:
            return None

        (x0, y0), (x1, y1) = self._start, self._end
        self._start = self._end = None

        region = create_region(
            self.shape,
            x0, y0, x1, y1,
            field_name=self.current_field_name,
            position=self.committed + 1,
            min_size=self.min_size,
        )
        if region is None:
            return None

        self.committed += 1
        if self.field_index < len(self.data_fields) - 1:
            self.field_index += 1
        return region

    def cancel_draw(self) -> None:
        self._start = self._end = None

    def reset(self) -> None:
        """Forget committed regions and go back to the first field."""
        self.cancel_draw()
        self.committed = 0
        self.field_index = 0
