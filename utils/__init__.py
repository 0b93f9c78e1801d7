"""Utilities package - Helper functions for images and CSV export."""

from .image_utils import (
    to_pil_image,
    crop_region,
    upscale_image,
    prepare_region_image,
    load_image,
    image_to_base64,
    get_image_dimensions
)

from .csv_utils import (
    CsvMode,
    escape_csv_value,
    to_csv,
    default_csv_filename,
    write_csv,
    data_preview
)

__all__ = [
    # Image utils
    'to_pil_image',
    'crop_region',
    'upscale_image',
    'prepare_region_image',
    'load_image',
    'image_to_base64',
    'get_image_dimensions',

    # CSV utils
    'CsvMode',
    'escape_csv_value',
    'to_csv',
    'default_csv_filename',
    'write_csv',
    'data_preview'
]
