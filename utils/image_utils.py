"""
Image utilities for region extraction.

Handles conversion of page surfaces, cropping, upscaling and encoding.
"""
import base64
from io import BytesIO
from typing import Tuple

import numpy as np
from PIL import Image, ImageOps

from core.exceptions import RegionRecognitionFailure
from core.models import Region


def to_pil_image(pixel_data) -> Image.Image:
    """
    Get a PIL Image view of a page surface.

    Args:
        pixel_data: PIL Image or numpy array (H x W or H x W x C, uint8)

    Returns:
        PIL Image object (numpy input is converted, never modified)
    """
    if isinstance(pixel_data, Image.Image):
        return pixel_data
    if isinstance(pixel_data, np.ndarray):
        array = pixel_data
        if array.dtype != np.uint8:
            array = np.clip(array, 0, 255).astype(np.uint8)
        return Image.fromarray(array)
    raise TypeError(f"Unsupported page surface: {type(pixel_data).__name__}")


def clamp_box(box: Tuple[int, int, int, int], width: int, height: int) -> Tuple[int, int, int, int]:
    """Clamp a (left, top, right, bottom) box to the image bounds."""
    left, top, right, bottom = box
    return (
        max(0, min(left, width)),
        max(0, min(top, height)),
        max(0, min(right, width)),
        max(0, min(bottom, height)),
    )


def crop_region(image: Image.Image, region: Region) -> Image.Image:
    """
    Crop a region's bounding box out of a page image.

    Ellipses are cropped as their bounding rectangle.

    Raises:
        RegionRecognitionFailure: If the box lies outside the page
    """
    box = clamp_box(region.crop_box, image.width, image.height)
    left, top, right, bottom = box
    if right <= left or bottom <= top:
        raise RegionRecognitionFailure(
            f"Region '{region.field_name}' lies outside the page "
            f"({image.width}x{image.height})",
            page_number=region.page_number,
            region_id=region.id
        )
    return image.crop(box)


def upscale_image(image: Image.Image, factor: float) -> Image.Image:
    """Resize by a scale factor with high-quality resampling."""
    if factor == 1:
        return image.copy()
    size = (max(1, int(round(image.width * factor))), max(1, int(round(image.height * factor))))
    return image.resize(size, Image.Resampling.LANCZOS)


def prepare_region_image(pixel_data, region: Region, upscale_factor: float = 2.0) -> Image.Image:
    """
    Crop and upscale a region from a page surface for OCR.

    Args:
        pixel_data: Page surface (PIL Image or numpy array)
        region: Region in page-pixel coordinates
        upscale_factor: Scale applied after cropping

    Returns:
        RGB PIL Image ready for recognition
    """
    page = to_pil_image(pixel_data)
    crop = crop_region(page, region)
    if crop.mode not in ('RGB', 'L'):
        crop = crop.convert('RGB')
    return upscale_image(crop, upscale_factor)


def load_image(blob: bytes) -> Image.Image:
    """
    Decode an image file, fixing EXIF orientation and converting to RGB.

    Args:
        blob: Encoded image bytes (PNG, JPEG, TIFF, ...)

    Returns:
        Fully loaded PIL Image
    """
    img = Image.open(BytesIO(blob))
    img = ImageOps.exif_transpose(img)
    if img.mode != 'RGB':
        img = img.convert('RGB')
    img.load()
    return img


def image_to_png_bytes(image: Image.Image) -> bytes:
    buf = BytesIO()
    image.save(buf, format='PNG')
    return buf.getvalue()


def image_to_base64(image: Image.Image) -> str:
    """Encode a PIL Image as base64 PNG."""
    return base64.b64encode(image_to_png_bytes(image)).decode()


def get_image_dimensions(pixel_data) -> Tuple[int, int]:
    """
    Get image dimensions (width, height).

    Args:
        pixel_data: PIL Image or numpy array

    Returns:
        Tuple of (width, height)
    """
    if isinstance(pixel_data, np.ndarray):
        return int(pixel_data.shape[1]), int(pixel_data.shape[0])
    return to_pil_image(pixel_data).size
