"""
Page Renderer - Turns source documents into page images.

PDFs are rasterized with PyMuPDF; raster files become a single page.
Every page is tagged with the source it came from.
"""
import asyncio
import threading
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence, Union

import fitz  # PyMuPDF
from PIL import Image

from core.constants import PDF_EXTENSIONS, RASTER_EXTENSIONS
from core.exceptions import RenderError
from core.logger import get_logger
from core.models import PageImage, RenderOptions
from utils.image_utils import load_image

logger = get_logger(__name__)

_AA_LOCK = threading.Lock()


def apply_output_format(image: Image.Image, options: RenderOptions) -> Image.Image:
    """
    Re-encode a rendered page in the requested format.

    PNG is lossless and returned unchanged; JPEG is encoded at the requested
    quality and decoded again so the page carries the same artifacts as an
    exported image.
    """
    if options.image_format != 'jpeg':
        return image
    buf = BytesIO()
    image.save(buf, format='JPEG', quality=max(1, int(round(options.quality * 100))))
    buf.seek(0)
    jpeg = Image.open(buf)
    jpeg.load()
    return jpeg


class PdfPageRenderer:
    """Renders PDF documents and raster images into PageImage sequences."""

    def __init__(self, options: Optional[RenderOptions] = None):
        """
        Initialize renderer.

        Args:
            options: Default render options (scale 3, PNG, antialiasing on)
        """
        self.options = options or RenderOptions()

    def get_page_count(self, document: bytes) -> int:
        """Number of pages in a PDF blob."""
        try:
            with fitz.open(stream=document, filetype="pdf") as doc:
                return doc.page_count
        except Exception as e:
            raise RenderError(f"Failed to read PDF file: {e}") from e

    def render(
        self,
        document: bytes,
        options: Optional[RenderOptions] = None,
        source_id: str = "document",
        file_index: int = 0
    ) -> List[PageImage]:
        """
        Render every page of a PDF.

        Args:
            document: PDF file content
            options: Render options (renderer defaults if None)
            source_id: Identifier stamped on every page
            file_index: Position of the document in its batch

        Returns:
            Pages numbered from 1 in document order

        Raises:
            RenderError: If the PDF cannot be opened or rasterized
        """
        options = options or self.options
        matrix = fitz.Matrix(options.scale, options.scale)

        try:
            doc = fitz.open(stream=document, filetype="pdf")
        except Exception as e:
            raise RenderError(f"Failed to open PDF '{source_id}': {e}") from e

        pages = []
        # Anti-aliasing is process-wide PyMuPDF state: hold the lock while it
        # is changed and put the previous level back afterwards
        with _AA_LOCK:
            previous_aa = fitz.TOOLS.show_aa_level()['graphics']
            fitz.TOOLS.set_aa_level(8 if options.antialiasing else 0)
            try:
                for index in range(doc.page_count):
                    pix = doc.load_page(index).get_pixmap(matrix=matrix, alpha=False)
                    image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
                    image = apply_output_format(image, options)
                    pages.append(PageImage(
                        page_number=index + 1,
                        source_id=source_id,
                        width=image.width,
                        height=image.height,
                        pixel_data=image,
                        file_index=file_index
                    ))
            except Exception as e:
                raise RenderError(f"Failed to render '{source_id}': {e}") from e
            finally:
                fitz.TOOLS.set_aa_level(previous_aa)
                doc.close()

        logger.info(f"Rendered {len(pages)} page(s) from {source_id} at {options.scale}x")
        return pages

    def render_image(
        self,
        blob: bytes,
        source_id: str = "image",
        file_index: int = 0
    ) -> List[PageImage]:
        """Load a raster image as a single-page document."""
        try:
            image = load_image(blob)
        except Exception as e:
            raise RenderError(f"Failed to load image '{source_id}': {e}") from e

        return [PageImage(
            page_number=1,
            source_id=source_id,
            width=image.width,
            height=image.height,
            pixel_data=image,
            file_index=file_index
        )]

    def render_file(
        self,
        path: Union[str, Path],
        options: Optional[RenderOptions] = None,
        file_index: int = 0,
        source_id: Optional[str] = None
    ) -> List[PageImage]:
        """Render a PDF or raster file from disk, choosing by extension."""
        path = Path(path)
        suffix = path.suffix.lower()
        source_id = source_id or path.name

        if suffix in PDF_EXTENSIONS:
            return self.render(path.read_bytes(), options, source_id=source_id, file_index=file_index)
        if suffix in RASTER_EXTENSIONS:
            return self.render_image(path.read_bytes(), source_id=source_id, file_index=file_index)
        raise RenderError(f"Unsupported file type: {path.name}")

    def render_files(
        self,
        paths: Sequence[Union[str, Path]],
        options: Optional[RenderOptions] = None
    ) -> List[PageImage]:
        """
        Render a batch of files into one page list.

        Pages come out grouped by file (in the given order) then by page
        number. Repeated file names get a ' (n)' suffix so every source_id
        stays unique within the batch.
        """
        pages = []
        seen = {}
        for file_index, path in enumerate(paths):
            name = Path(path).name
            seen[name] = seen.get(name, 0) + 1
            source_id = name if seen[name] == 1 else f"{name} ({seen[name]})"
            pages.extend(self.render_file(path, options, file_index=file_index, source_id=source_id))
        return pages

    async def render_documents(
        self,
        paths: Sequence[Union[str, Path]],
        options: Optional[RenderOptions] = None
    ) -> List[PageImage]:
        """Render a batch in a worker thread; PyMuPDF documents are not shared across threads."""
        return await asyncio.to_thread(self.render_files, list(paths), options)
