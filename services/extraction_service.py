"""
Extraction Service - Applies a template to a batch of pages.

The orchestrator expands a template over every page (pages outer, regions
inner), drives the text recognizer one region at a time and returns one
result per (page, region) pair in that order. Region failures never abort
the batch: they become empty, zero-confidence results carrying the error.
"""
import asyncio
import math
import uuid
from dataclasses import replace
from pathlib import Path
from typing import AsyncGenerator, Callable, Dict, List, Optional, Sequence, Union

from core.constants import CONFIDENCE_BANDS, DEFAULT_OCR_PARAMS
from core.exceptions import EmptyTemplate, NoPages, UnsupportedRecognizerOutput
from core.logger import get_logger
from core.models import (
    ExtractionResult,
    PageImage,
    ProgressEvent,
    Region,
    RenderOptions,
    RunSummary,
    Template
)
from services.page_renderer import PdfPageRenderer
from services.recognizers import BaseTextRecognizer
from utils.image_utils import prepare_region_image

logger = get_logger(__name__)

# Namespace for deterministic result ids
RESULT_NAMESPACE = uuid.UUID('6f1c2b1e-4a8e-5d3c-9b7a-2e0f4c6d8a10')

ProgressHandler = Callable[[ProgressEvent], None]
RegionProgressHandler = Callable[[ProgressEvent, float], None]


def extraction_result_id(source_id: str, page_number: int, region_id: str) -> str:
    """Stable id for the result of one region on one page of one source."""
    return str(uuid.uuid5(RESULT_NAMESPACE, f"{source_id}\x1f{page_number}\x1f{region_id}"))


def sort_pages(pages: Sequence[PageImage]) -> List[PageImage]:
    """
    Order pages by document then page number.

    Documents keep the order in which they first appear.
    """
    first_seen: Dict[str, int] = {}
    for page in pages:
        first_seen.setdefault(page.source_id, len(first_seen))
    return sorted(pages, key=lambda p: (first_seen[p.source_id], p.page_number))


def group_pages_by_source(pages: Sequence[PageImage]) -> Dict[str, List[PageImage]]:
    """Pages per source document, in first-appearance order."""
    groups: Dict[str, List[PageImage]] = {}
    for page in pages:
        groups.setdefault(page.source_id, []).append(page)
    return groups


class ExtractionOrchestrator:
    """Drives region-by-region recognition over a batch of pages."""

    def __init__(
        self,
        recognizer: BaseTextRecognizer,
        language: str = DEFAULT_OCR_PARAMS['language'],
        upscale_factor: float = DEFAULT_OCR_PARAMS['upscale_factor'],
        throttle_delay: float = DEFAULT_OCR_PARAMS['throttle_delay']
    ):
        """
        Initialize orchestrator.

        Args:
            recognizer: Text recognizer used for every region
            language: Recognition language (default: 'eng')
            upscale_factor: Scale applied to each crop before recognition
            throttle_delay: Seconds to wait between consecutive recognitions
        """
        if upscale_factor <= 0:
            raise ValueError("upscale_factor must be positive")
        self.recognizer = recognizer
        self.language = language
        self.upscale_factor = upscale_factor
        self.throttle_delay = max(0.0, throttle_delay)

    @classmethod
    def from_settings(cls, recognizer: Optional[BaseTextRecognizer] = None, app_settings=None) -> 'ExtractionOrchestrator':
        """Build an orchestrator (and, if needed, its recognizer) from settings."""
        if app_settings is None:
            from config.settings import settings as app_settings
        if recognizer is None:
            from services.recognizer_factory import get_text_recognizer
            recognizer = get_text_recognizer(app_settings)
        return cls(recognizer, **app_settings.get_orchestrator_config())

    @staticmethod
    def _check_preconditions(pages: Sequence[PageImage], template: Template) -> None:
        if not template.regions:
            raise EmptyTemplate(template.name)
        if not pages:
            raise NoPages()

    async def run(
        self,
        pages: Sequence[PageImage],
        template: Template,
        on_progress: Optional[ProgressHandler] = None,
        on_region_progress: Optional[RegionProgressHandler] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> List[ExtractionResult]:
        """
        Apply a template to every page.

        Args:
            pages: Pages in processing order (see sort_pages)
            template: Template whose regions are extracted
            on_progress: Called before each recognition with a ProgressEvent
            on_region_progress: Called with (event, fraction) as the recognizer progresses
            cancel_event: When set, the run stops and returns the results so far

        Returns:
            len(pages) * len(template.regions) results, or a prefix if cancelled

        Raises:
            EmptyTemplate: If the template has no regions
            NoPages: If no pages were given
        """
        self._check_preconditions(pages, template)

        results = []
        async for result in self.iter_results(pages, template, on_progress, on_region_progress, cancel_event):
            results.append(result)
        return results

    async def iter_results(
        self,
        pages: Sequence[PageImage],
        template: Template,
        on_progress: Optional[ProgressHandler] = None,
        on_region_progress: Optional[RegionProgressHandler] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> AsyncGenerator[ExtractionResult, None]:
        """
        Yield results one by one as they are recognized.

        Same ordering, progress and cancellation contract as run().
        """
        self._check_preconditions(pages, template)

        pages = list(pages)
        regions = template.regions
        total = len(pages) * len(regions)

        file_index: Dict[str, int] = {}
        for page in pages:
            file_index.setdefault(page.source_id, len(file_index))
        total_files = len(file_index)

        logger.info(
            f"Extracting '{template.name}': {len(regions)} region(s) x "
            f"{len(pages)} page(s) from {total_files} file(s)"
        )

        op = 0
        failed = 0
        for page_index, page in enumerate(pages, start=1):
            for region in regions:
                if op > 0 and self.throttle_delay:
                    await self._pause(cancel_event)
                if cancel_event is not None and cancel_event.is_set():
                    logger.info(f"Extraction cancelled after {op}/{total} operations")
                    return

                op += 1
                event = ProgressEvent(
                    op=op,
                    total=total,
                    page_number=page.page_number,
                    field_name=region.field_name,
                    source_id=page.source_id,
                    file_index=file_index[page.source_id],
                    total_files=total_files,
                    page_index=page_index,
                    total_pages=len(pages)
                )
                if on_progress is not None:
                    on_progress(event)

                sub_progress = None
                if on_region_progress is not None:
                    sub_progress = lambda fraction, event=event: on_region_progress(event, fraction)

                result = await self._recognize_cancellable(page, region, sub_progress, cancel_event)
                if result is None:
                    logger.info(f"Extraction cancelled during operation {op}/{total}")
                    return

                if result.failed:
                    failed += 1
                yield result

        logger.info(f"Extraction finished: {total} result(s), {failed} failed")

    async def _pause(self, cancel_event: Optional[asyncio.Event]) -> None:
        """Inter-call delay; returns early when the run is cancelled."""
        if cancel_event is None:
            await asyncio.sleep(self.throttle_delay)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.throttle_delay)
        except asyncio.TimeoutError:
            pass

    async def _recognize_cancellable(
        self,
        page: PageImage,
        region: Region,
        on_progress: Optional[Callable[[float], None]],
        cancel_event: Optional[asyncio.Event]
    ) -> Optional[ExtractionResult]:
        """Recognize one region, or return None if cancel_event fires first."""
        if cancel_event is None:
            return await self.recognize_region(page, region, on_progress)

        task = asyncio.ensure_future(self.recognize_region(page, region, on_progress))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
            if task.done():
                return task.result()
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            return None
        finally:
            for pending in (task, waiter):
                if not pending.done():
                    pending.cancel()

    async def recognize_region(
        self,
        page: PageImage,
        region: Region,
        on_progress: Optional[Callable[[float], None]] = None
    ) -> ExtractionResult:
        """
        Crop, upscale and recognize one region of one page.

        Any error is logged and turned into an empty, zero-confidence result
        with the error recorded.
        """
        placed = region.on_page(page.page_number)
        identity = dict(
            id=extraction_result_id(page.source_id, page.page_number, region.id),
            field_name=region.field_name,
            region=placed,
            page_number=page.page_number,
            source_id=page.source_id
        )

        try:
            image = prepare_region_image(page.pixel_data, placed, self.upscale_factor)
            output = await self.recognizer.recognize(image, self.language, on_progress)
            text, confidence = self._validate_output(output)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.warning(
                f"Recognition failed for '{region.field_name}' on page {page.page_number} "
                f"of {page.source_id}: {error}"
            )
            return ExtractionResult(**identity, error=error)

        return ExtractionResult(**identity, text=text, confidence=confidence)

    @staticmethod
    def _validate_output(output):
        """
        Check a recognizer response and normalize it.

        Returns:
            Tuple of (trimmed text, confidence clamped to [0, 100])

        Raises:
            UnsupportedRecognizerOutput: If text or confidence is missing or invalid
        """
        if isinstance(output, dict):
            text, confidence = output.get('text'), output.get('confidence')
        else:
            text, confidence = getattr(output, 'text', None), getattr(output, 'confidence', None)

        if not isinstance(text, str):
            raise UnsupportedRecognizerOutput(f"Recognizer returned no text: {output!r}")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not math.isfinite(confidence):
            raise UnsupportedRecognizerOutput(f"Recognizer returned an invalid confidence: {confidence!r}")

        return text.strip(), float(min(max(confidence, 0.0), 100.0))


async def extract_documents(
    paths: Sequence[Union[str, Path]],
    template: Template,
    orchestrator: ExtractionOrchestrator,
    renderer: Optional[PdfPageRenderer] = None,
    options: Optional[RenderOptions] = None,
    on_progress: Optional[ProgressHandler] = None,
    cancel_event: Optional[asyncio.Event] = None
) -> List[ExtractionResult]:
    """
    Render a batch of files and apply a template to all their pages.

    Raises:
        EmptyTemplate: Checked before any rendering
        NoPages: If the files produced no pages
        RenderError: If a file cannot be rendered
    """
    if not template.regions:
        raise EmptyTemplate(template.name)

    renderer = renderer or PdfPageRenderer()
    pages = await renderer.render_documents(paths, options)
    return await orchestrator.run(pages, template, on_progress=on_progress, cancel_event=cancel_event)


def confidence_band(confidence: float) -> str:
    """'high' (>= 80), 'medium' (>= 30) or 'low'."""
    for band, lower in sorted(CONFIDENCE_BANDS.items(), key=lambda item: -item[1]):
        if confidence >= lower:
            return band
    return 'low'


def summarize_results(results: Sequence[ExtractionResult]) -> RunSummary:
    """Counts and average confidence for a result list."""
    summary = RunSummary(total=len(results))
    if not results:
        return summary

    for item in results:
        if item.failed:
            summary.failed += 1
        if not item.text:
            summary.empty += 1
        summary.by_band[confidence_band(item.confidence)] += 1

    summary.average_confidence = sum(r.confidence for r in results) / len(results)
    return summary


def update_result_text(
    results: Sequence[ExtractionResult],
    result_id: str,
    text: str
) -> List[ExtractionResult]:
    """
    Replace the text of one result after manual review.

    Returns a new list; unknown ids leave the list unchanged.
    """
    return [replace(item, text=text) if item.id == result_id else item for item in results]
