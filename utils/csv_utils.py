"""
CSV export of extraction results.

Three layouts are produced from the same ordered result list:
full, summary and grouped by page. This is an encoder only.
"""
import math
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from core.constants import CSV_FILENAMES, CSV_HEADERS
from core.logger import get_logger
from core.models import ExtractionResult

logger = get_logger(__name__)


class CsvMode(str, Enum):
    """Export layouts."""
    FULL = 'full'
    SUMMARY = 'summary'
    GROUPED_BY_PAGE = 'grouped_by_page'


def escape_csv_value(value: Optional[str]) -> str:
    """
    Escape a single cell.

    Quotes the value when it contains a comma, quote or line break, doubling
    inner quotes. Empty values become '""'.
    """
    if not value:
        return '""'
    if any(ch in value for ch in (',', '"', '\n', '\r')):
        return '"' + value.replace('"', '""') + '"'
    return value


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _join(rows: Iterable[Sequence[str]]) -> str:
    return '\n'.join(','.join(row) for row in rows)


def _full_rows(results: Sequence[ExtractionResult]) -> List[List[str]]:
    rows = []
    for item in results:
        region = item.region
        rows.append([
            escape_csv_value(item.field_name),
            escape_csv_value(item.text),
            str(item.page_number),
            str(round_half_up(item.confidence)),
            str(round_half_up(region.x)),
            str(round_half_up(region.y)),
            str(round_half_up(region.width)),
            str(round_half_up(region.height)),
            region.shape.value,
        ])
    return rows


def _summary_rows(results: Sequence[ExtractionResult]) -> List[List[str]]:
    return [
        [escape_csv_value(item.field_name), escape_csv_value(item.text), str(item.page_number)]
        for item in results
    ]


def _grouped_rows(results: Sequence[ExtractionResult]) -> List[List[str]]:
    buckets = {}
    for item in results:
        buckets.setdefault(item.page_number, []).append(item)

    width = len(CSV_HEADERS['grouped_by_page'])
    rows = []
    page_numbers = sorted(buckets)
    for bucket_index, page_number in enumerate(page_numbers):
        for index, item in enumerate(buckets[page_number]):
            rows.append([
                f"Page {page_number}" if index == 0 else '',
                escape_csv_value(item.field_name),
                escape_csv_value(item.text),
                str(round_half_up(item.confidence)),
            ])
        if bucket_index < len(page_numbers) - 1:
            rows.append([''] * width)
    return rows


_ROW_BUILDERS = {
    CsvMode.FULL: _full_rows,
    CsvMode.SUMMARY: _summary_rows,
    CsvMode.GROUPED_BY_PAGE: _grouped_rows,
}


def to_csv(results: Sequence[ExtractionResult], mode: CsvMode = CsvMode.FULL) -> str:
    """
    Render results as CSV text.

    Args:
        results: Ordered extraction results
        mode: Layout to produce

    Returns:
        CSV text, rows separated by '\\n', header first, no trailing newline
    """
    mode = CsvMode(mode)
    if not results:
        logger.warning("No data to export; writing header only")
    header = CSV_HEADERS[mode.value]
    return _join([header] + _ROW_BUILDERS[mode](results))


def default_csv_filename(mode: CsvMode = CsvMode.FULL, on: Optional[date] = None) -> str:
    """Default export filename carrying an ISO calendar date."""
    mode = CsvMode(mode)
    on = on or date.today()
    return CSV_FILENAMES[mode.value].format(date=on.isoformat())


def write_csv(
    results: Sequence[ExtractionResult],
    path=None,
    mode: CsvMode = CsvMode.FULL
) -> Path:
    """
    Write results to a CSV file.

    Args:
        results: Ordered extraction results
        path: Target file or directory; defaults to the current directory
        mode: Layout to produce

    Returns:
        Path of the written file
    """
    target = Path(path) if path is not None else Path('.')
    if target.is_dir():
        target = target / default_csv_filename(mode)

    target.write_text(to_csv(results, mode), encoding='utf-8')
    logger.info(f"Exported {len(results)} results to {target} ({CsvMode(mode).value})")
    return target


def data_preview(results: Sequence[ExtractionResult], max_rows: int = 5) -> str:
    """Fixed-width text preview of the first rows."""
    if not results:
        return 'No data available'

    headers = ['Field Name', 'Extracted Text', 'Page']
    rows = []
    for item in results[:max_rows]:
        text = item.text if len(item.text) <= 30 else item.text[:30] + '...'
        rows.append([item.field_name, text, str(item.page_number)])

    table = '\n'.join(
        ' | '.join(cell.ljust(20) for cell in row)
        for row in [headers] + rows
    )
    if len(results) > max_rows:
        table += f"\n... and {len(results) - max_rows} more rows"
    return table
