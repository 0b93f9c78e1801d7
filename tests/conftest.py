"""
Pytest configuration and global fixtures.
"""
import asyncio
import sys
from pathlib import Path

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.models import PageImage, RecognitionOutput, Region, Shape, Template
from data.db_models import Base
from services.recognizers import BaseTextRecognizer


class FakeRecognizer(BaseTextRecognizer):
    """Scriptable recognizer that records every call."""

    name = "fake"

    def __init__(self, responses=None, fail_on=(), delay=0.0):
        self.responses = list(responses or [])
        self.fail_on = set(fail_on)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def recognize(self, image, language="eng", on_progress=None):
        self.calls.append({'size': image.size, 'language': language})
        call_number = len(self.calls)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self._report(on_progress, 0.0)
            await asyncio.sleep(self.delay)
            if call_number in self.fail_on:
                raise RuntimeError(f"engine failure on call {call_number}")
            self._report(on_progress, 1.0)
            if self.responses:
                return self.responses[(call_number - 1) % len(self.responses)]
            return RecognitionOutput(text=f"  value {call_number}\n", confidence=87.5)
        finally:
            self.in_flight -= 1


@pytest.fixture
def test_db_engine():
    """Create a fresh in-memory SQLite engine for each test."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def test_db_session(test_db_engine):
    """Create fresh database session for each test."""
    Session = sessionmaker(bind=test_db_engine)
    session = Session()

    yield session

    # Rollback any uncommitted changes and close
    session.rollback()
    session.close()


@pytest.fixture
def temp_dir(tmp_path):
    """Provide temporary directory for test files."""
    return tmp_path


@pytest.fixture
def recognizer_factory():
    """Return the FakeRecognizer class for tests to configure."""
    return FakeRecognizer


@pytest.fixture
def make_pages():
    """Factory for blank page images tagged with a source."""
    def _make(count, source_id="drawing-1.pdf", size=(400, 300), file_index=0, start=1):
        pages = []
        for number in range(start, start + count):
            img = Image.new('RGB', size, color='white')
            pages.append(PageImage(
                page_number=number,
                source_id=source_id,
                width=size[0],
                height=size[1],
                pixel_data=img,
                file_index=file_index
            ))
        return pages
    return _make


@pytest.fixture
def sample_regions():
    """Two regions: a rectangle and an ellipse."""
    return [
        Region(id='r-tag', shape=Shape.RECTANGLE, x=10, y=10, width=100, height=40, field_name='Tag'),
        Region(id='r-rev', shape=Shape.ELLIPSE, x=150, y=50, width=80, height=60, field_name='Rev'),
    ]


@pytest.fixture
def sample_template(sample_regions):
    """Template with the sample regions."""
    return Template.create('Title Block', description='P&ID title block', regions=sample_regions)


@pytest.fixture
def sample_pdf_bytes():
    """Two-page PDF with some text on each page."""
    import fitz

    doc = fitz.open()
    for number in (1, 2):
        page = doc.new_page(width=200, height=100)
        page.insert_text((20, 50), f"TAG-10{number}")
    blob = doc.tobytes()
    doc.close()
    return blob


@pytest.fixture
def sample_png_bytes():
    """Encoded PNG image."""
    from io import BytesIO

    img = Image.new('RGB', (120, 80), color='blue')
    buf = BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()
