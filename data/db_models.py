"""
Database models for the template library and extraction runs.

Templates are stored in their interchange form so loading one goes through
the same validation as importing a file.
"""
import uuid

from sqlalchemy import (
    Column, String, Integer, Float, Text, DateTime, ForeignKey, JSON
)
from sqlalchemy.orm import declarative_base, relationship

from core.models import ExtractionResult, Region, Shape, utc_now

Base = declarative_base()


def generate_uuid():
    """Generate UUID string for primary keys."""
    return str(uuid.uuid4())


class TemplateRecord(Base):
    """Saved extraction template."""

    __tablename__ = 'templates'

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    payload = Column(JSON, nullable=False)  # serialized template
    region_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    def __repr__(self):
        return f"<TemplateRecord(id={self.id}, name={self.name}, regions={self.region_count})>"


class ExtractionRun(Base):
    """One application of a template to a batch of pages."""

    __tablename__ = 'extraction_runs'

    id = Column(String, primary_key=True, default=generate_uuid)
    template_id = Column(String, nullable=False)
    template_name = Column(String, nullable=False)
    total_pages = Column(Integer, nullable=False, default=0)
    total_results = Column(Integer, nullable=False, default=0)
    failed_results = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utc_now)

    # Relationships
    records = relationship(
        "ExtractionRecord",
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="ExtractionRecord.sequence_order"
    )

    def __repr__(self):
        return f"<ExtractionRun(id={self.id}, template={self.template_name}, results={self.total_results})>"


class ExtractionRecord(Base):
    """A stored extraction result; text may be edited after review."""

    __tablename__ = 'extraction_results'

    id = Column(String, primary_key=True, default=generate_uuid)
    run_id = Column(String, ForeignKey('extraction_runs.id'), nullable=False)
    result_id = Column(String, nullable=False)

    # Position in the run's output (pages outer, regions inner)
    sequence_order = Column(Integer, nullable=False)

    source_id = Column(String, nullable=False)
    page_number = Column(Integer, nullable=False)
    field_name = Column(String, nullable=False)
    text = Column(Text, nullable=False, default="")
    confidence = Column(Float, nullable=False, default=0.0)
    error = Column(Text)
    region = Column(JSON, nullable=False)

    # Relationships
    run = relationship("ExtractionRun", back_populates="records")

    def __repr__(self):
        return f"<ExtractionRecord(id={self.id}, field={self.field_name}, page={self.page_number})>"

    @classmethod
    def from_result(cls, run_id: str, sequence_order: int, result: ExtractionResult) -> 'ExtractionRecord':
        region = result.to_dict()['region']
        return cls(
            run_id=run_id,
            result_id=result.id,
            sequence_order=sequence_order,
            source_id=result.source_id,
            page_number=result.page_number,
            field_name=result.field_name,
            text=result.text,
            confidence=result.confidence,
            error=result.error,
            region=region
        )

    def to_result(self) -> ExtractionResult:
        """Convert back to the domain model."""
        data = self.region
        region = Region(
            id=data['id'],
            shape=Shape(data['shape']),
            x=data['x'],
            y=data['y'],
            width=data['width'],
            height=data['height'],
            field_name=data['field_name'],
            page_number=data.get('page_number')
        )
        return ExtractionResult(
            id=self.result_id,
            field_name=self.field_name,
            region=region,
            page_number=self.page_number,
            source_id=self.source_id,
            text=self.text,
            confidence=self.confidence,
            error=self.error
        )
