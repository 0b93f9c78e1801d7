"""
Repository pattern for data access.

Provides clean separation between data access and business logic.
"""
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from core.exceptions import MalformedTemplate
from core.logger import get_logger
from core.models import ExtractionResult, Template
from core.template_io import deserialize_template, serialize_template
from data.db_models import ExtractionRecord, ExtractionRun, TemplateRecord

logger = get_logger(__name__)


class TemplateRepository:
    """Repository for saved templates."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, template: Template) -> TemplateRecord:
        """
        Insert or update a template.

        Raises:
            MalformedTemplate: If the template has no name or no regions
        """
        if not template.is_complete:
            raise MalformedTemplate(
                f"Template '{template.name}' needs a name and at least one region to be saved"
            )

        record = self.session.get(TemplateRecord, template.id)
        if record is None:
            record = TemplateRecord(id=template.id, created_at=template.created_at)
            self.session.add(record)

        record.name = template.name
        record.description = template.description
        record.payload = serialize_template(template)
        record.region_count = len(template.regions)
        record.updated_at = template.updated_at
        self.session.commit()
        self.session.refresh(record)
        return record

    def get(self, template_id: str) -> Optional[Template]:
        """Get template by ID."""
        record = self.session.get(TemplateRecord, template_id)
        if record is None:
            return None
        return deserialize_template(record.payload)

    def list_all(self, limit: int = 50, offset: int = 0) -> List[Template]:
        """
        List templates, most recently updated first.

        Rows whose payload no longer decodes are logged and skipped.
        """
        records = self.session.query(TemplateRecord)\
            .order_by(TemplateRecord.updated_at.desc())\
            .limit(limit)\
            .offset(offset)\
            .all()
        templates = []
        for record in records:
            try:
                templates.append(deserialize_template(record.payload))
            except MalformedTemplate as e:
                logger.warning(f"Skipping stored template {record.id}: {e}")
        return templates

    def delete(self, template_id: str) -> bool:
        """Delete a template."""
        record = self.session.get(TemplateRecord, template_id)
        if record:
            self.session.delete(record)
            self.session.commit()
            return True
        return False


class ExtractionRunRepository:
    """Repository for extraction runs and their results."""

    def __init__(self, session: Session):
        self.session = session

    def save_run(
        self,
        template: Template,
        results: Sequence[ExtractionResult],
        total_pages: int
    ) -> ExtractionRun:
        """Store a run with its results in output order."""
        run = ExtractionRun(
            template_id=template.id,
            template_name=template.name,
            total_pages=total_pages,
            total_results=len(results),
            failed_results=sum(1 for r in results if r.failed)
        )
        self.session.add(run)
        self.session.flush()  # Get run ID before adding records

        for order, result in enumerate(results):
            self.session.add(ExtractionRecord.from_result(run.id, order, result))

        self.session.commit()
        self.session.refresh(run)
        return run

    def get_run(self, run_id: str) -> Optional[ExtractionRun]:
        """Get run by ID."""
        return self.session.get(ExtractionRun, run_id)

    def get_results(self, run_id: str) -> List[ExtractionResult]:
        """Results of a run in their original order."""
        records = self.session.query(ExtractionRecord)\
            .filter(ExtractionRecord.run_id == run_id)\
            .order_by(ExtractionRecord.sequence_order)\
            .all()
        return [r.to_result() for r in records]

    def update_text(self, run_id: str, result_id: str, text: str) -> bool:
        """Overwrite the reviewed text of one result."""
        record = self.session.query(ExtractionRecord)\
            .filter(ExtractionRecord.run_id == run_id)\
            .filter(ExtractionRecord.result_id == result_id)\
            .first()
        if record is None:
            return False
        record.text = text
        self.session.commit()
        return True

    def list_runs(self, limit: int = 50, offset: int = 0) -> List[ExtractionRun]:
        """List runs, newest first."""
        return self.session.query(ExtractionRun)\
            .order_by(ExtractionRun.created_at.desc())\
            .limit(limit)\
            .offset(offset)\
            .all()

    def delete_run(self, run_id: str) -> bool:
        """Delete a run and its results."""
        run = self.get_run(run_id)
        if run:
            self.session.delete(run)
            self.session.commit()
            return True
        return False
