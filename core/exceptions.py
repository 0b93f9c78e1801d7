"""
Exception hierarchy for the extraction pipeline.

Only EmptyTemplate, NoPages and MalformedTemplate are meant to reach callers
of the orchestrator and the template codec. Per-region errors are absorbed
into the result stream.
"""


class ExtractionError(Exception):
    """Base class for all pipeline errors."""


class EmptyTemplate(ExtractionError):
    """Raised when a template without regions is applied."""

    def __init__(self, template_name: str = ""):
        self.template_name = template_name
        label = f" '{template_name}'" if template_name else ""
        super().__init__(f"Template{label} has no regions to extract")


class NoPages(ExtractionError):
    """Raised when an extraction run is started without pages."""

    def __init__(self):
        super().__init__("No pages supplied for extraction")


class MalformedTemplate(ExtractionError):
    """Raised when a serialized template cannot be turned into a Template."""

    def __init__(self, message: str, errors=None):
        self.errors = errors or []
        super().__init__(message)


class RegionRecognitionFailure(ExtractionError):
    """Cropping, encoding or recognizing a single region failed."""

    def __init__(self, message: str, page_number: int = None, region_id: str = None):
        self.page_number = page_number
        self.region_id = region_id
        super().__init__(message)


class UnsupportedRecognizerOutput(RegionRecognitionFailure):
    """The text recognizer returned something that is not text + confidence."""


class RenderError(ExtractionError):
    """A document could not be opened or rasterized."""


class UnsupportedEngine(ValueError):
    """Requested OCR engine is not known to the recognizer factory."""
