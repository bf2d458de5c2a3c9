"""
Document Pipeline - structured documents from PDFs, scans and e-mails

Converts heterogeneous inputs into a typed Document (pages -> words,
images, ...) using pluggable extraction backends, then enriches it through
an ordered chain of cleaner modules.

Features:
- Layout reconstruction from per-character tool output (pdfminer, PyMuPDF)
- Nested OCR of embedded images, merged into the owning page
- E-mail input rendered to PDF before extraction
- Link detection from PDF annotations and textual URLs/e-mails
- Single timeout boundary per run, external processes torn down on expiry

Quick Start:
    from doc_pipeline import PipelineConfig, build_orchestrator, Word

    config = PipelineConfig()
    document = build_orchestrator("document.pdf", config).run_sync("document.pdf")

    for word in document.get_elements_of_type(Word):
        if word.properties.link:
            print(word, "->", word.properties.link.target_url)

Environment:
    PDF2TXT_CMD, DUMPPDF_CMD, TESSERACT_CMD: override external tool lookup
"""

__version__ = "1.0.0"

from .config import ExtractorSettings, OutputFormats, OutputSettings, PipelineConfig, ServiceConfig
from .geometry import BoundingBox, Font, merge_boxes, overlap_ratio
from .models import (
    Character,
    Document,
    Image,
    LinkInfo,
    Page,
    TableOfContents,
    TableOfContentsItem,
    Word,
    WordProperties,
)
from .exceptions import (
    PipelineError,
    InputError,
    InputNotFoundError,
    UnsupportedInputError,
    ToolError,
    ToolNotFoundError,
    ExtractionFailedError,
    MalformedToolOutputError,
    ModuleError,
    UnknownModuleError,
    ModuleTransformError,
    PipelineTimeoutError,
    is_auxiliary_failure,
    format_error_chain,
)
from .cleaner import Cleaner, Module
from .orchestrator import Orchestrator
from .pipeline import build_image_orchestrator, build_orchestrator, get_extractor

__all__ = [
    "__version__",
    # Configuration
    "PipelineConfig",
    "ExtractorSettings",
    "OutputSettings",
    "OutputFormats",
    "ServiceConfig",
    # Geometry
    "BoundingBox",
    "Font",
    "merge_boxes",
    "overlap_ratio",
    # Document model
    "Document",
    "Page",
    "Word",
    "Character",
    "Image",
    "TableOfContents",
    "TableOfContentsItem",
    "LinkInfo",
    "WordProperties",
    # Exceptions
    "PipelineError",
    "InputError",
    "InputNotFoundError",
    "UnsupportedInputError",
    "ToolError",
    "ToolNotFoundError",
    "ExtractionFailedError",
    "MalformedToolOutputError",
    "ModuleError",
    "UnknownModuleError",
    "ModuleTransformError",
    "PipelineTimeoutError",
    "is_auxiliary_failure",
    "format_error_chain",
    # Pipeline
    "Module",
    "Cleaner",
    "Orchestrator",
    "build_orchestrator",
    "build_image_orchestrator",
    "get_extractor",
]
