"""
Builds orchestrators from a PipelineConfig.

The extractor is chosen from the input's file type. Digital-text
extractors get a factory for the nested image pipeline: a fresh
Orchestrator over the OCR backend, configured with no cleaner modules and
no further image recursion.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .backends import (
    DigitalTextExtractor,
    EmailExtractor,
    Extractor,
    PdfminerExtractor,
    PyMuPDFExtractor,
    TesseractExtractor,
)
from .cleaner import Cleaner
from .config import PipelineConfig
from .exceptions import UnsupportedInputError
from .orchestrator import Orchestrator

logger = logging.getLogger(__name__)

PDF_SUFFIXES = {".pdf"}
IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".gif", ".webp", ".pnm", ".ppm"}
EMAIL_SUFFIXES = {".eml"}

PDF_EXTRACTORS: dict[str, type[DigitalTextExtractor]] = {
    "pdfminer": PdfminerExtractor,
    "pymupdf": PyMuPDFExtractor,
}
IMAGE_EXTRACTORS: dict[str, type[Extractor]] = {
    "tesseract": TesseractExtractor,
}


def build_image_orchestrator(config: PipelineConfig) -> Orchestrator:
    """Orchestrator for nested OCR runs on embedded images."""
    image_config = config.image_extraction_config()
    extractor = IMAGE_EXTRACTORS[image_config.extractor.img](image_config)
    return Orchestrator(extractor, Cleaner())


def get_pdf_extractor(config: PipelineConfig) -> DigitalTextExtractor:
    extractor_cls = PDF_EXTRACTORS[config.extractor.pdf]
    factory = None
    if config.extractor.extract_images:
        def factory() -> Orchestrator:
            return build_image_orchestrator(config)

    return extractor_cls(config, image_pipeline_factory=factory)


def get_extractor(input_file: str, config: PipelineConfig) -> Extractor:
    """
    Extractor for `input_file`, chosen by file extension.

    Raises:
        UnsupportedInputError: if no extractor handles the extension
    """
    suffix = Path(input_file).suffix.lower()
    if suffix in PDF_SUFFIXES:
        return get_pdf_extractor(config)
    if suffix in IMAGE_SUFFIXES:
        return IMAGE_EXTRACTORS[config.extractor.img](config)
    if suffix in EMAIL_SUFFIXES:
        return EmailExtractor(config, pdf_extractor=get_pdf_extractor(config))
    raise UnsupportedInputError(input_file, suffix)


def build_orchestrator(input_file: str, config: Optional[PipelineConfig] = None) -> Orchestrator:
    """Orchestrator for one run over `input_file`."""
    config = config or PipelineConfig()
    extractor = get_extractor(input_file, config)
    cleaner = Cleaner.from_config(config.cleaner_modules())
    logger.debug(
        f"Pipeline for {Path(input_file).name}: {extractor.name} -> "
        f"{[module.name for module in cleaner.modules]}"
    )
    return Orchestrator(extractor, cleaner, timeout_seconds=config.timeout_seconds)
