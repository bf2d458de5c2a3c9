"""
Extraction backends.

    PdfminerExtractor   - digital PDFs via pdfminer's pdf2txt.py (default)
    PyMuPDFExtractor    - digital PDFs via PyMuPDF, in process
    TesseractExtractor  - OCR of a single image
    EmailExtractor      - .eml messages, rendered to PDF first
"""

from .base import DigitalTextExtractor, DocumentRunner, Extractor, ImagePipelineFactory
from .mail import EmailExtractor
from .pdfminer import PdfminerExtractor
from .pymupdf import PyMuPDFExtractor
from .tesseract import TesseractExtractor

__all__ = [
    "Extractor",
    "DigitalTextExtractor",
    "DocumentRunner",
    "ImagePipelineFactory",
    "PdfminerExtractor",
    "PyMuPDFExtractor",
    "TesseractExtractor",
    "EmailExtractor",
]
