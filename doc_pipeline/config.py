"""
Pipeline configuration.

`PipelineConfig` describes one run: which extraction backends to use, the
ordered cleaner module list and the output formats. It loads from and saves
to JSON in the layout of the original server configuration file:

    {
      "version": 1,
      "extractor": {"pdf": "pdfminer", "img": "tesseract"},
      "cleaner": ["link-detection", ["other-module", {"option": 1}]],
      "output": {"formats": {"json": true, "markdown": true}}
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field


CleanerEntry = Union[str, tuple[str, dict[str, Any]]]


class ExtractorSettings(BaseModel):
    """Backend selection and extraction tuning."""

    pdf: Literal["pdfminer", "pymupdf"] = Field(
        "pdfminer",
        description="Digital-text backend used for PDF input",
    )
    img: Literal["tesseract"] = Field(
        "tesseract",
        description="OCR backend used for images and embedded figures",
    )
    ocr_language: str = Field(
        "eng",
        description="Tesseract language code(s), e.g. 'eng' or 'deu+eng'",
    )
    word_separator: str = Field(
        " ",
        description="Glyph treated as a word boundary at line edges",
    )
    repair_pdf: bool = Field(
        True,
        description="Clean and decrypt the PDF before extraction",
    )
    extract_images: bool = Field(
        True,
        description="Extract embedded images and OCR them in a nested run",
    )
    tool_timeout_seconds: Optional[float] = Field(
        None,
        description="Per-command timeout for external tools",
        gt=0,
    )


class OutputFormats(BaseModel):
    json_: bool = Field(True, alias="json")
    markdown: bool = False
    text: bool = False
    html: bool = False

    model_config = {"populate_by_name": True}

    def enabled(self) -> list[str]:
        flags = {
            "json": self.json_,
            "markdown": self.markdown,
            "text": self.text,
            "html": self.html,
        }
        return [name for name, on in flags.items() if on]


class OutputSettings(BaseModel):
    formats: OutputFormats = Field(default_factory=OutputFormats)
    assets_dir: Optional[str] = Field(
        None,
        description="Directory where embedded images are retained; temporary if unset",
    )


class PipelineConfig(BaseModel):
    """
    Configuration for one pipeline run.

    The cleaner list is applied strictly in order. Each entry is either a
    module name or a `[name, options]` pair overriding the module defaults.
    """

    version: int = 1
    extractor: ExtractorSettings = Field(default_factory=ExtractorSettings)
    cleaner: list[CleanerEntry] = Field(
        default_factory=lambda: ["link-detection"],
        description="Ordered cleaner modules",
    )
    output: OutputSettings = Field(default_factory=OutputSettings)
    timeout_seconds: Optional[float] = Field(
        None,
        description="Timeout for a whole orchestrator run",
        gt=0,
    )

    def cleaner_modules(self) -> list[tuple[str, dict[str, Any]]]:
        """Cleaner entries normalized to (name, options) pairs."""
        modules = []
        for entry in self.cleaner:
            if isinstance(entry, str):
                modules.append((entry, {}))
            else:
                name, options = entry
                modules.append((name, dict(options)))
        return modules

    def image_extraction_config(self) -> PipelineConfig:
        """
        Restricted configuration for nested OCR runs on embedded images:
        no cleaner modules, json-only output and no further recursion.
        """
        config = self.model_copy(deep=True)
        config.cleaner = []
        config.output.formats = OutputFormats(json=True)
        config.extractor.extract_images = False
        config.timeout_seconds = None
        return config

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent, by_alias=True)

    def save(self, path: str) -> None:
        Path(path).write_text(self.to_json(), encoding="utf-8")

    @classmethod
    def load(cls, path: str) -> PipelineConfig:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)


@dataclass
class ServiceConfig:
    data_dir: str = "data/doc_pipeline"
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
