"""
Extraction backend abstraction.

An extractor turns one input file into a Document. Digital-text extractors
additionally OCR the images embedded in each page through a nested
pipeline produced by `image_pipeline_factory`. The pipeline is configured
with no cleaner modules, and its words are appended to the owning page.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, Protocol

from ..config import PipelineConfig
from ..exceptions import InputNotFoundError, is_auxiliary_failure
from ..geometry import BoundingBox
from ..models import Character, Document, Element, Image, Word
from ..tools import temporary_directory

logger = logging.getLogger(__name__)


class DocumentRunner(Protocol):
    """Anything that produces a Document from a file, e.g. an Orchestrator."""

    async def run(self, input_file: str) -> Document: ...


ImagePipelineFactory = Callable[[], DocumentRunner]


class Extractor(ABC):
    """Base class for extraction backends."""

    name: str = ""

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()

    @abstractmethod
    async def run(self, input_file: str) -> Document:
        """Extract a Document from `input_file`."""

    def release(self, document: Document) -> None:
        """Remove intermediate files `run` left for the cleaner modules."""

    @staticmethod
    def check_input(input_file: str) -> Path:
        path = Path(input_file)
        if not path.is_file():
            raise InputNotFoundError(str(path))
        return path

    @property
    def tool_timeout(self) -> Optional[float]:
        return self.config.extractor.tool_timeout_seconds


class DigitalTextExtractor(Extractor):
    """
    Extractor for PDFs with a text layer.

    Owns an optional factory for the nested image pipeline; without one,
    embedded images are kept as Image elements but not OCR'd.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        image_pipeline_factory: Optional[ImagePipelineFactory] = None,
    ):
        super().__init__(config)
        self.image_pipeline_factory = image_pipeline_factory

    def images_location(self, input_path: Path) -> tuple[Path, bool]:
        """
        Directory for embedded image side-files.

        Returns:
            (directory, is_temporary). Temporary directories are removed
            once the document is assembled.
        """
        assets_dir = self.config.output.assets_dir
        if assets_dir:
            directory = Path(assets_dir) / f"{input_path.stem}_images"
            directory.mkdir(parents=True, exist_ok=True)
            return directory, False
        return temporary_directory(), True

    async def ocr_images(self, images: list[Image]) -> list[Element]:
        """
        Run the nested pipeline on every image concurrently.

        Results are joined before returning; their words are projected into
        the owning figure's box. A failing image contributes nothing.
        """
        if not images or self.image_pipeline_factory is None:
            return []

        results = await asyncio.gather(
            *(self.image_pipeline_factory().run(image.src) for image in images),
            return_exceptions=True,
        )

        elements: list[Element] = []
        for image, result in zip(images, results):
            if isinstance(result, BaseException):
                if not is_auxiliary_failure(result):
                    raise result
                logger.warning(f"OCR of embedded image {image.src} failed: {result}")
                continue
            elements.extend(project_into_box(result, image.box))
        return elements


def _project_box(box: BoundingBox, sx: float, sy: float, target: BoundingBox) -> BoundingBox:
    return box.scale(sx, sy).translate(target.left, target.top)


def project_into_box(doc: Document, target: BoundingBox) -> list[Element]:
    """
    Flatten a nested run's elements into `target`'s coordinate space.

    Each nested page is scaled from its own media box onto `target`.
    """
    projected: list[Element] = []
    for page in doc.pages:
        sx = target.width / page.box.width if page.box.width else 1.0
        sy = target.height / page.box.height if page.box.height else 1.0
        for element in page.elements:
            if isinstance(element, Word):
                characters = [
                    Character(
                        box=_project_box(c.box, sx, sy, target),
                        content=c.content,
                        font=c.font,
                    )
                    for c in element.characters
                ]
                projected.append(
                    element.model_copy(
                        update={
                            "box": _project_box(element.box, sx, sy, target),
                            "characters": characters,
                        }
                    )
                )
            else:
                projected.append(element)
    return projected
