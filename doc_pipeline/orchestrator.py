"""
Orchestrator: one extraction backend followed by the cleaner chain.

A run extracts the input into a Document and threads it through the
cleaner modules in order, then lets the extractor remove the intermediate
files it kept for the modules. The configured timeout wraps the whole run and
is its only cancellation boundary: on expiry the run task is cancelled,
which kills any external process still in flight.

Usage:
    orchestrator = Orchestrator(PdfminerExtractor(config), Cleaner.from_config(...))
    document = orchestrator.run_sync("document.pdf")
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from .backends.base import Extractor
from .cleaner import Cleaner
from .exceptions import PipelineTimeoutError
from .models import Document

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Wires an extractor and a cleaner chain together.

    Attributes:
        extractor: Backend producing the Document
        cleaner: Modules applied to the extracted Document
        timeout_seconds: Time budget of a whole run, or None
    """

    def __init__(
        self,
        extractor: Extractor,
        cleaner: Optional[Cleaner] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.extractor = extractor
        self.cleaner = cleaner or Cleaner()
        self.timeout_seconds = timeout_seconds

    async def run(self, input_file: str) -> Document:
        """
        Extract and clean `input_file`.

        Raises:
            PipelineTimeoutError: if the run exceeds `timeout_seconds`
            PipelineError: on primary extraction or module failure
        """
        if self.timeout_seconds is None:
            return await self._run(input_file)

        try:
            return await asyncio.wait_for(self._run(input_file), self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Run on {input_file} exceeded {self.timeout_seconds}s, aborted")
            raise PipelineTimeoutError(self.timeout_seconds, input_file) from None

    async def _run(self, input_file: str) -> Document:
        start_time = time.time()
        logger.info(f"Extracting {input_file} with {self.extractor.name}")
        document = await self.extractor.run(input_file)

        try:
            if len(self.cleaner):
                logger.info(f"Applying {len(self.cleaner)} cleaner modules")
            document = await self.cleaner.run(document)
        finally:
            self.extractor.release(document)

        logger.info(
            f"Finished {input_file}: {len(document.pages)} pages, "
            f"{document.word_count} words in {time.time() - start_time:.2f}s"
        )
        return document

    def run_sync(self, input_file: str) -> Document:
        """Blocking wrapper around `run` for callers outside an event loop."""
        return asyncio.run(self.run(input_file))
