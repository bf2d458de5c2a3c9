"""
Cleaner module chain.

A cleaner module transforms an already-extracted Document. Modules run
strictly in the configured order; module N+1 only ever sees module N's
completed output.

Writing a module:
    class MyModule(Module):
        name = "my-module"
        description = "Does something to words"

        class Options(BaseModel):
            threshold: float = 0.5

        async def main(self, doc: Document) -> Document:
            for word in doc.get_elements_of_type(Word):
                ...
            return doc
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

from pydantic import BaseModel

from .exceptions import ModuleTransformError
from .models import Document

logger = logging.getLogger(__name__)


class Module(ABC):
    """Base class for cleaner modules."""

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""

    class Options(BaseModel):
        pass

    def __init__(self, options: Optional[dict[str, Any]] = None):
        self.options = self.Options.model_validate(options or {})

    @abstractmethod
    async def main(self, doc: Document) -> Document:
        """Transform the document; may mutate it in place and must return one."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.options!r})"


class Cleaner:
    """
    Applies an ordered list of modules to a document.

    A module failure aborts the remaining chain with ModuleTransformError.
    """

    def __init__(self, modules: Optional[list[Module]] = None):
        self.modules = list(modules or [])

    @classmethod
    def from_config(cls, cleaner_modules: list[tuple[str, dict[str, Any]]]) -> Cleaner:
        from .modules import get_module

        return cls([get_module(name, options) for name, options in cleaner_modules])

    async def run(self, doc: Document) -> Document:
        for module in self.modules:
            start = time.time()
            logger.info(f"Running module {module.name}")
            try:
                result = await module.main(doc)
            except ModuleTransformError:
                raise
            except Exception as exc:
                logger.error(f"Module {module.name} failed: {exc}")
                raise ModuleTransformError(module.name, exc) from exc

            if not isinstance(result, Document):
                raise ModuleTransformError(
                    module.name,
                    TypeError(f"main() returned {type(result).__name__}, expected Document"),
                )
            doc = result
            logger.debug(f"Module {module.name} done in {time.time() - start:.2f}s")
        return doc

    def __len__(self) -> int:
        return len(self.modules)
