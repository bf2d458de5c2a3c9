from typing import Optional

from .config import PipelineConfig, ServiceConfig
from .models import Document
from .pipeline import build_orchestrator
from .storage import DocumentStorage


class ParsingService:
    def __init__(self, config: ServiceConfig | None = None):
        self.config = config or ServiceConfig()
        self.storage = DocumentStorage(self.config.data_dir)

    def pipeline_for(self, input_file: str, pipeline: Optional[PipelineConfig] = None) -> PipelineConfig:
        """Run configuration with embedded images kept below the data directory."""
        pipeline = pipeline or self.config.pipeline
        if pipeline.extractor.extract_images and not pipeline.output.assets_dir:
            pipeline = pipeline.model_copy(deep=True)
            pipeline.output.assets_dir = str(self.storage.assets_dir(input_file))
        return pipeline

    def parse(self, input_file: str, pipeline: Optional[PipelineConfig] = None) -> Document:
        orchestrator = build_orchestrator(input_file, self.pipeline_for(input_file, pipeline))
        return orchestrator.run_sync(input_file)

    def parse_and_save(
        self,
        input_file: str,
        pipeline: Optional[PipelineConfig] = None,
    ) -> tuple[Document, str, dict[str, str]]:
        pipeline = pipeline or self.config.pipeline
        document = self.parse(input_file, pipeline)
        paths = self.storage.save(document, pipeline.output.formats)
        return document, paths.document_id, {fmt: str(path) for fmt, path in paths.files.items()}
