from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from .config import OutputFormats
from .models import Document

FORMAT_EXTENSIONS = {
    "json": "json",
    "markdown": "md",
    "text": "txt",
    "html": "html",
}


def render(document: Document, fmt: str) -> str:
    if fmt == "json":
        return document.to_json()
    if fmt == "markdown":
        return document.to_markdown()
    if fmt == "text":
        return document.to_text()
    if fmt == "html":
        return document.to_html()
    raise ValueError(f"Unknown output format: {fmt}")


@dataclass
class DocumentPaths:
    document_id: str
    output_dir: Path
    files: dict[str, Path] = field(default_factory=dict)


class DocumentStorage:
    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)

    def assets_dir(self, input_file: str) -> Path:
        """Directory for the side files (embedded images) of one document."""
        return self.data_dir / Path(input_file).stem / "assets"

    def build_paths(self, input_file: str, formats: list[str]) -> DocumentPaths:
        document_id = Path(input_file).stem
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        output_dir = self.data_dir / document_id / "output"
        output_dir.mkdir(parents=True, exist_ok=True)
        files = {
            fmt: output_dir / f"{document_id}_{timestamp}.{FORMAT_EXTENSIONS[fmt]}"
            for fmt in formats
        }
        return DocumentPaths(document_id=document_id, output_dir=output_dir, files=files)

    def save(self, document: Document, formats: OutputFormats) -> DocumentPaths:
        paths = self.build_paths(document.input_file, formats.enabled())
        for fmt, path in paths.files.items():
            path.write_text(render(document, fmt), encoding="utf-8")
        return paths
