import argparse
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

load_dotenv(ROOT / ".env")

from doc_pipeline.app import create_app
from doc_pipeline.config import PipelineConfig, ServiceConfig
from doc_pipeline.logging_config import setup_logging
from doc_pipeline.service import ParsingService
import uvicorn


def build_service_config(config_path: str | None, data_dir: str) -> ServiceConfig:
    pipeline = PipelineConfig.load(config_path) if config_path else PipelineConfig()
    return ServiceConfig(data_dir=data_dir, pipeline=pipeline)


def run_parse(input_file: str, config: ServiceConfig) -> None:
    service = ParsingService(config)
    document, document_id, output_paths = service.parse_and_save(input_file)
    print(f"document_id: {document_id}")
    print(f"pages: {len(document.pages)}")
    print(f"words: {document.word_count}")
    print(f"links: {document.link_count}")
    for fmt, path in output_paths.items():
        print(f"{fmt}: {path}")


def run_server(host: str, port: int, config: ServiceConfig) -> None:
    app = create_app(config)
    uvicorn.run(app, host=host, port=port)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Document pipeline runner (CLI parsing or API server)."
    )
    parser.add_argument("--serve", action="store_true", help="Run FastAPI server")
    parser.add_argument("--host", default="0.0.0.0", help="Server host")
    parser.add_argument("--port", type=int, default=8001, help="Server port")
    parser.add_argument("--input", help="Path to a PDF, image or .eml file to parse")
    parser.add_argument("--config", help="Optional JSON pipeline configuration")
    parser.add_argument("--data-dir", default="data/doc_pipeline", help="Output root directory")
    parser.add_argument("--log-level", help="Log level name (default: $DOC_PIPELINE_LOG_LEVEL or INFO)")
    args = parser.parse_args()

    setup_logging(args.log_level)
    config = build_service_config(args.config, args.data_dir)

    if args.serve:
        run_server(args.host, args.port, config)
        return

    if not args.input:
        parser.error("Provide --input or use --serve to run the API.")
    run_parse(args.input, config)


if __name__ == "__main__":
    main()
