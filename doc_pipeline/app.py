from fastapi import FastAPI, HTTPException

from .config import ServiceConfig
from .exceptions import UnknownModuleError
from .models import ParseRequest, ParseResponse
from .modules import fill_config_with_specs, get_module_config, list_modules
from .service import ParsingService


def create_app(config: ServiceConfig | None = None) -> FastAPI:
    service = ParsingService(config=config)
    app = FastAPI(
        title="Document Pipeline Service",
        version="1.0.0",
        description="Document extraction and cleaning via pluggable backends and modules.",
    )

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/modules")
    def modules() -> list[str]:
        return list_modules()

    @app.get("/modules/{name}")
    def module_config(name: str) -> dict:
        try:
            return get_module_config(name)
        except UnknownModuleError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.get("/config/default")
    def default_config() -> dict:
        config = service.config.pipeline
        data = config.model_dump(by_alias=True)
        data["cleaner"] = fill_config_with_specs(config)
        return data

    @app.post("/parse", response_model=ParseResponse)
    def parse(request: ParseRequest) -> ParseResponse:
        try:
            document, document_id, output_paths = service.parse_and_save(
                request.file_path,
                pipeline=request.config,
            )
            return ParseResponse(
                document_id=document_id,
                pages=len(document.pages),
                words=document.word_count,
                links=document.link_count,
                output_paths=output_paths,
            )
        except UnknownModuleError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except Exception as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    return app


app = create_app()
