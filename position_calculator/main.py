from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from position_calculator.api.routes_calculator import router as calculator_router
from position_calculator.core.config import get_settings
from position_calculator.core.logging import get_logger, init_logging


def create_app() -> FastAPI:
    settings = get_settings()
    init_logging(settings.log_level)
    logger = get_logger(__name__)

    app = FastAPI(
        title="Leveraged Position Calculator",
        version="0.1.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.app_env}

    app.include_router(calculator_router)
    logger.info("app_created", extra={"event": "app_created", "env": settings.app_env})
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.app_host, port=settings.app_port)
