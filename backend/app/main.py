import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.config import Settings
from app.routers import admin, exports, submissions
from app.services.errors import SurveyError
from app.services.reader import AggregationReader
from app.services.submissions import SubmissionStore

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    store = SubmissionStore(settings)
    reader = AggregationReader(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Survey data directory: %s", settings.data_dir)
        logger.info("Persistent disk: %s", settings.persistent)
        store.audit.write(f"Survey server started successfully - Data dir: {settings.data_dir}")
        yield

    app = FastAPI(title="Survey Collector", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.reader = reader

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
    )

    @app.exception_handler(SurveyError)
    async def survey_error_handler(request: Request, exc: SurveyError):
        return JSONResponse(status_code=exc.status_code,
                            content={"success": False, "error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_error_handler(request: Request, exc: RequestValidationError):
        # Only submissions take a body; an unreadable one is still an attempt
        message = "Request body is not valid JSON"
        store.audit.write(f"ERROR: {message}")
        return JSONResponse(status_code=400,
                            content={"success": False, "error": message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500,
                            content={"success": False, "error": str(exc)})

    app.include_router(submissions.router)
    app.include_router(exports.router)
    app.include_router(admin.router)

    # Front-end pages, served last so API routes take precedence
    if settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="public")

    return app


# Run with: uvicorn app.main:create_app --factory
if __name__ == "__main__":
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
