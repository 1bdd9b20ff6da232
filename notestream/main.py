from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware

from notestream.api.routes import catalog, chat, notes
from notestream.core.config import check_startup, settings
from notestream.core.errors import NotestreamError
from notestream.core.logging import log_shutdown_info, log_startup_info, get_logger
from notestream.models.response import HealthResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_startup_info()
    app.state.startup_report = check_startup(settings)
    logger.info("Application startup completed")
    yield
    log_shutdown_info()


app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router)
app.include_router(notes.router)
app.include_router(catalog.router)


@app.exception_handler(NotestreamError)
async def handle_notestream_error(request: Request, exc: NotestreamError) -> PlainTextResponse:
    """Errors raised before streaming starts; plain text like the stream itself"""
    logger.warning(f"{request.url.path} failed with {exc.code}: {exc.message}")
    return PlainTextResponse(f"Error: {exc.message}", status_code=exc.status_code)


@app.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Report whether the process-wide credentials were configured."""
    report = getattr(request.app.state, "startup_report", None) or check_startup(settings)
    return JSONResponse(
        status_code=200,
        content=HealthResponse(
            status="ok" if report.provider_key_available else "degraded",
            provider_key_available=report.provider_key_available,
            notes_token_available=report.notes_token_available,
            version=settings.APP_VERSION,
        ).model_dump(),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "notestream.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
    )
