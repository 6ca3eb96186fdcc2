"""FastAPI application entry point for DumAI chat"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dumai_chat.api import router as api_router
from dumai_chat.chat import ChatOrchestrator
from dumai_chat.chat.personality import PersonalityPicker
from dumai_chat.core.config import Settings, settings
from dumai_chat.core.errors import (
    ChatError,
    NotFoundError,
    ReplyGenerationError,
    SessionResolutionError,
)
from dumai_chat.core.logging import configure_logging, get_logger
from dumai_chat.db import Database
from dumai_chat.llm import BaseReplyGenerator, OpenAICompatReplyGenerator

logger = get_logger(__name__)


def _build_reply_generator(config: Settings) -> BaseReplyGenerator:
    return OpenAICompatReplyGenerator(
        api_key=config.resolved_llm_api_key(),
        base_url=config.llm_base_url,
        model=config.llm_model,
        temperature=config.llm_temperature,
        max_tokens=config.llm_max_tokens,
    )


def create_app(
    database: Database | None = None,
    reply_generator: BaseReplyGenerator | None = None,
    personality_picker: PersonalityPicker | None = None,
    config: Settings = settings,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        database: Stores to use. Defaults to a new database at
            ``config.database_url``.
        reply_generator: Reply generator. Defaults to the OpenAI-compatible
            client configured from ``config``.
        personality_picker: Chooses a personality for new sessions.
        config: Application settings.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan context manager for startup/shutdown."""
        # Startup
        configure_logging(config.log_level)
        db = database or Database(config.database_url)
        db.init()
        app.state.orchestrator = ChatOrchestrator(
            db,
            reply_generator or _build_reply_generator(config),
            personality_picker=personality_picker,
            default_title=config.default_title,
            title_max_length=config.title_max_length,
        )
        logger.info("application_started")
        yield
        # Shutdown (a caller-supplied database stays open)
        if database is None:
            db.dispose()

    app = FastAPI(
        title="DumAI Chat API",
        description="Confidently wrong chat assistant",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "message": "Invalid request body",
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(ChatError)
    async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
        if isinstance(exc, NotFoundError):
            status_code = 404
        elif isinstance(exc, ReplyGenerationError):
            status_code = 502
        else:
            status_code = 500
        if isinstance(exc, SessionResolutionError):
            logger.error("session_resolution_failed", path=request.url.path)
        return JSONResponse(status_code=status_code, content={"message": exc.message})

    app.include_router(api_router)

    @app.get("/api/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint.

        Returns:
            dict with status "ok" if the service is healthy.
        """
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    """Run the API server with uvicorn."""
    uvicorn.run(
        "dumai_chat.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
