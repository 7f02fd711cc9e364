import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from recruitflow.config import Settings, settings as default_settings
from recruitflow.database import build_engine, build_session_factory
from recruitflow.errors import RecruitflowError
from recruitflow.llm import TextGenerator
from recruitflow.mailer import ResendEmailSender
from recruitflow.routes import applications, auth, invitations, jobs, llm, media, profiles, skilltests
from recruitflow.storage import ObjectStorage

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    email_sender: ResendEmailSender | None = None,
    text_generator: TextGenerator | None = None,
    storage: ObjectStorage | None = None,
) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(
        title="Recruitflow API",
        version="0.1.0",
        root_path=settings.API_ROOT_PATH or None,
    )

    # One client per process, handed to handlers through dependencies.
    engine = engine or build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.email_sender = email_sender or ResendEmailSender(settings)
    app.state.text_generator = text_generator or TextGenerator(settings)
    app.state.storage = storage or ObjectStorage(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    @app.exception_handler(RecruitflowError)
    async def handle_recruitflow_error(request: Request, exc: RecruitflowError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.on_event("shutdown")
    def close_clients() -> None:
        app.state.email_sender.close()

    @app.get("/health", tags=["system"])
    async def health() -> dict:
        return {"status": "ok"}

    app.include_router(auth.router, prefix=settings.API_PREFIX)
    app.include_router(invitations.router, prefix=settings.API_PREFIX)
    app.include_router(jobs.router, prefix=settings.API_PREFIX)
    app.include_router(applications.router, prefix=settings.API_PREFIX)
    app.include_router(media.router, prefix=settings.API_PREFIX)
    app.include_router(llm.router, prefix=settings.API_PREFIX)
    app.include_router(profiles.router, prefix=settings.API_PREFIX)
    app.include_router(skilltests.router, prefix=settings.API_PREFIX)
    return app
