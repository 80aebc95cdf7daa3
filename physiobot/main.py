import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from physiobot.api.envelope import send_error
from physiobot.api.router import api_router
from physiobot.core.config import settings
from physiobot.core.errors import AssessmentError, UpstreamError
from physiobot.database.session import init_db

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AssessmentError)
    def handle_assessment_error(request: Request, exc: AssessmentError):
        if isinstance(exc, UpstreamError):
            logger.error("%s %s: upstream failure: %s", request.method, request.url.path, exc.message)
        elif exc.status_code >= 500:
            logger.error("%s %s: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s: %s", request.method, request.url.path, exc.message)
        return send_error(exc.user_message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = "Invalid request payload"
        if errors:
            first = errors[0]
            loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            detail = f"{detail}: {loc} {first.get('msg', '')}".strip()
        return send_error(detail, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    def handle_unexpected(request: Request, exc: Exception):
        logger.exception("%s %s: unhandled error", request.method, request.url.path)
        return send_error("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_app() -> FastAPI:
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    app = FastAPI(title=settings.app_name)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.on_event("startup")
    def _startup():
        init_db()

    return app


app = create_app()
