import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .database import create_session_factory, init_db
from .dependencies import PageRedirect, page_redirect_handler
from .errors import MoonDevError, moondev_error_handler
from .guard import RouteGuardMiddleware
from .mail import MailClient
from .realtime import ChangeFeed
from .routers import auth, notifications, pages, realtime, submissions
from .store import SubmissionStore

logger = logging.getLogger(__name__)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
):
    message = "; ".join(str(err.get("msg")) for err in exc.errors())
    return JSONResponse(status_code=400, content={"error": message})


def create_app(
    settings: Optional[Settings] = None,
    mail_client: Optional[MailClient] = None,
) -> FastAPI:
    """Wire the store, change feed and mail client into a new application."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    session_factory = create_session_factory(settings.database_url)
    feed = ChangeFeed()

    init_db(session_factory)
    logger.info("Database ready at %s", settings.database_url)

    app = FastAPI(
        title="MoonDev API",
        description="Candidate submissions, evaluator decisions and notifications",
        version="1.0.0",
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.feed = feed
    app.state.store = SubmissionStore(session_factory, feed)
    app.state.mail_client = mail_client or MailClient(
        settings.mail_api_key, settings.mail_api_url
    )
    # transport for the evaluate page's notification call, None for plain requests
    app.state.notification_http = None

    app.add_middleware(RouteGuardMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MoonDevError, moondev_error_handler)
    app.add_exception_handler(PageRedirect, page_redirect_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(auth.router)
    app.include_router(submissions.router)
    app.include_router(notifications.router)
    app.include_router(realtime.router)
    app.include_router(pages.router)

    return app


def run() -> None:
    import uvicorn

    uvicorn.run(
        "moondev.main:create_app", factory=True, port=get_settings().port
    )
