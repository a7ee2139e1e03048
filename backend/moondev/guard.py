import logging

from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .authorization import GUARDED_PATHS, redirect_for, session_user

logger = logging.getLogger(__name__)


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Redirect page navigations by session and role before the page renders."""

    def __init__(self, app, paths=GUARDED_PATHS):
        super().__init__(app)
        self.paths = frozenset(paths)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path not in self.paths:
            return await call_next(request)

        store = request.app.state.store
        settings = request.app.state.settings
        user = await run_in_threadpool(session_user, request, store, settings)
        location = redirect_for(user.role if user else None, path)
        if location is not None:
            logger.info(
                "Redirecting %s from %s to %s",
                user.id if user else "anonymous",
                path,
                location,
            )
            return RedirectResponse(location, status_code=307)

        return await call_next(request)
