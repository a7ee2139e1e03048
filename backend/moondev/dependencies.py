from fastapi import Depends, Request
from fastapi.responses import RedirectResponse

from .authorization import redirect_for, session_user
from .config import Settings
from .errors import UnauthorizedError
from .mail import MailClient
from .models.models import Role
from .schemas.user import UserRecord
from .store import SubmissionStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> SubmissionStore:
    return request.app.state.store


def get_mail_client(request: Request) -> MailClient:
    return request.app.state.mail_client


# Dependency for FastAPI routes
def get_db(request: Request):
    with request.app.state.session_factory() as session:
        yield session


def get_current_user(
    request: Request,
    store: SubmissionStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> UserRecord:
    user = session_user(request, store, settings)
    if user is None:
        raise UnauthorizedError()
    return user


def require_evaluator(
    current_user: UserRecord = Depends(get_current_user),
) -> UserRecord:
    if current_user.role != Role.EVALUATOR:
        raise UnauthorizedError()
    return current_user


class PageRedirect(Exception):
    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


async def page_redirect_handler(request: Request, exc: PageRedirect):
    return RedirectResponse(exc.location, status_code=307)


def page_user(
    request: Request,
    store: SubmissionStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Page-level check, same rules as the route guard middleware."""
    user = session_user(request, store, settings)
    location = redirect_for(user.role if user else None, request.url.path)
    if location is not None:
        raise PageRedirect(location)
    return user
