"""Who may see which page.

``redirect_for`` is the one place the role/path rules live. The route guard
middleware and the page dependencies both call it.
"""

from typing import Optional

from starlette.requests import HTTPConnection

from .config import Settings
from .models.models import Role
from .schemas.user import UserRecord
from .store import SubmissionStore
from .utils.security import decode_access_token

HOME_PATH = "/"
SUBMIT_PATH = "/submit"
EVALUATE_PATH = "/evaluate"

GUARDED_PATHS = (HOME_PATH, SUBMIT_PATH, EVALUATE_PATH)

TOKEN_COOKIE = "access_token"


def redirect_for(role: Optional[str], path: str) -> Optional[str]:
    """Return where a caller with ``role`` must be sent instead of ``path``.

    ``role`` is None when there is no session. None means the caller may stay.
    """
    if role is None:
        return HOME_PATH if path != HOME_PATH else None
    if role == Role.DEVELOPER and path == EVALUATE_PATH:
        return SUBMIT_PATH
    if role == Role.EVALUATOR and path == SUBMIT_PATH:
        return EVALUATE_PATH
    return None


def token_from(conn: HTTPConnection) -> Optional[str]:
    authorization = conn.headers.get("authorization")
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip()
    token = conn.cookies.get(TOKEN_COOKIE)
    if token:
        return token
    # browsers cannot set headers on a WebSocket handshake
    return conn.query_params.get("token")


def session_user(
    conn: HTTPConnection, store: SubmissionStore, settings: Settings
) -> Optional[UserRecord]:
    """Resolve the caller's user, or None when there is no valid session."""
    token = token_from(conn)
    if not token:
        return None
    user_id = decode_access_token(token, settings)
    if not user_id:
        return None
    return store.get_user(user_id)
