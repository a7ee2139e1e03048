from fastapi import Request
from fastapi.responses import JSONResponse


class MoonDevError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthorizedError(MoonDevError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(MoonDevError):
    status_code = 404


class ValidationError(MoonDevError):
    status_code = 400


class ConflictError(MoonDevError):
    status_code = 409


class DownstreamError(MoonDevError):
    """A collaborator (mail API, database) failed."""

    status_code = 502


class MailError(DownstreamError):
    pass


async def moondev_error_handler(request: Request, exc: MoonDevError):
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.message}
    )
