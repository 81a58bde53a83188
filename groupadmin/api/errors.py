"""
Translation of service errors into responses.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from structlog import get_logger

from groupadmin.service.groups import GroupExistsError, GroupNotFound
from groupadmin.service.guard import GroupImmutable
from groupadmin.service.jobs import BulkJobNotFound
from groupadmin.service.user import UserNotFound

# Named HTTP_422_UNPROCESSABLE_CONTENT in newer starlette releases.
HTTP_422_UNPROCESSABLE = 422


def error_response(status_code: int, *errors: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"errors": list(errors)})


async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, str(exc))


async def group_immutable_handler(request: Request, exc: GroupImmutable) -> JSONResponse:
    return error_response(HTTP_422_UNPROCESSABLE, str(exc))


async def group_exists_handler(request: Request, exc: GroupExistsError) -> JSONResponse:
    return error_response(HTTP_422_UNPROCESSABLE, str(exc))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        "{}: {}".format(".".join(str(x) for x in error["loc"]), error["msg"])
        for error in exc.errors()
    ]

    await get_logger().ainfo("api.validation_error", path=request.url.path, errors=errors)

    return error_response(status.HTTP_400_BAD_REQUEST, *errors)


def add_exception_handlers(app: FastAPI) -> FastAPI:
    """
    Maps `GroupNotFound` (and other missing resources) to 404, `GroupImmutable`
    and `GroupExistsError` to 422, and invalid requests to 400. All bodies are
    of the form ``{"errors": [...]}``.
    """
    app.add_exception_handler(GroupNotFound, not_found_handler)
    app.add_exception_handler(UserNotFound, not_found_handler)
    app.add_exception_handler(BulkJobNotFound, not_found_handler)
    app.add_exception_handler(GroupImmutable, group_immutable_handler)
    app.add_exception_handler(GroupExistsError, group_exists_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    return app
