"""Map the back-office failure taxonomy onto HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from backoffice.errors import Conflict, Forbidden, InvalidTransition, error_message


async def _not_found(_request: Request, _exc: ObjectNotFoundError):
    return JSONResponse(status_code=404, content={"error": "Order not found"})


async def _forbidden(_request: Request, _exc: Forbidden):
    return JSONResponse(status_code=403, content={"error": "Forbidden"})


async def _invalid_transition(_request: Request, exc: InvalidTransition):
    return JSONResponse(status_code=422, content={"error": str(exc), "status": exc.state})


async def _validation_error(_request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": error_message(exc)})


async def _conflict(_request: Request, exc: Conflict):
    return JSONResponse(
        status_code=409,
        content={"error": "Order was modified by someone else; reload and retry", "version": exc.actual_version},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(Forbidden, _forbidden)
    app.add_exception_handler(InvalidTransition, _invalid_transition)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(Conflict, _conflict)
