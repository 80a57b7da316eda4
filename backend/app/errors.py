"""Application-level error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .core.exceptions import DomainException, ServiceException

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Render domain errors that escape a route with the standard envelope."""

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        if isinstance(exc, ServiceException):
            logger.error(f"Unhandled service error on {request.url.path}: {exc.message}")
        http_exc = exc.to_http_exception()
        return JSONResponse(
            {"detail": jsonable_encoder(http_exc.detail)},
            status_code=http_exc.status_code,
            headers=http_exc.headers,
        )
