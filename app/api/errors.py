"""
Exception handlers.

Every error body is {"error": <message>}. Catalog errors keep their own
status code and message; anything unexpected becomes a 500 with a generic
message so internal detail never reaches the caller.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.common.logging import get_logger
from app.core.errors import CatalogError

logger = get_logger(__name__)


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected request parameters", data={"path": request.url.path, "errors": str(exc.errors())})
    return JSONResponse(status_code=400, content={"error": "Invalid request parameters"})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error",
        data={"path": request.url.path, "method": request.method},
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
