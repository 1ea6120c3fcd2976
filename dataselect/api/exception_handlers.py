# dataselect/api/exception_handlers.py

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dataselect.core.exceptions import CapabilityError, DataSelectError

logger = logging.getLogger(__name__)


async def capability_exception_handler(request: Request, exc: CapabilityError):
    """Items that cannot be selected are a server-side programming error"""
    logger.exception(f"Capability error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error: resource is not selectable."},
    )


async def data_select_exception_handler(request: Request, exc: DataSelectError):
    """Handle any other data selection error"""
    logger.exception(f"Data selection failed on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Registers the data selection exception handlers.

    Args:
        app (FastAPI): The FastAPI application instance.
    """
    app.add_exception_handler(CapabilityError, capability_exception_handler)
    app.add_exception_handler(DataSelectError, data_select_exception_handler)
