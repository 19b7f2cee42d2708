import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exception_handlers import http_exception_handler

from session.errors import SessionError

logger = logging.getLogger('gateway.service.middleware')


async def session_error_handler(request: Request, exc: SessionError):
    """Render session errors with their status and a stable error code"""
    logger.warning(f"SESSION_ERROR: {exc.status_code} {exc.error_code} - {exc.message} ({request.method} {request.url.path})")

    headers = None
    if exc.status_code == 401:
        headers = {"WWW-Authenticate": 'Basic realm="session-gateway"'}

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )


async def custom_http_exception_handler(request: Request, exc: HTTPException):
    """Handler for HTTPExceptions that logs the details before the default formatting"""
    if exc.status_code >= 500:
        logger.error(f"HTTP_EXCEPTION: {exc.status_code} - {exc.detail}")
    else:
        logger.info(f"HTTP_EXCEPTION: {exc.status_code} - {exc.detail}")
    return await http_exception_handler(request, exc)
