import logging as log
from typing import Optional
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from session.errors import SessionError

from .logging import RequestResponseLoggingMiddleware
from .error_handling import ErrorHandlingMiddleware
from .exception_handlers import custom_http_exception_handler, session_error_handler

logger = log.getLogger('gateway.service.middleware')


def setup_middleware(
    app: FastAPI,
    cors_config: tuple[list[str], list[str], list[str]],
    cookie_name: Optional[str] = None,
):
    """
    Register the exception handlers and the middleware stack.

    Starlette runs the last added middleware first, so a request passes
    CORS, then error handling, then request logging.

    Args:
        app: FastAPI application instance
        cors_config: Allowed CORS (origins, methods, headers)
        cookie_name: Session cookie whose presence is logged. Read from the
            environment when omitted.
    """
    app.add_exception_handler(HTTPException, custom_http_exception_handler)
    app.add_exception_handler(SessionError, session_error_handler)

    app.add_middleware(RequestResponseLoggingMiddleware, cookie_name=cookie_name)
    app.add_middleware(ErrorHandlingMiddleware)

    origins, methods, headers = cors_config
    # Cookies only reach the tenant routes when credentials are allowed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=methods,
        allow_headers=headers,
    )
    logger.info(f"CORS configured with origins: {origins}")


__all__ = [
    'setup_middleware',
    'RequestResponseLoggingMiddleware',
    'ErrorHandlingMiddleware',
    'custom_http_exception_handler',
    'session_error_handler',
]
