import logging
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

from auth.session.backends import BackendError

logger = logging.getLogger('gateway.service.middleware')

INTERNAL_ERROR_BODY = {
    "error": "Internal server error occurred",
    "error_code": "internal_error",
    "message": "An unexpected error occurred. Please try again later.",
}


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns storage failures and other uncaught errors into a generic 500 without leaking details"""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except BackendError as exc:
            # The backend logs the underlying cause
            logger.error(f"Session storage failed for {request.method} {request.url.path}: {exc}")
        except Exception as exc:
            logger.error(f"Unexpected error for {request.method} {request.url.path}: {exc}", exc_info=True)

        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)
