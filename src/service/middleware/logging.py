import logging
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request

from auth.session.config import get_cookie_name

logger = logging.getLogger('gateway.service.middleware')


class RequestResponseLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log requests and responses, reporting session cookies without their values"""

    def __init__(self, app, cookie_name: str | None = None):
        super().__init__(app)
        self.cookie_name = cookie_name or get_cookie_name()

    async def dispatch(self, request: Request, call_next):
        logger.debug(f"REQUEST_DEBUG: {request.method} {request.url.path}")

        session_cookie_value = request.cookies.get(self.cookie_name)
        logger.debug(f"REQUEST_DEBUG: Session cookie present: {bool(session_cookie_value)}")
        logger.debug(f"REQUEST_DEBUG: Authorization header present: {'authorization' in request.headers}")

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(f"UNEXPECTED_EXCEPTION_DEBUG: {type(exc)}: {str(exc)}")
            raise

        logger.debug(f"RESPONSE_DEBUG: Status {response.status_code}")
        logger.debug(f"RESPONSE_DEBUG: Sets cookie: {'set-cookie' in response.headers}")

        if response.status_code >= 500:
            logger.error(f"ERROR_RESPONSE_DEBUG: Status {response.status_code} for {request.method} {request.url.path}")

        return response
