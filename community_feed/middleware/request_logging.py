from fastapi import Request
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware

from community_feed.core.config import settings

logger = logging.getLogger(__name__)

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        path = request.url.path
        method = request.method
        has_identity = settings.USER_ID_HEADER in request.headers

        logger.info(f"Request: {method} {path} {request.url.query}")

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(f"Response: {response.status_code} in {process_time:.4f}s")

        # Identity problems are the most common client mistake
        if response.status_code in (401, 403):
            logger.warning(
                f"Auth error: {response.status_code} on {method} {path} (identity header present: {has_identity})"
            )

        return response
