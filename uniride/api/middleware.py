"""
HTTP middleware and error mapping.

* ``limiter`` -- per-client request rate limit (slowapi).
* ``domain_error_handler`` -- renders ``DomainError`` as ``{"error": ...}``
  with the status the error carries.
* ``unhandled_error_handler`` -- logs the traceback, answers a generic 500.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from uniride.config import settings
from uniride.domain.errors import DomainError

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
RATE_LIMIT = settings.rate_limit


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
