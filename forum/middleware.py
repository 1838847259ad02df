import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Logs start, end and failures of every request at DEBUG."""

    def __init__(self, app, logger_name: str = "forum.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        client = request.client.host if request.client else "-"
        self._logger.debug("http.request start method=%s path=%s client=%s", method, path, client)
        try:
            response: Response = await call_next(request)
        except Exception as e:
            self._logger.warning(
                "http.request error method=%s path=%s dur_ms=%s err=%r",
                method, path, _elapsed_ms(start), e,
            )
            raise
        self._logger.debug(
            "http.request end method=%s path=%s status=%s dur_ms=%s",
            method, path, response.status_code, _elapsed_ms(start),
        )
        return response


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
