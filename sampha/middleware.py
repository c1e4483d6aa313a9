"""CORS, request logging and response deadline middleware."""

import asyncio
import logging
import time

from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS, PATCH",
    "Access-Control-Allow-Headers": "Accept, Authorization, Content-Type, X-CSRF-Token",
    "Access-Control-Allow-Credentials": "false",
}


class CORSLoggingMiddleware(BaseHTTPMiddleware):
    """Permissive CORS on every response, preflight short-circuit, timing logs.

    ``OPTIONS`` requests are answered here with 204 and never reach the
    router.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        client = request.client.host if request.client else "-"

        if request.method == "OPTIONS":
            response = Response(status_code=204)
            response.headers.update(CORS_HEADERS)
            logger.debug(
                f"cors: OPTIONS preflight request from {client} - {_elapsed_ms(start):.2f}ms"
            )
            return response

        logger.info(f"request: {request.method} {request.url.path} from {client}")
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        logger.info(
            f"response: {request.method} {request.url.path} -> {response.status_code} "
            f"completed in {_elapsed_ms(start):.2f}ms"
        )
        return response


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class ReadTimeout(HTTPException):
    def __init__(self):
        super().__init__(status_code=408)


class DeadlineMiddleware:
    """Bound request handling time.

    A response must start within ``write_timeout`` seconds (503 otherwise)
    and each request-body read must complete within ``read_timeout``
    seconds (408 otherwise). Once a response has started nothing more can
    be sent, so an expired deadline just abandons the connection.
    """

    def __init__(self, app, read_timeout: float = 10.0, write_timeout: float = 30.0):
        self.app = app
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def timed_receive():
            if response_started:
                return await receive()
            try:
                return await asyncio.wait_for(receive(), self.read_timeout)
            except asyncio.TimeoutError:
                raise ReadTimeout() from None

        async def tracking_send(message):
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, timed_receive, tracking_send), self.write_timeout)
        except ReadTimeout:
            logger.warning(f"read timeout on {scope['method']} {scope['path']}")
            if not response_started:
                await PlainTextResponse("Request Timeout", status_code=408)(scope, receive, send)
        except asyncio.TimeoutError:
            logger.warning(f"write timeout on {scope['method']} {scope['path']}")
            if not response_started:
                await PlainTextResponse("Service Unavailable", status_code=503)(scope, receive, send)
