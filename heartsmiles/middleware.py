import time
from collections.abc import Awaitable, Callable
from typing import Final

from fastapi import Request, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .domain.exceptions import PayloadTooLargeError
from .logging_utils import log_api_request
from .metrics import record_http_request
from .presentation.error_handlers import error_response, pipeline_error_response
from .request_utils import get_client_ip

# Default header set of the helmet middleware
SECURITY_HEADERS: Final = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

# Room for part headers and boundaries around an upload at the size ceiling
MULTIPART_OVERHEAD_BYTES: Final = 64 * 1024


async def log_requests_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Middleware to log all HTTP requests with timing information.

    Args:
        request: FastAPI request object
        call_next: Next middleware/route handler in the chain

    Returns:
        Response from the route handler
    """
    start_time = time.time()

    response = await call_next(request)

    process_time = time.time() - start_time

    log_api_request(
        request=request,
        response_status=response.status_code,
        process_time_ms=process_time * 1000,
        client_ip=get_client_ip(
            request, request.app.state.settings.trusted_proxy_hops
        ),
    )
    record_http_request(
        request.method, request.url.path, response.status_code, process_time
    )

    return response


async def security_headers_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Apply protective response headers to every response."""
    response = await call_next(request)

    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    if "x-powered-by" in response.headers:
        del response.headers["x-powered-by"]

    return response


async def unhandled_error_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Convert exceptions escaping the routers into the error envelope.

    Sits directly around the router so the error response still passes
    through CORS, rate limit and security header middleware.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return error_response(request, exc)


class BodySizeLimitMiddleware:
    """Reject request bodies larger than their ceiling before routing.

    Multipart uploads may use max_upload_bytes plus framing overhead. Every
    other body, whatever its content type, is held to max_body_bytes.

    The body is buffered before the application runs, so an oversized
    request never reaches a route handler and is never spooled to disk. A
    declared Content-Length over the limit is rejected without reading the
    body at all.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_body_bytes: int,
        max_upload_bytes: int,
        development: bool,
    ):
        self.app = app
        self.max_body_bytes = max_body_bytes
        self.max_upload_bytes = max_upload_bytes
        self.development = development

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self.limit_for(scope)
        declared = self._content_length(scope)
        if declared is not None and declared > limit:
            await self._reject(scope, receive, send, declared, limit)
            return

        chunks: list[bytes] = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > limit:
                await self._reject(scope, receive, send, received, limit)
                return
            chunks.append(chunk)
            more_body = message.get("more_body", False)

        body = b"".join(chunks)
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    def limit_for(self, scope: Scope) -> int:
        if self._content_type(scope) == "multipart/form-data":
            return self.max_upload_bytes + MULTIPART_OVERHEAD_BYTES
        return self.max_body_bytes

    async def _reject(
        self, scope: Scope, receive: Receive, send: Send, size: int, limit: int
    ) -> None:
        error = PayloadTooLargeError(size, limit)
        response = pipeline_error_response(
            error,
            path=scope.get("path", ""),
            method=scope.get("method", ""),
            development=self.development,
        )
        await response(scope, receive, send)

    @staticmethod
    def _content_type(scope: Scope) -> str:
        for name, value in scope.get("headers", []):
            if name == b"content-type":
                return value.decode("latin-1").split(";")[0].strip().lower()
        return ""

    @staticmethod
    def _content_length(scope: Scope) -> int | None:
        for name, value in scope.get("headers", []):
            if name == b"content-length":
                try:
                    return int(value)
                except ValueError:
                    return None
        return None
