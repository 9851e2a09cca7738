"""
Request logging middleware.

``RequestLoggingMiddleware`` is a plain ASGI middleware wrapped around
the whole application.  It replaces the ``send`` callable with one that
remembers the status of the first ``http.response.start`` message, then
logs one line per request once the response is finished.  Messages are
passed through untouched.
"""

import logging
import time
from typing import Any, Awaitable, Callable, Dict, MutableMapping, Optional

logger = logging.getLogger("user_crud_api.access")

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]


class StatusRecorder:
    """Wraps an ASGI ``send`` and records the first response status."""

    def __init__(self, send: Send) -> None:
        self._send = send
        self.status_code: Optional[int] = None

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start" and self.status_code is None:
            self.status_code = message["status"]
        await self._send(message)


def _header(scope: Scope, name: bytes) -> str:
    for key, value in scope.get("headers", []):
        if key.lower() == name:
            return value.decode("latin-1")
    return ""


def _request_fields(scope: Scope) -> Dict[str, Any]:
    path = scope.get("path", "")
    query = scope.get("query_string", b"")
    if query:
        path = f"{path}?{query.decode('latin-1')}"
    client = scope.get("client")
    return {
        "method": scope.get("method", ""),
        "uri": path,
        "remote_addr": f"{client[0]}:{client[1]}" if client else "",
        "user_agent": _header(scope, b"user-agent"),
    }


class RequestLoggingMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        recorder = StatusRecorder(send)
        try:
            await self.app(scope, receive, recorder)
        except Exception:
            # Nothing was sent yet, the server will answer 500.
            if recorder.status_code is None:
                recorder.status_code = 500
            raise
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            fields = _request_fields(scope)
            fields["status_code"] = recorder.status_code if recorder.status_code is not None else 200
            fields["duration_ms"] = round(duration_ms, 3)
            logger.info(
                "%s %s %s",
                fields["method"],
                fields["uri"],
                fields["status_code"],
                extra=fields,
            )
