"""
Custom middleware for the filedesk conversion service.

This module contains ASGI middleware for request logging and for turning
unhandled exceptions into JSON error responses.
"""

import time
import traceback
import uuid
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger


class LoggingMiddleware:
    """
    Custom logging middleware for request/response logging.

    Every request is tagged with a short request id and logged together
    with its processing time.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())[:8]
        scope["request_id"] = request_id
        start_time = time.time()

        request = Request(scope, receive)
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} - "
            f"Client: {request.client.host if request.client else 'unknown'}"
        )

        status_code = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            process_time = time.time() - start_time
            logger.info(f"[{request_id}] {status_code} in {process_time:.3f}s")


class ErrorHandlingMiddleware:
    """
    Error handling middleware for consistent error responses.

    Unhandled exceptions become a 500 JSON body with a human-readable
    message. The traceback is only included when ``expose_tracebacks``
    is set (development mode).
    """

    def __init__(self, app: Any, expose_tracebacks: bool = False) -> None:
        """
        Initialize the error handling middleware.

        Args:
            app: ASGI application
            expose_tracebacks: Include the traceback in error bodies
        """
        self.app = app
        self.expose_tracebacks = expose_tracebacks

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            logger.opt(exception=exc).error(f"Unhandled exception: {exc}")
            if response_started:
                raise

            content = {
                "message": "The server encountered an error",
                "requestId": scope.get("request_id", "unknown"),
            }
            if self.expose_tracebacks:
                content["error"] = "".join(
                    traceback.format_exception(type(exc), exc, exc.__traceback__)
                )

            error_response = JSONResponse(status_code=500, content=content)
            await error_response(scope, receive, send)
