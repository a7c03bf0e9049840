"""
Success Response Interceptor Middleware.

Every successful JSON response of the API is wrapped as
    {"success": true, "data": <payload>, "count": <len>}
where "count" is only present for list payloads. File downloads, empty
204 replies and the docs endpoints pass through untouched. Routes can opt
out with @skip_interceptor.
"""

import json
from typing import Any, Callable, Dict

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.middleware.base import BaseHTTPMiddleware

SKIP_INTERCEPTOR_KEY = "skip_interceptor"

EXCLUDED_PATHS = frozenset({"/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc"})


def wrap_payload(payload: Any) -> Dict[str, Any]:
    wrapped: Dict[str, Any] = {"success": True, "data": payload}
    if isinstance(payload, list):
        wrapped["count"] = len(payload)
    return wrapped


class SuccessResponseInterceptor(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if request.url.path in EXCLUDED_PATHS:
            return response
        if not 200 <= response.status_code < 300 or response.status_code == 204:
            return response
        if getattr(request.state, SKIP_INTERCEPTOR_KEY, False):
            return response
        if "application/json" not in response.headers.get("content-type", ""):
            return response

        body = b""
        async for chunk in response.body_iterator:
            body += chunk

        # Content-Length changes once wrapped
        headers = {k: v for k, v in response.headers.items() if k.lower() != "content-length"}
        try:
            payload = json.loads(body.decode())
        except (json.JSONDecodeError, UnicodeDecodeError):
            return Response(content=body, status_code=response.status_code, headers=headers)

        return JSONResponse(
            content=wrap_payload(payload),
            status_code=response.status_code,
            headers=headers,
        )


def skip_interceptor(func: Callable) -> Callable:
    """
    Leave this endpoint's response unwrapped.

    Usage:
        @router.get("/raw")
        @skip_interceptor
        async def raw_endpoint():
            return {"raw": True}
    """
    setattr(func, SKIP_INTERCEPTOR_KEY, True)
    return func


class CustomAPIRoute(APIRoute):
    """Copies the endpoint's skip_interceptor flag onto request.state."""

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()
        skip = getattr(self.endpoint, SKIP_INTERCEPTOR_KEY, False)

        async def custom_route_handler(request: Request) -> Response:
            setattr(request.state, SKIP_INTERCEPTOR_KEY, skip)
            return await original_route_handler(request)

        return custom_route_handler
