"""Open CORS for the anonymous endpoints (any origin, POST only)."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

PUBLIC_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Internal-Secret",
    "Access-Control-Max-Age": "86400",
}


class PublicCORSMiddleware(BaseHTTPMiddleware):
    """Answers preflights and stamps CORS headers for the given paths."""

    def __init__(self, app, paths: set[str]):
        super().__init__(app)
        self.paths = {p.rstrip("/") for p in paths}

    async def dispatch(self, request: Request, call_next):
        if request.url.path.rstrip("/") not in self.paths:
            return await call_next(request)
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=PUBLIC_CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(PUBLIC_CORS_HEADERS)
        return response
