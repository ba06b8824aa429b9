"""Passgate - token authentication API with emailed password reset codes."""

import logging
import time

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.dependencies import require_auth
from app.errors import AuthError, EndpointNotFound, InternalError, MethodNotSupported, RateLimited, ValidationFailed
from app.rate_limit import limiter
from app.routers import auth_router, profile_router
from app.routes import Route

VERSION = "0.1.0"

# Logging
logger = logging.getLogger("passgate")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

for warning in get_settings().validate():
    logger.warning("Config: %s", warning)

app = FastAPI(title="Passgate", version=VERSION)
app.state.limiter = limiter


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        if request.url.path.startswith("/api/"):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
            response.headers["Cache-Control"] = "no-store"
        return response


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = {
        "/api/signup",
        "/api/login",
        "/api/forgot-password",
        "/api/reset-password",
        "/api/profile",
        "/api/logout",
    }

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        path = request.url.path
        method = request.method
        if method in ("POST", "PUT") and path in self.AUDIT_PATHS:
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AuditLogMiddleware)

# API routers
app.include_router(auth_router)
app.include_router(profile_router)


def error_response(error: AuthError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render expected auth and validation failures."""
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reshape pydantic errors into ``{field: [messages]}``."""
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        field = ".".join(loc) if loc else "body"
        errors.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return error_response(ValidationFailed(errors=errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unmatched routes and methods get the same JSON envelope as everything else."""
    if exc.status_code == 404:
        return error_response(EndpointNotFound())
    if exc.status_code == 405:
        return error_response(MethodNotSupported())
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc.detail)})


# --- Rate limit error handler ---
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded."""
    logger.warning("Rate limit exceeded: %s %s", request.method, request.url.path)
    return error_response(RateLimited())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log with context, answer without internals."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(InternalError())


# --- Health check ---
@app.get("/api/health", name=Route.HEALTH.value, dependencies=[Depends(require_auth(Route.HEALTH))])
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "passgate", "version": VERSION}
