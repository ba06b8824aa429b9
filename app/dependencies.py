"""Authentication dependencies for FastAPI routes."""

from collections.abc import Callable

from fastapi import Depends, Request, Response
from fastapi.routing import APIRoute
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.database import get_db
from app.gate import RequestGate
from app.routes import Route
from app.services.auth import AuthService, get_auth_service
from app.services.tokens import AuthContext


def get_request_gate(service: AuthService = Depends(get_auth_service)) -> RequestGate:
    """Request gate sharing the auth service's token store and public routes."""
    return RequestGate(service.tokens, service.config.public_routes)


def require_auth(route: Route) -> Callable[..., AuthContext | None]:
    """Build the gate dependency for one route.

    Protected routes get an ``AuthContext``; public ones get ``None``.
    """

    def dependency(
        request: Request,
        db: Session = Depends(get_db),
        gate: RequestGate = Depends(get_request_gate),
    ) -> AuthContext | None:
        return gate.authenticate(db, route, request.headers.get("Authorization"))

    dependency.__name__ = f"require_auth_{route.name.lower()}"
    return dependency


def check_gate(request: Request, route: Route) -> None:
    """Run the request gate with the app's (possibly overridden) session and service."""
    overrides = request.app.dependency_overrides
    service = overrides.get(get_auth_service, get_auth_service)()
    gate = RequestGate(service.tokens, service.config.public_routes)
    if gate.is_public(route):
        return

    sessions = overrides.get(get_db, get_db)()
    db = next(sessions)
    try:
        gate.authenticate(db, route, request.headers.get("Authorization"))
    finally:
        sessions.close()


class GatedRoute(APIRoute):
    """APIRoute that turns away unauthenticated requests before the body is read.

    FastAPI decodes the body before it resolves dependencies. The route name
    must be a ``Route`` value.
    """

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()
        route = Route(self.name)

        async def gated_handler(request: Request) -> Response:
            await run_in_threadpool(check_gate, request, route)
            return await handler(request)

        return gated_handler
