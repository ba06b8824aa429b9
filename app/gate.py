"""Request gate: decides whether a routed request needs a bearer token and checks it."""

import logging

from sqlalchemy.orm import Session

from app.errors import ExpiredToken, InvalidToken, MalformedCredentials, MissingCredentials
from app.routes import PUBLIC_ROUTES, Route
from app.services.tokens import AuthContext, TokenService, preview

logger = logging.getLogger("passgate")

BEARER_PREFIX = "Bearer "


class RequestGate:
    """Enforces token authentication on protected routes."""

    def __init__(self, tokens: TokenService, public_routes: frozenset = PUBLIC_ROUTES) -> None:
        self.tokens = tokens
        self.public_routes = public_routes

    def is_public(self, route: Route) -> bool:
        return route in self.public_routes

    def authenticate(self, db: Session, route: Route, authorization: str | None) -> AuthContext | None:
        """Return the caller's identity, or None for public routes.

        Raises MissingCredentials, MalformedCredentials, InvalidToken or
        ExpiredToken, checked in that order.
        """
        if self.is_public(route):
            return None

        if not authorization:
            logger.warning("API request without authorization header: route=%s", route.value)
            raise MissingCredentials()

        if not authorization.startswith(BEARER_PREFIX) or not authorization[len(BEARER_PREFIX) :].strip():
            raise MalformedCredentials()

        plaintext = authorization[len(BEARER_PREFIX) :].strip()
        try:
            return self.tokens.validate(db, plaintext)
        except InvalidToken:
            logger.warning("Invalid token used: route=%s token_preview=%s", route.value, preview(plaintext))
            raise
        except ExpiredToken as exc:
            logger.info("Expired token used: route=%s expired_at=%s", route.value, exc.expired_at.isoformat())
            raise
