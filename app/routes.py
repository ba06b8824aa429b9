"""Route names shared by the routers, the request gate and the auth config."""

from enum import Enum


class Route(str, Enum):
    """Every endpoint the API exposes. Routers and the gate share these names."""

    SIGNUP = "signup"
    LOGIN = "login"
    FORGOT_PASSWORD = "forgot-password"
    RESET_PASSWORD = "reset-password"
    PROFILE_SHOW = "profile.show"
    PROFILE_UPDATE = "profile.update"
    LOGOUT = "logout"
    HEALTH = "health"


PUBLIC_ROUTES = frozenset(
    {
        Route.SIGNUP,
        Route.LOGIN,
        Route.FORGOT_PASSWORD,
        Route.RESET_PASSWORD,
        Route.HEALTH,
    }
)
