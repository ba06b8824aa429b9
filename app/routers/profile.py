"""Profile and session endpoints. All require a bearer token."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import GatedRoute, require_auth
from app.routes import Route
from app.schemas.auth import MessageResponse, ProfileResponse, ProfileUpdateRequest, UserOut
from app.services.auth import AuthService, get_auth_service
from app.services.tokens import AuthContext

router = APIRouter(prefix="/api", tags=["Profile"], route_class=GatedRoute)


@router.get("/profile", response_model=ProfileResponse, name=Route.PROFILE_SHOW.value)
def show_profile(
    ctx: AuthContext = Depends(require_auth(Route.PROFILE_SHOW)),
    auth_service: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    """Return the authenticated user's profile."""
    return ProfileResponse(user=UserOut.model_validate(auth_service.get_profile(ctx)))


@router.put("/profile", response_model=ProfileResponse, name=Route.PROFILE_UPDATE.value)
def update_profile(
    body: ProfileUpdateRequest,
    ctx: AuthContext = Depends(require_auth(Route.PROFILE_UPDATE)),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    """Update first and/or last name. Omitted fields are left unchanged."""
    user = auth_service.update_profile(db, ctx, first_name=body.first_name, last_name=body.last_name)
    return ProfileResponse(user=UserOut.model_validate(user))


@router.post("/logout", response_model=MessageResponse, name=Route.LOGOUT.value)
def logout(
    ctx: AuthContext = Depends(require_auth(Route.LOGOUT)),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Revoke the token used for this request. Other sessions stay signed in."""
    auth_service.logout(db, ctx)
    return MessageResponse(message="Logged out successfully")
