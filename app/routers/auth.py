"""Authentication API endpoints."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import GatedRoute, require_auth
from app.routes import Route
from app.rate_limit import limiter
from app.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    UserOut,
)
from app.services.auth import AuthService, get_auth_service

router = APIRouter(prefix="/api", tags=["Authentication"], route_class=GatedRoute)

FORGOT_PASSWORD_MESSAGE = "If an account exists with that email, a password reset code has been sent."


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=201,
    name=Route.SIGNUP.value,
    dependencies=[Depends(require_auth(Route.SIGNUP))],
)
@limiter.limit("5/minute")
def signup(
    request: Request,
    body: SignupRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a new user account and return a bearer token."""
    result = auth_service.signup(db, body.first_name, body.last_name, body.email, body.password)
    return AuthResponse(
        message="User created successfully",
        user=UserOut.model_validate(result.user),
        token=result.token,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    name=Route.LOGIN.value,
    dependencies=[Depends(require_auth(Route.LOGIN))],
)
@limiter.limit("10/minute")
def login(
    request: Request,
    body: LoginRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Authenticate and receive a bearer token."""
    result = auth_service.login(db, body.email, body.password)
    return AuthResponse(message="Login successful", user=UserOut.model_validate(result.user), token=result.token)


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    name=Route.FORGOT_PASSWORD.value,
    dependencies=[Depends(require_auth(Route.FORGOT_PASSWORD))],
)
@limiter.limit("3/minute")
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Email a one-time reset code. The response never says whether the account exists."""
    auth_service.forgot_password(db, body.email, background_tasks)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    name=Route.RESET_PASSWORD.value,
    dependencies=[Depends(require_auth(Route.RESET_PASSWORD))],
)
@limiter.limit("5/minute")
def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Reset the password with an emailed code. Signs out every existing session."""
    auth_service.reset_password(db, body.email, body.otp, body.password, body.password_confirmation)
    return MessageResponse(message="Password has been reset successfully. Please login with your new password.")
