"""
Authentication routes.

Route handlers stay thin: they hand the payload to ``AuthService`` and shape
the ``{"success": ..., "message": ...}`` envelope. Errors are raised as
``AppException`` subclasses and rendered by the global handlers.
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request, status

from .dependencies import get_auth_service, get_current_account
from .exceptions import AuthException
from ..exceptions import AppException
from .models import Account
from .schemas import (
    CompleteProfileRequest,
    LoginRequest,
    ResendVerificationRequest,
    UpdateProfileRequest,
)
from .service import AuthService

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter()


def _ok(result: Dict[str, Any]) -> Dict[str, Any]:
    body = {"success": True}
    body.update(result)
    return body


# ============================================================================
# REGISTRATION & VERIFICATION
# ============================================================================

@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register Account")
async def register_route(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: Dict[str, Any] = Body(...),
    service: AuthService = Depends(get_auth_service),
):
    """
    Account registration endpoint (stage 1).

    The payload is validated as a whole so that every failing field is
    reported at once, including the demographic fields when the deployment
    requires them at registration. The verification email is sent after the
    response; a delivery failure does not undo the registration.

    Returns:
        Dict with the account summary (no session token)
    """
    try:
        result = await service.register(payload, request=request)
    except AuthException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during registration: {str(e)}")
        raise AppException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error during registration")

    background_tasks.add_task(service.send_best_effort, result.pop("notification"))
    return _ok(result)


@router.get("/verify-email/{token}", summary="Verify Email Address")
async def verify_email_route(
    token: str,
    request: Request,
    background_tasks: BackgroundTasks,
    service: AuthService = Depends(get_auth_service),
):
    """
    Email verification endpoint.

    Wrong, expired and already used tokens all get the same 400 response.
    """
    result = await service.verify_email(token, request=request)
    background_tasks.add_task(service.send_best_effort, result.pop("notification"))
    return _ok(result)


@router.post("/resend-verification", summary="Resend Verification Email")
async def resend_verification_route(
    data: ResendVerificationRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    """
    Resend verification email endpoint.

    The previous token stops working. A delivery failure is returned as 500.
    """
    result = await service.resend_verification(data.email, request=request)
    return _ok(result)


# ============================================================================
# SESSION
# ============================================================================

@router.post("/login", summary="Login")
async def login_route(
    data: LoginRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    """
    Login endpoint.

    Returns:
        Dict with the session token and account summary; ``profileCompleted``
        tells the client whether to route to profile completion.
    """
    try:
        result = await service.login(data.email, data.password, request=request)
    except AuthException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during login: {str(e)}")
        raise AppException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error during login")
    return _ok(result)


@router.post("/logout", summary="Logout")
async def logout_route(service: AuthService = Depends(get_auth_service)):
    """Logout endpoint. Sessions are stateless; nothing changes server side."""
    return _ok(service.logout())


# ============================================================================
# PROFILE (AUTHENTICATED)
# ============================================================================

@router.get("/me", summary="Current Account")
async def me_route(
    current_account: Account = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    """Return the authenticated account without its password digest."""
    return _ok(service.get_profile(current_account))


@router.put("/complete-profile", summary="Complete Profile")
async def complete_profile_route(
    data: CompleteProfileRequest,
    request: Request,
    current_account: Account = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    """
    Profile completion endpoint (stage 2).

    Only the profile matching the account's role is stored.
    """
    result = await service.complete_profile(current_account.id, data, request=request)
    return _ok(result)


@router.put("/update-profile", summary="Update Profile")
async def update_profile_route(
    data: UpdateProfileRequest,
    request: Request,
    current_account: Account = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    """
    Profile update endpoint.

    Only firstName, lastName, phoneNumber, gender and the role-matching
    profile can change; other keys are ignored.
    """
    result = await service.update_profile(current_account.id, data, request=request)
    return _ok(result)
