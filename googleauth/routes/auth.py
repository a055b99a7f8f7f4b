"""
Authentication routes for Google OAuth (server-side flow).
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from googleauth.config import settings
from googleauth.dependencies.auth import get_current_user, get_google_auth
from googleauth.errors import AuthFailure, GoogleAuthError
from googleauth.logging_config import get_logger
from googleauth.models.identity import UserIdentity
from googleauth.services.google_auth import GoogleAuth

router = APIRouter(prefix="/auth", tags=["Authentication"])

logger = get_logger(component="auth_routes")


def status_code_for(kind: AuthFailure) -> int:
    if kind.is_anti_forgery:
        return 401
    if kind is AuthFailure.DOMAIN_MISMATCH:
        return 403
    return 502


async def google_auth_error_handler(request: Request, exc: GoogleAuthError) -> JSONResponse:
    """Render a failed login so the client can offer a fresh sign-in."""
    logger.warning("google_login_failed", failure=exc.kind.value, path=request.url.path)
    return JSONResponse(
        status_code=status_code_for(exc.kind),
        content={"error": exc.kind.value, "detail": exc.message},
    )


@router.get("/login/google")
async def login_google(
    request: Request,
    google_auth: GoogleAuth = Depends(get_google_auth),
):
    """
    Redirect user to Google OAuth login page.
    """
    checker = google_auth.config.anti_forgery_checker
    session_id, needs_store = checker.ensure_session_id(request.session)
    if needs_store:
        request.session[checker.session_id_key_name] = session_id

    current = UserIdentity.from_session(request.session)
    url = await google_auth.authorization_url(
        session_id,
        login_hint=current.email if current else None,
    )
    return RedirectResponse(url=url, status_code=303)


@router.get("/google/callback", name="google_callback")
async def google_callback(
    request: Request,
    google_auth: GoogleAuth = Depends(get_google_auth),
):
    """
    Handle Google OAuth callback.

    Failures are rendered by google_auth_error_handler.
    """
    identity = await google_auth.validated_user_identity(request.session, request.query_params)
    request.session[UserIdentity.SESSION_KEY] = identity.to_session()
    return RedirectResponse(url=settings.FRONTEND_URL, status_code=303)


@router.post("/logout")
async def logout(request: Request):
    """
    Forget the signed-in identity. The anti-forgery session id is kept.
    """
    request.session.pop(UserIdentity.SESSION_KEY, None)
    return {"status": "success", "message": "Logged out"}


@router.get("/me", response_model=UserIdentity)
async def get_me(user: UserIdentity = Depends(get_current_user)) -> UserIdentity:
    """
    Get current user info.
    """
    return user
