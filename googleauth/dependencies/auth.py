"""
Authentication dependencies for FastAPI.
"""
from fastapi import Depends, HTTPException, Request, status

from googleauth.models.identity import UserIdentity
from googleauth.services.google_auth import GoogleAuth


def get_google_auth(request: Request) -> GoogleAuth:
    """The process-wide GoogleAuth created at startup."""
    return request.app.state.google_auth


async def get_current_user(
    request: Request,
    google_auth: GoogleAuth = Depends(get_google_auth),
) -> UserIdentity:
    """
    Dependency that requires a signed-in Google user.

    Returns the identity stored at login, raises 401 if there is none or,
    when enforce_validity is configured, if it has expired.

    Usage:
        @app.get("/protected")
        async def protected_route(user: UserIdentity = Depends(get_current_user)):
            ...
    """
    identity = UserIdentity.from_session(request.session)

    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    if google_auth.config.enforce_validity and not identity.is_valid():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Login expired, please sign in again",
        )

    return identity
