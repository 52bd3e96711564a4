"""Sign-up and sign-in endpoints, forwarded to the identity provider."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from parseai.auth.firebase import AuthError, AuthSession, FirebaseAuthClient, LoginForm, SignupForm, get_auth_client
from parseai.models.schemas import AuthResponse, AuthUserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _to_response(session: AuthSession) -> AuthResponse:
    return AuthResponse(
        id_token=session.id_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        user=AuthUserResponse(**session.user.model_dump()),
    )


@router.post("/signup", response_model=AuthResponse)
async def signup(
    form: SignupForm,
    auth_client: FirebaseAuthClient = Depends(get_auth_client),
) -> AuthResponse:
    """Create an account with first name, email and password.

    Raises:
        400: The provider rejected the sign-up (e.g. email already in use).
        422: Form validation failed.
    """
    try:
        session = await auth_client.sign_up(form)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    return _to_response(session)


@router.post("/login", response_model=AuthResponse)
async def login(
    form: LoginForm,
    auth_client: FirebaseAuthClient = Depends(get_auth_client),
) -> AuthResponse:
    """Sign in with email and password.

    Raises:
        400: Invalid credentials.
        422: Form validation failed.
    """
    try:
        session = await auth_client.sign_in(form)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    logger.info(f"User {session.user.uid} signed in")
    return _to_response(session)
