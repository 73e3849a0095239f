"""Account routes: create an account or trade a password for a new API key."""

from fastapi import APIRouter, status

from hub.schemas.auth import ApiKeyResponse, Credentials
from hub.schemas.common import error_responses
from hub.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=ApiKeyResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(400),
)
async def register(credentials: Credentials):
    """
    Create an account and issue its first API key.

    Raises:
        - 400: Blank username or password, or the username is taken
    """
    api_key, user_id = AuthService().register_user(credentials.username, credentials.password)
    return ApiKeyResponse(api_key=api_key, user_id=user_id)


@router.post("/login", response_model=ApiKeyResponse, responses=error_responses(401))
async def login(credentials: Credentials):
    """
    Issue a new API key for an existing account. The previous key is revoked.

    Raises:
        - 401: Unknown username or wrong password
    """
    api_key, user_id = AuthService().login_user(credentials.username, credentials.password)
    return ApiKeyResponse(api_key=api_key, user_id=user_id)
