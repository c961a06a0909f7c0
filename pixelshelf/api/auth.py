from fastapi import APIRouter, Depends, Response, status

from pixelshelf.core.config import settings
from pixelshelf.core.dependencies import get_auth_service, get_current_user
from pixelshelf.models import User as UserRow
from pixelshelf.schemas.auth import LoginIn, RegisterIn, TokenOut
from pixelshelf.schemas.user import User
from pixelshelf.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_session(response: Response, auth_service: AuthService, user: UserRow) -> TokenOut:
    token = auth_service.create_access_token(user.id)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
    )
    return TokenOut(token=token)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=TokenOut)
async def register(
    credentials: RegisterIn,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create an account and start a session for it."""
    user = await auth_service.register(credentials)
    return _issue_session(response, auth_service, user)


@router.post("/login", response_model=TokenOut)
async def login(
    credentials: LoginIn,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    user = await auth_service.authenticate(credentials)
    return _issue_session(response, auth_service, user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response):
    response.delete_cookie(settings.session_cookie_name)


@router.get("/me", response_model=User)
async def get_user_profile(current_user: UserRow = Depends(get_current_user)):
    return current_user
