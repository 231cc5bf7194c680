from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from ...core.config import settings
from ...core.database import get_db
from ...api.deps import get_current_user, rate_limit_check
from ...services.auth_service import AuthService
from ...schemas.auth import (
    UserLogin, UserRegister, TokenResponse, UserResponse,
    RefreshTokenRequest, ChangePassword
)
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])

def _set_token_cookies(response: Response, tokens: TokenResponse) -> None:
    """Mirror the token pair into httpOnly cookies for browser clients."""
    response.set_cookie(
        settings.ACCESS_TOKEN_COOKIE_NAME,
        tokens.access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )
    response.set_cookie(
        settings.REFRESH_TOKEN_COOKIE_NAME,
        tokens.refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )

def _refresh_token_from(request: Request, refresh_data: Optional[RefreshTokenRequest]) -> Optional[str]:
    if refresh_data and refresh_data.refresh_token:
        return refresh_data.refresh_token
    return request.cookies.get(settings.REFRESH_TOKEN_COOKIE_NAME)

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new patient account."""
    auth_service = AuthService(db)
    user = auth_service.register_user(user_data)
    return UserResponse.model_validate(user)

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user, return the token pair and set it as cookies."""
    auth_service = AuthService(db)
    tokens = auth_service.authenticate_user(login_data)
    _set_token_cookies(response, tokens)
    return tokens

@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    request: Request,
    response: Response,
    refresh_data: Optional[RefreshTokenRequest] = None,
    db: Session = Depends(get_db)
):
    """Rotate the token pair using the refresh token from the body or cookie."""
    auth_service = AuthService(db)
    tokens = auth_service.refresh_access_token(_refresh_token_from(request, refresh_data))
    _set_token_cookies(response, tokens)
    return tokens

@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    refresh_data: Optional[RefreshTokenRequest] = None,
    db: Session = Depends(get_db)
):
    """Logout user by revoking refresh token and clearing cookies."""
    auth_service = AuthService(db)
    success = auth_service.logout_user(_refresh_token_from(request, refresh_data))

    response.delete_cookie(settings.ACCESS_TOKEN_COOKIE_NAME)
    response.delete_cookie(settings.REFRESH_TOKEN_COOKIE_NAME)

    return {"message": "Successfully logged out" if success else "Logout completed"}

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return UserResponse.model_validate(current_user)

@router.post("/change-password")
async def change_password(
    password_data: ChangePassword,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change user password."""
    auth_service = AuthService(db)
    auth_service.change_password(
        current_user,
        password_data.current_password,
        password_data.new_password
    )
    return {"message": "Password changed successfully"}
