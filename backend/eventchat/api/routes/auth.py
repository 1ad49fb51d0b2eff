"""
Authentication routes for signup, login, logout and profile updates.
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from eventchat.db.session import get_db
from eventchat.schemas.user import AuthResponse, UserCreate, UserLogin, UserResponse, UserUpdate
from eventchat.models.user import User
from eventchat.core.config import settings
from eventchat.core.security import create_access_token
from eventchat.api.dependencies import get_current_user
from eventchat.services import user_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(response: Response, user: User) -> AuthResponse:
    """Set the session cookie and build the auth payload."""
    token = create_access_token(user.id)
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="strict",
        secure=settings.COOKIE_SECURE,
    )
    profile = UserResponse.from_user(user)
    return AuthResponse(**profile.model_dump(), access_token=token)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(user_data: UserCreate, response: Response, db: Session = Depends(get_db)):
    """Register a new user and log them in."""
    user = user_service.signup(db, user_data)
    return _issue_token(response, user)


@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLogin, response: Response, db: Session = Depends(get_db)):
    """Login with email and password."""
    user = user_service.authenticate(db, credentials)
    return _issue_token(response, user)


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie. Bearer tokens are dropped client-side."""
    response.delete_cookie(settings.COOKIE_NAME)
    return {"message": "Logged out successfully"}


@router.get("/check", response_model=UserResponse)
async def check_auth(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return UserResponse.from_user(current_user)


@router.put("/update-profile", response_model=UserResponse)
async def update_profile(
    update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update profile picture, bio or username."""
    user = await user_service.update_profile(db, current_user, update)
    return UserResponse.from_user(user)
