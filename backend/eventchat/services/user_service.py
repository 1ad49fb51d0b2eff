"""
User service: signup, login, profile updates and user lookup.
"""
import logging
from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from eventchat.core.exceptions import ConflictError, NotFoundError, ValidationError
from eventchat.core.security import get_password_hash, verify_password
from eventchat.models.user import User
from eventchat.schemas.user import UserCreate, UserLogin, UserUpdate
from eventchat.services import image_service

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
BIO_MAX_LENGTH = 160
SEARCH_LIMIT = 20


def _validate_username(username: str) -> str:
    username = username.strip()
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
        )
    return username


def signup(db: Session, user_data: UserCreate) -> User:
    """Register a new user after checking the uniqueness of email and username."""
    if not user_data.full_name.strip():
        raise ValidationError("All fields are required")
    username = _validate_username(user_data.username)
    if len(user_data.password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")

    if db.query(User).filter(User.email == user_data.email).first():
        raise ConflictError("Email already exists")
    if db.query(User).filter(User.username == username).first():
        raise ConflictError("Username already taken")

    user = User(
        full_name=user_data.full_name.strip(),
        email=user_data.email,
        username=username,
        hashed_password=get_password_hash(user_data.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"New user signed up: {user.username} (id={user.id})")
    return user


def authenticate(db: Session, credentials: UserLogin) -> User:
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.hashed_password):
        raise ValidationError("Invalid credentials")
    if not user.is_active:
        raise ValidationError("User account is inactive")
    return user


async def update_profile(db: Session, user: User, update: UserUpdate) -> User:
    """Apply the given profile fields; everything is validated before any write."""
    username = None
    if update.username is not None:
        username = _validate_username(update.username)
        taken = db.query(User).filter(User.username == username, User.id != user.id).first()
        if taken:
            raise ConflictError("Username already taken")
    if update.bio is not None and len(update.bio) > BIO_MAX_LENGTH:
        raise ValidationError(f"Bio must be {BIO_MAX_LENGTH} characters or less")

    if update.profile_pic:
        user.profile_pic = await image_service.upload_image(update.profile_pic)
    if username is not None:
        user.username = username
    if update.bio is not None:
        user.bio = update.bio

    db.commit()
    db.refresh(user)
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_by_identifier(db: Session, identifier: str) -> User:
    """Look a user up by numeric id or by username."""
    user: Optional[User] = None
    if identifier.isdigit():
        user = db.query(User).filter(User.id == int(identifier)).first()
    if user is None:
        user = db.query(User).filter(User.username == identifier).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def search_users(db: Session, query: Optional[str], exclude_user_id: Optional[int] = None) -> List[User]:
    """Users whose username or full name contains the query."""
    if not query or len(query.strip()) < 2:
        raise ValidationError("Search query must be at least 2 characters")
    pattern = f"%{query.strip()}%"
    users = db.query(User).filter(
        or_(User.username.ilike(pattern), User.full_name.ilike(pattern))
    )
    if exclude_user_id is not None:
        users = users.filter(User.id != exclude_user_id)
    return users.order_by(User.username.asc()).limit(SEARCH_LIMIT).all()
