"""
Authentication dependencies shared by the HTTP routes and the websocket endpoint.
"""
from typing import Optional
from fastapi import Depends, HTTPException, Request, WebSocket, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from eventchat.core.config import settings
from eventchat.core.security import user_id_from_token
from eventchat.db.session import get_db
from eventchat.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def _load_active_user(db: Session, token: Optional[str]) -> Optional[User]:
    user_id = user_id_from_token(token)
    if user_id is None:
        return None
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the caller from a bearer token or the ``jwt`` cookie."""
    token = credentials.credentials if credentials else request.cookies.get(settings.COOKIE_NAME)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - No Token Provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = _load_active_user(db, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - Invalid Token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def websocket_token(websocket: WebSocket) -> Optional[str]:
    """Token from an Authorization header, the ``token`` query parameter or the cookie."""
    authorization = websocket.headers.get("authorization", "")
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value
    return websocket.query_params.get("token") or websocket.cookies.get(settings.COOKIE_NAME)


def websocket_user(websocket: WebSocket, db: Session) -> Optional[User]:
    return _load_active_user(db, websocket_token(websocket))
