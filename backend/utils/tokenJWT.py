# utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
import logging
from typing import Optional
from fastapi import Depends, HTTPException, Request, Response, status
from pydantic import ValidationError

from config import settings
from models.users import User, UserRole
from schemas.user import CurrentUser

logger = logging.getLogger(__name__)

COOKIE_NAME = "token"
COOKIE_MAX_AGE = 60 * 60 * 24  # seconds


# Generate a signed session token carrying the user's identity claims
def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "id": user.id,
        "email": user.email,
        "nome": user.first_name,
        "cognome": user.last_name,
        "ruolo": user.role,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _cookie_options() -> dict:
    # Cross-site frontend in production needs SameSite=None, which browsers only accept with Secure
    production = settings.is_production
    return {
        "httponly": True,
        "secure": production,
        "samesite": "none" if production else "lax",
    }


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(key=COOKIE_NAME, value=token, max_age=COOKIE_MAX_AGE, **_cookie_options())


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=COOKIE_NAME, **_cookie_options())


# Resolve the authenticated identity from the session cookie
def get_current_user(request: Request) -> CurrentUser:
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Accesso negato: Autenticazione richiesta",
        )

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return CurrentUser.model_validate(payload)
    except (JWTError, ValidationError) as e:
        logger.warning("Rejected session token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token non valido o scaduto",
        )


# Dependency factory for Role-Based Access Control
def role_required(*allowed_roles):
    allowed = {UserRole(r) for r in allowed_roles}

    def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if allowed and current_user.ruolo not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Non hai i permessi per questa operazione",
            )
        return current_user
    return _checker
