# backend/routes/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, UserRole
from schemas import user as schemas
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import (
    clear_session_cookie,
    create_access_token,
    get_current_user,
    set_session_cookie,
)

router = APIRouter(tags=["Auth"])
logger = logging.getLogger(__name__)


# Register a new user
@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    logger.info("Registration requested for %s", user.email)

    # Exact match: the address is stored as typed
    db_user = db.query(User).filter(User.email == user.email).first()
    if db_user:
        logger.info("Registration refused, email already in use: %s", user.email)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email già registrata")

    new_user = User(
        first_name=user.nome,
        last_name=user.cognome,
        email=user.email,
        password_hash=get_password_hash(user.password),
        role=(user.ruolo or UserRole.EMPLOYEE).value,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info("User %s registered with id %s as %s", new_user.email, new_user.id, new_user.role)
    return schemas.AuthResponse(
        message="Utente registrato con successo",
        user=schemas.UserResponse.model_validate(new_user),
    )


# Authenticate user and set the session cookie
@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.UserLogin, response: Response, db: Session = Depends(get_db)):
    logger.info("Login attempt for %s", payload.email)
    db_user = db.query(User).filter(User.email == payload.email).first()

    # Same answer for unknown email and wrong password
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        logger.warning("Failed login for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenziali non valide")

    token = create_access_token(db_user)
    set_session_cookie(response, token)
    logger.info("User %s logged in", db_user.email)

    return schemas.AuthResponse(
        message="Login effettuato con successo",
        user=schemas.UserResponse.model_validate(db_user),
    )


# Session status of the current cookie
@router.get("/auth/me", response_model=schemas.MeResponse)
def me(current_user: schemas.CurrentUser = Depends(get_current_user)):
    logger.info("Session check for user %s", current_user.id)
    return schemas.MeResponse(authenticated=True, user=current_user)


# Logout only drops the cookie; the token itself stays valid until it expires
@router.post("/auth/logout", response_model=schemas.MessageResponse)
def logout(response: Response):
    clear_session_cookie(response)
    logger.info("Session cookie cleared")
    return schemas.MessageResponse(message="Logout effettuato con successo")
