from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional

from models.users import UserRole

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72

# Schema for registration requests
class UserCreate(BaseModel):
    nome: str = Field(min_length=1, max_length=100)
    cognome: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255)
    password: str
    ruolo: Optional[UserRole] = None

    # Format check only; the address is stored exactly as typed
    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError:
            raise ValueError("Formato email non valido")
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"La password deve essere di almeno {MIN_PASSWORD_LENGTH} caratteri")
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError("La password è troppo lunga")
        return v

# Schema for login credentials; format is not checked, unknown emails just fail
class UserLogin(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

# Public view of a user, without the password hash
class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    nome: str = Field(validation_alias="first_name")
    cognome: str = Field(validation_alias="last_name")
    email: str
    ruolo: str = Field(validation_alias="role")

# Identity decoded from the session token
class CurrentUser(BaseModel):
    id: int
    nome: str
    cognome: str
    email: str
    ruolo: UserRole

    @property
    def is_manager(self) -> bool:
        return self.ruolo == UserRole.MANAGER

# Registration / login result
class AuthResponse(BaseModel):
    message: str
    user: UserResponse

# Session status for the frontend
class MeResponse(BaseModel):
    authenticated: bool = True
    user: CurrentUser

class MessageResponse(BaseModel):
    message: str
