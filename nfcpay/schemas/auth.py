from pydantic import BaseModel
from typing import Optional


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


# Field rules (email format, password strength) are enforced by the auth
# service so they surface as validation errors with a code.
class RegisterRequest(BaseModel):
    email: str
    full_name: str
    password: str
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class UpdateMeRequest(BaseModel):
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class Message(BaseModel):
    message: str
