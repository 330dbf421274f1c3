from datetime import datetime

from pydantic import BaseModel, EmailStr


class RegisterRequest(BaseModel):
    username: str
    email: EmailStr
    password: str
    full_name: str
    phone: str


class LoginRequest(BaseModel):
    # Not EmailStr: a malformed address must fail like any other bad login.
    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    full_name: str
    email: EmailStr
    phone: str


class UserResponse(BaseModel):
    user_id: int
    username: str
    email: str
    full_name: str
    phone: str
    created_at: datetime | None = None
    last_login: datetime | None = None


class IdentityResponse(BaseModel):
    user_id: int
    username: str
    email: str


class RegisterResponse(BaseModel):
    message: str
    user_id: int


class LoginResponse(BaseModel):
    message: str
    user: UserResponse


class CheckResponse(BaseModel):
    authenticated: bool
    identity: IdentityResponse | None = None
