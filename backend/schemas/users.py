from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from models.users import UserPosition


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=72)
    fname: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    position: UserPosition = UserPosition.STAFF


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)


class User(BaseModel):
    id: int
    username: str
    fname: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    position: UserPosition
    image: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    success: bool = True
    message: str
    token: str
    token_type: str = "bearer"
    expiresIn: str
    user: User
