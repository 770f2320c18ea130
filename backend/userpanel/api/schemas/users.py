from pydantic import BaseModel, Field
from typing import Optional


class UserCreate(BaseModel):
    """Schema for creating a user; required fields are checked by the route"""
    username: Optional[str] = Field(None, description="Login name, stored lowercase")
    password: Optional[str] = Field(None, description="Plaintext password, hashed before storage")
    name: Optional[str] = Field(None, description="Display name")
    is_admin: Optional[bool] = Field(False, description="Administrator flag")

    class Config:
        json_schema_extra = {
            "example": {
                "username": "ana",
                "password": "secret1",
                "name": "Ana Silva",
                "is_admin": False
            }
        }


class UserUpdate(BaseModel):
    """Schema for updating a user; an empty password keeps the current hash"""
    username: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    is_admin: Optional[bool] = None
    is_active: Optional[bool] = None


class PasswordReset(BaseModel):
    password: Optional[str] = None


class UserPublic(BaseModel):
    """User as exposed to clients; never carries the password hash"""
    id: int
    username: str
    name: str
    is_admin: bool
    is_active: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    class Config:
        from_attributes = True
