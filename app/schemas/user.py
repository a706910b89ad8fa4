import uuid
from datetime import datetime
from pydantic import EmailStr
from sqlmodel import SQLModel, Field
from app.models.user import UserBase

class LoginRequest(SQLModel):
    """
    Schema for user login request.
    """
    email: EmailStr
    password: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "johndoe@example.com",
                "password": "securepassword123"
            }
        }
    }

class UserCreate(SQLModel):
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str
    last_name: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "johndoe@example.com",
                "password": "securepassword123",
                "first_name": "John",
                "last_name": "Doe"
            }
        }
    }

class UserRead(UserBase):
    id: uuid.UUID
    created_at: datetime

class UserUpdate(SQLModel):
    first_name: str | None = None
    last_name: str | None = None
    password: str | None = Field(default=None, min_length=8)
