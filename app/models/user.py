import uuid
from datetime import datetime
from sqlmodel import SQLModel, Field
from pydantic import EmailStr
from app.utils.time import utcnow

class UserBase(SQLModel):
    """
    Base User model containing shared attributes.
    """
    email: EmailStr = Field(unique=True, index=True, description="User's email address")
    first_name: str = Field(description="User's first name")
    last_name: str = Field(description="User's last name")
    is_active: bool = Field(default=True, description="Whether the user account is active")

class User(UserBase, table=True):
    """
    User database model.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="Unique identifier for the user")
    hashed_password: str = Field(description="Hashed version of the user's password")
    created_at: datetime = Field(default_factory=utcnow, description="Timestamp when the user was created")

    @property
    def display_name(self) -> str:
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.email
