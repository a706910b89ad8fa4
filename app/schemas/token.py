import uuid
from sqlmodel import SQLModel

class Token(SQLModel):
    """
    Bearer token issued at login, with its lifetime in seconds.
    """
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: uuid.UUID

class TokenPayload(SQLModel):
    """
    Schema for decoding JWT payload.
    """
    sub: str | None = None
