import uuid
from datetime import datetime
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.session import get_db
from app.models.user import User
from app.schemas.token import TokenPayload
from app.utils.time import utcnow

reuseable_oauth2 = HTTPBearer(auto_error=True)

def get_now() -> datetime:
    """
    Request clock. Services never read the wall clock themselves; tests override this.
    """
    return utcnow()

async def get_current_user(session: Annotated[AsyncSession, Depends(get_db)], token: Annotated[HTTPAuthorizationCredentials, Depends(reuseable_oauth2)]) -> User:
    try:
        payload = jwt.decode(token.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        token_data = TokenPayload(**payload)
        user_id = uuid.UUID(token_data.sub)
    except (JWTError, ValidationError, TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Could not validate credentials")

    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return user

SessionDep = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Now = Annotated[datetime, Depends(get_now)]
