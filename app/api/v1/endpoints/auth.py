import logging
from typing import Any
from fastapi import APIRouter, HTTPException
from sqlmodel import select

from app.api.deps import SessionDep
from app.core import security
from app.core.config import settings
from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.token import Token
from app.schemas.user import UserCreate, UserRead, LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/signup", response_model=APIResponse[UserRead])
async def create_user(*, session: SessionDep, user_in: UserCreate) -> Any:
    """
    Register a new account with email and password.
    """
    result = await session.execute(select(User).where(User.email == user_in.email))
    if result.scalars().first():
        raise HTTPException(
            status_code=400,
            detail="The user with this email already exists in the system.",
        )

    user = User(
        **user_in.model_dump(exclude={"password"}),
        hashed_password=security.get_password_hash(user_in.password),
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"User {user.id} signed up")
    return APIResponse(message="User created successfully", data=user)

@router.post("/login", response_model=APIResponse[Token])
async def login_access_token(session: SessionDep, form_data: LoginRequest) -> Any:
    result = await session.execute(select(User).where(User.email == form_data.email))
    user = result.scalars().first()
    if not user or not security.verify_password(form_data.password, user.hashed_password):
        logger.warning(f"Failed login attempt for {form_data.email}")
        raise HTTPException(status_code=400, detail="Incorrect email or password")
    elif not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")

    token = Token(
        access_token=security.create_access_token(user.id),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user_id=user.id,
    )
    return APIResponse(message="Login successful", data=token)
