from typing import Any
from fastapi import APIRouter

from app.api.deps import CurrentUser, SessionDep
from app.core.security import get_password_hash
from app.schemas.response import APIResponse
from app.schemas.user import UserRead, UserUpdate

router = APIRouter()

@router.get("/me", response_model=APIResponse[UserRead])
async def read_user_me(current_user: CurrentUser) -> Any:
    """
    Get current user details.
    """
    return APIResponse(message="User details retrieved", data=current_user)

@router.put("/me", response_model=APIResponse[UserRead])
async def update_user_me(*, session: SessionDep, user_in: UserUpdate, current_user: CurrentUser) -> Any:
    """
    Update own profile. A new password is hashed before storage.
    """
    user_data = user_in.model_dump(exclude_unset=True)

    password = user_data.pop("password", None)
    if password:
        user_data["hashed_password"] = get_password_hash(password)

    for field, value in user_data.items():
        setattr(current_user, field, value)

    session.add(current_user)
    await session.commit()
    await session.refresh(current_user)
    return APIResponse(message="User profile updated", data=current_user)
