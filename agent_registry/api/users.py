from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from agent_registry.database import get_db
from agent_registry.models.user import User
from agent_registry.repositories.user_repo import UserStore
from agent_registry.schemas.user import UserCreate, UserUpdate, UserResponse, UserEnvelope, USER_COLUMNS
from agent_registry.schemas.agent import MessageResponse
from agent_registry.core.exceptions import AppError, DuplicateError, NotFoundError, InternalError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


async def check_user_duplicates(
    store: UserStore,
    email: Optional[str],
    mobile_number: Optional[str],
    exclude_id: Optional[str] = None,
):
    if email is not None:
        match = await store.find_by_field("email", email)
        if match is not None and match.id != exclude_id:
            raise DuplicateError("email", "Email already exists")
    if mobile_number is not None:
        match = await store.find_by_field("mobile_number", mobile_number)
        if match is not None and match.id != exclude_id:
            raise DuplicateError("mobileNumber", "Mobile number already exists")


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def create_user(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Create a new user"""
    store = UserStore(db)
    try:
        await check_user_duplicates(store, user_data.email, user_data.mobileNumber)
        user = User(**{USER_COLUMNS[k]: v for k, v in user_data.model_dump().items()})
        user = await store.insert(user)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error creating user: {e}")
        raise InternalError()

    return UserEnvelope(message="User created successfully", user=UserResponse.from_model(user))


@router.get("", response_model=List[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    """List all users"""
    try:
        users = await UserStore(db).find_all()
    except Exception as e:
        logger.exception(f"Error fetching users: {e}")
        raise InternalError()

    return [UserResponse.from_model(user) for user in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    """Get a specific user by ID"""
    try:
        user = await UserStore(db).find_by_id(user_id)
    except Exception as e:
        logger.exception(f"Error fetching user {user_id}: {e}")
        raise InternalError()

    if user is None:
        raise NotFoundError("User not found")

    return UserResponse.from_model(user)


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(user_id: str, user_data: UserUpdate, db: AsyncSession = Depends(get_db)):
    """Partially update a user; omitted fields keep their values"""
    store = UserStore(db)
    try:
        if await store.find_by_id(user_id) is None:
            raise NotFoundError("User not found")

        changes = {USER_COLUMNS[k]: v for k, v in user_data.model_dump(exclude_unset=True, exclude_none=True).items()}
        await check_user_duplicates(
            store, changes.get("email"), changes.get("mobile_number"), exclude_id=user_id
        )
        user = await store.update_by_id(user_id, changes)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error updating user {user_id}: {e}")
        raise InternalError()

    return UserEnvelope(message="User updated successfully", user=UserResponse.from_model(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: str, db: AsyncSession = Depends(get_db)):
    """Delete a user"""
    try:
        deleted = await UserStore(db).delete_by_id(user_id)
    except Exception as e:
        logger.exception(f"Error deleting user {user_id}: {e}")
        raise InternalError()

    if not deleted:
        raise NotFoundError("User not found")

    return MessageResponse(message="User deleted successfully")
