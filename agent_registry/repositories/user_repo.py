from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from typing import Dict, List, Optional
from agent_registry.models.user import User
from agent_registry.repositories.agent_repo import duplicate_from_integrity_error, LOOKUP_FIELDS
import logging

logger = logging.getLogger(__name__)


class UserStore:
    """find / insert / update / delete operations on the users table"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_all(self) -> List[User]:
        result = await self.session.execute(select(User))
        return list(result.scalars().all())

    async def find_by_id(self, user_id: str) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def find_by_field(self, field: str, value: str) -> Optional[User]:
        if field not in LOOKUP_FIELDS:
            raise ValueError(f"Unsupported lookup field: {field}")
        result = await self.session.execute(
            select(User).where(getattr(User, field) == value).limit(1)
        )
        return result.scalar_one_or_none()

    async def insert(self, user: User) -> User:
        self.session.add(user)
        await self._commit()
        await self.session.refresh(user)
        logger.info(f"User {user.id} created")
        return user

    async def update_by_id(self, user_id: str, changes: Dict[str, str]) -> Optional[User]:
        user = await self.find_by_id(user_id)
        if user is None:
            return None
        for column, value in changes.items():
            setattr(user, column, value)
        await self._commit()
        await self.session.refresh(user)
        logger.info(f"User {user.id} updated")
        return user

    async def delete_by_id(self, user_id: str) -> bool:
        user = await self.find_by_id(user_id)
        if user is None:
            return False
        await self.session.delete(user)
        await self._commit()
        logger.info(f"User {user_id} deleted")
        return True

    async def _commit(self):
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            duplicate = duplicate_from_integrity_error(e)
            if duplicate is None:
                raise
            raise duplicate from e
