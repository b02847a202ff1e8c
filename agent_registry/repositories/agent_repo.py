"""
Persistence access for Agent records.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from typing import Dict, List, Optional
from agent_registry.models.agent import Agent
from agent_registry.core.exceptions import DuplicateError
import logging

logger = logging.getLogger(__name__)

# Columns that may be used with find_by_field
LOOKUP_FIELDS = ("email", "mobile_number")


def duplicate_from_integrity_error(error: IntegrityError) -> Optional[DuplicateError]:
    """Translate a unique-constraint violation into a DuplicateError, None for other violations"""
    detail = str(error.orig).lower()
    if "unique" not in detail and "duplicate" not in detail:
        return None
    if "mobile_number" in detail:
        return DuplicateError("mobileNumber", "Mobile number already exists")
    if "email" in detail:
        return DuplicateError("email", "Email already exists")
    return DuplicateError("record", "Record already exists")


class AgentStore:
    """find / insert / update / delete operations on the agents table"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_all(self) -> List[Agent]:
        result = await self.session.execute(select(Agent))
        return list(result.scalars().all())

    async def find_by_id(self, agent_id: str) -> Optional[Agent]:
        return await self.session.get(Agent, agent_id)

    async def find_by_field(self, field: str, value: str) -> Optional[Agent]:
        if field not in LOOKUP_FIELDS:
            raise ValueError(f"Unsupported lookup field: {field}")
        result = await self.session.execute(
            select(Agent).where(getattr(Agent, field) == value).limit(1)
        )
        return result.scalar_one_or_none()

    async def insert(self, agent: Agent) -> Agent:
        self.session.add(agent)
        await self._commit()
        await self.session.refresh(agent)
        logger.info(f"Agent {agent.id} created")
        return agent

    async def update_by_id(
        self,
        agent_id: str,
        changes: Dict[str, str],
        documents: Dict[str, str],
    ) -> Optional[Agent]:
        """Apply scalar changes and merge document URLs over the stored record"""
        agent = await self.find_by_id(agent_id)
        if agent is None:
            return None

        for column, value in changes.items():
            setattr(agent, column, value)
        if documents:
            # Reassign so the JSON column is flagged dirty
            agent.documents = {**(agent.documents or {}), **documents}

        await self._commit()
        await self.session.refresh(agent)
        logger.info(f"Agent {agent.id} updated")
        return agent

    async def delete_by_id(self, agent_id: str) -> bool:
        agent = await self.find_by_id(agent_id)
        if agent is None:
            return False
        await self.session.delete(agent)
        await self._commit()
        logger.info(f"Agent {agent_id} deleted")
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
