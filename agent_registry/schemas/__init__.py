# Pydantic schemas
from agent_registry.schemas.agent import (
    AgentFields, AgentResponse, AgentEnvelope, MessageResponse, REQUIRED_AGENT_FIELDS
)
from agent_registry.schemas.user import (
    UserCreate, UserUpdate, UserResponse, UserEnvelope, USER_COLUMNS
)

__all__ = [
    "AgentFields", "AgentResponse", "AgentEnvelope", "MessageResponse", "REQUIRED_AGENT_FIELDS",
    "UserCreate", "UserUpdate", "UserResponse", "UserEnvelope", "USER_COLUMNS",
]
