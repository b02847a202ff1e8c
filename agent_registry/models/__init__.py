from agent_registry.models.agent import Agent
from agent_registry.models.user import User

__all__ = [
    "Agent",
    "User",
]
