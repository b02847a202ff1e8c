from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict
from datetime import datetime


class AgentFields(BaseModel):
    """Scalar agent fields accepted from a form; anything else is dropped"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = Field(None, alias="email")
    mobile_number: Optional[str] = Field(None, alias="mobileNumber")
    gender: Optional[str] = Field(None, alias="gender")
    date_of_birth: Optional[str] = Field(None, alias="dateOfBirth")

    def changes(self) -> Dict[str, str]:
        """Column values explicitly supplied by the client"""
        return self.model_dump(exclude_unset=True)

    def missing_required(self) -> Optional[str]:
        """Wire name of the first required field that is absent or blank"""
        for name in REQUIRED_AGENT_FIELDS:
            value = getattr(self, name)
            if value is None or not value.strip():
                return AgentFields.model_fields[name].alias
        return None


# Checked in this order on create
REQUIRED_AGENT_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "mobile_number",
    "gender",
    "date_of_birth",
)


class AgentResponse(BaseModel):
    """Agent record as returned to clients; document slots appear as <slot>FilePath keys"""

    model_config = ConfigDict(extra="allow")

    id: str
    agentId: str
    firstName: str
    lastName: str
    email: str
    mobileNumber: str
    gender: str
    dateOfBirth: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, agent) -> "AgentResponse":
        document_paths = {
            f"{slot}FilePath": url for slot, url in (agent.documents or {}).items()
        }
        return cls(
            id=agent.id,
            agentId=agent.agent_id,
            firstName=agent.first_name,
            lastName=agent.last_name,
            email=agent.email,
            mobileNumber=agent.mobile_number,
            gender=agent.gender,
            dateOfBirth=agent.date_of_birth,
            createdAt=agent.created_at,
            updatedAt=agent.updated_at,
            **document_paths,
        )


class AgentEnvelope(BaseModel):
    message: str
    agent: AgentResponse


class MessageResponse(BaseModel):
    message: str
