from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from agent_registry.database import Base
import uuid


class Agent(Base):
    __tablename__ = "agents"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    agent_id = Column(String, unique=True, nullable=False, index=True)

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    mobile_number = Column(String, unique=True, nullable=False, index=True)
    gender = Column(String, nullable=False)
    date_of_birth = Column(String, nullable=False)

    # Uploaded document URLs keyed by slot name, e.g. {"idProof": "https://..."}
    documents = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())
