"""
Agent CRUD endpoints.

Create and update accept multipart forms: text parts carry agent fields, file
parts are uploaded to blob storage and stored on the record as <slot>FilePath URLs.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from typing import Dict, List, Optional, Tuple
from agent_registry.database import get_db
from agent_registry.models.agent import Agent
from agent_registry.repositories.agent_repo import AgentStore
from agent_registry.schemas.agent import AgentFields, AgentResponse, AgentEnvelope, MessageResponse
from agent_registry.storage.blob import BlobStore, build_blob_name
from agent_registry.core.exceptions import (
    AppError,
    ParseError,
    ValidationError,
    DuplicateError,
    NotFoundError,
    InternalError,
)
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter()

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def get_blob_store(request: Request) -> BlobStore:
    """Dependency returning the process-wide blob store"""
    return request.app.state.blob_store


async def parse_agent_form(request: Request) -> Tuple[AgentFields, Dict[str, UploadFile]]:
    """Split a form body into permitted agent fields and file parts"""
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith(FORM_CONTENT_TYPES):
        # A request without a body is an empty form
        if not await request.body():
            return AgentFields(), {}
        raise ParseError("Error parsing form data: expected multipart/form-data body")

    try:
        form = await request.form()
    except (StarletteHTTPException, MultiPartException, KeyError, ValueError) as e:
        raise ParseError(f"Error parsing form data: {getattr(e, 'detail', e)}") from e

    values: Dict[str, str] = {}
    files: Dict[str, UploadFile] = {}
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            files.setdefault(key, value)
        else:
            values.setdefault(key, value)

    ignored = set(values) - {f.alias for f in AgentFields.model_fields.values()}
    if ignored:
        logger.debug(f"Ignoring unknown agent fields: {sorted(ignored)}")

    return AgentFields.model_validate(values), files


async def check_duplicates(
    store: AgentStore,
    email: Optional[str],
    mobile_number: Optional[str],
    exclude_id: Optional[str] = None,
):
    """Raise DuplicateError if another agent already uses the email or mobile number"""
    if email is not None:
        match = await store.find_by_field("email", email)
        if match is not None and match.id != exclude_id:
            raise DuplicateError("email", "Email already exists")

    if mobile_number is not None:
        match = await store.find_by_field("mobile_number", mobile_number)
        if match is not None and match.id != exclude_id:
            raise DuplicateError("mobileNumber", "Mobile number already exists")


async def upload_documents(files: Dict[str, UploadFile], blob_store: BlobStore) -> Dict[str, str]:
    """Upload each non-empty file part; returns slot -> URL"""
    documents = {}
    for slot, file in files.items():
        content = await file.read()
        if not file.filename or not content:
            logger.debug(f"Skipping empty file part {slot}")
            continue

        blob_name = build_blob_name(slot)
        documents[slot] = await blob_store.upload(
            content,
            len(content),
            file.content_type or "application/octet-stream",
            blob_name,
        )
    return documents


@router.post("", response_model=AgentEnvelope, status_code=status.HTTP_201_CREATED)
async def create_agent(
    request: Request,
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Create an agent from a multipart form"""
    fields, files = await parse_agent_form(request)

    missing = fields.missing_required()
    if missing:
        raise ValidationError(missing)

    store = AgentStore(db)
    try:
        await check_duplicates(store, fields.email, fields.mobile_number)

        documents = await upload_documents(files, blob_store)

        agent = Agent(
            **fields.changes(),
            documents=documents,
            agent_id=str(uuid.uuid4()),
        )
        agent = await store.insert(agent)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error creating agent: {e}")
        raise InternalError()

    return AgentEnvelope(
        message="Agent created successfully",
        agent=AgentResponse.from_model(agent),
    )


@router.get("", response_model=List[AgentResponse])
async def list_agents(db: AsyncSession = Depends(get_db)):
    """List all agents"""
    try:
        agents = await AgentStore(db).find_all()
    except Exception as e:
        logger.exception(f"Error fetching agents: {e}")
        raise InternalError()

    return [AgentResponse.from_model(agent) for agent in agents]


@router.get("/{agent_id}", response_model=AgentResponse)
async def get_agent(agent_id: str, db: AsyncSession = Depends(get_db)):
    """Get a specific agent by ID"""
    try:
        agent = await AgentStore(db).find_by_id(agent_id)
    except Exception as e:
        logger.exception(f"Error fetching agent {agent_id}: {e}")
        raise InternalError()

    if agent is None:
        raise NotFoundError("Agent not found")

    return AgentResponse.from_model(agent)


@router.put("/{agent_id}", response_model=AgentEnvelope)
async def update_agent(
    agent_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """
    Update an agent from a multipart form.

    Only fields and file slots present in the form change; other values,
    including previously uploaded document URLs, are kept. Required-field
    checks are not re-run.
    """
    fields, files = await parse_agent_form(request)

    store = AgentStore(db)
    try:
        existing = await store.find_by_id(agent_id)
        if existing is None:
            raise NotFoundError("Agent not found")

        changes = fields.changes()
        await check_duplicates(
            store,
            changes.get("email"),
            changes.get("mobile_number"),
            exclude_id=agent_id,
        )

        documents = await upload_documents(files, blob_store)

        agent = await store.update_by_id(agent_id, changes, documents)
        if agent is None:
            raise NotFoundError("Agent not found")
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error updating agent {agent_id}: {e}")
        raise InternalError()

    return AgentEnvelope(
        message="Agent updated successfully",
        agent=AgentResponse.from_model(agent),
    )


@router.delete("/{agent_id}", response_model=MessageResponse)
async def delete_agent(agent_id: str, db: AsyncSession = Depends(get_db)):
    """Delete an agent; uploaded blobs are left in storage"""
    try:
        deleted = await AgentStore(db).delete_by_id(agent_id)
    except Exception as e:
        logger.exception(f"Error deleting agent {agent_id}: {e}")
        raise InternalError()

    if not deleted:
        raise NotFoundError("Agent not found")

    return MessageResponse(message="Agent deleted successfully")
