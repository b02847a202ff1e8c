import pytest
from fastapi.testclient import TestClient
from agent_registry.config import Settings
from agent_registry.database import Database
from agent_registry.main import create_app
from agent_registry.core.exceptions import UploadError

BLOB_BASE_URL = "https://teststorage.blob.core.windows.net/agentfiles"

AGENT_FORM = {
    "firstName": "Asha",
    "lastName": "Verma",
    "email": "asha.verma@example.com",
    "mobileNumber": "9876543210",
    "gender": "female",
    "dateOfBirth": "1990-04-12",
}


class FakeBlobStore:
    """In-memory stand-in for BlobStore"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads = {}
        self.ensured = False
        self.closed = False

    async def ensure_container(self):
        self.ensured = True
        return True

    async def upload(self, content, size, content_type, name):
        if self.fail:
            raise UploadError("Error uploading file to Azure")
        self.uploads[name] = {"content": content, "size": size, "content_type": content_type}
        return f"{BLOB_BASE_URL}/{name}"

    async def close(self):
        self.closed = True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        AZURE_STORAGE_CONNECTION_STRING="",
        ALLOWED_ORIGINS="http://localhost:3000,https://your-deployed-app.vercel.app",
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def app(settings, blob_store):
    return create_app(
        settings=settings,
        database=Database(settings.DATABASE_URL),
        blob_store=blob_store,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def create_agent(client):
    """POST an agent form; keyword overrides replace default field values"""

    def _create(files=None, **overrides):
        data = {**AGENT_FORM, **overrides}
        return client.post("/api/agents", data=data, files=files)

    return _create
