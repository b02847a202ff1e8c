"""
Azure Blob Storage adapter for agent document uploads.

One container client is created per process and shared by all requests.
"""
from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient
from agent_registry.core.exceptions import UploadError
import logging
import uuid

logger = logging.getLogger(__name__)


def build_blob_name(slot: str) -> str:
    """Unique blob name for a document slot: <slot>-<uuid4>"""
    return f"{slot}-{uuid.uuid4()}"


class BlobStore:
    """Uploads byte content to a single Azure container and returns public URLs"""

    def __init__(self, connection_string: str, container_name: str):
        self.container_name = container_name
        self.service_client = None
        self.container_client = None

        if not connection_string:
            logger.error("AZURE_STORAGE_CONNECTION_STRING is not set; uploads will fail")
            return

        try:
            self.service_client = BlobServiceClient.from_connection_string(connection_string)
        except ValueError as e:
            logger.error(f"Invalid Azure storage connection string: {e}")
            return
        self.container_client = self.service_client.get_container_client(container_name)

    async def ensure_container(self) -> bool:
        """Create the container if it does not exist; failures are logged, not raised"""
        if self.container_client is None:
            logger.error(f'Container "{self.container_name}" unavailable: storage not configured')
            return False
        try:
            await self.container_client.create_container()
        except ResourceExistsError:
            pass
        except AzureError as e:
            logger.error(f"Error ensuring container exists: {e}")
            return False
        logger.info(f'Container "{self.container_name}" is ready.')
        return True

    async def upload(self, content: bytes, size: int, content_type: str, name: str) -> str:
        """Upload content under name and return the blob URL"""
        if self.container_client is None:
            raise UploadError("Blob storage is not configured")

        blob_client = self.container_client.get_blob_client(name)
        try:
            await blob_client.upload_blob(
                content,
                length=size,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            )
        except AzureError as e:
            logger.error(f"Error uploading {name} to Azure: {e}")
            raise UploadError("Error uploading file to Azure") from e

        logger.info(f"File uploaded to Azure: {name}")
        return blob_client.url

    async def close(self):
        if self.service_client is not None:
            await self.service_client.close()
