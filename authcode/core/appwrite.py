"""
Shared Appwrite client lifecycle.
- One httpx connection pool per process, opened in the app lifespan
- FastAPI dependency handing the client to route handlers
"""
import logging
from typing import AsyncGenerator, Optional

import httpx

from authcode.core.config import settings
from authcode.services.AppwriteClient import AppwriteClient

logger = logging.getLogger(__name__)


class AppwriteClientManager:
    """Owns the process-wide AppwriteClient and its connection pool."""

    def __init__(self):
        self.http_client: Optional[httpx.AsyncClient] = None
        self.client: Optional[AppwriteClient] = None

    async def init(self):
        """Open the connection pool and build the client from settings."""
        self.http_client = httpx.AsyncClient()
        self.client = AppwriteClient(
            endpoint=settings.APPWRITE_ENDPOINT,
            project_id=settings.APPWRITE_PROJECT_ID,
            api_key=settings.APPWRITE_API_KEY,
            http_client=self.http_client,
        )
        if not settings.APPWRITE_ENDPOINT:
            logger.warning("⚠️ APPWRITE_ENDPOINT is not set, store calls will fail")

    def get_client(self) -> AppwriteClient:
        if self.client is None:
            raise RuntimeError("AppwriteClientManager not initialized")
        return self.client

    async def close(self):
        """Cleanup connection pool"""
        if self.http_client:
            await self.http_client.aclose()
        self.http_client = None
        self.client = None


# Initialize client manager
appwrite_manager = AppwriteClientManager()


async def aget_appwrite() -> AsyncGenerator[AppwriteClient, None]:
    """
    FastAPI dependency for the Appwrite client
    Usage:
    @router.post("/")
    async def endpoint(store: AppwriteClient = Depends(aget_appwrite)):
        ...
    """
    yield appwrite_manager.get_client()
