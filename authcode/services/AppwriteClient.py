"""Appwrite REST client for the Users and Databases APIs."""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class AppwriteError(Exception):
    """Raised when Appwrite answers with a non-2xx status or is not configured."""

    def __init__(self, message: str, code: Optional[int] = None, type: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.type = type


class ID:
    """Document and user id helpers."""

    @staticmethod
    def unique() -> str:
        # Appwrite generates the id server side
        return "unique()"


class Query:
    """Builders for Appwrite JSON query strings."""

    @staticmethod
    def equal(attribute: str, value: Any) -> str:
        values = value if isinstance(value, list) else [value]
        return json.dumps({"method": "equal", "attribute": attribute, "values": values})

    @staticmethod
    def order_desc(attribute: str) -> str:
        return json.dumps({"method": "orderDesc", "attribute": attribute})

    @staticmethod
    def limit(limit: int) -> str:
        return json.dumps({"method": "limit", "values": [limit]})


class AppwriteClient:
    """
    Server-side client for an Appwrite project.

    One instance is shared by the whole process. When ``http_client`` is given
    its connection pool is reused for every call; otherwise each call opens a
    short-lived ``httpx.AsyncClient``.

    Example:
        client = AppwriteClient(
            endpoint="https://cloud.appwrite.io/v1",
            project_id="my-project",
            api_key="standard_...",
        )
        users = await client.list_users([Query.equal("email", "a@b.com")])
    """

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.endpoint = (endpoint or "").rstrip("/")
        self.project_id = project_id
        self.api_key = api_key
        self._http_client = http_client

    def _headers(self) -> Dict[str, str]:
        return {
            "X-Appwrite-Project": self.project_id or "",
            "X-Appwrite-Key": self.api_key or "",
            "Content-Type": "application/json",
        }

    async def _make_request(
        self,
        method: str,
        path: str,
        data: Dict = None,
        params: Dict = None
    ) -> Dict[str, Any]:
        """Make HTTP request to the Appwrite API and return the decoded body."""
        if not self.endpoint:
            raise AppwriteError("Appwrite endpoint is not configured")

        url = f"{self.endpoint}{path}"
        if self._http_client is not None:
            response = await self._http_client.request(
                method, url, headers=self._headers(), json=data, params=params
            )
        else:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    method, url, headers=self._headers(), json=data, params=params
                )

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("message") or response.text or f"HTTP {response.status_code}"
            logger.error(f"Appwrite API error: {method} {path} -> {response.status_code} - {message}")
            raise AppwriteError(message, code=response.status_code, type=body.get("type"))

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    # -----------------------------
    # Users
    # -----------------------------
    async def list_users(self, queries: List[str] = None) -> Dict[str, Any]:
        """List users, returns ``{"total": int, "users": [...]}``."""
        params = {"queries[]": queries} if queries else None
        return await self._make_request("GET", "/users", params=params)

    async def create_user(self, user_id: str, email: str) -> Dict[str, Any]:
        """Create a user with no password, returns the user record."""
        return await self._make_request("POST", "/users", data={"userId": user_id, "email": email})

    # -----------------------------
    # Documents
    # -----------------------------
    def _documents_path(self, database_id: str, collection_id: str) -> str:
        return f"/databases/{database_id}/collections/{collection_id}/documents"

    async def list_documents(
        self,
        database_id: str,
        collection_id: str,
        queries: List[str] = None
    ) -> Dict[str, Any]:
        """List documents, returns ``{"total": int, "documents": [...]}``."""
        params = {"queries[]": queries} if queries else None
        return await self._make_request(
            "GET", self._documents_path(database_id, collection_id), params=params
        )

    async def create_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        data: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self._make_request(
            "POST",
            self._documents_path(database_id, collection_id),
            data={"documentId": document_id, "data": data},
        )

    async def upsert_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Create or replace a document in a single write."""
        return await self._make_request(
            "PUT",
            f"{self._documents_path(database_id, collection_id)}/{document_id}",
            data={"data": data},
        )

    async def update_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        data: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self._make_request(
            "PATCH",
            f"{self._documents_path(database_id, collection_id)}/{document_id}",
            data={"data": data},
        )

    async def delete_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str
    ) -> None:
        await self._make_request(
            "DELETE", f"{self._documents_path(database_id, collection_id)}/{document_id}"
        )
