import hashlib
import logging
import uuid
from typing import Any, Optional

import requests

from rag_assistant.core.errors import VectorStoreError
from rag_assistant.core.models.document import VectorHit, VectorPoint

logger = logging.getLogger(__name__)

MAX_SAFE_INTEGER = 2**53 - 1


def point_uuid(chunk_id: str) -> str:
    """Stable UUID point id for a chunk id."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, chunk_id))


def legacy_point_id(raw_id: Any) -> int:
    """Numeric id accepted by old servers: SHA-256 folded into 2**53 - 1."""
    if isinstance(raw_id, int):
        return raw_id
    id_string = str(raw_id)
    digest = hashlib.sha256(id_string.encode("utf-8")).digest()
    high = int.from_bytes(digest[0:4], "big")
    low = int.from_bytes(digest[4:8], "big")
    numeric = (high * 0x100000000 + low) % MAX_SAFE_INTEGER
    return numeric or low or len(id_string)


class QdrantVectorStore:
    """Vector store using the Qdrant HTTP API."""

    def __init__(
        self,
        url: str = "http://localhost:6333",
        collection_name: str = "product_docs",
        vector_size: int = 768,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Qdrant client.

        Args:
            url: Qdrant base URL.
            collection_name: Collection name.
            vector_size: Fixed vector dimensionality.
            api_key: Optional API key.
            timeout: Request timeout in seconds.
            session: HTTP session (created if omitted).
        """
        self._base_url = url.rstrip("/")
        self._collection_name = collection_name
        self._vector_size = vector_size
        self._timeout = timeout
        self._session = session or requests.Session()
        if api_key:
            self._session.headers.update({"api-key": api_key})

    @property
    def collection_name(self) -> str:
        return self._collection_name

    @property
    def _collection_url(self) -> str:
        return f"{self._base_url}/collections/{self._collection_name}"

    def list_collections(self) -> list[str]:
        resp = self._session.get(f"{self._base_url}/collections", timeout=self._timeout)
        resp.raise_for_status()
        return [c["name"] for c in resp.json()["result"]["collections"]]

    def create_collection(self) -> None:
        resp = self._session.put(
            self._collection_url,
            json={"vectors": {"size": self._vector_size, "distance": "Cosine"}},
            timeout=self._timeout,
        )
        resp.raise_for_status()
        logger.info(f"Created collection: {self._collection_name}")

    def ensure_collection(self) -> None:
        """Get or create collection."""
        try:
            if self._collection_name in self.list_collections():
                logger.info(f"Collection '{self._collection_name}' already exists")
                return
            self.create_collection()
        except requests.RequestException as e:
            raise VectorStoreError(f"Could not ensure collection {self._collection_name}: {e}") from e

    def upsert(self, points: list[VectorPoint]) -> None:
        """Upsert points, retrying once in the legacy parallel-array format."""
        if not points:
            return

        body = {
            "points": [
                {"id": point_uuid(p.id), "vector": p.vector, "payload": p.payload}
                for p in points
            ]
        }
        try:
            resp = self._session.put(
                f"{self._collection_url}/points",
                params={"wait": "true"},
                json=body,
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Upsert failed, trying legacy format: {e}")
            self._upsert_legacy(points)

    def _upsert_legacy(self, points: list[VectorPoint]) -> None:
        body = {
            "ids": [legacy_point_id(p.id) for p in points],
            "vectors": [p.vector for p in points],
            "payloads": [p.payload for p in points],
        }
        try:
            resp = self._session.post(
                f"{self._collection_url}/points", json=body, timeout=self._timeout
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Legacy upsert failed: {e}")
            raise VectorStoreError(
                f"Upsert of {len(points)} points failed in both formats: {e}"
            ) from e

        logger.info(f"Indexed batch via legacy format ({len(points)} points): {resp.status_code}")

    def search(
        self,
        vector: list[float],
        limit: int = 10,
        score_threshold: Optional[float] = None,
        query_filter: Optional[dict[str, Any]] = None,
    ) -> list[VectorHit]:
        """Search by vector."""
        body: dict[str, Any] = {"vector": vector, "limit": limit, "with_payload": True}
        if score_threshold is not None:
            body["score_threshold"] = score_threshold
        if query_filter:
            body["filter"] = query_filter

        try:
            resp = self._session.post(
                f"{self._collection_url}/points/search", json=body, timeout=self._timeout
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise VectorStoreError(f"Vector search failed: {e}") from e

        hits = []
        for item in resp.json().get("result", []):
            payload = item.get("payload") or {}
            hits.append(
                VectorHit(
                    id=payload.get("chunk_id", str(item["id"])),
                    score=float(item["score"]),
                    payload=payload,
                )
            )
        return hits

    def delete_file(self, file_path: str, from_chunk_index: int = 0) -> None:
        """Delete a file's points from a chunk index onwards."""
        must: list[dict[str, Any]] = [{"key": "file_path", "match": {"value": file_path}}]
        if from_chunk_index > 0:
            must.append({"key": "chunk_index", "range": {"gte": from_chunk_index}})

        try:
            resp = self._session.post(
                f"{self._collection_url}/points/delete",
                params={"wait": "true"},
                json={"filter": {"must": must}},
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise VectorStoreError(f"Delete for {file_path} failed: {e}") from e

    def count(self) -> int:
        """Get point count."""
        try:
            resp = self._session.post(
                f"{self._collection_url}/points/count", json={"exact": True}, timeout=self._timeout
            )
        except requests.RequestException as e:
            raise VectorStoreError(f"Count failed: {e}") from e
        return resp.json()["result"]["count"] if resp.status_code == 200 else 0
