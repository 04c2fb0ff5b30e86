"""ChromaDB vector store implementation."""

import gc
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import chromadb
from chromadb.config import Settings

from tasklens.constants.indexing import DISTANCE_SPACE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VectorHit:
    """A nearest-neighbour match from a collection."""

    id: str
    distance: float
    metadata: dict[str, Any]


class VectorStore:
    """Vector store wrapper for ChromaDB.

    Holds one collection per entity type (tasks, messages). Vectors are
    always supplied by the caller; the store never embeds text itself.
    """

    def __init__(self, persist_path: Path) -> None:
        """Initialize vector store with persistent storage.

        Args:
            persist_path: Directory path for ChromaDB persistence.
        """
        persist_path.mkdir(parents=True, exist_ok=True)
        self._client = chromadb.PersistentClient(
            path=str(persist_path),
            settings=Settings(anonymized_telemetry=False),
        )
        self._collections: dict[str, chromadb.Collection] = {}

    def collection(self, name: str) -> chromadb.Collection:
        """Get (creating on first use) the named collection."""
        if name not in self._collections:
            self._collections[name] = self._client.get_or_create_collection(
                name=name,
                metadata={"hnsw:space": DISTANCE_SPACE},
            )
        return self._collections[name]

    def upsert(
        self,
        collection_name: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        metadatas: Sequence[dict[str, Any]] | None = None,
    ) -> None:
        """Insert or replace vectors.

        Args:
            collection_name: Target collection.
            ids: Unique identifiers for each vector.
            embeddings: One vector per ID.
            metadatas: Optional metadata dictionaries for each vector.
        """
        if not ids:
            return
        self.collection(collection_name).upsert(
            ids=list(ids),
            embeddings=cast(Any, [list(vector) for vector in embeddings]),
            metadatas=cast(Any, list(metadatas)) if metadatas is not None else None,
        )

    def query_by_vector(
        self,
        collection_name: str,
        vector: Sequence[float],
        n_results: int = 10,
        where: dict[str, Any] | None = None,
    ) -> list[VectorHit]:
        """Find the nearest vectors to ``vector``.

        Args:
            collection_name: Collection to search.
            vector: Query embedding.
            n_results: Maximum number of results to return.
            where: Optional metadata filter.

        Returns:
            Hits ordered by ascending distance. Empty when the collection is empty.
        """
        collection = self.collection(collection_name)
        available = collection.count()
        if available == 0:
            return []

        result = collection.query(
            query_embeddings=cast(Any, [list(vector)]),
            n_results=min(n_results, available),
            where=cast(Any, where),
            include=cast(Any, ["metadatas", "distances"]),
        )

        ids = (result.get("ids") or [[]])[0]
        distances = (result.get("distances") or [[]])[0]
        metadatas = (result.get("metadatas") or [[]])[0]

        hits: list[VectorHit] = []
        for i, vector_id in enumerate(ids):
            distance = float(distances[i]) if i < len(distances) else 0.0
            metadata = dict(metadatas[i] or {}) if i < len(metadatas) else {}
            # Cosine distances can come back a hair below zero for identical vectors
            hits.append(VectorHit(id=vector_id, distance=max(distance, 0.0), metadata=metadata))
        return hits

    def delete(
        self,
        collection_name: str,
        ids: Sequence[str] | None = None,
        where: dict[str, Any] | None = None,
    ) -> None:
        """Delete vectors by ID or metadata filter."""
        if not ids and not where:
            return
        self.collection(collection_name).delete(
            ids=list(ids) if ids else None,
            where=cast(Any, where),
        )

    def count(self, collection_name: str) -> int:
        """Number of vectors stored in a collection."""
        return self.collection(collection_name).count()

    def close(self) -> None:
        """Close the vector store and release resources.

        This should be called when the store is no longer needed to
        release file handles and other system resources. Only this
        client's own system is released; other open stores are untouched.
        Calling close twice is a no-op.
        """
        client = self._client
        if client is None:
            return

        try:
            if hasattr(client, "close"):
                client.close()
            else:
                # Older clients have no close(); release this client's system only
                registry = type(client)._identifier_to_system
                system = registry.pop(client._identifier, None)
                if system is not None:
                    system.stop()
        except Exception as e:
            logger.warning(f"Error while closing vector store: {e}")

        self._collections = {}
        self._client = None  # type: ignore[assignment]

        # Force garbage collection to release file handles
        gc.collect()
