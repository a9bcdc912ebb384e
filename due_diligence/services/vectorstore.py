# =============================================================================
# Vector Store — ChromaDB Backend
# =============================================================================
#
# Stores chunk embeddings with provenance metadata (source, page, document
# type) and answers cosine-similarity queries with optional metadata
# filters. The agents filter on `type` so the financial agent only sees
# financial statements and the market agent only sees business plans.
#
# ChromaDB runs in-process by default; set CHROMA_URL for client/server.
#
# ARCHITECTURE:
#   VectorStore (Protocol)
#   └── ChromaVectorStore
#       ├── add_chunks()  — sync (ChromaDB client is sync)
#       ├── delete()      — sync, by metadata filter
#       └── search()      — async via asyncio.to_thread()
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import chromadb

from due_diligence.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class VectorSearchResult:
    """
    A single scored match.

    `metadata` always carries `text` (the chunk content) alongside whatever
    was stored at index time (source, page, type, name, document_id).
    """

    chunk_id: str
    content: str
    page_number: int | None
    similarity_score: float  # cosine similarity, higher = more relevant
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def source(self) -> str | None:
        return self.metadata.get("source")


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class VectorStore(Protocol):
    def add_chunks(
        self,
        ids: list[str],
        contents: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict],
    ) -> None: ...

    def delete(self, where: dict[str, Any]) -> None: ...

    async def search(
        self,
        query_embedding: list[float],
        top_k: int = 5,
        where: dict[str, Any] | None = None,
    ) -> list[VectorSearchResult]:
        """Return up to top_k matches, highest similarity first."""
        ...


# ---------------------------------------------------------------------------
# Implementation: ChromaDB
# ---------------------------------------------------------------------------


class ChromaVectorStore:
    """
    ChromaDB-backed store with a single collection (CHROMA_COLLECTION).

    Cosine space, so `1 - distance` is the similarity score.
    """

    def __init__(
        self,
        collection_name: str | None = None,
        client: Any | None = None,
    ) -> None:
        if client is not None:
            self._client = client
        elif settings.chroma_url:
            self._client = chromadb.HttpClient(host=settings.chroma_url)
        else:
            self._client = chromadb.Client()

        self._collection = self._client.get_or_create_collection(
            name=collection_name or settings.chroma_collection,
            metadata={"hnsw:space": "cosine"},
        )

    def add_chunks(
        self,
        ids: list[str],
        contents: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict],
    ) -> None:
        if not ids:
            return

        self._collection.upsert(
            ids=ids,
            documents=contents,
            embeddings=embeddings,
            metadatas=[_sanitise_chroma_metadata(m) for m in metadatas],
        )
        logger.info("Stored %d chunks in ChromaDB", len(ids))

    def delete(self, where: dict[str, Any]) -> None:
        self._collection.delete(where=where)
        logger.info("Deleted chunks matching %s", where)

    async def search(
        self,
        query_embedding: list[float],
        top_k: int = 5,
        where: dict[str, Any] | None = None,
    ) -> list[VectorSearchResult]:
        def _sync_search() -> list[VectorSearchResult]:
            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=top_k,
                where=where or None,
                include=["documents", "metadatas", "distances"],
            )

            search_results: list[VectorSearchResult] = []
            if not (results and results["ids"] and results["ids"][0]):
                return search_results

            for i, chroma_id in enumerate(results["ids"][0]):
                distance = results["distances"][0][i] if results["distances"] else 0.0
                metadata = dict(results["metadatas"][0][i] or {}) if results["metadatas"] else {}
                content = results["documents"][0][i] if results["documents"] else ""
                metadata["text"] = content

                page = metadata.get("page")
                search_results.append(VectorSearchResult(
                    chunk_id=chroma_id,
                    content=content,
                    page_number=page if isinstance(page, int) and page > 0 else None,
                    similarity_score=round(1.0 - distance, 4),
                    metadata=metadata,
                ))

            search_results.sort(key=lambda r: r.similarity_score, reverse=True)
            return search_results

        return await asyncio.to_thread(_sync_search)


def get_vector_store() -> ChromaVectorStore:
    """Build the configured vector store (in-process or CHROMA_URL)."""
    logger.info(
        "Using ChromaDB vector store (%s)",
        settings.chroma_url or "in-process",
    )
    return ChromaVectorStore()


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _sanitise_chroma_metadata(metadata: dict) -> dict:
    """
    ChromaDB metadata values must be str, int, float or bool:
    None → "", list → comma-separated string, anything else → str().
    """
    sanitised = {}
    for key, value in metadata.items():
        if value is None:
            sanitised[key] = ""
        elif isinstance(value, list):
            sanitised[key] = ",".join(str(v) for v in value)
        elif isinstance(value, (str, int, float, bool)):
            sanitised[key] = value
        else:
            sanitised[key] = str(value)
    return sanitised
