# =============================================================================
# Retrieval Client — Semantic Search over Admitted Documents
# =============================================================================
#
# The capability the agents consume:
#
#   search(query_text, top_k, metadata_filter) → score-ordered matches
#
# plus the write side used by document admission (index_document) and
# cleanup (delete_document). Embedding and vector-store failures are
# surfaced as RetrievalError so agents can tag them uniformly.
#
# Embedding functions are injected so tests can index and search a real
# in-process ChromaDB collection with toy vectors.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

from due_diligence.errors import RetrievalError
from due_diligence.models.domain import Document
from due_diligence.services.chunker import ChunkResult
from due_diligence.services.embedder import embed_batch, embed_query
from due_diligence.services.vectorstore import VectorSearchResult, VectorStore

logger = logging.getLogger(__name__)


class RetrievalClient:
    def __init__(
        self,
        store: VectorStore,
        embed_query_fn: Callable[[str], list[float]] = embed_query,
        embed_batch_fn: Callable[[Sequence[str]], list[list[float]]] = embed_batch,
    ) -> None:
        self._store = store
        self._embed_query = embed_query_fn
        self._embed_batch = embed_batch_fn

    async def search(
        self,
        query_text: str,
        top_k: int = 5,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[VectorSearchResult]:
        """
        Embed the query and return up to top_k matches, best first.

        Raises:
            RetrievalError: Embedding or vector search failed.
        """
        try:
            embedding = await asyncio.to_thread(self._embed_query, query_text)
            results = await self._store.search(
                query_embedding=embedding,
                top_k=top_k,
                where=metadata_filter,
            )
        except Exception as exc:
            logger.error("Vector query failed: %s", exc)
            raise RetrievalError(f"Failed to query vector index: {exc}") from exc

        logger.info(
            "Retrieved %d matches (top_k=%d, filter=%s)",
            len(results), top_k, metadata_filter,
        )
        return results

    async def index_document(
        self,
        document: Document,
        chunks: list[ChunkResult],
    ) -> int:
        """
        Embed and store a document's chunks with provenance metadata.

        Returns:
            Number of chunks stored.

        Raises:
            RetrievalError: Embedding or upsert failed.
        """
        if not chunks:
            logger.warning("Document %s has no text to index", document.name)
            return 0

        contents = [c.content for c in chunks]
        ids = [f"{document.id}_chunk{c.chunk_index}" for c in chunks]
        metadatas = [
            {
                "document_id": document.id,
                "name": document.name,
                "source": document.name,
                "type": document.type.value,
                "page": c.page_number,
                "chunk_index": c.chunk_index,
                "uploaded_at": document.uploaded_at.isoformat(),
                **c.metadata,
            }
            for c in chunks
        ]

        try:
            embeddings = await asyncio.to_thread(self._embed_batch, contents)
            await asyncio.to_thread(
                self._store.add_chunks, ids, contents, embeddings, metadatas,
            )
        except Exception as exc:
            logger.error("Indexing %s failed: %s", document.name, exc)
            raise RetrievalError(
                f"Failed to index document {document.name}: {exc}"
            ) from exc

        logger.info(
            "Indexed document %s (%s, %d chunks)",
            document.id, document.type.value, len(chunks),
        )
        return len(chunks)

    async def delete_document(self, document_id: str) -> None:
        try:
            await asyncio.to_thread(self._store.delete, {"document_id": document_id})
        except Exception as exc:
            raise RetrievalError(
                f"Failed to delete document {document_id}: {exc}"
            ) from exc
