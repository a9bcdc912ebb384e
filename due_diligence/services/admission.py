# =============================================================================
# Document Admission — Uploads → Indexed Documents
# =============================================================================
#
# For each uploaded file:
#   1. validate_document   (media type allow-list, size cap)
#   2. classify by filename (financial / business_plan / other)
#   3. parse → chunk → embed → index in the retrieval client
#
# Files are admitted sequentially and admit_all() returns only after every
# document is indexed; leaf agents must not query before that point.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from due_diligence.config import settings
from due_diligence.models.domain import Document, DocumentType
from due_diligence.services.chunker import chunk_document
from due_diligence.services.guardrails import validate_document
from due_diligence.services.parser import parse_upload
from due_diligence.services.retrieval import RetrievalClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    """Transport-neutral upload: what the HTTP layer hands to admission."""

    filename: str
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def classify_document(name: str) -> DocumentType:
    """Filename heuristic: "financial" wins over "business"."""
    lowered = name.lower()
    if "financial" in lowered:
        return DocumentType.FINANCIAL
    if "business" in lowered:
        return DocumentType.BUSINESS_PLAN
    return DocumentType.OTHER


def new_document_id() -> str:
    return f"doc_{uuid.uuid4().hex[:16]}"


class DocumentAdmission:
    def __init__(
        self,
        retrieval: RetrievalClient,
        max_size_mb: float | None = None,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ) -> None:
        self._retrieval = retrieval
        self._max_size_mb = max_size_mb or settings.max_upload_size_mb
        self._chunk_size = chunk_size or settings.chunk_size
        self._chunk_overlap = (
            settings.chunk_overlap if chunk_overlap is None else chunk_overlap
        )

    async def admit(self, file: UploadedFile) -> Document:
        """
        Validate, classify, parse and index one upload.

        Raises:
            UnsupportedDocumentTypeError / DocumentTooLargeError: guardrail.
            RuntimeError: the parser could not read the file.
            RetrievalError: indexing failed.
        """
        validate_document(file, max_size_mb=self._max_size_mb)

        doc_type = classify_document(file.filename)
        parsed = await asyncio.to_thread(
            parse_upload, file.filename, file.content_type, file.data,
        )
        chunks = chunk_document(
            parsed,
            chunk_size=self._chunk_size,
            chunk_overlap=self._chunk_overlap,
        )

        document = Document(
            id=new_document_id(),
            name=file.filename,
            type=doc_type,
            content=parsed.text,
            content_type=file.content_type,
            size_bytes=file.size,
        )
        chunk_count = await self._retrieval.index_document(document, chunks)

        logger.info(
            "Admitted document: %s (%s, %d chunks)",
            file.filename, doc_type.value, chunk_count,
        )
        return document.model_copy(update={"chunk_count": chunk_count})

    async def admit_all(self, files: Iterable[UploadedFile]) -> list[Document]:
        """Admit every upload, or none: a failure releases the ones already indexed."""
        documents = []
        try:
            for file in files:
                documents.append(await self.admit(file))
        except Exception:
            await self.release(documents)
            raise
        return documents

    async def release(self, documents: Iterable[Document]) -> None:
        """Remove the documents' chunks from the index when their request ends."""
        for document in documents:
            await self._retrieval.delete_document(document.id)
            logger.info("Released document: %s (%s)", document.name, document.id)
