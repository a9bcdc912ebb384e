# =============================================================================
# Unit Tests — Vector Store, Retrieval Client, Document Admission
# =============================================================================
#
# Uses ChromaDB's in-process mode (no external services needed) and toy
# 3-dimensional embeddings, so no embedding API key is required.
# =============================================================================

from __future__ import annotations

import asyncio
import uuid

import pytest

from due_diligence.errors import (
    DocumentTooLargeError,
    RetrievalError,
    UnsupportedDocumentTypeError,
)
from due_diligence.models.domain import Document, DocumentType
from due_diligence.services.admission import (
    DocumentAdmission,
    UploadedFile,
    classify_document,
    new_document_id,
)
from due_diligence.services.chunker import ChunkResult
from due_diligence.services.retrieval import RetrievalClient
from due_diligence.services.vectorstore import (
    ChromaVectorStore,
    VectorSearchResult,
    _sanitise_chroma_metadata,
)


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


def _make_store() -> ChromaVectorStore:
    """Fresh store on a unique collection so tests never share vectors."""
    return ChromaVectorStore(collection_name=f"test_{uuid.uuid4().hex[:12]}")


def _toy_embed(text: str) -> list[float]:
    """Keyword embedding: financial / market / other axes."""
    lowered = text.lower()
    return [
        1.0 if "ebitda" in lowered or "debt" in lowered else 0.05,
        1.0 if "market" in lowered or "cagr" in lowered else 0.05,
        0.1,
    ]


def _toy_batch(texts) -> list[list[float]]:
    return [_toy_embed(t) for t in texts]


def _client(store=None) -> RetrievalClient:
    return RetrievalClient(store or _make_store(), _toy_embed, _toy_batch)


def _document(name: str, doc_type: DocumentType) -> Document:
    return Document(id=new_document_id(), name=name, type=doc_type, content="")


def _chunk(text: str, index: int = 0, page: int = 1) -> ChunkResult:
    return ChunkResult(
        content=text, page_number=page, chunk_index=index, token_count=5,
        metadata={"source_pages": [page], "contains_table": False, "section_title": None},
    )


# ---------------------------------------------------------------------------
# Test: ChromaVectorStore
# ---------------------------------------------------------------------------


class TestChromaVectorStore:

    def test_search_orders_by_similarity(self):
        store = _make_store()
        store.add_chunks(
            ids=["a", "b"],
            contents=["Revenue increased by 15%", "Expenses decreased by 5%"],
            embeddings=[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
            metadatas=[{"page": 1}, {"page": 2}],
        )

        results = _run(store.search(query_embedding=[1.0, 0.1, 0.0], top_k=2))

        assert len(results) == 2
        assert all(isinstance(r, VectorSearchResult) for r in results)
        assert results[0].similarity_score >= results[1].similarity_score
        assert results[0].chunk_id == "a"
        assert results[0].metadata["text"] == "Revenue increased by 15%"
        assert results[0].page_number == 1

    def test_where_filter(self):
        store = _make_store()
        store.add_chunks(
            ids=["f", "m"],
            contents=["Financial chunk", "Market chunk"],
            embeddings=[[1.0, 0.0, 0.0], [0.9, 0.1, 0.0]],
            metadatas=[{"type": "financial"}, {"type": "business_plan"}],
        )

        results = _run(store.search([1.0, 0.0, 0.0], top_k=10, where={"type": "business_plan"}))

        assert [r.chunk_id for r in results] == ["m"]

    def test_empty_collection(self):
        assert _run(_make_store().search([1.0, 0.0, 0.0], top_k=3)) == []

    def test_upsert_replaces_same_id(self):
        store = _make_store()
        store.add_chunks(["x"], ["old"], [[1.0, 0.0, 0.0]], [{"page": 1}])
        store.add_chunks(["x"], ["new"], [[1.0, 0.0, 0.0]], [{"page": 1}])
        results = _run(store.search([1.0, 0.0, 0.0], top_k=5))
        assert [r.content for r in results] == ["new"]

    def test_delete(self):
        store = _make_store()
        store.add_chunks(
            ["a", "b"], ["one", "two"], [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
            [{"document_id": "doc_a"}, {"document_id": "doc_b"}],
        )
        store.delete({"document_id": "doc_a"})
        results = _run(store.search([1.0, 0.0, 0.0], top_k=5))
        assert [r.chunk_id for r in results] == ["b"]

    def test_metadata_sanitisation(self):
        assert _sanitise_chroma_metadata({
            "page": None, "source_pages": [1, 2, 3], "title": "Overview",
            "table": True, "score": 0.5,
        }) == {
            "page": "", "source_pages": "1,2,3", "title": "Overview",
            "table": True, "score": 0.5,
        }


# ---------------------------------------------------------------------------
# Test: RetrievalClient
# ---------------------------------------------------------------------------


class TestRetrievalClient:

    def test_index_then_search_with_provenance(self):
        client = _client()
        doc = _document("financial_report.pdf", DocumentType.FINANCIAL)

        stored = _run(client.index_document(doc, [
            _chunk("EBITDA margin grew to 15%", 0, page=4),
            _chunk("Debt ratio of 0.7", 1, page=5),
        ]))
        results = _run(client.search("EBITDA debt", top_k=5))

        assert stored == 2
        assert len(results) == 2
        top = results[0]
        assert top.chunk_id.startswith(f"{doc.id}_chunk")
        assert top.source == "financial_report.pdf"
        assert top.metadata["type"] == "financial"
        assert top.metadata["name"] == "financial_report.pdf"
        assert top.metadata["document_id"] == doc.id
        assert top.page_number in (4, 5)

    def test_filter_by_document_type(self):
        client = _client()
        _run(client.index_document(
            _document("financial_report.pdf", DocumentType.FINANCIAL),
            [_chunk("EBITDA 15%")],
        ))
        _run(client.index_document(
            _document("business_plan.pdf", DocumentType.BUSINESS_PLAN),
            [_chunk("Market grows at 10% CAGR")],
        ))

        results = _run(client.search(
            "EBITDA market", top_k=5, metadata_filter={"type": "business_plan"},
        ))

        assert [r.source for r in results] == ["business_plan.pdf"]

    def test_top_k_limits_results(self):
        client = _client()
        doc = _document("financial.txt", DocumentType.FINANCIAL)
        _run(client.index_document(doc, [_chunk(f"EBITDA note {i}", i) for i in range(6)]))
        assert len(_run(client.search("EBITDA", top_k=3))) == 3

    def test_no_chunks_indexes_nothing(self):
        client = _client()
        assert _run(client.index_document(_document("x.txt", DocumentType.OTHER), [])) == 0

    def test_delete_document(self):
        client = _client()
        keep = _document("financial_a.txt", DocumentType.FINANCIAL)
        drop = _document("financial_b.txt", DocumentType.FINANCIAL)
        _run(client.index_document(keep, [_chunk("EBITDA kept")]))
        _run(client.index_document(drop, [_chunk("EBITDA dropped")]))

        _run(client.delete_document(drop.id))

        assert [r.content for r in _run(client.search("EBITDA"))] == ["EBITDA kept"]

    def test_embedding_failure_is_retrieval_error(self):
        def broken_embed(text):
            raise ConnectionError("embedding API down")

        client = RetrievalClient(_make_store(), broken_embed, _toy_batch)
        with pytest.raises(RetrievalError, match="Failed to query vector index"):
            _run(client.search("anything"))

    def test_indexing_failure_is_retrieval_error(self):
        def broken_batch(texts):
            raise ConnectionError("embedding API down")

        client = RetrievalClient(_make_store(), _toy_embed, broken_batch)
        with pytest.raises(RetrievalError, match="financial.txt"):
            _run(client.index_document(
                _document("financial.txt", DocumentType.FINANCIAL), [_chunk("x")],
            ))


# ---------------------------------------------------------------------------
# Test: Document admission
# ---------------------------------------------------------------------------


class TestClassifyDocument:

    @pytest.mark.parametrize("name,expected", [
        ("Q3_Financial_Statements.pdf", DocumentType.FINANCIAL),
        ("BUSINESS-PLAN-2025.docx", DocumentType.BUSINESS_PLAN),
        ("financial_business_overview.pdf", DocumentType.FINANCIAL),
        ("pitch_deck.pdf", DocumentType.OTHER),
    ])
    def test_classification(self, name, expected):
        assert classify_document(name) == expected


class TestDocumentAdmission:

    def test_admit_all_indexes_each_document(self):
        client = _client()
        admission = DocumentAdmission(client, chunk_size=64, chunk_overlap=8)
        files = [
            UploadedFile("financial_report.txt", "text/plain", b"EBITDA margin 15%.\n\nDebt 0.7."),
            UploadedFile("business_plan.txt", "text/plain", b"Market grows at 10% CAGR."),
        ]

        documents = _run(admission.admit_all(files))

        assert [d.type for d in documents] == [DocumentType.FINANCIAL, DocumentType.BUSINESS_PLAN]
        assert all(d.id.startswith("doc_") for d in documents)
        assert len({d.id for d in documents}) == 2
        assert documents[0].content == "EBITDA margin 15%.\n\nDebt 0.7."
        assert documents[0].chunk_count == 1
        assert documents[0].size_bytes == len(files[0].data)

        market = _run(client.search("market CAGR", metadata_filter={"type": "business_plan"}))
        assert market[0].source == "business_plan.txt"

    def test_unsupported_type_rejected_before_indexing(self):
        store = _make_store()
        admission = DocumentAdmission(_client(store))
        with pytest.raises(UnsupportedDocumentTypeError):
            _run(admission.admit(UploadedFile("financial.zip", "application/zip", b"PK")))
        assert _run(store.search([1.0, 0.0, 0.0])) == []

    def test_oversized_rejected(self):
        admission = DocumentAdmission(_client(), max_size_mb=0.001)
        with pytest.raises(DocumentTooLargeError):
            _run(admission.admit(UploadedFile("financial.txt", "text/plain", b"x" * 2048)))

    def test_release_removes_chunks(self):
        store = _make_store()
        admission = DocumentAdmission(_client(store))
        documents = _run(admission.admit_all([
            UploadedFile("financial_report.txt", "text/plain", b"EBITDA margin 15%."),
        ]))

        _run(admission.release(documents))

        assert _run(store.search([1.0, 0.0, 0.0])) == []

    def test_partial_failure_releases_admitted_documents(self):
        store = _make_store()
        admission = DocumentAdmission(_client(store))
        files = [
            UploadedFile("financial_report.txt", "text/plain", b"EBITDA margin 15%."),
            UploadedFile("financial.zip", "application/zip", b"PK"),
        ]

        with pytest.raises(UnsupportedDocumentTypeError):
            _run(admission.admit_all(files))

        assert _run(store.search([1.0, 0.0, 0.0])) == []
