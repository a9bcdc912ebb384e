# =============================================================================
# Token-Based Chunker — tiktoken
# =============================================================================
#
# Splits a parsed upload into overlapping token windows for embedding.
# Each token remembers the page of the element it came from, so every
# chunk knows the page it starts on and every page it spans; that page is
# what ends up in agent citations.
#
# cl100k_base is the tokenizer of text-embedding-3-small, so token counts
# match what the embedding model sees.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import tiktoken

from due_diligence.services.parser import ParsedDocument

logger = logging.getLogger(__name__)

_SEPARATOR = "\n\n"


@dataclass
class ChunkResult:
    content: str
    page_number: int  # page of the first token, 0 if unknown
    chunk_index: int
    token_count: int
    metadata: dict = field(default_factory=dict)
    # metadata keys: source_pages (list[int]), contains_table (bool),
    # section_title (str | None)


_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("cl100k_base")
    return _encoder


def chunk_document(
    parsed_doc: ParsedDocument,
    chunk_size: int = 512,
    chunk_overlap: int = 50,
) -> list[ChunkResult]:
    """
    Slide a chunk_size window (stride chunk_size - chunk_overlap) over the
    document's tokens.

    Raises:
        ValueError: chunk_overlap is not smaller than chunk_size.
    """
    if chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap ({chunk_overlap}) must be smaller than "
            f"chunk_size ({chunk_size})"
        )

    encoder = _get_encoder()

    tokens: list[int] = []
    owners: list[int] = []  # element index per token
    for idx, element in enumerate(parsed_doc.elements):
        text = element.text if idx == 0 else _SEPARATOR + element.text
        encoded = encoder.encode(text)
        tokens.extend(encoded)
        owners.extend([idx] * len(encoded))

    if not tokens:
        logger.warning("No tokens to chunk in '%s'", parsed_doc.filename)
        return []

    chunks: list[ChunkResult] = []
    step = chunk_size - chunk_overlap

    for start in range(0, len(tokens), step):
        end = min(start + chunk_size, len(tokens))
        content = encoder.decode(tokens[start:end]).strip()

        if content:
            elements = [parsed_doc.elements[i] for i in sorted(set(owners[start:end]))]
            pages = sorted({e.page_number for e in elements if e.page_number > 0})
            chunks.append(ChunkResult(
                content=content,
                page_number=elements[0].page_number,
                chunk_index=len(chunks),
                token_count=end - start,
                metadata={
                    "source_pages": pages,
                    "contains_table": any(e.element_type == "table" for e in elements),
                    "section_title": next(
                        (e.section_title for e in elements if e.section_title), None,
                    ),
                },
            ))

        if end >= len(tokens):
            break

    logger.info(
        "Chunked '%s' into %d chunks (%d tokens, size=%d, overlap=%d)",
        parsed_doc.filename, len(chunks), len(tokens), chunk_size, chunk_overlap,
    )
    return chunks
