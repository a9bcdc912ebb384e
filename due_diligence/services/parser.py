# =============================================================================
# Upload Parser — Text Extraction with Page Provenance
# =============================================================================
#
# PDF and DOCX go through IBM's Docling, which keeps page numbers and
# renders tables as markdown. Plain text (and legacy .doc, which Docling
# cannot open) is decoded as UTF-8 and split into paragraphs on page 1.
#
# Downstream code sees only ParsedDocument / ParsedElement, never Docling
# types.
# =============================================================================

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from io import BytesIO

from docling.datamodel.base_models import DocumentStream, InputFormat
from docling.datamodel.pipeline_options import PdfPipelineOptions
from docling.document_converter import DocumentConverter, PdfFormatOption
from docling_core.types.doc.labels import DocItemLabel

logger = logging.getLogger(__name__)

DOCLING_CONTENT_TYPES = frozenset({
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})

_TEXT_LABELS = (
    DocItemLabel.TEXT,
    DocItemLabel.LIST_ITEM,
    DocItemLabel.CAPTION,
    DocItemLabel.FOOTNOTE,
)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class ParsedElement:
    """One paragraph, heading or table, with the page it came from."""

    text: str
    page_number: int  # 1-indexed; 0 when the parser has no provenance
    element_type: str  # "text", "table", or "heading"
    section_title: str | None = None


@dataclass
class ParsedDocument:
    elements: list[ParsedElement] = field(default_factory=list)
    page_count: int = 0
    filename: str = ""

    @property
    def text(self) -> str:
        """Full document text, elements joined by blank lines."""
        return "\n\n".join(e.text for e in self.elements)


# ---------------------------------------------------------------------------
# Docling Converter — Lazy Singleton
# ---------------------------------------------------------------------------
# First construction loads layout/table models (a few seconds).
# ---------------------------------------------------------------------------

_converter: DocumentConverter | None = None


def _get_converter() -> DocumentConverter:
    global _converter
    if _converter is None:
        logger.info("Initializing Docling DocumentConverter (first use)")
        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_table_structure = True
        pipeline_options.do_ocr = True

        _converter = DocumentConverter(
            allowed_formats=[InputFormat.PDF, InputFormat.DOCX],
            format_options={
                InputFormat.PDF: PdfFormatOption(
                    pipeline_options=pipeline_options,
                ),
            },
        )
    return _converter


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_upload(
    filename: str,
    content_type: str | None,
    data: bytes,
) -> ParsedDocument:
    """
    Extract text elements from an uploaded file.

    Raises:
        RuntimeError: Docling failed to convert a PDF/DOCX.
    """
    if content_type in DOCLING_CONTENT_TYPES:
        return _parse_with_docling(filename, data)
    return parse_text(filename, data.decode("utf-8", errors="replace"))


def parse_text(filename: str, text: str) -> ParsedDocument:
    """Split plain text into paragraph elements on page 1."""
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text) if p.strip()]
    elements = [
        ParsedElement(text=p, page_number=1, element_type="text")
        for p in paragraphs
    ]
    return ParsedDocument(
        elements=elements,
        page_count=1 if elements else 0,
        filename=filename,
    )


def _parse_with_docling(filename: str, data: bytes) -> ParsedDocument:
    logger.info("Parsing with Docling: %s", filename)
    converter = _get_converter()

    try:
        result = converter.convert(
            DocumentStream(name=filename, stream=BytesIO(data))
        )
    except Exception as exc:
        raise RuntimeError(
            f"Docling failed to parse '{filename}': {exc}"
        ) from exc

    elements: list[ParsedElement] = []
    current_section: str | None = None
    pages_seen: set[int] = set()

    for item, _level in result.document.iterate_items():
        page_no = 0
        if getattr(item, "prov", None):
            page_no = item.prov[0].page_no
        pages_seen.add(page_no)

        label = getattr(item, "label", None)

        if label in (DocItemLabel.SECTION_HEADER, DocItemLabel.TITLE):
            text = getattr(item, "text", "").strip()
            if text:
                current_section = text
                elements.append(ParsedElement(
                    text=text,
                    page_number=page_no,
                    element_type="heading",
                    section_title=current_section,
                ))

        elif label == DocItemLabel.TABLE:
            table_md = _table_to_markdown(item, result.document)
            if table_md:
                elements.append(ParsedElement(
                    text=table_md,
                    page_number=page_no,
                    element_type="table",
                    section_title=current_section,
                ))

        elif label in _TEXT_LABELS:
            text = getattr(item, "text", "").strip()
            if text:
                elements.append(ParsedElement(
                    text=text,
                    page_number=page_no,
                    element_type="text",
                    section_title=current_section,
                ))

    page_count = max(pages_seen) if pages_seen - {0} else 0

    logger.info(
        "Parsed '%s': %d elements, %d pages",
        filename, len(elements), page_count,
    )
    return ParsedDocument(
        elements=elements,
        page_count=page_count,
        filename=filename,
    )


def _table_to_markdown(table_item: object, document: object) -> str:
    """Markdown for a Docling table; falls back to its plain text."""
    try:
        if hasattr(table_item, "export_to_markdown"):
            return table_item.export_to_markdown(doc=document)
    except Exception as exc:
        logger.warning("Table export to markdown failed: %s", exc)

    text = getattr(table_item, "text", "")
    return text.strip() if text else ""
