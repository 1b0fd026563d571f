from __future__ import annotations

import hashlib
from collections.abc import Callable
from pathlib import Path

from docx import Document
from pypdf import PdfReader

from .models import ParsedBlock, ParsedDoc


class DocumentParseError(ValueError):
    pass


def _read_txt(path: Path) -> list[ParsedBlock]:
    return [ParsedBlock(text=path.read_text(encoding="utf-8", errors="replace"))]


def _read_pdf(path: Path) -> list[ParsedBlock]:
    blocks = []
    for page_number, page in enumerate(PdfReader(str(path)).pages, start=1):
        page_text = (page.extract_text() or "").strip()
        if page_text:
            blocks.append(ParsedBlock(page=page_number, text=page_text))
    return blocks


def _read_docx(path: Path) -> list[ParsedBlock]:
    return [
        ParsedBlock(text=paragraph.text.strip())
        for paragraph in Document(str(path)).paragraphs
        if paragraph.text and paragraph.text.strip()
    ]


_READERS: dict[str, Callable[[Path], list[ParsedBlock]]] = {
    "txt": _read_txt,
    "pdf": _read_pdf,
    "docx": _read_docx,
}

SUPPORTED_EXTENSIONS = tuple(f".{kind}" for kind in _READERS)


def parse_document(file_path: str | Path) -> ParsedDoc:
    """Extract plain text from a resume file.

    Unreadable PDF/DOCX content is reported through ``parsing_warnings`` with
    empty text rather than raised, so callers decide how strict to be.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Input document not found: '{path}'")

    source_type = path.suffix.lower().lstrip(".")
    if source_type == "doc":
        raise DocumentParseError("Legacy .doc files cannot be read. Save the resume as .docx or PDF and retry.")
    reader = _READERS.get(source_type)
    if reader is None:
        raise DocumentParseError(
            f"Unsupported file type '.{source_type}'. Supported types: {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    warnings: list[str] = []
    try:
        blocks = reader(path)
    except Exception as exc:  # noqa: BLE001 - pypdf and python-docx raise many unrelated types on broken files
        blocks = []
        warnings.append(f"{source_type.upper()} parsing failed: {exc}")

    if source_type == "txt":
        text = blocks[0].text if blocks else ""
        blocks = []
    else:
        text = "\n".join(block.text for block in blocks)
        if not blocks and not warnings:
            warnings.append(f"No extractable text found in {source_type.upper()}.")

    seed = text if text.strip() else path.name
    return ParsedDoc(
        doc_id=hashlib.sha256(seed.encode("utf-8", errors="ignore")).hexdigest()[:16],
        source_type=source_type,
        text=text,
        blocks=blocks,
        parsing_warnings=warnings,
    )
