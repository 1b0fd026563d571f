from __future__ import annotations

import logging
import uuid
from pathlib import Path

from app.core.config import settings
from app.parsing.parse import DocumentParseError, parse_document
from app.parsing.sections import convert_to_latex, extract_sections_from_text
from app.schemas.resume import UploadResumeResponse

logger = logging.getLogger(__name__)

ALLOWED_UPLOAD_EXTENSIONS = {"pdf", "docx", "doc"}


def parse_resume_upload(filename: str, content: bytes, *, upload_dir: str | Path | None = None) -> UploadResumeResponse:
    """Parse an uploaded resume and draft a LaTeX document from its sections.

    The bytes are written under the upload directory only for the parser's
    benefit; the temporary file is removed whether or not parsing succeeds.
    """
    extension = Path(filename or "").suffix.lower()
    directory = Path(upload_dir or settings.upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    temp_path = directory / f"upload-{uuid.uuid4().hex}{extension}"

    try:
        temp_path.write_bytes(content)
        parsed = parse_document(temp_path)
    finally:
        temp_path.unlink(missing_ok=True)

    if parsed.is_empty:
        detail = "; ".join(parsed.parsing_warnings) or "Document contains no readable text."
        raise DocumentParseError(f"Could not extract text from resume: {detail}")

    sections = extract_sections_from_text(parsed.text)
    logger.info(
        "resume_upload_parsed source=%s chars=%s sections=%s",
        parsed.source_type,
        len(parsed.text),
        len(sections),
    )
    return UploadResumeResponse(
        text=parsed.text,
        sections=[{"name": section.name, "content": section.content} for section in sections],
        latex_content=convert_to_latex(sections),
        parsing_warnings=parsed.parsing_warnings,
    )
