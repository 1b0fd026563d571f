from __future__ import annotations

import re

from app.schemas.resume import ResumeSection

_SECTION_RE = re.compile(r"\\section\*?\{([^}]+)\}")
_END_DOCUMENT_RE = re.compile(r"\\end\{document\}")


def extract_sections(latex_content: str) -> list[ResumeSection]:
    """Split a LaTeX document on ``\\section{}`` / ``\\section*{}`` headers.

    Line numbers are 0-based and cover the body only: ``start_line`` is the
    line after the header, ``end_line`` the last line before the next header
    (or ``\\end{document}``, or the end of the source). Sections whose body is
    blank are skipped.
    """
    lines = latex_content.split("\n")
    headers: list[tuple[int, str]] = []
    document_end = len(lines)
    for index, line in enumerate(lines):
        match = _SECTION_RE.search(line)
        if match:
            headers.append((index, match.group(1).strip()))
        elif headers and _END_DOCUMENT_RE.search(line):
            document_end = min(document_end, index)

    sections: list[ResumeSection] = []
    for position, (header_index, name) in enumerate(headers):
        next_index = headers[position + 1][0] if position + 1 < len(headers) else len(lines)
        if header_index < document_end:
            next_index = min(next_index, document_end)
        body_start = header_index + 1
        content = "\n".join(lines[body_start:next_index]).strip()
        if not content:
            continue
        sections.append(
            ResumeSection(
                name=name,
                content=content,
                start_line=body_start,
                end_line=next_index - 1,
            )
        )
    return sections


def update_section(latex_content: str, section_name: str, new_content: str) -> str:
    """Replace the body of ``section_name``; unknown names leave the source untouched."""
    lines = latex_content.split("\n")
    section = next((s for s in extract_sections(latex_content) if s.name == section_name), None)
    if section is None:
        return latex_content
    updated = lines[: section.start_line] + [new_content] + lines[section.end_line + 1 :]
    return "\n".join(updated)
