from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

SourceType = Literal["pdf", "docx", "txt"]


class ParsedBlock(BaseModel):
    """A page of a PDF or a paragraph of a DOCX."""

    page: int | None = None
    text: str


class ParsedDoc(BaseModel):
    doc_id: str
    source_type: SourceType
    text: str
    blocks: list[ParsedBlock] = Field(default_factory=list)
    parsing_warnings: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


class TextSection(BaseModel):
    name: str
    content: str
