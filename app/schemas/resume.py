from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ResumeSection(BaseModel):
    name: str
    content: str
    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)


class Resume(BaseModel):
    id: str
    user_id: str | None = None
    name: str
    latex_content: str
    pdf_url: str | None = None
    template: str = "modern"
    sections: list[ResumeSection] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ResumeCreateRequest(BaseModel):
    name: str = Field(default="", max_length=200)
    latex_content: str = Field(default="", max_length=500000)
    template: str | None = Field(default=None, max_length=60)


class ResumeUpdateRequest(BaseModel):
    latex_content: str = Field(default="", max_length=500000)
    name: str | None = Field(default=None, max_length=200)


class CompileResponse(BaseModel):
    success: bool
    pdf_url: str | None = None
    error: str | None = None
    error_line: int | None = None
    error_message: str | None = None
    logs: str | None = None


class LatexCompileRequest(BaseModel):
    latex_content: str = Field(min_length=1, max_length=500000)


class OptimizationRecord(BaseModel):
    id: str
    resume_id: str
    section_name: str
    original_content: str
    optimized_content: str
    job_description: str
    additional_details: str | None = None
    created_at: datetime


class UploadResumeResponse(BaseModel):
    text: str
    sections: list[dict[str, str]]
    latex_content: str
    parsing_warnings: list[str] = Field(default_factory=list)
