from __future__ import annotations

from pydantic import BaseModel, Field


class ResumeIn(BaseModel):
    text: str = Field(default="", max_length=100000)
    target_role: str | None = Field(default=None, max_length=120)


class JDIn(BaseModel):
    title: str = Field(default="", max_length=300)
    text: str = Field(default="", max_length=100000)
    location: str | None = Field(default=None, max_length=200)
    experience_min_years: int | None = Field(default=None, ge=0, le=60)


class ParsedResume(BaseModel):
    skills: list[str] = Field(default_factory=list)
    summary: str | None = None
    target_role: str | None = None


class ParsedJD(BaseModel):
    title: str = ""
    skills_required: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)


class MatchRequest(BaseModel):
    resume: ParsedResume
    jd: ParsedJD


class MatchBreakdown(BaseModel):
    skill_overlap: float = Field(ge=0.0, le=1.0)
    keyword_coverage: float = Field(ge=0.0, le=1.0)
    role_priorities_hit: int = Field(ge=0)


class MatchResponse(BaseModel):
    score: float = Field(ge=0.0, le=1.0)
    breakdown: MatchBreakdown
    gaps: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class ATSRequest(BaseModel):
    resume_text: str = Field(default="", max_length=100000)


class ATSResponse(BaseModel):
    issues: list[str] = Field(default_factory=list)
    passed_checks: list[str] = Field(default_factory=list)


class RecoRequest(BaseModel):
    gaps: list[str] = Field(default_factory=list, max_length=200)


class RecoResponse(BaseModel):
    certs: dict[str, list[str]] = Field(default_factory=dict)
    projects: dict[str, list[str]] = Field(default_factory=dict)


class AnalyzeRequest(BaseModel):
    resume_text: str = Field(min_length=1, max_length=100000)
    job_description: str = Field(min_length=1, max_length=100000)
    job_title: str = Field(default="", max_length=300)
    target_role: str | None = Field(default=None, max_length=120)


class AnalyzeResponse(BaseModel):
    resume: ParsedResume
    jd: ParsedJD
    match: MatchResponse
    ats: ATSResponse
    recommendations: RecoResponse
