from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Difficulty = Literal["Beginner", "Intermediate", "Advanced"]


class OptimizationRequest(BaseModel):
    section: str = Field(min_length=1, max_length=200)
    current_content: str = Field(min_length=1, max_length=50000)
    job_description: str = Field(min_length=1, max_length=50000)
    additional_details: str | None = Field(default=None, max_length=5000)


class OptimizationResult(BaseModel):
    optimized_content: str
    changes: list[str] = Field(default_factory=list)


class ApplyOptimizationRequest(BaseModel):
    section_name: str = Field(min_length=1, max_length=200)
    optimized_content: str = Field(max_length=50000)


class SectionInput(BaseModel):
    header: str = Field(min_length=1, max_length=200)
    content: str = Field(max_length=50000)


class BatchOptimizationRequest(BaseModel):
    sections: list[SectionInput] = Field(min_length=1, max_length=30)
    job_description: str = Field(min_length=1, max_length=50000)


class OptimizedSection(BaseModel):
    header: str
    optimized_content: str


class BatchOptimizationResult(BaseModel):
    optimized_sections: list[OptimizedSection] = Field(default_factory=list)


class FullOptimizationRequest(BaseModel):
    job_description: str = Field(min_length=1, max_length=50000)


class FullOptimizationResult(BaseModel):
    optimized_latex: str


class ProjectIdeasRequest(BaseModel):
    job_description: str = Field(min_length=1, max_length=50000)
    tech_stack: list[str] = Field(default_factory=list, max_length=100)
    skill_gaps: list[str] = Field(default_factory=list, max_length=100)


class ProjectIdea(BaseModel):
    title: str
    description: str = ""
    tech_stack: list[str] = Field(default_factory=list)
    difficulty: Difficulty = "Intermediate"
    estimated_time: str = ""
    key_features: list[str] = Field(default_factory=list)


class ProjectIdeasResult(BaseModel):
    projects: list[ProjectIdea] = Field(default_factory=list)


class CertificateRequest(BaseModel):
    job_description: str = Field(min_length=1, max_length=50000)
    skill_gaps: list[str] = Field(default_factory=list, max_length=100)


class CertificateRecommendation(BaseModel):
    name: str
    provider: str = ""
    relevance: str = ""
    difficulty: Difficulty = "Intermediate"
    estimated_time: str = ""
    url: str | None = None


class CertificateRecommendationsResult(BaseModel):
    certificates: list[CertificateRecommendation] = Field(default_factory=list)
