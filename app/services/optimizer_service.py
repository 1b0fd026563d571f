from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import BaseModel, ValidationError

from app.ai.types import GenerationParams
from app.schemas.optimize import (
    BatchOptimizationResult,
    CertificateRecommendationsResult,
    FullOptimizationResult,
    OptimizationResult,
    ProjectIdeasResult,
    SectionInput,
)
from app.services.generation import GenerationError, generate_json, generate_text, strip_code_fences, truncate

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")
_DIFFICULTIES = {"beginner": "Beginner", "intermediate": "Intermediate", "advanced": "Advanced"}

SECTION_SYSTEM_INSTRUCTION = """Optimize resume section for ATS and job match. Focus on keywords, action verbs, and quantification. Respond ONLY with JSON:
{
  "optimized_content": "improved latex code",
  "changes": ["change1", "change2"]
}"""

BATCH_SYSTEM_INSTRUCTION = """You are a professional resume optimization expert.
Your task is to optimize multiple resume sections simultaneously based on a job description.
Focus on:
- Matching keywords from the job description
- Using action-oriented language
- Quantifying achievements where possible
- Maintaining professional tone
- Improving ATS compatibility
- Ensuring consistency across sections

Respond ONLY with JSON in this exact format:
{
  "optimized_sections": [
    {
      "header": "section name",
      "optimized_content": "improved content"
    }
  ]
}"""

FULL_RESUME_SYSTEM_INSTRUCTION = """You are a professional resume optimization expert specializing in LaTeX formatting.
Your task is to optimize resume content while maintaining valid LaTeX syntax.
Focus on:
- Matching keywords from the job description
- Using action-oriented language
- Quantifying achievements where possible
- Maintaining professional tone
- Improving ATS compatibility
- Preserving LaTeX structure and commands

Return ONLY the optimized LaTeX code without any markdown formatting or explanations."""

PROJECT_IDEAS_SYSTEM_INSTRUCTION = """Generate 5 practical project ideas as JSON. Focus on real-world applications using the required tech stack. Respond ONLY with valid JSON:
{
  "projects": [
    {
      "title": "Project Name",
      "description": "Brief description (max 2 sentences)",
      "tech_stack": ["tech1", "tech2"],
      "difficulty": "Beginner|Intermediate|Advanced",
      "estimated_time": "e.g., 2-3 weeks",
      "key_features": ["feature1", "feature2", "feature3"]
    }
  ]
}"""

CERTIFICATES_SYSTEM_INSTRUCTION = """Recommend 5-7 industry-recognized certifications as JSON. Focus on addressing skill gaps. Respond ONLY with valid JSON:
{
  "certificates": [
    {
      "name": "Certification Name",
      "provider": "Organization",
      "relevance": "Brief relevance (1 sentence)",
      "difficulty": "Beginner|Intermediate|Advanced",
      "estimated_time": "e.g., 2-3 months",
      "url": "https://url.com"
    }
  ]
}"""

FULL_RESUME_PARTS = 3


def _snake_keys(value: Any) -> Any:
    """Models sometimes answer in camelCase; accept both spellings."""
    if isinstance(value, dict):
        return {_CAMEL_RE.sub("_", str(key)).lower(): _snake_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_snake_keys(item) for item in value]
    return value


def _normalize_difficulty(items: list[Any]) -> None:
    for item in items:
        if isinstance(item, dict):
            raw = str(item.get("difficulty") or "").strip().lower()
            item["difficulty"] = _DIFFICULTIES.get(raw, "Intermediate")


def _coerce(model: type[BaseModel], payload: Any, label: str) -> Any:
    try:
        return model.model_validate(_snake_keys(payload))
    except ValidationError as exc:
        raise GenerationError(f"Failed to {label}: unexpected response shape", code="invalid_schema") from exc


async def optimize_section(
    section_name: str,
    current_content: str,
    job_description: str,
    *,
    additional_details: str | None = None,
    api_key: str | None = None,
) -> OptimizationResult:
    label = "optimize resume section"
    prompt = (
        f"Section: {section_name}\n"
        f"Content: {current_content}\n"
        f"Job: {truncate(job_description, 1200)}\n"
        f"{f'Details: {additional_details}' if additional_details else ''}\n"
        "Optimize for this job."
    )
    payload = await generate_json(
        task="optimize_section",
        system_instruction=SECTION_SYSTEM_INSTRUCTION,
        prompt=prompt,
        params=GenerationParams(temperature=0.7, max_output_tokens=2000),
        api_key=api_key,
        failure_label=label,
    )
    return _coerce(OptimizationResult, payload, label)


async def batch_optimize(
    sections: list[SectionInput],
    job_description: str,
    *,
    api_key: str | None = None,
) -> BatchOptimizationResult:
    label = "batch optimize resume"
    rendered = "\n".join(f"\n{section.header}:\n{section.content}\n" for section in sections)
    prompt = (
        f"\nJob Description: {job_description}\n\n"
        f"Resume Sections to Optimize:\n{rendered}\n"
        "Please optimize all these resume sections for the given job description.\n"
    )
    payload = await generate_json(
        task="batch_optimize",
        system_instruction=BATCH_SYSTEM_INSTRUCTION,
        prompt=prompt,
        params=GenerationParams(temperature=0.7, max_output_tokens=4000),
        api_key=api_key,
        failure_label=label,
    )
    return _coerce(BatchOptimizationResult, payload, label)


def split_into_parts(latex_content: str, parts: int = FULL_RESUME_PARTS) -> list[str]:
    lines = latex_content.split("\n")
    total = len(lines)
    bounds = [(total * index) // parts for index in range(parts + 1)]
    return ["\n".join(lines[bounds[index] : bounds[index + 1]]) for index in range(parts)]


async def optimize_full_resume(
    latex_content: str,
    job_description: str,
    *,
    api_key: str | None = None,
) -> FullOptimizationResult:
    """Rewrite the whole document in thirds so each call stays within the output budget."""
    optimized_parts: list[str] = []
    parts = split_into_parts(latex_content)
    for number, part in enumerate(parts, start=1):
        prompt = (
            f"Job Description:\n{job_description}\n\n"
            f"Resume LaTeX Part {number}/{len(parts)}:\n{part}\n\n"
            "Optimize this part of the resume for the job description while maintaining LaTeX syntax. "
            "Return ONLY the optimized LaTeX code."
        )
        text = await generate_text(
            task="optimize_full_resume",
            system_instruction=FULL_RESUME_SYSTEM_INSTRUCTION,
            prompt=prompt,
            params=GenerationParams(temperature=0.7, max_output_tokens=8000),
            api_key=api_key,
            failure_label="optimize full resume",
        )
        optimized_parts.append(strip_code_fences(text))
    return FullOptimizationResult(optimized_latex="\n".join(optimized_parts))


async def generate_project_ideas(
    job_description: str,
    tech_stack: list[str],
    *,
    skill_gaps: list[str] | None = None,
    api_key: str | None = None,
) -> ProjectIdeasResult:
    label = "generate project ideas"
    gaps_line = f"Gaps: {', '.join(skill_gaps[:5])}" if skill_gaps else ""
    prompt = (
        f"Job: {truncate(job_description, 1000)}\n"
        f"Tech: {', '.join(tech_stack[:10])}\n"
        f"{gaps_line}\n\n"
        "Generate 5 projects (2 beginner, 2 intermediate, 1 advanced)."
    )
    payload = _snake_keys(
        await generate_json(
            task="project_ideas",
            system_instruction=PROJECT_IDEAS_SYSTEM_INSTRUCTION,
            prompt=prompt,
            params=GenerationParams(temperature=0.7, max_output_tokens=2000),
            api_key=api_key,
            failure_label=label,
        )
    )
    if isinstance(payload, dict) and isinstance(payload.get("projects"), list):
        _normalize_difficulty(payload["projects"])
    return _coerce(ProjectIdeasResult, payload, label)


async def generate_certificate_recommendations(
    job_description: str,
    skill_gaps: list[str],
    *,
    api_key: str | None = None,
) -> CertificateRecommendationsResult:
    label = "generate certificate recommendations"
    prompt = (
        f"Job: {truncate(job_description, 800)}\n"
        f"Gaps: {', '.join(skill_gaps[:7])}\n\n"
        "Recommend 5-7 certifications."
    )
    payload = _snake_keys(
        await generate_json(
            task="certificate_recommendations",
            system_instruction=CERTIFICATES_SYSTEM_INSTRUCTION,
            prompt=prompt,
            params=GenerationParams(temperature=0.7, max_output_tokens=1500),
            api_key=api_key,
            failure_label=label,
        )
    )
    if isinstance(payload, dict) and isinstance(payload.get("certificates"), list):
        _normalize_difficulty(payload["certificates"])
    return _coerce(CertificateRecommendationsResult, payload, label)
