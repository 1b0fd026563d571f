from __future__ import annotations

import re

from app.core.scoring import get_scoring_value
from app.schemas.skillmatch import (
    JDIn,
    MatchBreakdown,
    MatchRequest,
    MatchResponse,
    ParsedJD,
    ParsedResume,
    RecoRequest,
    RecoResponse,
    ResumeIn,
)
from app.taxonomy import TaxonomyProvider, get_default_taxonomy_provider

_TOKEN_RE = re.compile(r"[a-z0-9+#.]+")
_WS_RE = re.compile(r"\s+")
# An alias only counts as a phrase hit when it is not glued to other token characters.
_PHRASE_LEFT = r"(?<![a-z0-9+#])"
_PHRASE_RIGHT = r"(?![a-z0-9+#])"


def normalize_text(text: str) -> str:
    return _WS_RE.sub(" ", (text or "").strip().lower())


def tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(normalize_text(text))


def _match_token(token: str) -> str:
    # "python." at the end of a sentence is still python; ".net" keeps its dot.
    return token.rstrip(".")


def _is_phrase_alias(alias: str) -> bool:
    return bool(re.search(r"[^a-z0-9+#.]", alias))


def extract_skills(text: str, taxonomy: TaxonomyProvider | None = None) -> list[str]:
    """Canonical skills mentioned in free text, sorted.

    Single-token aliases must equal a token; multi-word or punctuated aliases
    ("power bi", "t-sql", "amazon web services") are searched in the
    normalized text on token boundaries.
    """
    taxonomy = taxonomy or get_default_taxonomy_provider()
    normalized = normalize_text(text)
    tokens = {_match_token(token).replace(" ", "") for token in _TOKEN_RE.findall(normalized)}
    found: set[str] = set()

    for canonical, aliases in taxonomy.aliases().items():
        for alias in aliases:
            if alias.replace(" ", "") in tokens:
                found.add(canonical)
                break
            if _is_phrase_alias(alias) and re.search(
                _PHRASE_LEFT + re.escape(alias) + _PHRASE_RIGHT, normalized
            ):
                found.add(canonical)
                break

    return sorted(found)


def parse_resume(resume: ResumeIn, taxonomy: TaxonomyProvider | None = None) -> ParsedResume:
    skills = extract_skills(resume.text, taxonomy)
    # Naive summary: the first N normalized tokens.
    limit = int(get_scoring_value("matching.summary_tokens", 40))
    tokens = tokenize(resume.text)
    summary = " ".join(tokens[:limit]) if tokens else None
    target_role = normalize_text(resume.target_role or "") or None
    return ParsedResume(skills=skills, summary=summary, target_role=target_role)


def parse_jd(jd: JDIn, taxonomy: TaxonomyProvider | None = None) -> ParsedJD:
    skills = extract_skills(jd.text, taxonomy)
    keywords = sorted(set(skills))
    return ParsedJD(title=jd.title, skills_required=skills, keywords=keywords)


def infer_role(resume: ParsedResume, taxonomy: TaxonomyProvider | None = None) -> str | None:
    taxonomy = taxonomy or get_default_taxonomy_provider()
    roles = taxonomy.roles()
    if resume.target_role and resume.target_role in roles:
        return resume.target_role
    if resume.summary:
        for role in roles:
            if role in resume.summary:
                return role
    return None


def _ratio(hit: int, total: int) -> float:
    return hit / max(1, total)


def match(request: MatchRequest, taxonomy: TaxonomyProvider | None = None) -> MatchResponse:
    taxonomy = taxonomy or get_default_taxonomy_provider()
    resume_skills = set(request.resume.skills)
    required = set(request.jd.skills_required)

    if not required:
        return MatchResponse(
            score=0.0,
            breakdown=MatchBreakdown(skill_overlap=0.0, keyword_coverage=0.0, role_priorities_hit=0),
            gaps=[],
            notes=["JD has no extracted skills"],
        )

    precision = int(get_scoring_value("matching.precision", 3))
    overlap_weight = float(get_scoring_value("matching.weights.skill_overlap", 0.7))
    keyword_weight = float(get_scoring_value("matching.weights.keyword_coverage", 0.3))

    overlap = _ratio(len(resume_skills & required), len(required))
    keywords = set(request.jd.keywords)
    keyword_coverage = _ratio(len(resume_skills & keywords), len(keywords))

    role = infer_role(request.resume, taxonomy)
    role_skills = set(taxonomy.role_core_skills(role))
    role_hits = len(resume_skills & role_skills)

    score = round(overlap_weight * overlap + keyword_weight * keyword_coverage, precision)
    gaps = sorted(required - resume_skills)

    notes: list[str] = []
    if gaps:
        max_listed = int(get_scoring_value("matching.max_gaps_in_note", 5))
        suffix = "…" if len(gaps) > max_listed else ""
        notes.append(f"Missing critical skills: {', '.join(gaps[:max_listed])}{suffix}")
    if role and role_hits > 0:
        notes.append(f"Hit {role_hits} role-priority skills for {role}")

    return MatchResponse(
        score=min(1.0, max(0.0, score)),
        breakdown=MatchBreakdown(
            skill_overlap=round(overlap, precision),
            keyword_coverage=round(keyword_coverage, precision),
            role_priorities_hit=role_hits,
        ),
        gaps=gaps,
        notes=notes,
    )


def recommendations(request: RecoRequest, taxonomy: TaxonomyProvider | None = None) -> RecoResponse:
    taxonomy = taxonomy or get_default_taxonomy_provider()
    certs: dict[str, list[str]] = {}
    projects: dict[str, list[str]] = {}
    for gap in request.gaps:
        key, canonical = taxonomy.normalize_skill(gap)
        if not key:
            continue
        # Aliases ("k8s") look up their canonical skill; results stay keyed by the gap as sent.
        lookup = canonical or key
        gap_certs = taxonomy.certifications_for(lookup)
        if gap_certs:
            certs[key] = gap_certs
        gap_projects = taxonomy.projects_for(lookup)
        if gap_projects:
            projects[key] = gap_projects
    return RecoResponse(certs=certs, projects=projects)
