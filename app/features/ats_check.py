from __future__ import annotations

import re

from app.core.scoring import get_scoring_value
from app.schemas.skillmatch import ATSRequest, ATSResponse

from .skill_match import normalize_text

_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.[a-z]{2,}", re.IGNORECASE)
_PHONE_RE = re.compile(r"\+?\d[\d\s\-()]{7,}")
_DEFAULT_HEADERS = ("experience", "education", "projects", "skills")


def ats_check(request: ATSRequest) -> ATSResponse:
    issues: list[str] = []
    passes: list[str] = []
    text = request.resume_text or ""

    if "\t" in text:
        issues.append("Tabs detected – use spaces for consistent parsing")
    else:
        passes.append("No tabs detected")

    max_len = int(get_scoring_value("ats.max_line_length", 180))
    long_lines = [line for line in text.split("\n") if len(line) > max_len]
    if long_lines:
        issues.append(f"{len(long_lines)} lines exceed {max_len} characters – consider shorter bullets")
    else:
        passes.append("No overlong lines detected")

    if _EMAIL_RE.search(text):
        passes.append("Email detected")
    else:
        issues.append("Email address not detected")

    if _PHONE_RE.search(text):
        passes.append("Phone detected")
    else:
        issues.append("Phone number not detected")

    expected = [str(h).lower() for h in (get_scoring_value("ats.expected_headers") or _DEFAULT_HEADERS)]
    normalized = normalize_text(text)
    missing = [header for header in expected if header not in normalized]
    if missing:
        issues.append(f"Missing common section headers: {', '.join(missing)}")
    else:
        passes.append("All common section headers present")

    return ATSResponse(issues=issues, passed_checks=passes)
