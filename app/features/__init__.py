from .ats_check import ats_check
from .skill_match import extract_skills, infer_role, match, parse_jd, parse_resume, recommendations

__all__ = [
    "ats_check",
    "extract_skills",
    "infer_role",
    "match",
    "parse_jd",
    "parse_resume",
    "recommendations",
]
