from __future__ import annotations

from .models import TextSection

SECTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Summary": (
        "summary", "profile", "objective", "about", "professional summary",
        "career objective", "personal statement", "overview", "introduction",
        "career summary", "executive summary", "professional profile",
    ),
    "Work Experience": (
        "experience", "employment", "work history", "professional experience",
        "career history", "work", "employment history", "professional background",
        "career", "positions", "roles", "job experience", "work experience",
    ),
    "Education": (
        "education", "academic", "degree", "university", "college",
        "qualifications", "academic background", "educational background",
        "schooling", "studies", "academic qualifications", "degrees",
        "academic history", "educational qualifications",
    ),
    "Skills": (
        "skills", "technical skills", "competencies", "technologies",
        "expertise", "abilities", "proficiencies", "technical competencies",
        "core competencies", "key skills", "technical expertise",
        "programming languages", "tools", "software",
    ),
    "Projects": (
        "projects", "portfolio", "notable projects", "personal projects",
        "key projects", "selected projects", "project experience",
        "project portfolio", "relevant projects", "major projects",
    ),
    "Certifications": (
        "certifications", "certificates", "credentials", "licenses",
        "professional certifications", "training", "courses",
        "professional development", "continuing education", "awards",
    ),
}

LATEX_SECTION_TITLES = {
    "Summary": "Professional Summary",
    "Work Experience": "Work Experience",
    "Education": "Education",
    "Skills": "Skills",
    "Projects": "Projects",
    "Certifications": "Certifications",
}

# Headings are short lines; a keyword inside a long sentence is body text.
MAX_HEADER_LENGTH = 50

LATEX_PREAMBLE = (
    "\\documentclass{article}\n"
    "\\usepackage[margin=1in]{geometry}\n"
    "\\usepackage{enumitem}\n"
    "\\usepackage{hyperref}\n"
    "\n"
    "\\begin{document}\n"
    "\n"
)

_LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}


def escape_latex(text: str) -> str:
    return "".join(_LATEX_SPECIALS.get(char, char) for char in text)


def _section_for_line(line: str) -> str | None:
    if len(line) >= MAX_HEADER_LENGTH:
        return None
    lower = line.lower()
    for name, keywords in SECTION_KEYWORDS.items():
        if any(keyword in lower for keyword in keywords):
            return name
    return None


def extract_sections_from_text(text: str) -> list[TextSection]:
    """Group plain resume text under the canonical headings it mentions.

    Lines before the first recognised heading are dropped, as are headings
    with no body.
    """
    lines = [line.strip() for line in (text or "").split("\n")]
    lines = [line for line in lines if line]

    sections: list[TextSection] = []
    current: str | None = None
    body: list[str] = []

    for line in lines:
        heading = _section_for_line(line)
        if heading:
            if current and body:
                sections.append(TextSection(name=current, content="\n".join(body).strip()))
            current = heading
            body = []
            continue
        if current:
            body.append(line)

    if current and body:
        sections.append(TextSection(name=current, content="\n".join(body).strip()))
    return sections


def convert_to_latex(sections: list[TextSection]) -> str:
    parts = [LATEX_PREAMBLE]
    for section in sections:
        title = LATEX_SECTION_TITLES.get(section.name, section.name)
        parts.append(
            f"% ===== {section.name.upper()} =====\n"
            f"\\section*{{{escape_latex(title)}}}\n"
            f"{escape_latex(section.content)}\n"
            "\n"
            "\\vspace{0.2cm}\n"
            "\n"
        )
    parts.append("\\end{document}")
    return "".join(parts)
