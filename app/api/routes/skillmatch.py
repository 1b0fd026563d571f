from fastapi import APIRouter

from app.features import skill_match
from app.features.ats_check import ats_check
from app.schemas.skillmatch import (
    AnalyzeRequest,
    AnalyzeResponse,
    ATSRequest,
    ATSResponse,
    JDIn,
    MatchRequest,
    MatchResponse,
    ParsedJD,
    ParsedResume,
    RecoRequest,
    RecoResponse,
    ResumeIn,
)

router = APIRouter(prefix="/skillmatch")


@router.post("/parse/resume", response_model=ParsedResume)
def parse_resume(payload: ResumeIn):
    return skill_match.parse_resume(payload)


@router.post("/parse/jd", response_model=ParsedJD)
def parse_jd(payload: JDIn):
    return skill_match.parse_jd(payload)


@router.post("/match", response_model=MatchResponse)
def match(payload: MatchRequest):
    return skill_match.match(payload)


@router.post("/ats/check", response_model=ATSResponse)
def ats(payload: ATSRequest):
    return ats_check(payload)


@router.post("/recommendations", response_model=RecoResponse)
def recommendations(payload: RecoRequest):
    return skill_match.recommendations(payload)


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze(payload: AnalyzeRequest):
    resume = skill_match.parse_resume(ResumeIn(text=payload.resume_text, target_role=payload.target_role))
    jd = skill_match.parse_jd(JDIn(title=payload.job_title, text=payload.job_description))
    result = skill_match.match(MatchRequest(resume=resume, jd=jd))
    return AnalyzeResponse(
        resume=resume,
        jd=jd,
        match=result,
        ats=ats_check(ATSRequest(resume_text=payload.resume_text)),
        recommendations=skill_match.recommendations(RecoRequest(gaps=result.gaps)),
    )
