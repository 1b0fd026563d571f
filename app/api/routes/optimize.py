from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from app.api.deps import enforce_heavy_route_limit, raise_generation_http_error, read_upload
from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.security import gemini_api_key
from app.parsing.parse import DocumentParseError
from app.schemas.optimize import (
    BatchOptimizationRequest,
    BatchOptimizationResult,
    CertificateRecommendationsResult,
    CertificateRequest,
    ProjectIdeasRequest,
    ProjectIdeasResult,
)
from app.schemas.resume import UploadResumeResponse
from app.services import optimizer_service
from app.services.generation import GenerationError
from app.services.resume_import import ALLOWED_UPLOAD_EXTENSIONS, parse_resume_upload

router = APIRouter()


@router.post("/upload-resume", response_model=UploadResumeResponse)
async def upload_resume(request: Request, resume: UploadFile | None = File(default=None)):
    enforce_heavy_route_limit(request, "upload_resume", limit=10)
    if resume is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    filename = resume.filename or "resume"
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in ALLOWED_UPLOAD_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only PDF and DOCX files are allowed.",
        )

    content = await read_upload(resume, settings.max_upload_mb * 1024 * 1024)
    try:
        return parse_resume_upload(filename, content)
    except DocumentParseError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/batch-optimize", response_model=BatchOptimizationResult)
@rate_limit()
async def batch_optimize(
    request: Request,
    payload: BatchOptimizationRequest,
    api_key: str | None = Depends(gemini_api_key),
):
    _ = request
    try:
        return await optimizer_service.batch_optimize(payload.sections, payload.job_description, api_key=api_key)
    except GenerationError as exc:
        raise_generation_http_error(exc)


@router.post("/project-ideas", response_model=ProjectIdeasResult)
@rate_limit()
async def project_ideas(
    request: Request,
    payload: ProjectIdeasRequest,
    api_key: str | None = Depends(gemini_api_key),
):
    _ = request
    try:
        return await optimizer_service.generate_project_ideas(
            payload.job_description,
            payload.tech_stack,
            skill_gaps=payload.skill_gaps,
            api_key=api_key,
        )
    except GenerationError as exc:
        raise_generation_http_error(exc)


@router.post("/certificate-recommendations", response_model=CertificateRecommendationsResult)
@rate_limit()
async def certificate_recommendations(
    request: Request,
    payload: CertificateRequest,
    api_key: str | None = Depends(gemini_api_key),
):
    _ = request
    try:
        return await optimizer_service.generate_certificate_recommendations(
            payload.job_description,
            payload.skill_gaps,
            api_key=api_key,
        )
    except GenerationError as exc:
        raise_generation_http_error(exc)
