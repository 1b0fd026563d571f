import asyncio
import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse, JSONResponse

from app.api.deps import enforce_heavy_route_limit, load_owned_resume, raise_generation_http_error
from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.resume_store import JsonFileStore, get_store
from app.core.security import current_user_id, gemini_api_key
from app.latex import compile_latex, extract_sections, update_section
from app.schemas.optimize import (
    ApplyOptimizationRequest,
    FullOptimizationRequest,
    FullOptimizationResult,
    OptimizationRequest,
    OptimizationResult,
)
from app.schemas.resume import (
    CompileResponse,
    OptimizationRecord,
    Resume,
    ResumeCreateRequest,
    ResumeUpdateRequest,
)
from app.services import optimizer_service
from app.services.cleanup import cleanup_resume_files
from app.services.generation import GenerationError

logger = logging.getLogger(__name__)

router = APIRouter()


def _pdf_file(resume: Resume) -> Path:
    if not resume.pdf_url:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PDF not compiled yet")
    path = Path(settings.pdf_output_dir) / Path(resume.pdf_url).name
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PDF not found")
    return path


@router.get("/resumes", response_model=list[Resume])
def list_resumes(
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    return store.list_resumes(user_id)


@router.get("/resumes/{resume_id}", response_model=Resume)
def get_resume(
    resume_id: str,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    return load_owned_resume(store, resume_id, user_id)


@router.post("/resumes", response_model=Resume)
def create_resume(
    payload: ResumeCreateRequest,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    if not payload.name.strip() or not payload.latex_content.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name and LaTeX content are required")
    return store.create_resume(
        user_id=user_id,
        name=payload.name.strip(),
        latex_content=payload.latex_content,
        sections=extract_sections(payload.latex_content),
        template=payload.template,
    )


@router.put("/resumes/{resume_id}", response_model=Resume)
def update_resume(
    resume_id: str,
    payload: ResumeUpdateRequest,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    if not payload.latex_content.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="LaTeX content is required")
    load_owned_resume(store, resume_id, user_id)
    changes = {
        "latex_content": payload.latex_content,
        "sections": extract_sections(payload.latex_content),
    }
    if payload.name and payload.name.strip():
        changes["name"] = payload.name.strip()
    return store.update_resume(resume_id, **changes)


@router.delete("/resumes/{resume_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resume(
    resume_id: str,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    load_owned_resume(store, resume_id, user_id)
    store.delete_resume(resume_id)
    cleanup_resume_files(resume_id)


@router.post("/resumes/{resume_id}/compile", response_model=CompileResponse)
async def compile_resume(
    request: Request,
    resume_id: str,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    enforce_heavy_route_limit(request, "resume_compile", limit=20)
    resume = load_owned_resume(store, resume_id, user_id)
    result = await asyncio.to_thread(compile_latex, resume.latex_content, resume.id)

    if not result.success:
        body = CompileResponse(
            success=False,
            error=result.error,
            error_line=result.error_line,
            error_message=result.error_message,
            logs=result.logs,
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())

    store.update_resume(resume_id, pdf_url=result.public_url)
    return CompileResponse(success=True, pdf_url=result.public_url)


@router.get("/resumes/{resume_id}/preview")
def preview_resume(
    resume_id: str,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    resume = load_owned_resume(store, resume_id, user_id)
    return FileResponse(
        _pdf_file(resume),
        media_type="application/pdf",
        headers={"Cache-Control": "no-cache", "Content-Disposition": "inline"},
    )


@router.get("/resumes/{resume_id}/download")
def download_resume(
    resume_id: str,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    resume = load_owned_resume(store, resume_id, user_id)
    return FileResponse(_pdf_file(resume), media_type="application/pdf", filename=f"{resume.name}.pdf")


@router.post("/resumes/{resume_id}/optimize-section", response_model=OptimizationResult)
@rate_limit()
async def optimize_section(
    request: Request,
    resume_id: str,
    payload: OptimizationRequest,
    user_id: str = Depends(current_user_id),
    api_key: str | None = Depends(gemini_api_key),
    store: JsonFileStore = Depends(get_store),
):
    _ = request
    load_owned_resume(store, resume_id, user_id)
    try:
        result = await optimizer_service.optimize_section(
            payload.section,
            payload.current_content,
            payload.job_description,
            additional_details=payload.additional_details,
            api_key=api_key,
        )
    except GenerationError as exc:
        raise_generation_http_error(exc)

    store.save_optimization(
        resume_id=resume_id,
        section_name=payload.section,
        original_content=payload.current_content,
        optimized_content=result.optimized_content,
        job_description=payload.job_description,
        additional_details=payload.additional_details,
    )
    return result


@router.post("/resumes/{resume_id}/apply-optimization", response_model=Resume)
def apply_optimization(
    resume_id: str,
    payload: ApplyOptimizationRequest,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    resume = load_owned_resume(store, resume_id, user_id)
    updated_latex = update_section(resume.latex_content, payload.section_name, payload.optimized_content)
    return store.update_resume(
        resume_id,
        latex_content=updated_latex,
        sections=extract_sections(updated_latex),
    )


@router.post("/resumes/{resume_id}/optimize-full", response_model=FullOptimizationResult)
@rate_limit()
async def optimize_full(
    request: Request,
    resume_id: str,
    payload: FullOptimizationRequest,
    user_id: str = Depends(current_user_id),
    api_key: str | None = Depends(gemini_api_key),
    store: JsonFileStore = Depends(get_store),
):
    _ = request
    resume = load_owned_resume(store, resume_id, user_id)
    try:
        return await optimizer_service.optimize_full_resume(
            resume.latex_content,
            payload.job_description,
            api_key=api_key,
        )
    except GenerationError as exc:
        raise_generation_http_error(exc)


@router.get("/resumes/{resume_id}/optimization-history", response_model=list[OptimizationRecord])
def optimization_history(
    resume_id: str,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    load_owned_resume(store, resume_id, user_id)
    return store.get_optimization_history(resume_id)
