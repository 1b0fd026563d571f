import asyncio
import re
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import FileResponse, JSONResponse

from app.api.deps import enforce_heavy_route_limit
from app.core.config import settings
from app.latex import compile_latex
from app.schemas.resume import CompileResponse, LatexCompileRequest

router = APIRouter()

_PDF_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+\.pdf$")


@router.post("/latex/compile", response_model=CompileResponse)
async def compile_source(request: Request, payload: LatexCompileRequest):
    """Compile ad-hoc LaTeX (e.g. from the quick-update page) under a throwaway job id."""
    enforce_heavy_route_limit(request, "latex_compile", limit=20)
    result = await asyncio.to_thread(compile_latex, payload.latex_content)
    if not result.success:
        body = CompileResponse(
            success=False,
            error=result.error,
            error_line=result.error_line,
            error_message=result.error_message,
            logs=result.logs,
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())
    return CompileResponse(success=True, pdf_url=result.public_url)


@router.get("/pdfs/{filename}")
def serve_pdf(filename: str):
    if not _PDF_NAME_RE.match(filename):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PDF not found")
    path = Path(settings.pdf_output_dir) / filename
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PDF not found")
    return FileResponse(path, media_type="application/pdf", headers={"Cache-Control": "no-cache"})
