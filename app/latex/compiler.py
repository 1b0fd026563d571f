"""
LaTeX compilation.

Shells out to ``pdflatex`` and scrapes its log for the first error. When the
compiler binary is not installed (local development, slim containers) a
placeholder PDF is written instead so the rest of the editor keeps working.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import subprocess
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from app.core.config import settings
from app.services.cleanup import cleanup_directory

logger = logging.getLogger(__name__)

# Intermediate files removed after a successful run; only .tex and .pdf are kept.
LATEX_ARTIFACTS = (".aux", ".log", ".out", ".toc", ".lof", ".lot")
MOCK_PDF_LOG = "Mock PDF generated for development (LaTeX not installed)"

_JOB_ID_RE = re.compile(r"[^A-Za-z0-9_-]")
_LINE_MARKER_RE = re.compile(r"^l\.(\d+)\s*(.*)")
_FILE_LINE_ERROR_RE = re.compile(r"\.tex:(\d+):\s*(.+)")
_LINE_HINT_RE = re.compile(r"line\s+(\d+)", re.IGNORECASE)
# How far below a "! message" line pdflatex prints the "l.NNN" marker.
_LINE_MARKER_LOOKAHEAD = 15


def _build_placeholder_pdf() -> bytes:
    stream = b"BT\n/F1 12 Tf\n72 720 Td\n(Resume PDF - LaTeX Compilation) Tj\nET"
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length " + str(len(stream)).encode("ascii") + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets: list[int] = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode("ascii") + body + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode("ascii")
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode("ascii")
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode("ascii")
    return bytes(out)


MOCK_PDF_BYTES = _build_placeholder_pdf()


@dataclass
class CompilationResult:
    """
    Outcome of a single compile.

    Attributes:
        success: Whether a PDF was produced
        pdf_path: Filesystem path of the PDF (None if failed)
        public_url: HTTP path the PDF is served from
        error: Short error for the client
        logs: Combined compiler output
        error_line: Source line reported by the compiler, when found
        error_message: Parsed compiler message
    """

    success: bool
    pdf_path: Path | None = None
    public_url: str | None = None
    error: str | None = None
    logs: str = ""
    error_line: int | None = None
    error_message: str | None = None


def parse_latex_error(logs: str) -> tuple[int | None, str]:
    """Recover ``(line, message)`` from pdflatex output.

    Recognizes ``! message`` followed by an ``l.NNN context`` marker,
    ``-file-line-error`` style ``file.tex:NNN: message`` lines and loose
    ``line NNN`` hints. Falls back to a generic message.
    """
    lines = logs.split("\n")
    message: str | None = None
    line_no: int | None = None

    for index, line in enumerate(lines):
        if line.startswith("! "):
            message = line[2:].strip()
            for follow in lines[index + 1 : index + _LINE_MARKER_LOOKAHEAD]:
                marker = _LINE_MARKER_RE.match(follow)
                if marker:
                    line_no = int(marker.group(1))
                    context = marker.group(2).strip()
                    if context and context not in message:
                        message = f"{message}: {context}"
                    break
            if message:
                break

        file_error = _FILE_LINE_ERROR_RE.search(line)
        if file_error:
            line_no = int(file_error.group(1))
            message = file_error.group(2).strip()
            break

        hint = _LINE_HINT_RE.search(line)
        if hint and line_no is None:
            line_no = int(hint.group(1))

    if not message:
        if "Emergency stop" in logs:
            message = "LaTeX compilation stopped due to errors"
        elif "Fatal error" in logs:
            message = "Fatal LaTeX error occurred"
        else:
            message = "LaTeX compilation failed"

    return line_no, message


def _safe_job_id(job_id: str | None) -> str:
    cleaned = _JOB_ID_RE.sub("", job_id or "")
    return cleaned or f"temp-{uuid.uuid4()}"


def _remove_artifacts(output_dir: Path, job_id: str) -> None:
    for ext in LATEX_ARTIFACTS:
        (output_dir / f"{job_id}{ext}").unlink(missing_ok=True)


def compiler_available(compiler: str | None = None) -> bool:
    return shutil.which(compiler or settings.latex_compiler) is not None


def compile_latex(
    latex_content: str,
    job_id: str | None = None,
    *,
    output_dir: str | Path | None = None,
    compiler: str | None = None,
    timeout_s: int | None = None,
) -> CompilationResult:
    """
    Compile LaTeX source to ``<output_dir>/<job_id>.pdf``.

    Args:
        latex_content: Full document source
        job_id: Resume id; a ``temp-<uuid>`` id is generated when omitted
        output_dir: Defaults to PDF_OUTPUT_DIR
        compiler: Defaults to LATEX_COMPILER
        timeout_s: Defaults to LATEX_TIMEOUT_S

    Returns:
        CompilationResult; never raises for compiler or filesystem failures
    """
    started = time.perf_counter()
    job = _safe_job_id(job_id)
    out_dir = Path(output_dir or settings.pdf_output_dir)
    binary = compiler or settings.latex_compiler
    tex_file = out_dir / f"{job}.tex"
    pdf_file = out_dir / f"{job}.pdf"
    public_url = f"/api/pdfs/{job}.pdf"

    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        cleanup_directory(out_dir, max_age_s=settings.cleanup_max_age_s)
        tex_file.write_text(latex_content, encoding="utf-8")

        if not compiler_available(binary):
            logger.info("LaTeX not available, creating mock PDF for development")
            pdf_file.write_bytes(MOCK_PDF_BYTES)
            return CompilationResult(success=True, pdf_path=pdf_file, public_url=public_url, logs=MOCK_PDF_LOG)

        # A stale PDF from a previous run would mask a failed compile.
        pdf_file.unlink(missing_ok=True)
        cmd = [
            binary,
            "-interaction=nonstopmode",
            f"-output-directory={out_dir.resolve()}",
            str(tex_file.resolve()),
        ]
        timed_out = False
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout_s or settings.latex_timeout_s,
            )
            stdout, stderr = proc.stdout or "", proc.stderr or ""
        except subprocess.TimeoutExpired as exc:
            stdout = exc.stdout.decode("utf-8", "replace") if isinstance(exc.stdout, bytes) else (exc.stdout or "")
            stderr = "LaTeX compilation timed out"
            timed_out = True
            # A PDF left behind by an interrupted run is incomplete.
            pdf_file.unlink(missing_ok=True)

        if not timed_out and pdf_file.exists():
            _remove_artifacts(out_dir, job)
            logger.info(
                json.dumps(
                    {
                        "event": "latex_compile",
                        "job_id": job,
                        "success": True,
                        "duration_ms": int((time.perf_counter() - started) * 1000),
                    }
                )
            )
            return CompilationResult(success=True, pdf_path=pdf_file, public_url=public_url, logs=stdout)

        logs = stdout + stderr
        error_line, error_message = parse_latex_error(logs)
        tex_file.unlink(missing_ok=True)
        _remove_artifacts(out_dir, job)
        logger.info(
            json.dumps(
                {
                    "event": "latex_compile",
                    "job_id": job,
                    "success": False,
                    "error_line": error_line,
                    "duration_ms": int((time.perf_counter() - started) * 1000),
                }
            )
        )
        return CompilationResult(
            success=False,
            error=error_message or "PDF generation failed",
            logs=logs,
            error_line=error_line,
            error_message=error_message,
        )
    except OSError as exc:
        logger.warning("latex_compile_failed job_id=%s: %s", job, exc)
        return CompilationResult(success=False, error=f"Compilation error: {exc}", logs=str(exc))
