from .compiler import MOCK_PDF_BYTES, CompilationResult, compile_latex, parse_latex_error
from .sections import extract_sections, update_section

__all__ = [
    "MOCK_PDF_BYTES",
    "CompilationResult",
    "compile_latex",
    "parse_latex_error",
    "extract_sections",
    "update_section",
]
