import os
import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Settings are read once at import time; point every data path at a scratch dir first.
_DATA_DIR = Path(tempfile.mkdtemp(prefix="resume-studio-tests-"))

os.environ.setdefault("STORE_PATH", str(_DATA_DIR / "db.json"))
os.environ.setdefault("PDF_OUTPUT_DIR", str(_DATA_DIR / "pdfs"))
os.environ.setdefault("UPLOAD_DIR", str(_DATA_DIR / "uploads"))
os.environ.setdefault("TEMP_DIR", str(_DATA_DIR / "temp"))
os.environ.setdefault("ANALYTICS_DB_PATH", str(_DATA_DIR / "analytics.db"))
os.environ.setdefault("ROUTE_RATE_LIMIT_DB_PATH", str(_DATA_DIR / "route_rate_limit.db"))
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("LATEX_COMPILER", "resume-studio-missing-pdflatex")
os.environ.setdefault("AI_PROVIDER", "gemini")
os.environ["GEMINI_API_KEY"] = ""
os.environ["GOOGLE_API_KEY"] = ""
os.environ["API_KEY"] = ""
