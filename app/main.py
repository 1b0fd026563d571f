import json
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk
import uvicorn

from app.api.routes.health import router as health_router
from app.api.routes.resumes import router as resumes_router
from app.api.routes.latex import router as latex_router
from app.api.routes.optimize import router as optimize_router
from app.api.routes.skillmatch import router as skillmatch_router
from app.api.routes.chat import router as chat_router
from app.api.routes.analytics import router as analytics_router
from app.core.cors import cors_allow_credentials, cors_allow_origin_regex, cors_allowed_origins
from app.core.rate_limit import limiter
from app.core.config import settings
from dotenv import load_dotenv
from app.core.lifespan import lifespan

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

logger = logging.getLogger("app.http")

app = FastAPI(title="Resume Studio API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allowed_origins(),
    allow_origin_regex=cors_allow_origin_regex(),
    allow_credentials=cors_allow_credentials(),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    if not request.url.path.startswith("/api"):
        return await call_next(request)
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        json.dumps(
            {
                "event": "api_request",
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": int((time.perf_counter() - started) * 1000),
            }
        )
    )
    return response


app.include_router(health_router, prefix="/api", tags=["Health"])
app.include_router(resumes_router, prefix="/api", tags=["Resumes"])
app.include_router(latex_router, prefix="/api", tags=["LaTeX"])
app.include_router(optimize_router, prefix="/api", tags=["Optimize"])
app.include_router(skillmatch_router, prefix="/api", tags=["Skill Match"])
app.include_router(chat_router, prefix="/api", tags=["Chat"])
app.include_router(analytics_router, prefix="/api", tags=["Analytics"])


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
