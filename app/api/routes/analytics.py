from fastapi import APIRouter, Depends

from app.analytics import db as analytics_db
from app.core.security import require_admin

router = APIRouter()


@router.get("/analytics/summary")
def summary(_: None = Depends(require_admin)):
    return analytics_db.get_summary()
