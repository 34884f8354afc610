from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from physiotrack.db.session import get_db
from physiotrack.schemas.dashboard import DashboardStatsOut
from physiotrack.services.dashboard import compute_dashboard_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsOut)
def dashboard_stats(db: Session = Depends(get_db)):
    return compute_dashboard_stats(db)
