"""
Rail Complaint Desk - Admin Dashboard Router
Aggregate counters and chart breakdowns; read-only.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import AuthContext, authenticate, authorize
from ..models.db_models import AccountRole
from ..responses import success_response
from ..services.dashboard import MetricsAggregator

router = APIRouter(prefix="/admin/dashboard", tags=["dashboard"])


@router.get("/metrics")
def get_dashboard_metrics(
    db: Session = Depends(get_db),
    context: AuthContext = Depends(authenticate),
):
    """
    Complaint totals, per-status counts, rolling 7/30 day counts,
    average resolution time (hours) and resolution rate (%).
    """
    authorize(context, AccountRole.ADMIN)
    return success_response(MetricsAggregator(db).metrics())


@router.get("/charts")
def get_dashboard_charts(
    db: Session = Depends(get_db),
    context: AuthContext = Depends(authenticate),
):
    """
    Breakdowns by category, status and priority, daily counts for the
    last 30 days, and average resolution hours per category.
    """
    authorize(context, AccountRole.ADMIN)
    return success_response(MetricsAggregator(db).charts())
