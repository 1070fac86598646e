# hardware_store/routers/admin_stats.py
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from hardware_store.core.auth import require_admin
from hardware_store.core.config import get_settings
from hardware_store.database import get_session
from hardware_store.repositories.product_repo import ProductRepository
from hardware_store.repositories.stats_repo import StatsRepository
from hardware_store.schemas.stats import AdminDashboardStats, SalesReportRead
from hardware_store.services.stats_service import StatsService

router = APIRouter(prefix="/admin", tags=["Admin Stats"])

repo = StatsRepository()
product_repo = ProductRepository()
service = StatsService(
    repo,
    product_repo,
    tz=ZoneInfo(get_settings().REPORT_TIMEZONE),
)


@router.get(
    "/stats",
    response_model=AdminDashboardStats,
    dependencies=[Depends(require_admin)],
)
def get_admin_dashboard_stats(
    session: Session = Depends(get_session),
):
    """
    Counters for the admin dashboard: totals, today's orders and revenue,
    pending queue and the latest orders.

    Only accessible to users with role='admin'.
    """
    return service.get_admin_dashboard_stats(session=session)


@router.get(
    "/reports/sales",
    response_model=SalesReportRead,
    dependencies=[Depends(require_admin)],
)
def get_sales_report(
    days: int = Query(default=30, ge=1, le=366),
    session: Session = Depends(get_session),
):
    """
    Sales report for the last `days` calendar days (1-366, default 30),
    compared with the period before it.

    Only accessible to users with role='admin'.
    """
    return service.get_sales_report(session=session, days=days)
