"""
api/routes/dashboard.py -- Aggregated metrics endpoint for the dashboard widgets.

Returns a single payload:
  activeUsers    -- simulated placeholder (Settings.simulated_active_users)
  failedLogins   -- failed activity logs in the last 24 hours
  securityEvents -- security events recorded in the last 24 hours
  uptime         -- simulated placeholder (Settings.simulated_uptime)

This is a read-only aggregate route -- no mutations here.
"""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request

from api.models import DashboardMetricsResponse
from audit.store import AuditStore
from auth.dependencies import get_current_user
from core.config import get_settings

# Auth policy:
# - GET /api/dashboard/metrics: requires auth -- audit counts are internal data
# Router-level dependency enforces auth; the single handler does not repeat it.
router = APIRouter(dependencies=[Depends(get_current_user)])

_WINDOW = timedelta(hours=24)


@router.get("/dashboard/metrics", response_model=DashboardMetricsResponse)
def get_metrics(request: Request) -> DashboardMetricsResponse:
    """Return the four dashboard counters."""
    settings = get_settings()
    audit: AuditStore = request.app.state.audit_store
    since = datetime.now(timezone.utc) - _WINDOW

    return DashboardMetricsResponse(
        active_users=settings.simulated_active_users,
        failed_logins=audit.count_failed_logins(since),
        security_events=audit.count_security_events(since),
        uptime=settings.simulated_uptime,
    )
