"""
api/routes/audit.py -- Activity log and security event listings.

Routes (in registration order -- /security-events/unresolved must come before
any future /security-events/{id} route to avoid path capture):
  GET /api/activity-logs?limit&offset      -- any authenticated user
  GET /api/security-events?limit           -- any authenticated user
  GET /api/security-events/unresolved      -- admin only

All listings are newest first. Out-of-range limit/offset values are rejected
with 400 rather than clamped, so a response size is always exactly bounded by
what the client asked for.
"""

from fastapi import APIRouter, Depends, Query, Request

from api.models import ActivityLogResponse, SecurityEventResponse
from audit.store import AuditStore
from auth.dependencies import get_current_user, require_admin

# Auth policy:
# - GET /api/activity-logs:               requires auth (router-level)
# - GET /api/security-events:             requires auth (router-level)
# - GET /api/security-events/unresolved:  requires admin (require_admin)
router = APIRouter(dependencies=[Depends(get_current_user)])

_MAX_LIMIT = 500


@router.get("/activity-logs", response_model=list[ActivityLogResponse])
def list_activity_logs(
    request: Request,
    limit: int = Query(20, ge=1, le=_MAX_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[ActivityLogResponse]:
    audit: AuditStore = request.app.state.audit_store
    return [ActivityLogResponse.from_domain(r) for r in audit.list_activity(limit=limit, offset=offset)]


@router.get("/security-events", response_model=list[SecurityEventResponse])
def list_security_events(
    request: Request,
    limit: int = Query(10, ge=1, le=_MAX_LIMIT),
) -> list[SecurityEventResponse]:
    audit: AuditStore = request.app.state.audit_store
    return [SecurityEventResponse.from_domain(e) for e in audit.list_security_events(limit=limit)]


@router.get(
    "/security-events/unresolved",
    response_model=list[SecurityEventResponse],
    dependencies=[Depends(require_admin)],
)
def list_unresolved_security_events(request: Request) -> list[SecurityEventResponse]:
    """Unresolved events only -- the admin triage queue."""
    audit: AuditStore = request.app.state.audit_store
    return [SecurityEventResponse.from_domain(e) for e in audit.list_unresolved_security_events()]
