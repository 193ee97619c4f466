"""
api/routes/admin.py -- User management (admin only).

Routes:
  GET /api/admin/users -- list all accounts, password hashes stripped

Every route on this router requires the admin role. A missing or invalid
token is rejected with 401 by get_current_user before the role is checked.
"""

from fastapi import APIRouter, Depends, Request

from api.models import UserResponse
from auth.dependencies import require_admin
from auth.store import UserStore

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/admin/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    """List all user accounts in creation order."""
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_domain(u) for u in user_store.list_users()]
