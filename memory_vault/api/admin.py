"""
Owner-only activity log views.
"""

from fastapi import APIRouter, Depends, Request

from .deps import get_current_user, is_admin_user, log_activity, require_admin
from .schemas import ActivityListResponse, ActivityResponse, ActivityStatsResponse, AdminMeResponse
from ..core import dao
from ..core.config import get_admin_api_key, get_admin_owner_email
from ..core.schema import User

router = APIRouter()

MAX_ACTIVITY_LIMIT = 1000


@router.get("/me", response_model=AdminMeResponse)
def admin_me(user: User = Depends(get_current_user)):
    configured = bool(get_admin_api_key()) and bool(get_admin_owner_email())
    is_admin = configured and is_admin_user(user)
    return AdminMeResponse(
        is_admin=is_admin,
        current_email=user.email,
        owner_email=get_admin_owner_email() if is_admin else None,
    )


@router.get("/activities", response_model=ActivityListResponse)
def admin_activities(request: Request, limit: int = 100, user: User = Depends(require_admin)):
    limit = max(1, min(limit, MAX_ACTIVITY_LIMIT))
    activities = dao.list_activities(limit)

    log_activity(request, "admin_activities_view", user, details={"limit": limit})
    return ActivityListResponse(
        count=len(activities),
        data=[
            ActivityResponse(
                id=a.id,
                timestamp=a.timestamp,
                action=a.action,
                email=a.email,
                user_id=a.user_id,
                method=a.method,
                path=a.path,
                ip=a.ip,
                details=a.details,
            )
            for a in activities
        ],
    )


@router.get("/stats", response_model=ActivityStatsResponse)
def admin_stats(user: User = Depends(require_admin)):
    stats = dao.get_activity_stats()
    return ActivityStatsResponse(
        total_activities=stats.total,
        by_action=stats.by_action,
        latest=stats.latest,
    )
