"""
Audit log endpoints.

Provides administrators with the audit trail of create, update,
delete and approval actions, filterable by user, object type, action
and date range.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from eventpros_api.app.core.security import ROLE_ADMIN, require_roles
from eventpros_api.app.schemas.common import Envelope
from eventpros_api.app.services.audit_service import AuditService

router = APIRouter()


@router.get("/logs", response_model=Envelope[List[dict]])
async def list_audit_logs(
    user_id: Optional[int] = Query(None, description="Filter by acting user ID"),
    object_type: Optional[str] = Query(None, description="Filter by object type (event, contractor, testimonial, etc.)"),
    action: Optional[str] = Query(None, description="Filter by action (create, update, delete, approve)"),
    start_date: Optional[str] = Query(None, description="Start date (ISO format) for filtering"),
    end_date: Optional[str] = Query(None, description="End date (ISO format) for filtering"),
    limit: int = Query(100, ge=1, le=500, description="Maximum number of logs to return"),
    offset: int = Query(0, ge=0, description="Number of logs to skip"),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> Dict[str, Any]:
    logs = await AuditService.list_logs(
        user_id=user_id,
        object_type=object_type,
        action=action,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return {"data": logs}
