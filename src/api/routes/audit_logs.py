"""
Audit log routes, mounted at /api/v1/audit-logs.

Any active user may read the entries they produced; the full trail needs
the view_audit_logs capability.
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import ActiveUser, AuditViewer, get_audit_service
from src.schemas.audit import AuditLogFilterParams, AuditLogResponse
from src.schemas.common import PaginatedResponse, PaginationMeta, PaginationParams
from src.services.audit_service import AuditService

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])

AuditLogPage = PaginatedResponse[AuditLogResponse]


async def _page(
    audit_service: AuditService,
    user_id: int | None,
    filters: AuditLogFilterParams,
    pagination: PaginationParams,
) -> AuditLogPage:
    logs, total = await audit_service.list_logs(
        user_id=user_id,
        action=filters.action,
        status=filters.status,
        start_date=filters.start_date,
        end_date=filters.end_date,
        offset=pagination.offset,
        limit=pagination.page_size,
    )
    return AuditLogPage(
        data=[AuditLogResponse.model_validate(log) for log in logs],
        meta=PaginationMeta.build(total, pagination),
    )


@router.get(
    "/users/me",
    response_model=AuditLogPage,
    summary="List own audit logs",
)
async def get_current_user_audit_logs(
    current_user: ActiveUser,
    pagination: PaginationParams = Depends(),
    filters: AuditLogFilterParams = Depends(),
    audit_service: AuditService = Depends(get_audit_service),
) -> AuditLogPage:
    """Entries where the caller is the actor. A ``user_id`` filter is ignored."""
    return await _page(audit_service, current_user.id, filters, pagination)


@router.get(
    "",
    response_model=AuditLogPage,
    summary="List all audit logs",
    responses={403: {"description": "Caller lacks view_audit_logs"}},
)
async def get_all_audit_logs(
    current_user: AuditViewer,
    pagination: PaginationParams = Depends(),
    filters: AuditLogFilterParams = Depends(),
    audit_service: AuditService = Depends(get_audit_service),
) -> AuditLogPage:
    """
    Every entry, newest first.

    Filters: user_id, action, status (SUCCESS/FAILURE), start_date and
    end_date (inclusive, ISO 8601).
    """
    return await _page(audit_service, filters.user_id, filters, pagination)
