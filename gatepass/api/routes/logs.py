# =======================================================================================
# gatepass/api/routes/logs.py - Access Log Endpoints
# =======================================================================================
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import ValidationError
from ...models.enums import AccessAction
from ...models.schemas import FacilitiesResponse, LogFilters, LogsResponse, PurgeResponse
from ...services.audit_log import CSV_MEDIA_TYPE, AuditLogStore, export_filename
from ...utils.exceptions import PersistenceError
from ..dependencies import get_store, http_error

router = APIRouter()


def get_filters(
    text: Optional[str] = Query(None, alias="q", description="Request number, requester, gate or guard"),
    facility: Optional[str] = Query(None),
    action: Optional[AccessAction] = Query(None),
    from_: Optional[str] = Query(None, alias="from", description="Earliest timestamp (inclusive)"),
    to: Optional[str] = Query(
        None,
        description=(
            "Latest timestamp (inclusive). A date-only value covers that whole day, "
            "through 23:59:59.999999, rather than stopping at its midnight"
        ),
    ),
) -> LogFilters:
    try:
        return LogFilters(text=text, facility=facility, action=action, from_=from_, to=to)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid log filter: {e.errors()[0]['msg']}")


@router.get("/logs", response_model=LogsResponse)
def get_logs(filters: LogFilters = Depends(get_filters), store: AuditLogStore = Depends(get_store)):
    try:
        return LogsResponse(logs=store.query(filters))
    except PersistenceError as e:
        raise http_error(e)


@router.get("/logs/facilities", response_model=FacilitiesResponse)
def get_facilities(store: AuditLogStore = Depends(get_store)):
    try:
        return FacilitiesResponse(facilities=sorted(store.list_facilities()))
    except PersistenceError as e:
        raise http_error(e)


@router.get("/logs/export")
def export_logs(filters: LogFilters = Depends(get_filters), store: AuditLogStore = Depends(get_store)):
    """Download the filtered log as CSV."""
    try:
        body = store.export_csv(store.query(filters))
    except PersistenceError as e:
        raise http_error(e)
    return Response(
        content=body,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.delete("/logs", response_model=PurgeResponse)
def purge_logs(
    confirm: bool = Query(False, description="Must be true; purging cannot be undone"),
    store: AuditLogStore = Depends(get_store),
):
    if not confirm:
        raise HTTPException(status_code=400, detail="Purge requires confirm=true")
    try:
        return PurgeResponse(removed=store.purge())
    except PersistenceError as e:
        raise http_error(e)
