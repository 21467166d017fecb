"""Integration management API endpoints."""

from fastapi import APIRouter, HTTPException, status, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from typing import Optional
import logging
import re

from ux_integrations.api.dependencies import (
    get_current_user,
    get_integration_service,
    get_sync_service,
    verify_scheduler_key,
)
from ux_integrations.api.errors import http_error
from ux_integrations.integrations.base import IntegrationError
from ux_integrations.models import IntegrationType, IntegrationStatus
from ux_integrations.schemas import (
    IntegrationCreate,
    IntegrationUpdate,
    IntegrationTestRequest,
    ScheduledSyncRequest,
    dump,
    dump_all,
)
from ux_integrations.services import IntegrationService, SyncService
from ux_integrations.utils.dates import today

logger = logging.getLogger(__name__)
router = APIRouter()


# Scheduler entry points

@router.post("/scheduled-sync", dependencies=[Depends(verify_scheduler_key)])
async def run_scheduled_sync(
    request: ScheduledSyncRequest,
    sync_service: SyncService = Depends(get_sync_service),
):
    """Sync a batch of integrations; individual failures are reported per item."""
    results = await sync_service.sync_batch(request.integration_ids, force=request.force)
    return {
        "success": True,
        "message": "Scheduled sync completed",
        "results": results,
    }


@router.get("/scheduled-sync", dependencies=[Depends(verify_scheduler_key)])
async def list_sync_candidates(
    status_filter: Optional[IntegrationStatus] = Query(None, alias="status"),
    integration_type: Optional[IntegrationType] = Query(None, alias="type"),
    limit: int = Query(50, ge=1, le=500),
    sync_service: SyncService = Depends(get_sync_service),
):
    """Integrations the scheduler may sync next, least recently synced first."""
    candidates = await sync_service.list_sync_candidates(status_filter, integration_type, limit)
    return {
        "integrations": [
            {
                "id": integration.id,
                "type": integration.integration_type.value,
                "name": integration.name,
                "status": integration.status.value,
                "lastSync": integration.last_sync_at,
                "updatedAt": integration.updated_at,
            }
            for integration in candidates.integrations
        ],
        "total": len(candidates.integrations),
        "readyForSync": candidates.ready_for_sync,
    }


@router.post("/test")
async def test_integration(
    request: IntegrationTestRequest,
    current_user=Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """Test a configuration without saving it."""
    try:
        result = await service.test_configuration(request.integration_type, request.config)
    except IntegrationError as e:
        raise http_error(e) from e

    body = jsonable_encoder(result.to_dict())
    if not result.success:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)
    return body


# CRUD

@router.get("/")
async def list_integrations(
    integration_type: Optional[IntegrationType] = Query(None, alias="type"),
    status_filter: Optional[IntegrationStatus] = Query(None, alias="status"),
    current_user=Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """List user's integrations."""
    integrations = await service.list_integrations(current_user["id"], integration_type, status_filter)
    return {"integrations": dump_all(integrations)}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_integration(
    integration: IntegrationCreate,
    current_user=Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """Create a new integration."""
    try:
        created = await service.create_integration(current_user["id"], integration)
    except IntegrationError as e:
        raise http_error(e) from e

    return {"message": "Integration created successfully", "integration": dump(created)}


@router.get("/{integration_id}")
async def get_integration(
    integration_id: str,
    current_user=Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """Get integration details."""
    try:
        integration = await service.get_integration(integration_id, current_user["id"])
    except IntegrationError as e:
        raise http_error(e) from e

    return {"integration": dump(integration)}


@router.put("/{integration_id}")
async def update_integration(
    integration_id: str,
    update: IntegrationUpdate,
    current_user=Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """Update an integration."""
    try:
        integration = await service.update_integration(integration_id, current_user["id"], update)
    except IntegrationError as e:
        raise http_error(e) from e

    return {"message": "Integration updated successfully", "integration": dump(integration)}


@router.delete("/{integration_id}")
async def delete_integration(
    integration_id: str,
    current_user=Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """Delete an integration with its project links and logs."""
    try:
        await service.delete_integration(integration_id, current_user["id"])
    except IntegrationError as e:
        raise http_error(e) from e

    return {"message": "Integration deleted successfully"}


# Sync

@router.post("/{integration_id}/sync")
async def sync_integration(
    integration_id: str,
    force: bool = Query(False),
    current_user=Depends(get_current_user),
    sync_service: SyncService = Depends(get_sync_service),
):
    """Sync one integration now."""
    try:
        result = await sync_service.request_sync(integration_id, current_user["id"], force=force)
    except IntegrationError as e:
        raise http_error(e) from e

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"success": False, "message": result.message, "error": result.error},
        )

    return jsonable_encoder({
        "success": True,
        "message": result.message,
        "data": result.data,
        "dataPoints": result.data_points,
        "lastSync": result.last_sync,
    })


@router.get("/{integration_id}/sync")
async def get_sync_status(
    integration_id: str,
    current_user=Depends(get_current_user),
    sync_service: SyncService = Depends(get_sync_service),
):
    """Get the sync status of an integration."""
    try:
        return await sync_service.get_sync_status(integration_id, current_user["id"])
    except IntegrationError as e:
        raise http_error(e) from e


# Export

@router.get("/{integration_id}/export")
async def export_integration(
    integration_id: str,
    current_user=Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """Download the integration, its recent logs and current data as JSON."""
    try:
        export = await service.export_integration(integration_id, current_user["id"])
    except IntegrationError as e:
        raise http_error(e) from e

    name = re.sub(r"[^A-Za-z0-9._-]+", "-", export["integration"]["name"]).strip("-") or "integration"
    filename = f"{name}-export-{today().isoformat()}.json"
    return JSONResponse(
        content=jsonable_encoder(export),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
