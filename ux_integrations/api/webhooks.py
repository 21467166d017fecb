"""Webhook API endpoints."""

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from typing import Optional
import logging

from ux_integrations.api.dependencies import (
    get_current_user,
    get_integration_service,
    get_webhook_service,
)
from ux_integrations.api.errors import http_error
from ux_integrations.integrations.base import IntegrationError
from ux_integrations.schemas import WebhookEvent, dump_log
from ux_integrations.services import IntegrationService, WebhookService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/webhook")
async def receive_webhook(
    event: WebhookEvent,
    request: Request,
    x_webhook_signature: Optional[str] = Header(None),
    service: WebhookService = Depends(get_webhook_service),
):
    """Receive an event pushed for an integration."""
    try:
        service.verify_request(x_webhook_signature, await request.body())
        await service.ingest(event)
    except IntegrationError as e:
        raise http_error(e) from e

    return {"success": True, "message": "Webhook processed successfully"}


@router.get("/webhook")
async def list_webhook_logs(
    integration_id: Optional[str] = Query(None, alias="integrationId"),
    limit: int = Query(50, ge=1, le=500),
    current_user=Depends(get_current_user),
    integration_service: IntegrationService = Depends(get_integration_service),
    service: WebhookService = Depends(get_webhook_service),
):
    """Most recent log entries of one of the caller's integrations."""
    if not integration_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Integration ID is required",
        )

    try:
        await integration_service.get_integration(integration_id, current_user["id"])
    except IntegrationError as e:
        raise http_error(e) from e

    logs = await service.list_logs(integration_id, limit)
    return {"logs": [dump_log(log) for log in logs]}
