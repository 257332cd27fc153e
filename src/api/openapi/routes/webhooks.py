"""Streaming provider webhook endpoint."""

from typing import Annotated

from fastapi import APIRouter, Header, Request

from src.api.dependencies import StatusReconcilerDep
from src.application.dtos.processing import WebhookOutcome

router = APIRouter()


@router.post(
    "/stream/webhook",
    response_model=WebhookOutcome,
    summary="Streaming provider webhook",
    description=(
        "Receives stream state notifications. When a webhook secret is "
        "configured the Webhook-Signature header must verify."
    ),
)
async def stream_webhook(
    request: Request,
    reconciler: StatusReconcilerDep,
    webhook_signature: Annotated[str | None, Header()] = None,
) -> WebhookOutcome:
    """Verify and apply a provider notification.

    The raw body is read directly because the signature covers the exact
    bytes sent.
    """
    body = await request.body()
    return await reconciler.handle_stream_webhook(body, webhook_signature)
