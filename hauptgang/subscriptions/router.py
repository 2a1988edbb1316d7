"""
Subscription webhook endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Response, status

from . import schemas, service

router = APIRouter(prefix="/api/v1/webhooks")


async def verify_webhook_authorization(authorization: str | None = Header(default=None)) -> None:
    # Runs as a dependency so bad credentials are rejected before the body is validated.
    service.verify_authorization(authorization)


@router.post("/revenuecat", dependencies=[Depends(verify_webhook_authorization)])
async def revenuecat_webhook(payload: schemas.WebhookPayload) -> Response:
    await service.process_event(payload)
    return Response(status_code=status.HTTP_200_OK)
