import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.config import settings
from pixelshelf.db import get_db
from pixelshelf.schemas.payment import WebhookAck
from pixelshelf.services import billing
from pixelshelf.services.billing import StripeClient

log = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    db: AsyncSession = Depends(get_db),
    client: StripeClient = Depends(billing.get_billing_client),
):
    """
    Receive billing events. The raw body is verified against the
    ``Stripe-Signature`` header before anything is applied.
    """
    payload = await request.body()
    secret = settings.stripe_webhook_secret
    event = billing.verify_webhook(payload, stripe_signature, secret.get_secret_value() if secret else None)
    handled = await billing.handle_event(db, event, client)
    if not handled:
        log.info(f"Ignored webhook event {event.get('type')}")
    return WebhookAck()
