"""Stripe subscription billing.

Outbound calls use the Stripe SDK's async methods over its httpx transport;
inbound webhooks are verified against the ``Stripe-Signature`` header before
any state changes.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import stripe
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.config import settings
from pixelshelf.core.exceptions import BillingProviderError, WebhookSignatureError
from pixelshelf.db import utcnow
from pixelshelf.metrics.prometheus import track_billing_request
from pixelshelf.models import Subscription, SubscriptionTier, User
from pixelshelf.services import notifications

log = logging.getLogger(__name__)

SIGNATURE_TOLERANCE_SECONDS = 300
PREMIUM_ACTIVE_MESSAGE = "Your PixelShelf Premium subscription is now active!"
PREMIUM_ENDED_MESSAGE = (
    "Your PixelShelf Premium subscription has ended. You have been downgraded to the free plan."
)


# ───────────────────────────────────────── API client ───────────────────────────────────────
_http_client: Optional[stripe.HTTPXClient] = None


def _shared_http_client() -> stripe.HTTPXClient:
    global _http_client
    if _http_client is None:
        _http_client = stripe.HTTPXClient(timeout=30)
    return _http_client


async def close_billing_http_client():
    global _http_client
    if _http_client is not None:
        await _http_client.close_async()
        _http_client = None


class StripeClient:
    """Thin async wrapper over ``stripe.StripeClient`` that maps SDK errors to ``BillingProviderError``."""

    def __init__(self, sdk: Optional[stripe.StripeClient] = None):
        self._sdk = sdk

    def _client(self) -> stripe.StripeClient:
        if self._sdk is None:
            if not settings.stripe_secret_key:
                raise BillingProviderError("Billing is not configured")
            self._sdk = stripe.StripeClient(
                settings.stripe_secret_key.get_secret_value(),
                base_addresses={"api": settings.stripe_api_base},
                max_network_retries=0,
                http_client=_shared_http_client(),
            )
        return self._sdk

    async def _call(self, resource: str, action: str, *args, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run ``<resource>.<action>_async`` on the SDK, e.g. ``("checkout.sessions", "create")``."""
        service: Any = self._client()
        for name in resource.split("."):
            service = getattr(service, name)
        endpoint = resource.split(".")[-1]
        try:
            obj = await getattr(service, f"{action}_async")(*args, params=params or {})
        except stripe.StripeError as exc:
            track_billing_request(endpoint, exc.http_status or 0)
            raise BillingProviderError(
                exc.user_message or f"Billing provider request failed: {exc}",
                status_code=exc.http_status,
            ) from exc
        track_billing_request(endpoint, 200)
        return obj.to_dict()

    async def create_customer(self, email: str, name: Optional[str], user_id: str) -> Dict[str, Any]:
        params = {"email": email, "metadata": {"userId": user_id}}
        if name:
            params["name"] = name
        return await self._call("customers", "create", params=params)

    async def create_checkout_session(self, user_id: str, customer_id: str, price_id: str, return_url: str) -> Dict[str, Any]:
        return await self._call(
            "checkout.sessions",
            "create",
            params={
                "customer": customer_id,
                "client_reference_id": user_id,
                "payment_method_types": ["card"],
                "line_items": [{"price": price_id, "quantity": 1}],
                "mode": "subscription",
                "allow_promotion_codes": True,
                "subscription_data": {"metadata": {"userId": user_id}},
                "success_url": f"{return_url}/settings/subscription?success=true&session_id={{CHECKOUT_SESSION_ID}}",
                "cancel_url": f"{return_url}/settings/subscription?canceled=true",
            },
        )

    async def create_portal_session(self, customer_id: str, return_url: str) -> Dict[str, Any]:
        return await self._call(
            "billing_portal.sessions",
            "create",
            params={"customer": customer_id, "return_url": f"{return_url}/settings/subscription"},
        )

    async def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return await self._call("subscriptions", "retrieve", subscription_id, params={"expand": ["items.data.price"]})


def get_billing_client() -> StripeClient:
    return StripeClient()


# ───────────────────────────────────────── checkout & portal ────────────────────────────────
async def _subscription_row(db: AsyncSession, user_id: str) -> Optional[Subscription]:
    return await db.scalar(select(Subscription).where(Subscription.user_id == user_id))


async def create_checkout(db: AsyncSession, user: User, return_url: str, client: StripeClient) -> str:
    price_id = settings.stripe_premium_price_id
    if not price_id:
        raise BillingProviderError("Price ID is required")

    row = await _subscription_row(db, user.id)
    customer_id = row.stripe_customer_id if row else None
    if not customer_id:
        customer = await client.create_customer(user.email, user.name, user.id)
        customer_id = customer["id"]
        if row is None:
            row = Subscription(user_id=user.id)
            db.add(row)
        row.stripe_customer_id = customer_id
        await db.commit()
        log.info(f"Created billing customer {customer_id} for user {user.id}")

    session = await client.create_checkout_session(user.id, customer_id, price_id, return_url)
    if not session.get("url"):
        raise BillingProviderError("Failed to create checkout session")
    return session["url"]


async def create_portal(db: AsyncSession, user: User, return_url: str, client: StripeClient) -> Optional[str]:
    """Return the portal URL, or ``None`` when the user has no billing customer yet."""
    row = await _subscription_row(db, user.id)
    if row is None or not row.stripe_customer_id:
        return None
    session = await client.create_portal_session(row.stripe_customer_id, return_url)
    return session["url"]


# ───────────────────────────────────────── webhooks ─────────────────────────────────────────
def verify_webhook(
    payload: bytes,
    signature_header: Optional[str],
    secret: Optional[str],
    tolerance: int = SIGNATURE_TOLERANCE_SECONDS,
) -> Dict[str, Any]:
    """Check the ``Stripe-Signature`` header against ``payload`` and return the parsed event."""
    if not signature_header:
        raise WebhookSignatureError("Missing Stripe signature")
    if not secret:
        raise WebhookSignatureError("Webhook secret is not configured")
    try:
        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(body, signature_header, secret, tolerance)
        return json.loads(body)
    except stripe.SignatureVerificationError as exc:
        raise WebhookSignatureError(exc.user_message or "Webhook signature verification failed") from exc
    except ValueError as exc:
        raise WebhookSignatureError("Webhook payload is not valid JSON") from exc


def _period_end(subscription: Dict[str, Any]) -> Optional[datetime]:
    ts = subscription.get("current_period_end")
    if ts is None:
        items = subscription.get("items", {}).get("data") or [{}]
        ts = items[0].get("current_period_end")
    return datetime.fromtimestamp(ts, tz=timezone.utc) if ts else None


def _price_id(subscription: Dict[str, Any]) -> Optional[str]:
    items = subscription.get("items", {}).get("data") or []
    return items[0].get("price", {}).get("id") if items else None


async def _row_for_customer(db: AsyncSession, customer_id: Optional[str]) -> Optional[Subscription]:
    if not customer_id:
        return None
    return await db.scalar(select(Subscription).where(Subscription.stripe_customer_id == customer_id))


async def _checkout_completed(db, obj, client):
    user_id, subscription_id = obj.get("client_reference_id"), obj.get("subscription")
    if not user_id or not subscription_id:
        return None
    user = await db.get(User, user_id)
    if user is None:
        log.warning(f"Checkout completed for unknown user {user_id}")
        return None
    subscription = await client.retrieve_subscription(subscription_id)
    period_end = _period_end(subscription)

    row = await _subscription_row(db, user_id)
    if row is None:
        row = Subscription(user_id=user_id, stripe_customer_id=obj.get("customer"))
        db.add(row)
    row.stripe_subscription_id = subscription_id
    row.stripe_price_id = _price_id(subscription)
    row.stripe_current_period_end = period_end

    user.subscription_tier = SubscriptionTier.PREMIUM
    user.subscription_start = utcnow()
    user.subscription_end = period_end
    return await notifications.notify_system(db, user_id, PREMIUM_ACTIVE_MESSAGE)


async def _invoice_paid(db, obj, client):
    subscription_id = obj.get("subscription")
    row = await _row_for_customer(db, obj.get("customer"))
    if not subscription_id or row is None:
        return None
    period_end = _period_end(await client.retrieve_subscription(subscription_id))
    row.stripe_current_period_end = period_end
    user = await db.get(User, row.user_id)
    if user is not None:
        user.subscription_end = period_end
    return None


async def _subscription_updated(db, obj, client):
    row = await _row_for_customer(db, obj.get("customer"))
    if row is None:
        return None
    period_end = _period_end(obj)
    row.stripe_price_id = _price_id(obj)
    row.stripe_current_period_end = period_end
    user = await db.get(User, row.user_id)
    if user is not None:
        user.subscription_end = period_end
    return None


async def _subscription_deleted(db, obj, client):
    row = await _row_for_customer(db, obj.get("customer"))
    if row is None:
        return None
    row.stripe_subscription_id = None
    row.stripe_price_id = None
    row.stripe_current_period_end = None
    user = await db.get(User, row.user_id)
    if user is None:
        return None
    user.subscription_tier = SubscriptionTier.FREE
    user.subscription_end = None
    return await notifications.notify_system(db, user.id, PREMIUM_ENDED_MESSAGE)


EVENT_HANDLERS = {
    "checkout.session.completed": _checkout_completed,
    "invoice.payment_succeeded": _invoice_paid,
    "customer.subscription.updated": _subscription_updated,
    "customer.subscription.deleted": _subscription_deleted,
}


async def handle_event(db: AsyncSession, event: Dict[str, Any], client: StripeClient) -> bool:
    """Apply a verified webhook event. Returns ``False`` for event types that are ignored."""
    handler = EVENT_HANDLERS.get(event.get("type"))
    if handler is None:
        log.debug(f"Ignoring billing event {event.get('type')}")
        return False
    obj = event.get("data", {}).get("object", {})
    notification = await handler(db, obj, client)
    await db.commit()
    log.info(f"Processed billing event {event.get('type')} ({event.get('id')})")
    await notifications.publish(db, [notification])
    return True
