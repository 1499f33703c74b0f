import logging

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool

from ..orders.fulfillment import OrderFulfiller
from .reconciler import WebhookReconciler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders/webhook", tags=["webhooks"])

RECEIVED = {"received": True}


@router.post("/payment-updated")
async def payment_updated(request: Request) -> dict:
    """
    Square payment notifications.

    Always answers 200 {received: true}: a failure here is never something
    Square can fix by redelivering.
    """
    try:
        raw = await request.body()
        state = request.app.state
        reconciler = WebhookReconciler(
            OrderFulfiller(state.square),
            redis_client=getattr(state, "redis", None),
            dedupe_ttl_seconds=state.settings.webhook_dedupe_ttl_seconds,
        )
        # Square calls are blocking; keep them off the event loop
        outcome = await run_in_threadpool(reconciler.handle, raw)
        logger.info(f"Webhook processed: {outcome}")
    except Exception:
        logger.exception("Error processing webhook")

    return RECEIVED
