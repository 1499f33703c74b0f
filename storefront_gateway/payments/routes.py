import logging

from fastapi import APIRouter, Depends, status

from ..shared.dependencies import get_settings, get_square_client
from ..shared.errors import error_response
from .payment_processor import PaymentFailed, PaymentProcessor
from .schemas import PaymentRequest, PaymentResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["payments"])


@router.post("/{order_id}/payment", response_model=PaymentResponse)
def submit_payment(
    order_id: str,
    body: PaymentRequest,
    settings=Depends(get_settings),
    square=Depends(get_square_client),
):
    """Charge an order with a one-time card token from the Web Payments SDK."""
    if not body.source_id:
        return error_response("Payment source required", status.HTTP_400_BAD_REQUEST)
    if body.amount is None or body.amount <= 0:
        return error_response("Payment amount required", status.HTTP_400_BAD_REQUEST)

    processor = PaymentProcessor(square, location_id=settings.square_location_id)
    result = processor.submit(
        order_id=order_id,
        source_id=body.source_id,
        amount=body.amount,
        buyer_email=body.customer_info.email if body.customer_info else None,
        idempotency_key=body.idempotency_key,
    )

    if isinstance(result, PaymentFailed):
        return error_response(result.reason, result.status_code, details=result.details)

    return PaymentResponse(
        payment=result.payment,
        payment_id=result.payment_id,
        payment_status=result.status,
    )
