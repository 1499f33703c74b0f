from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CustomerInfo(BaseModel):
    """Buyer details collected at checkout."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")


class PaymentRequest(BaseModel):
    """Request model for charging an order."""

    model_config = ConfigDict(populate_by_name=True)

    source_id: Optional[str] = Field(default=None, alias="sourceId")
    amount: Optional[int] = None
    customer_info: Optional[CustomerInfo] = Field(default=None, alias="customerInfo")
    idempotency_key: Optional[str] = Field(default=None, alias="idempotencyKey")


class PaymentResponse(BaseModel):
    """Response model for a successful charge."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    payment: Dict[str, Any]
    payment_id: str = Field(alias="paymentId")
    status: str = "PAID"
    payment_status: str = Field(alias="paymentStatus")
    message: str = "Payment successful! Your order is ready for pickup."
