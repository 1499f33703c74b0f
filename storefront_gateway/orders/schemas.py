from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..payments.schemas import CustomerInfo


class Book(BaseModel):
    """Catalog snapshot of a book as the storefront renders it."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    description: Optional[str] = None
    # Dollars, as the storefront displays them; converted to cents for Square
    price: float = 0
    currency: str = "USD"
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    category_id: Optional[str] = Field(default=None, alias="categoryId")


class CartItem(BaseModel):
    book: Book
    quantity: int = Field(ge=1)


class CreateOrderRequest(BaseModel):
    """Request model for creating a pickup order."""

    model_config = ConfigDict(populate_by_name=True)

    items: Optional[List[CartItem]] = None
    customer_info: Optional[CustomerInfo] = Field(default=None, alias="customerInfo")
    location_id: Optional[str] = Field(default=None, alias="locationId")


class PickupStatusRequest(BaseModel):
    status: Optional[str] = None
    notes: Optional[str] = None
