from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InventoryBatchRequest(BaseModel):
    """Request model for a batched stock lookup."""

    model_config = ConfigDict(populate_by_name=True)

    variation_ids: Optional[List[Optional[str]]] = Field(default=None, alias="variationIds")
    location_id: Optional[str] = Field(default=None, alias="locationId")


class InventoryBatchResponse(BaseModel):
    """Response model for a batched stock lookup."""

    success: bool = True
    available: Dict[str, float]
    tracked: Dict[str, bool]
