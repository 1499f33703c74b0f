from typing import Any, Optional

from pydantic import BaseModel, Field

from .gateway import DEFAULT_LIMIT


class SearchRequest(BaseModel):
    """Request model for a free-text search.

    ``query`` is typed loosely so a missing or non-string value gets the
    gateway's own 400 message instead of a schema error.
    """

    query: Optional[Any] = None
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=100)

    def cleaned_query(self) -> Optional[str]:
        if not isinstance(self.query, str) or not self.query.strip():
            return None
        return self.query.strip()
