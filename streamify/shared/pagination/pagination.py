"""Pagination utilities for API endpoints."""

from pydantic import BaseModel, Field

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


class PaginationParams(BaseModel):
    """Query parameters for offset pagination.

    Can be used as dependency in FastAPI routes:
    ```python
    @router.get("/items")
    async def list_items(pagination: PaginationParams = Depends()):
        # ... query with pagination.offset and pagination.limit
    ```
    """

    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Maximum number of items to return")

    offset: int = Field(default=0, ge=0, description="Number of items to skip")

    def has_more(self, returned: int, total: int) -> bool:
        """Check if items remain past the page that was just returned."""
        return self.offset + returned < total


__all__ = ["DEFAULT_LIMIT", "MAX_LIMIT", "PaginationParams"]
