from fastapi import Query

from app.config import settings


def _positive_int(raw: str | None, default: int) -> int:
    """Parse *raw* as a positive integer, falling back to *default*."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


class PaginationParams:
    """
    Reusable FastAPI dependency that parses the ``page`` / ``pageSize``
    query parameters shared by every news listing.

    Usage in a router::

        @router.get("/news")
        async def list_news(pagination: PaginationParams = Depends()):
            ...

    Missing, non-numeric or non-positive values fall back to the defaults
    instead of failing the request.

    Attributes
    ----------
    page:
        1-based page number (default 1).
    page_size:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``.
    """

    def __init__(
        self,
        page: str | None = Query(
            None,
            description="Page number (1-based).",
        ),
        page_size: str | None = Query(
            None,
            alias="pageSize",
            description="Number of items returned per page.",
        ),
    ) -> None:
        self.page = _positive_int(page, 1)
        self.page_size = min(
            _positive_int(page_size, settings.DEFAULT_PAGE_SIZE), settings.MAX_PAGE_SIZE
        )
