import math

from pydantic import BaseModel


class PageMeta(BaseModel):
    """Page-number pagination meta"""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PageMeta":
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if limit else 0,
        )


# per-endpoint limits
class PaginationLimits:
    PAYOUTS = {"min": 1, "max": 100, "default": 10}
    TRANSACTIONS = {"min": 1, "max": 100, "default": 20}
    TOP_LINKS = {"min": 1, "max": 50, "default": 5}
