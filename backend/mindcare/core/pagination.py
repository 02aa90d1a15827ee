import math
from typing import Optional, Tuple

from mindcare.config.settings import settings
from mindcare.schemas.envelope import PaginationMeta


def get_pagination_params(page: Optional[int], limit: Optional[int]) -> Tuple[int, int, int]:
    """Clamp ``page`` to >= 1 and ``limit`` to [1, max_page_size]; returns (page, limit, offset)."""
    page = max(1, page or 1)
    limit = settings.default_page_size if limit is None else limit
    limit = min(settings.max_page_size, max(1, limit))
    return page, limit, (page - 1) * limit


def calculate_pagination_metadata(page: int, limit: int, total_count: int) -> PaginationMeta:
    total_pages = math.ceil(total_count / limit)
    return PaginationMeta(
        page=page,
        limit=limit,
        total_count=total_count,
        total_pages=total_pages,
        next_page=page + 1 if page < total_pages else None,
        previous_page=page - 1 if page > 1 else None,
    )
