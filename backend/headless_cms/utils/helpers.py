"""슬러그 생성과 페이지네이션 계산 헬퍼입니다."""

import math
import re
import unicodedata
from typing import Any, Dict

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    slug = _NON_SLUG_CHARS.sub("-", normalized.lower()).strip("-")
    return slug or "untitled"


def clamp_page(page: int | None, limit: int | None, *, default_limit: int, max_limit: int) -> tuple[int, int]:
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else default_limit
    return page, min(limit, max_limit)


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, Any]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
