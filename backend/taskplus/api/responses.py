"""Response Envelope - {ok, data, meta} wrapper for successful responses"""
from typing import Any, Dict, Optional


def success(data: Any = None, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"ok": True, "data": data}
    if meta is not None:
        body["meta"] = meta
    return body


def paginated(items: Any, page: int, page_size: int, total: int) -> Dict[str, Any]:
    """Envelope for list endpoints"""
    return success(items, meta={
        "page": page,
        "page_size": page_size,
        "total": total,
        "pages": (total + page_size - 1) // page_size if page_size else 0,
    })
