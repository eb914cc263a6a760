from typing import Any

from mockstripe.services.common import ListPage


def list_response(page: ListPage, url: str) -> dict[str, Any]:
    return {
        "object": "list",
        "data": page.data,
        "has_more": page.has_more,
        "url": url,
    }
