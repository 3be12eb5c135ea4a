"""Navigation shell shared by every page."""
from typing import Any, Dict, List, Optional

from edht.constants import NAV_ITEMS


def is_nav_active(path: str, href: str) -> bool:
    """An item is active on its own path and on any sub-path."""
    return path == href or path.startswith(href + "/")


def build_navigation(path: str, user: Optional[Any] = None) -> List[Dict[str, Any]]:
    """Navigation entries for the current path; anonymous visitors get none."""
    if user is None:
        return []
    return [
        {"name": item["name"], "href": item["href"], "active": is_nav_active(path, item["href"])}
        for item in NAV_ITEMS
    ]
