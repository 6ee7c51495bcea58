"""
Estimate catalog — the fixed list of purchasable features and services.

Prices are whole US dollars. Display names are the wire identifiers:
the form submits names, and the server prices by name.
"""

from typing import NamedTuple, Optional


class CatalogItem(NamedTuple):
    id: str
    name: str
    price: int


FEATURES = (
    CatalogItem("authentication", "Authentication", 100),
    CatalogItem("payments", "Payments", 100),
    CatalogItem("saas", "SaaS Subscriptions", 100),
    CatalogItem("uploads", "File Uploads", 100),
    CatalogItem("notifications", "Notifications", 100),
)

SERVICES = (
    CatalogItem("security", "Security Audit & Fixes", 150),
    CatalogItem("uiux", "UI/UX Review", 150),
    CatalogItem("deployment", "Deploy to Production", 100),
)

CUSTOM_REQUEST_BASE = 250
FEATURE_DISCOUNT_THRESHOLD = 3
FEATURE_DISCOUNT_RATE = 0.10

# Platform the app was built with. "other" means free text is sent instead
PLATFORMS = {
    "lovable": "Lovable",
    "cursor": "Cursor",
    "claude": "Claude Code",
    "bolt": "Bolt.new",
    "replit": "Replit",
    "windsurf": "Windsurf",
    "other": "Other",
}
OTHER_PLATFORM = "other"

FEATURE_PRICES = {item.name: item.price for item in FEATURES}
SERVICE_PRICES = {item.name: item.price for item in SERVICES}

_BY_ID = {
    "feature": {item.id: item for item in FEATURES},
    "service": {item.id: item for item in SERVICES},
}


def get_item(kind: str, item_id: str) -> Optional[CatalogItem]:
    """Look up a catalog item by kind ("feature" or "service") and id."""
    if kind not in _BY_ID:
        raise ValueError(f"Unknown catalog kind: {kind}. Available: {list(_BY_ID.keys())}")
    return _BY_ID[kind].get(item_id)


def display_name(kind: str, item_id: str) -> str:
    """Display name for an id; unknown ids pass through unchanged."""
    item = get_item(kind, item_id)
    return item.name if item else item_id


def platform_name(platform_id: str) -> str:
    return PLATFORMS.get(platform_id, platform_id)
