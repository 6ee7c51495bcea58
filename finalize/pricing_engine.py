"""
Pricing Engine — feature/service line items, volume discount, custom surcharge.

Pure math, no I/O. The same engine produces the advisory estimate shown in the
form and the authoritative total the server persists. The only difference is
the custom-request base: the form leaves it out and shows "+" instead.

Input: selected feature names + selected service names + custom-request flag
Output: PricingResult
"""

import math
from typing import Iterable, Optional

from . import catalog
from .schemas import LineItem, PricingResult


def round_half_up(value: float) -> int:
    """Round to nearest integer, .5 rounds up (matches browser Math.round)."""
    return int(math.floor(value + 0.5))


def _as_list(values) -> list:
    # Anything that isn't a list/tuple prices as an empty selection
    if isinstance(values, (list, tuple)):
        return list(values)
    return []


class PricingEngine:
    """
    Prices a selection against the catalog.

    Unknown names contribute nothing. The discount threshold counts submitted
    feature entries, recognized or not.
    """

    CUSTOM_REQUEST_BASE = catalog.CUSTOM_REQUEST_BASE
    DISCOUNT_THRESHOLD = catalog.FEATURE_DISCOUNT_THRESHOLD
    DISCOUNT_RATE = catalog.FEATURE_DISCOUNT_RATE

    def __init__(self, feature_prices: Optional[dict] = None, service_prices: Optional[dict] = None):
        self.feature_prices = feature_prices if feature_prices is not None else catalog.FEATURE_PRICES
        self.service_prices = service_prices if service_prices is not None else catalog.SERVICE_PRICES

    def calculate(self, selected_features, selected_services, has_custom_request: bool,
                  include_custom_base: bool = True) -> PricingResult:
        features = _as_list(selected_features)
        services = _as_list(selected_services)

        feature_items = self._price_items(features, self.feature_prices, "feature")
        service_items = self._price_items(services, self.service_prices, "service")

        features_total = sum(item.price for item in feature_items)
        services_total = sum(item.price for item in service_items)
        discount = self._calculate_discount(len(features), features_total)

        custom_base = 0
        if has_custom_request and include_custom_base:
            custom_base = self.CUSTOM_REQUEST_BASE

        return PricingResult(
            total=features_total - discount + services_total + custom_base,
            discount=discount,
            features_total=features_total,
            services_total=services_total,
            custom_request_base=custom_base,
            line_items=feature_items + service_items,
        )

    def _price_items(self, names: list, prices: dict, kind: str) -> list:
        items = []
        for name in names:
            price = prices.get(name) if isinstance(name, str) else None
            if price:
                items.append(LineItem(label=name, price=price, kind=kind))
        return items

    def _calculate_discount(self, feature_count: int, features_total: int) -> int:
        """10% of the feature subtotal once 3+ features are selected. Services never discount."""
        if feature_count < self.DISCOUNT_THRESHOLD:
            return 0
        return round_half_up(features_total * self.DISCOUNT_RATE)


_engine = PricingEngine()


def calculate_pricing(selected_features, selected_services, has_custom_request: bool,
                      include_custom_base: bool = True) -> PricingResult:
    """Authoritative pricing by display name. Includes the custom base unless told otherwise."""
    return _engine.calculate(
        selected_features, selected_services, has_custom_request,
        include_custom_base=include_custom_base,
    )


def estimate_for_selection(feature_ids: Iterable[str], service_ids: Iterable[str],
                           has_custom_request: bool) -> PricingResult:
    """
    Advisory estimate for the form, keyed by catalog ids.
    Never includes the custom-request base, see format_total().
    """
    features = [catalog.display_name("feature", i) for i in feature_ids]
    services = [catalog.display_name("service", i) for i in service_ids]
    return _engine.calculate(features, services, has_custom_request, include_custom_base=False)


def format_total(result: PricingResult, has_custom_request: bool) -> str:
    """Display text: "$270", or "$270+" when a custom request makes the estimate open-ended."""
    text = f"${result.total}"
    return f"{text}+" if has_custom_request else text
