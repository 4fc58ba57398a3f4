"""
Category-specific rates for states that publish excise overlay data.

Overlays are strictly additive on top of the general combined rate:

    spirits/wine/beer = combined + state overlay
                        + county overlay  (ZIP is in the designated county)
                        + city overlay    (ZIP is in the designated city)
    grocery/medicine  = reduced statutory rate + local rate
    tobacco           = combined (excise is already in the wholesale price)

County and city overlays only trigger from a composite breakdown, since that
is the only tier that places a ZIP in a named county and municipality.
"""

from __future__ import annotations

from decimal import Decimal

from ziptax.rates import (
    OVERLAY_CATEGORIES,
    CategoryOverlay,
    OverlayLayer,
    ProductCategory,
    RateTables,
)
from ziptax.strategies import LocalSource, LocalTaxComponent

# Keys used in the serialized result, in display order.
CATEGORY_RESULT_KEYS: dict[ProductCategory, str] = {
    ProductCategory.GENERAL: "general",
    ProductCategory.GROCERY: "grocery",
    ProductCategory.MEDICINE: "medicine",
    ProductCategory.SPIRITS: "liquorSpirits",
    ProductCategory.WINE: "liquorWine",
    ProductCategory.BEER: "liquorBeer",
    ProductCategory.TOBACCO: "tobacco",
}


def _overlay_applies(overlay: CategoryOverlay, local: LocalTaxComponent) -> bool:
    if overlay.layer is OverlayLayer.STATE:
        return True
    if local.source is not LocalSource.BREAKDOWN:
        return False
    designated = overlay.jurisdiction.lower()
    if overlay.layer is OverlayLayer.COUNTY:
        return (local.county or "").lower() == designated
    return (local.city or "").lower() == designated


def compute_category_rates(
    state_code: str,
    combined_rate: Decimal,
    local: LocalTaxComponent,
    tables: RateTables,
) -> dict[ProductCategory, Decimal]:
    """
    Unrounded per-category rates, or an empty dict when the state has no
    category data.
    """
    if not tables.has_category_data(state_code):
        return {}

    rates: dict[ProductCategory, Decimal] = {ProductCategory.GENERAL: combined_rate}

    for category, reduced in tables.reduced_rates_for(state_code).items():
        rates[category] = reduced + local.rate

    overlays = tables.overlays_for(state_code)
    for category in OVERLAY_CATEGORIES:
        layers = [o for o in overlays if o.category is category]
        if not layers:
            continue
        rates[category] = combined_rate + sum(
            (o.rate for o in layers if _overlay_applies(o, local)), Decimal("0")
        )

    rates[ProductCategory.TOBACCO] = combined_rate

    return {c: rates[c] for c in CATEGORY_RESULT_KEYS if c in rates}
