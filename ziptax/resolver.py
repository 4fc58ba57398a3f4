"""
ZIP code sales tax rate resolution.

Combines the jurisdiction index, the per-state local-tax strategy chain and
the category overlays into a single TaxRateResult:

- state rate from the state profile
- local rate from the first matching tier (breakdown, override, default, none)
- combined = state + local, rounded half-up to 2 places only at output
- per-category rates for states that publish overlay data
- a disclaimer reflecting how much of the lookup was exact vs. estimated
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, Mapping, Optional, Sequence

from ziptax.config import Settings, load_settings
from ziptax.exceptions import ConfigurationIntegrityError, InvalidZipError
from ziptax.jurisdiction import JurisdictionIndex
from ziptax.overlays import CATEGORY_RESULT_KEYS, compute_category_rates
from ziptax.rates import ProductCategory, RateTables
from ziptax.strategies import (
    LocalSource,
    LocalTaxStrategy,
    compose_local_tax,
    default_chain,
)

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


class Disclaimer(Enum):
    """Advisory text telling the caller how far to trust a result."""

    DATA_BASED = (
        "Tax rate based on state and local data. Verify with your tax authority."
    )
    ESTIMATED = (
        "Local tax estimated. Please verify with your local tax authority "
        "for exact rate."
    )
    NOT_RECOGNIZED = (
        "ZIP code not recognized. Please verify and set tax rate manually."
    )


def _round_rate(value: Decimal) -> Decimal:
    """Round a percentage to 2 places, half-up."""
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def normalize_zip(raw: str) -> str:
    """
    Reduce caller input to a 5-digit ZIP.

    Non-digits are dropped and ZIP+4 is truncated; fewer than 5 digits is
    rejected with InvalidZipError. The resolver expects this already done.
    """
    digits = _NON_DIGITS.sub("", raw or "")[:5]
    if len(digits) != 5:
        raise InvalidZipError(raw)
    return digits


@dataclass(frozen=True)
class TaxRateResult:
    """Resolved rate suggestion for one ZIP. Rates are percentages."""

    zip_code: str
    state: str
    state_code: str
    state_tax_rate: Decimal
    local_tax_rate: Decimal
    combined_rate: Decimal
    disclaimer: Disclaimer
    source: LocalSource
    city: Optional[str] = None
    county: Optional[str] = None
    municipality_tax: Optional[Decimal] = None
    transit_tax: Optional[Decimal] = None
    county_tax: Optional[Decimal] = None
    category_rates: Optional[dict[ProductCategory, Decimal]] = field(
        default=None, hash=False
    )

    @classmethod
    def unrecognized(cls, zip_code: str) -> "TaxRateResult":
        zero = Decimal("0")
        return cls(
            zip_code=zip_code,
            state="Unknown",
            state_code="",
            state_tax_rate=zero,
            local_tax_rate=zero,
            combined_rate=zero,
            disclaimer=Disclaimer.NOT_RECOGNIZED,
            source=LocalSource.UNKNOWN,
        )

    @property
    def is_recognized(self) -> bool:
        return self.source is not LocalSource.UNKNOWN

    @property
    def is_estimated(self) -> bool:
        return self.disclaimer is not Disclaimer.DATA_BASED

    def category_rate(self, category: ProductCategory) -> Optional[Decimal]:
        if not self.category_rates:
            return None
        return self.category_rates.get(category)

    def to_dict(self) -> dict[str, Any]:
        """
        JSON-ready mapping in the shape the settings form consumes.

        Optional keys appear only when the value took part in resolution;
        ``disclaimer`` is always present.
        """
        data: dict[str, Any] = {
            "zip": self.zip_code,
            "state": self.state,
            "stateCode": self.state_code,
        }
        if self.city:
            data["city"] = self.city
        if self.county:
            data["county"] = self.county
        data["stateTaxRate"] = float(self.state_tax_rate)
        data["localTaxRate"] = float(self.local_tax_rate)
        if self.municipality_tax is not None:
            data["villageTax"] = float(self.municipality_tax)
        if self.transit_tax is not None:
            data["rtaTax"] = float(self.transit_tax)
        if self.county_tax is not None:
            data["countyTax"] = float(self.county_tax)
        data["combinedRate"] = float(self.combined_rate)
        if self.category_rates:
            data["categoryRates"] = {
                CATEGORY_RESULT_KEYS[c]: float(rate)
                for c, rate in self.category_rates.items()
            }
        data["disclaimer"] = self.disclaimer.value
        return data


class RateResolver:
    """
    Stateless ZIP -> TaxRateResult resolver over loaded rate tables.

    Safe to share between threads: the tables and strategy chains are
    built once in ``__init__`` and only read afterwards. Without explicit
    ``settings`` the packaged defaults apply; ``get_resolver()`` reads
    the ``ZIPTAX_*`` environment instead.
    """

    def __init__(
        self,
        tables: Optional[RateTables] = None,
        settings: Optional[Settings] = None,
        strategies: Optional[Mapping[str, Sequence[LocalTaxStrategy]]] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.tables = tables or RateTables(self.settings.data_dir)
        self.index = JurisdictionIndex(self.tables)

        custom = {code.upper(): tuple(chain) for code, chain in (strategies or {}).items()}
        unknown = sorted(code for code in custom if self.tables.get_profile(code) is None)
        if unknown:
            raise ConfigurationIntegrityError(
                "strategies registered for states without a tax profile",
                {"state_codes": unknown},
            )

        # A registered chain is used as given, even when empty.
        self._chains: dict[str, tuple[LocalTaxStrategy, ...]] = {
            profile.state_code: (
                custom[profile.state_code]
                if profile.state_code in custom
                else default_chain(profile, self.tables, self.settings.default_local_rate)
            )
            for profile in self.tables.all_profiles()
        }

    def chain_for(self, state_code: str) -> tuple[LocalTaxStrategy, ...]:
        return self._chains.get(state_code.upper(), ())

    def resolve(self, zip_code: str) -> TaxRateResult:
        """Resolve a caller-sanitized 5-digit ZIP."""
        state_code = self.index.resolve_state(zip_code)
        if state_code is None:
            logger.debug("ZIP %s: prefix not recognized", zip_code)
            return TaxRateResult.unrecognized(zip_code)

        profile = self.tables.get_profile(state_code)
        if profile is None:
            # Table loading rejects this; reaching it means tables were altered.
            raise ConfigurationIntegrityError(
                "ZIP prefix maps to a state without a tax profile",
                {"zip": zip_code, "state_code": state_code},
            )

        local = compose_local_tax(self._chains[state_code], zip_code, profile, self.tables)
        combined = profile.base_rate + local.rate

        categories = compute_category_rates(state_code, combined, local, self.tables)

        return TaxRateResult(
            zip_code=zip_code,
            state=profile.name,
            state_code=state_code,
            state_tax_rate=profile.base_rate,
            local_tax_rate=_round_rate(local.rate),
            combined_rate=_round_rate(combined),
            disclaimer=Disclaimer.DATA_BASED if local.is_exact else Disclaimer.ESTIMATED,
            source=local.source,
            city=local.city,
            county=local.county,
            municipality_tax=local.municipality_rate,
            transit_tax=local.transit_rate,
            county_tax=local.county_rate,
            category_rates=(
                {c: _round_rate(rate) for c, rate in categories.items()}
                if categories
                else None
            ),
        )

    def resolve_many(self, zip_codes: Iterable[str]) -> list[TaxRateResult]:
        return [self.resolve(z) for z in zip_codes]


@lru_cache(maxsize=1)
def get_resolver() -> RateResolver:
    """Process-wide resolver built from environment settings."""
    return RateResolver(settings=load_settings())


def resolve(zip_code: str) -> TaxRateResult:
    """Resolve with the process-wide resolver."""
    return get_resolver().resolve(zip_code)
