"""
Local-tax composition strategies.

Each state resolves its local (sub-state) rate through an ordered chain of
strategies. The first strategy that produces a component wins; results from
different tiers are never blended.

Default chain, per state:

    composite breakdown   only for states that ship breakdown data
    flat override         exact per-ZIP local rate
    statistical default   per-state average, else the global default
    no local tax          0

A state that needs a different composition rule gets its own chain via
``RateResolver(strategies={...})``; the resolver itself has no
state-specific branches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Sequence

from ziptax.config import GLOBAL_DEFAULT_LOCAL_RATE
from ziptax.rates import RateTables, StateTaxProfile

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class LocalSource(Enum):
    """Which tier produced the local rate."""

    BREAKDOWN = "breakdown"
    OVERRIDE = "override"
    DEFAULT = "default"
    NONE = "none"
    UNKNOWN = "unknown"  # ZIP prefix not recognized; no state resolved


@dataclass(frozen=True)
class LocalTaxComponent:
    """Local rate plus whatever detail the producing tier actually used."""

    source: LocalSource
    rate: Decimal
    city: Optional[str] = None
    county: Optional[str] = None
    municipality_rate: Optional[Decimal] = None
    transit_rate: Optional[Decimal] = None
    county_rate: Optional[Decimal] = None

    @property
    def is_exact(self) -> bool:
        """True when the rate came from a per-ZIP record, not an estimate."""
        return self.source in (LocalSource.BREAKDOWN, LocalSource.OVERRIDE)


class LocalTaxStrategy:
    """Produces a local component for a ZIP, or None to defer to the next tier."""

    source: LocalSource

    def compose(
        self, zip_code: str, profile: StateTaxProfile, tables: RateTables
    ) -> Optional[LocalTaxComponent]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CompositeBreakdownStrategy(LocalTaxStrategy):
    """Municipality rate + transit-district rate + county rate."""

    source = LocalSource.BREAKDOWN

    def compose(self, zip_code, profile, tables):
        breakdown = tables.get_breakdown(zip_code)
        if breakdown is None or breakdown.state_code != profile.state_code:
            return None

        county_rate = tables.get_county_rate(profile.state_code, breakdown.county)
        if county_rate is None:
            county_rate = ZERO

        return LocalTaxComponent(
            source=self.source,
            rate=breakdown.municipality_rate + breakdown.transit_rate + county_rate,
            city=breakdown.municipality,
            county=breakdown.county,
            municipality_rate=breakdown.municipality_rate,
            transit_rate=breakdown.transit_rate,
            county_rate=county_rate,
        )


class FlatOverrideStrategy(LocalTaxStrategy):
    """Known city/municipality rate for the exact ZIP.

    Applies even where the state profile says local tax is not generally
    levied.
    """

    source = LocalSource.OVERRIDE

    def compose(self, zip_code, profile, tables):
        override = tables.get_override(zip_code)
        if override is None:
            return None
        return LocalTaxComponent(
            source=self.source,
            rate=override.local_rate,
            city=override.city or None,
        )


class StatisticalDefaultStrategy(LocalTaxStrategy):
    """Published average local rate for states that levy local tax."""

    source = LocalSource.DEFAULT

    def __init__(self, fallback_rate: Decimal = GLOBAL_DEFAULT_LOCAL_RATE) -> None:
        self.fallback_rate = fallback_rate

    def compose(self, zip_code, profile, tables):
        if not profile.has_local_tax:
            return None
        rate = profile.default_local_rate
        if rate is None:
            rate = self.fallback_rate
        return LocalTaxComponent(source=self.source, rate=rate)

    def __repr__(self) -> str:
        return f"StatisticalDefaultStrategy(fallback_rate={self.fallback_rate})"


class NoLocalTaxStrategy(LocalTaxStrategy):
    source = LocalSource.NONE

    def compose(self, zip_code, profile, tables):
        return LocalTaxComponent(source=self.source, rate=ZERO)


def default_chain(
    profile: StateTaxProfile,
    tables: RateTables,
    fallback_rate: Decimal = GLOBAL_DEFAULT_LOCAL_RATE,
) -> tuple[LocalTaxStrategy, ...]:
    """Standard strategy chain for a state, based on which data it ships."""
    chain: list[LocalTaxStrategy] = []
    if profile.state_code in tables.breakdown_states():
        chain.append(CompositeBreakdownStrategy())
    chain.append(FlatOverrideStrategy())
    chain.append(StatisticalDefaultStrategy(fallback_rate))
    chain.append(NoLocalTaxStrategy())
    return tuple(chain)


def compose_local_tax(
    chain: Sequence[LocalTaxStrategy],
    zip_code: str,
    profile: StateTaxProfile,
    tables: RateTables,
) -> LocalTaxComponent:
    """Run a chain; the first strategy with an answer wins."""
    for strategy in chain:
        component = strategy.compose(zip_code, profile, tables)
        if component is not None:
            logger.debug(
                "ZIP %s (%s): local rate %s from %s",
                zip_code, profile.state_code, component.rate, component.source.value,
            )
            return component
    # A custom chain may omit the terminal tier.
    return LocalTaxComponent(source=LocalSource.NONE, rate=ZERO)
