"""
Reference rate tables for ZIP-based sales tax resolution.

All tables are CSV files under ``ziptax/data`` (or ``ZIPTAX_DATA_DIR``):

    zip_prefixes.csv         3-digit ZIP prefix -> state code
    state_profiles.csv       base rate, local-tax flag, statistical default
    local_overrides.csv      flat city/municipality local rate per ZIP
    regional_breakdowns.csv  municipality + transit + county composition per ZIP
    county_rates.csv         county rate by (state, county name)
    category_overlays.csv    excise overlays for alcohol categories
    reduced_rates.csv        low statutory rates (grocery, medicine)

Rates are percentages (6.25 == 6.25%) held as Decimal. Tables are loaded
and checked once, then treated as read-only.

Sources: state revenue department publications, Tax Foundation (January 2024).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Optional

import pandas as pd

from ziptax.config import DEFAULT_DATA_DIR
from ziptax.exceptions import (
    ConfigurationIntegrityError,
    DataLoadError,
    DataValidationError,
)

logger = logging.getLogger(__name__)


class ProductCategory(Enum):
    """Product categories that can carry their own effective rate."""

    GENERAL = "general"
    GROCERY = "grocery"
    MEDICINE = "medicine"
    SPIRITS = "spirits"
    WINE = "wine"
    BEER = "beer"
    TOBACCO = "tobacco"


OVERLAY_CATEGORIES = (ProductCategory.SPIRITS, ProductCategory.WINE, ProductCategory.BEER)
REDUCED_CATEGORIES = (ProductCategory.GROCERY, ProductCategory.MEDICINE)


class OverlayLayer(Enum):
    """Jurisdiction layer an excise overlay belongs to."""

    STATE = "state"
    COUNTY = "county"
    CITY = "city"


@dataclass(frozen=True)
class StateTaxProfile:
    """General sales tax profile for one state."""

    state_code: str
    name: str
    base_rate: Decimal
    has_local_tax: bool
    default_local_rate: Optional[Decimal] = None


@dataclass(frozen=True)
class LocalOverride:
    """Known flat local rate for a single ZIP."""

    zip_code: str
    city: str
    local_rate: Decimal


@dataclass(frozen=True)
class RegionalBreakdown:
    """Composite local tax for a ZIP: municipality + transit district + county."""

    zip_code: str
    state_code: str
    municipality: str
    municipality_rate: Decimal
    transit_rate: Decimal
    county: str


@dataclass(frozen=True)
class CategoryOverlay:
    """Additive excise overlay, as an approximate percentage of retail."""

    state_code: str
    category: ProductCategory
    layer: OverlayLayer
    jurisdiction: str  # designated county/city; empty for the state layer
    rate: Decimal
    rate_per_gallon: Optional[Decimal] = None


# ---------------------------------------------------------------------------
# CSV parsing helpers
# ---------------------------------------------------------------------------

_TRUE = {"true", "yes", "y", "1"}
_FALSE = {"false", "no", "n", "0"}


def _read_table(
    path: Path, required_columns: set[str], optional: bool = False
) -> pd.DataFrame:
    """Read a CSV table as strings, stripped, with required columns checked."""
    if not path.exists():
        if optional:
            logger.info("Optional table %s not present; treating as empty", path.name)
            return pd.DataFrame(columns=sorted(required_columns))
        raise DataLoadError("file not found", path)

    try:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise DataLoadError("file is empty", path, e) from e
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise DataLoadError("could not parse CSV", path, e) from e

    frame.columns = [str(c).strip() for c in frame.columns]
    missing = required_columns - set(frame.columns)
    if missing:
        raise DataLoadError(f"missing required columns: {sorted(missing)}", path)

    for column in frame.columns:
        frame[column] = frame[column].astype(str).str.strip()
    return frame


def _rows(frame: pd.DataFrame) -> list[tuple[int, dict[str, str]]]:
    # Row 1 is the header line.
    return [(i + 2, row) for i, row in enumerate(frame.to_dict("records"))]


def _parse_rate(
    value: str,
    path: Path,
    row_number: int,
    column: str,
    max_places: Optional[int] = None,
) -> Decimal:
    try:
        rate = Decimal(value)
    except InvalidOperation:
        raise DataValidationError(
            "rate is not a number", path, row_number, column, value
        ) from None
    if not rate.is_finite() or rate < 0 or rate > 100:
        raise DataValidationError(
            "rate must be a percentage between 0 and 100",
            path, row_number, column, value,
        )
    if max_places is not None and -rate.as_tuple().exponent > max_places:
        raise DataValidationError(
            f"rate has more than {max_places} decimal places",
            path, row_number, column, value,
        )
    return rate


def _parse_optional_rate(
    value: str, path: Path, row_number: int, column: str
) -> Optional[Decimal]:
    if value == "":
        return None
    return _parse_rate(value, path, row_number, column)


def _parse_bool(value: str, path: Path, row_number: int, column: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise DataValidationError("expected true/false", path, row_number, column, value)


def _parse_digits(
    value: str, length: int, path: Path, row_number: int, column: str
) -> str:
    if len(value) != length or not value.isdigit():
        raise DataValidationError(
            f"expected a {length}-digit code", path, row_number, column, value
        )
    return value


def _parse_state_code(value: str, path: Path, row_number: int, column: str) -> str:
    code = value.upper()
    if len(code) != 2 or not code.isalpha():
        raise DataValidationError(
            "expected a 2-letter state code", path, row_number, column, value
        )
    return code


def _parse_enum(enum_cls, value: str, path: Path, row_number: int, column: str):
    try:
        return enum_cls(value.lower())
    except ValueError:
        raise DataValidationError(
            f"unknown {enum_cls.__name__}", path, row_number, column, value
        ) from None


# ---------------------------------------------------------------------------
# Table container
# ---------------------------------------------------------------------------


class RateTables:
    """
    In-memory view of every reference table.

    Loading parses each CSV, validates each row, then runs a cross-table
    consistency check. Any fault raises before the tables are handed to
    a resolver; nothing is validated per lookup.
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self.data_dir = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
        self.warnings: list[str] = []

        self._prefixes: dict[str, str] = {}
        self._profiles: dict[str, StateTaxProfile] = {}
        self._overrides: dict[str, LocalOverride] = {}
        self._breakdowns: dict[str, RegionalBreakdown] = {}
        self._county_rates: dict[tuple[str, str], Decimal] = {}
        self._overlays: dict[str, list[CategoryOverlay]] = {}
        self._reduced: dict[str, dict[ProductCategory, Decimal]] = {}

        self._load_profiles()
        self._load_prefixes()
        self._load_overrides()
        self._load_breakdowns()
        self._load_county_rates()
        self._load_overlays()
        self._load_reduced_rates()
        self._check_integrity()

        logger.info(
            "Loaded %d state profiles, %d ZIP prefixes, %d local overrides, "
            "%d regional breakdowns from %s",
            len(self._profiles),
            len(self._prefixes),
            len(self._overrides),
            len(self._breakdowns),
            self.data_dir,
        )

    # -- loaders -----------------------------------------------------------

    def _load_profiles(self) -> None:
        path = self.data_dir / "state_profiles.csv"
        frame = _read_table(
            path,
            {"state_code", "name", "base_rate", "has_local_tax", "default_local_rate"},
        )
        for row_number, row in _rows(frame):
            code = _parse_state_code(row["state_code"], path, row_number, "state_code")
            if code in self._profiles:
                raise DataValidationError(
                    "duplicate state code", path, row_number, "state_code", code
                )
            if not row["name"]:
                raise DataValidationError("state name is empty", path, row_number, "name")
            self._profiles[code] = StateTaxProfile(
                state_code=code,
                name=row["name"],
                base_rate=_parse_rate(
                    row["base_rate"], path, row_number, "base_rate", max_places=3
                ),
                has_local_tax=_parse_bool(
                    row["has_local_tax"], path, row_number, "has_local_tax"
                ),
                default_local_rate=_parse_optional_rate(
                    row["default_local_rate"], path, row_number, "default_local_rate"
                ),
            )

    def _load_prefixes(self) -> None:
        path = self.data_dir / "zip_prefixes.csv"
        frame = _read_table(path, {"prefix", "state_code"})
        for row_number, row in _rows(frame):
            prefix = _parse_digits(row["prefix"], 3, path, row_number, "prefix")
            if prefix in self._prefixes:
                raise DataValidationError(
                    "duplicate ZIP prefix", path, row_number, "prefix", prefix
                )
            self._prefixes[prefix] = _parse_state_code(
                row["state_code"], path, row_number, "state_code"
            )

    def _load_overrides(self) -> None:
        path = self.data_dir / "local_overrides.csv"
        frame = _read_table(path, {"zip", "city", "local_rate"}, optional=True)
        for row_number, row in _rows(frame):
            zip_code = _parse_digits(row["zip"], 5, path, row_number, "zip")
            if zip_code in self._overrides:
                raise DataValidationError(
                    "duplicate ZIP", path, row_number, "zip", zip_code
                )
            self._overrides[zip_code] = LocalOverride(
                zip_code=zip_code,
                city=row["city"],
                local_rate=_parse_rate(row["local_rate"], path, row_number, "local_rate"),
            )

    def _load_breakdowns(self) -> None:
        path = self.data_dir / "regional_breakdowns.csv"
        frame = _read_table(
            path,
            {
                "zip",
                "state_code",
                "municipality",
                "municipality_rate",
                "transit_rate",
                "county",
            },
            optional=True,
        )
        for row_number, row in _rows(frame):
            zip_code = _parse_digits(row["zip"], 5, path, row_number, "zip")
            if zip_code in self._breakdowns:
                raise DataValidationError(
                    "duplicate ZIP", path, row_number, "zip", zip_code
                )
            self._breakdowns[zip_code] = RegionalBreakdown(
                zip_code=zip_code,
                state_code=_parse_state_code(
                    row["state_code"], path, row_number, "state_code"
                ),
                municipality=row["municipality"],
                municipality_rate=_parse_rate(
                    row["municipality_rate"], path, row_number, "municipality_rate"
                ),
                transit_rate=_parse_rate(
                    row["transit_rate"], path, row_number, "transit_rate"
                ),
                county=row["county"],
            )

    def _load_county_rates(self) -> None:
        path = self.data_dir / "county_rates.csv"
        frame = _read_table(path, {"state_code", "county", "rate"}, optional=True)
        for row_number, row in _rows(frame):
            code = _parse_state_code(row["state_code"], path, row_number, "state_code")
            key = (code, row["county"].lower())
            if key in self._county_rates:
                raise DataValidationError(
                    "duplicate county", path, row_number, "county", row["county"]
                )
            self._county_rates[key] = _parse_rate(row["rate"], path, row_number, "rate")

    def _load_overlays(self) -> None:
        path = self.data_dir / "category_overlays.csv"
        frame = _read_table(
            path,
            {"state_code", "category", "layer", "jurisdiction", "rate", "rate_per_gallon"},
            optional=True,
        )
        seen: set[tuple[str, ProductCategory, OverlayLayer]] = set()
        for row_number, row in _rows(frame):
            code = _parse_state_code(row["state_code"], path, row_number, "state_code")
            category = _parse_enum(
                ProductCategory, row["category"], path, row_number, "category"
            )
            if category not in OVERLAY_CATEGORIES:
                raise DataValidationError(
                    "overlays only apply to spirits, wine and beer",
                    path, row_number, "category", row["category"],
                )
            layer = _parse_enum(OverlayLayer, row["layer"], path, row_number, "layer")
            jurisdiction = row["jurisdiction"]
            if layer is OverlayLayer.STATE and jurisdiction:
                raise DataValidationError(
                    "state-layer overlay must not name a jurisdiction",
                    path, row_number, "jurisdiction", jurisdiction,
                )
            if layer is not OverlayLayer.STATE and not jurisdiction:
                raise DataValidationError(
                    f"{layer.value}-layer overlay needs a designated jurisdiction",
                    path, row_number, "jurisdiction",
                )
            if (code, category, layer) in seen:
                raise DataValidationError(
                    "duplicate overlay for category and layer",
                    path, row_number, "layer", row["layer"],
                )
            seen.add((code, category, layer))

            self._overlays.setdefault(code, []).append(
                CategoryOverlay(
                    state_code=code,
                    category=category,
                    layer=layer,
                    jurisdiction=jurisdiction,
                    rate=_parse_rate(row["rate"], path, row_number, "rate"),
                    rate_per_gallon=_parse_optional_rate(
                        row["rate_per_gallon"], path, row_number, "rate_per_gallon"
                    ),
                )
            )

    def _load_reduced_rates(self) -> None:
        path = self.data_dir / "reduced_rates.csv"
        frame = _read_table(path, {"state_code", "category", "rate"}, optional=True)
        for row_number, row in _rows(frame):
            code = _parse_state_code(row["state_code"], path, row_number, "state_code")
            category = _parse_enum(
                ProductCategory, row["category"], path, row_number, "category"
            )
            if category not in REDUCED_CATEGORIES:
                raise DataValidationError(
                    "reduced rates only apply to grocery and medicine",
                    path, row_number, "category", row["category"],
                )
            rates = self._reduced.setdefault(code, {})
            if category in rates:
                raise DataValidationError(
                    "duplicate reduced rate", path, row_number, "category", row["category"]
                )
            rates[category] = _parse_rate(row["rate"], path, row_number, "rate")

    def _check_integrity(self) -> None:
        orphan_prefixes = {
            prefix: code
            for prefix, code in self._prefixes.items()
            if code not in self._profiles
        }
        if orphan_prefixes:
            raise ConfigurationIntegrityError(
                "ZIP prefixes reference states without a tax profile",
                orphan_prefixes,
            )

        referenced = {
            "regional_breakdowns": {b.state_code for b in self._breakdowns.values()},
            "county_rates": {code for code, _ in self._county_rates},
            "category_overlays": set(self._overlays),
            "reduced_rates": set(self._reduced),
        }
        for table, codes in referenced.items():
            unknown = sorted(codes - set(self._profiles))
            if unknown:
                raise ConfigurationIntegrityError(
                    f"{table} references states without a tax profile",
                    {"state_codes": unknown},
                )

        misfiled = {
            zip_code: b.state_code
            for zip_code, b in self._breakdowns.items()
            if self._prefixes.get(zip_code[:3]) != b.state_code
        }
        if misfiled:
            raise ConfigurationIntegrityError(
                "regional breakdowns filed under a state their ZIP prefix does not map to",
                misfiled,
            )

        for b in self._breakdowns.values():
            if (b.state_code, b.county.lower()) not in self._county_rates:
                self._warn(
                    f"ZIP {b.zip_code}: county {b.county!r} has no rate in "
                    f"{b.state_code}; county component will be 0"
                )

        for zip_code in self._overrides:
            if zip_code[:3] not in self._prefixes:
                self._warn(
                    f"ZIP {zip_code}: local override is unreachable, "
                    f"prefix {zip_code[:3]} maps to no state"
                )

    def _warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning(message)

    # -- lookups -----------------------------------------------------------

    @property
    def state_count(self) -> int:
        return len(self._profiles)

    @property
    def prefix_map(self) -> dict[str, str]:
        """Copy of the ZIP prefix -> state code table."""
        return dict(self._prefixes)

    def get_profile(self, state_code: str) -> Optional[StateTaxProfile]:
        return self._profiles.get(state_code.upper())

    def get_override(self, zip_code: str) -> Optional[LocalOverride]:
        return self._overrides.get(zip_code)

    def get_breakdown(self, zip_code: str) -> Optional[RegionalBreakdown]:
        return self._breakdowns.get(zip_code)

    def get_county_rate(self, state_code: str, county: str) -> Optional[Decimal]:
        return self._county_rates.get((state_code.upper(), county.lower()))

    def breakdown_states(self) -> frozenset[str]:
        """States whose local tax is composed per ZIP from sub-layers."""
        return frozenset(b.state_code for b in self._breakdowns.values())

    def overlays_for(self, state_code: str) -> tuple[CategoryOverlay, ...]:
        return tuple(self._overlays.get(state_code.upper(), ()))

    def reduced_rates_for(self, state_code: str) -> dict[ProductCategory, Decimal]:
        return dict(self._reduced.get(state_code.upper(), {}))

    def has_category_data(self, state_code: str) -> bool:
        code = state_code.upper()
        return code in self._overlays or code in self._reduced

    def all_profiles(self) -> list[StateTaxProfile]:
        """Return all state profiles sorted by code."""
        return [self._profiles[k] for k in sorted(self._profiles)]

    def no_sales_tax_states(self) -> list[str]:
        """State codes with no state-level sales tax."""
        return sorted(
            code for code, p in self._profiles.items() if p.base_rate == 0
        )

    def summary(self) -> dict[str, int]:
        return {
            "state_profiles": len(self._profiles),
            "zip_prefixes": len(self._prefixes),
            "local_overrides": len(self._overrides),
            "regional_breakdowns": len(self._breakdowns),
            "county_rates": len(self._county_rates),
            "category_overlays": sum(len(v) for v in self._overlays.values()),
            "reduced_rates": sum(len(v) for v in self._reduced.values()),
            "warnings": len(self.warnings),
        }
