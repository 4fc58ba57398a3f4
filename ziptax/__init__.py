"""
ZIP Tax Rate Engine
===================

Best-effort, layered U.S. sales tax rate suggestions by ZIP code: state,
local (municipality, county, transit district) and category-specific
rates, each flagged as exact or estimated.

Modules:
    rates            - Reference tables loaded from CSV, with validation
    jurisdiction     - ZIP prefix to state resolution
    strategies       - Per-state local-tax composition strategies
    overlays         - Category (grocery, alcohol, tobacco) rate composition
    resolver         - RateResolver and the TaxRateResult contract
    report_generator - Batch lookup reports with CSV/JSON export
    cli              - Command-line interface
"""

__version__ = "1.0.0"

from ziptax.rates import ProductCategory, RateTables
from ziptax.resolver import (
    Disclaimer,
    RateResolver,
    TaxRateResult,
    get_resolver,
    normalize_zip,
    resolve,
)
from ziptax.report_generator import ReportGenerator

__all__ = [
    "Disclaimer",
    "ProductCategory",
    "RateResolver",
    "RateTables",
    "ReportGenerator",
    "TaxRateResult",
    "get_resolver",
    "normalize_zip",
    "resolve",
]
