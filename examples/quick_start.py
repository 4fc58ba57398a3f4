#!/usr/bin/env python3
"""
Quick Start Example
===================

Looks up the suggested sales tax rate for a downtown Chicago ZIP and for
a ZIP where only an estimate is available, and prints both.

Usage:
    python examples/quick_start.py
"""

from ziptax import ProductCategory, RateResolver


def main() -> None:
    resolver = RateResolver()

    # Chicago: municipality + transit district + county, plus liquor overlays
    result = resolver.resolve("60601")

    print(f"ZIP:            {result.zip_code}")
    print(f"State:          {result.state} ({result.state_code})")
    print(f"City:           {result.city}")
    print(f"County:         {result.county}")
    print(f"State Rate:     {result.state_tax_rate}%")
    print(f"Local Rate:     {result.local_tax_rate}%")
    print(f"Combined Rate:  {result.combined_rate}%")
    print(f"Spirits Rate:   {result.category_rate(ProductCategory.SPIRITS)}%")
    print(f"Grocery Rate:   {result.category_rate(ProductCategory.GROCERY)}%")
    print(f"Note:           {result.disclaimer.value}")

    # Somewhere in Texas without a per-ZIP record: statistical default
    print("\n--- Estimated Rate ---")
    estimate = resolver.resolve("75201")
    print(f"ZIP:            {estimate.zip_code}")
    print(f"Combined Rate:  {estimate.combined_rate}%")
    print(f"Estimated:      {estimate.is_estimated}")
    print(f"Note:           {estimate.disclaimer.value}")


if __name__ == "__main__":
    main()
