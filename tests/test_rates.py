"""Tests for loading and validating the rate tables."""

from decimal import Decimal

import pytest

from ziptax.exceptions import (
    ConfigurationIntegrityError,
    DataLoadError,
    DataValidationError,
)
from ziptax.rates import OverlayLayer, ProductCategory, RateTables


# ── Packaged tables ──────────────────────────────────────────────────


def test_all_50_states_plus_dc_loaded(tables: RateTables):
    assert tables.state_count == 51


def test_illinois_profile(tables: RateTables):
    il = tables.get_profile("IL")
    assert il is not None
    assert il.name == "Illinois"
    assert il.base_rate == Decimal("6.25")
    assert il.has_local_tax is True
    assert il.default_local_rate == Decimal("2.50")


def test_three_decimal_base_rates_kept_exactly(tables: RateTables):
    assert tables.get_profile("MN").base_rate == Decimal("6.875")
    assert tables.get_profile("MO").base_rate == Decimal("4.225")
    assert tables.get_profile("NJ").base_rate == Decimal("6.625")


def test_state_without_default_local_rate(tables: RateTables):
    assert tables.get_profile("AL").default_local_rate is None


def test_case_insensitive_profile_lookup(tables: RateTables):
    assert tables.get_profile("il") == tables.get_profile("IL")


def test_no_sales_tax_states(tables: RateTables):
    assert tables.no_sales_tax_states() == ["AK", "DE", "MT", "NH", "OR"]


def test_leading_zero_prefixes_survive_loading(tables: RateTables):
    assert tables.prefix_map["060"] == "CT"
    assert tables.prefix_map["070"] == "NJ"


def test_every_prefix_state_has_a_profile(tables: RateTables):
    for prefix, code in tables.prefix_map.items():
        assert tables.get_profile(code) is not None, prefix


def test_chicago_breakdown(tables: RateTables):
    b = tables.get_breakdown("60601")
    assert b.municipality == "Chicago"
    assert b.municipality_rate == Decimal("1.25")
    assert b.transit_rate == Decimal("1.00")
    assert b.county == "Cook"


def test_county_rates(tables: RateTables):
    assert tables.get_county_rate("IL", "Cook") == Decimal("1.75")
    assert tables.get_county_rate("IL", "dupage") == Decimal("0.75")
    assert tables.get_county_rate("IL", "Kane") is None


def test_local_override(tables: RateTables):
    o = tables.get_override("77002")
    assert o.city == "Houston"
    assert o.local_rate == Decimal("2.00")
    assert tables.get_override("75201") is None


def test_breakdown_states(tables: RateTables):
    assert tables.breakdown_states() == frozenset({"IL"})


def test_illinois_overlays(tables: RateTables):
    overlays = tables.overlays_for("IL")
    assert len(overlays) == 9
    spirits_state = [
        o for o in overlays
        if o.category is ProductCategory.SPIRITS and o.layer is OverlayLayer.STATE
    ]
    assert spirits_state[0].rate == Decimal("18.00")
    assert spirits_state[0].rate_per_gallon == Decimal("8.55")


def test_reduced_rates(tables: RateTables):
    assert tables.reduced_rates_for("IL") == {
        ProductCategory.GROCERY: Decimal("1.00"),
        ProductCategory.MEDICINE: Decimal("1.00"),
    }
    assert tables.reduced_rates_for("TX") == {}


def test_category_data_only_for_illinois(tables: RateTables):
    assert tables.has_category_data("IL") is True
    assert tables.has_category_data("NY") is False


def test_packaged_tables_have_no_warnings(tables: RateTables):
    assert tables.warnings == []


def test_summary_counts(tables: RateTables):
    summary = tables.summary()
    assert summary["state_profiles"] == 51
    assert summary["county_rates"] == 4
    assert summary["category_overlays"] == 9


# ── Loading failures ─────────────────────────────────────────────────


def test_minimal_directory_loads(make_data_dir):
    t = RateTables(make_data_dir())
    assert t.state_count == 3
    assert t.get_override("60601") is None
    assert t.breakdown_states() == frozenset()


def test_missing_required_file(tmp_path):
    with pytest.raises(DataLoadError, match="file not found"):
        RateTables(tmp_path)


def test_empty_file(make_data_dir):
    with pytest.raises(DataLoadError, match="empty"):
        RateTables(make_data_dir(zip_prefixes=""))


def test_missing_column(make_data_dir):
    data_dir = make_data_dir(
        state_profiles="""\
        state_code,name,base_rate
        IL,Illinois,6.25
        """
    )
    with pytest.raises(DataLoadError, match="missing required columns"):
        RateTables(data_dir)


def test_negative_rate_rejected(make_data_dir):
    data_dir = make_data_dir(
        state_profiles="""\
        state_code,name,base_rate,has_local_tax,default_local_rate
        IL,Illinois,-1.00,true,
        CT,Connecticut,6.35,false,
        AL,Alabama,4.00,true,
        """
    )
    with pytest.raises(DataValidationError, match="between 0 and 100") as exc:
        RateTables(data_dir)
    assert exc.value.row_number == 2
    assert exc.value.column_name == "base_rate"


def test_base_rate_limited_to_three_places(make_data_dir):
    data_dir = make_data_dir(
        state_profiles="""\
        state_code,name,base_rate,has_local_tax,default_local_rate
        IL,Illinois,6.2501,true,
        CT,Connecticut,6.35,false,
        AL,Alabama,4.00,true,
        """
    )
    with pytest.raises(DataValidationError, match="more than 3 decimal places"):
        RateTables(data_dir)


def test_non_numeric_rate_rejected(make_data_dir):
    data_dir = make_data_dir(
        local_overrides="""\
        zip,city,local_rate
        60601,Chicago,lots
        """
    )
    with pytest.raises(DataValidationError, match="not a number"):
        RateTables(data_dir)


def test_bad_boolean_rejected(make_data_dir):
    data_dir = make_data_dir(
        state_profiles="""\
        state_code,name,base_rate,has_local_tax,default_local_rate
        IL,Illinois,6.25,maybe,
        CT,Connecticut,6.35,false,
        AL,Alabama,4.00,true,
        """
    )
    with pytest.raises(DataValidationError, match="true/false"):
        RateTables(data_dir)


def test_short_zip_in_override_rejected(make_data_dir):
    data_dir = make_data_dir(
        local_overrides="""\
        zip,city,local_rate
        6060,Chicago,4.50
        """
    )
    with pytest.raises(DataValidationError, match="5-digit"):
        RateTables(data_dir)


def test_duplicate_prefix_rejected(make_data_dir):
    data_dir = make_data_dir(
        zip_prefixes="""\
        prefix,state_code
        606,IL
        606,CT
        """
    )
    with pytest.raises(DataValidationError, match="duplicate ZIP prefix"):
        RateTables(data_dir)


def test_overlay_for_non_alcohol_category_rejected(make_data_dir):
    data_dir = make_data_dir(
        category_overlays="""\
        state_code,category,layer,jurisdiction,rate,rate_per_gallon
        IL,tobacco,state,,36.00,
        """
    )
    with pytest.raises(DataValidationError, match="spirits, wine and beer"):
        RateTables(data_dir)


def test_city_overlay_requires_jurisdiction(make_data_dir):
    data_dir = make_data_dir(
        category_overlays="""\
        state_code,category,layer,jurisdiction,rate,rate_per_gallon
        IL,beer,city,,2.00,
        """
    )
    with pytest.raises(DataValidationError, match="designated jurisdiction"):
        RateTables(data_dir)


# ── Cross-table integrity ────────────────────────────────────────────


def test_prefix_to_unknown_state_is_integrity_fault(make_data_dir):
    data_dir = make_data_dir(
        zip_prefixes="""\
        prefix,state_code
        606,IL
        999,ZZ
        """
    )
    with pytest.raises(ConfigurationIntegrityError) as exc:
        RateTables(data_dir)
    assert exc.value.inconsistent_data == {"999": "ZZ"}


def test_overlay_for_unknown_state_is_integrity_fault(make_data_dir):
    data_dir = make_data_dir(
        category_overlays="""\
        state_code,category,layer,jurisdiction,rate,rate_per_gallon
        WI,beer,state,,1.00,
        """
    )
    with pytest.raises(ConfigurationIntegrityError, match="category_overlays"):
        RateTables(data_dir)


def test_breakdown_under_wrong_state_is_integrity_fault(make_data_dir):
    data_dir = make_data_dir(
        regional_breakdowns="""\
        zip,state_code,municipality,municipality_rate,transit_rate,county
        06103,IL,Hartford,1.00,1.00,Cook
        """
    )
    with pytest.raises(ConfigurationIntegrityError, match="ZIP prefix does not map"):
        RateTables(data_dir)


def test_breakdown_with_unknown_county_only_warns(make_data_dir):
    data_dir = make_data_dir(
        regional_breakdowns="""\
        zip,state_code,municipality,municipality_rate,transit_rate,county
        60601,IL,Chicago,1.25,1.00,Kane
        """
    )
    t = RateTables(data_dir)
    assert len(t.warnings) == 1
    assert "Kane" in t.warnings[0]


def test_unreachable_override_warns(make_data_dir):
    data_dir = make_data_dir(
        local_overrides="""\
        zip,city,local_rate
        10001,New York City,4.50
        """
    )
    t = RateTables(data_dir)
    assert any("unreachable" in w for w in t.warnings)
