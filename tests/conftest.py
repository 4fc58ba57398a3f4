"""Shared fixtures: the packaged tables and throwaway data directories."""

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from ziptax.rates import RateTables
from ziptax.resolver import RateResolver

BASE_PROFILES = """\
state_code,name,base_rate,has_local_tax,default_local_rate
IL,Illinois,6.25,true,2.50
CT,Connecticut,6.35,false,
AL,Alabama,4.00,true,
"""

BASE_PREFIXES = """\
prefix,state_code
606,IL
061,CT
352,AL
"""


@pytest.fixture(scope="session")
def tables() -> RateTables:
    return RateTables()


@pytest.fixture(scope="session")
def resolver(tables: RateTables) -> RateResolver:
    return RateResolver(tables)


@pytest.fixture
def make_data_dir(tmp_path: Path) -> Callable[..., Path]:
    """
    Write a data directory from keyword CSV contents.

    ``state_profiles`` and ``zip_prefixes`` default to a small three-state
    set; any other table is only written when passed.
    """

    def _make(**csv_tables: str) -> Path:
        target = tmp_path / "data"
        target.mkdir(exist_ok=True)
        contents = {
            "state_profiles": BASE_PROFILES,
            "zip_prefixes": BASE_PREFIXES,
            **csv_tables,
        }
        for name, content in contents.items():
            (target / f"{name}.csv").write_text(
                textwrap.dedent(content), encoding="utf-8"
            )
        return target

    return _make
