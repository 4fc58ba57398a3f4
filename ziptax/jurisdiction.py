"""ZIP prefix to state resolution."""

from __future__ import annotations

from typing import Optional

from ziptax.rates import RateTables


class JurisdictionIndex:
    """
    Maps a 5-digit ZIP to a state code using its 3-digit prefix.

    Unmapped prefixes (territories, military, unassigned or foreign codes)
    return None rather than raising.
    """

    def __init__(self, tables: RateTables) -> None:
        self._prefixes = tables.prefix_map

    def __len__(self) -> int:
        return len(self._prefixes)

    def resolve_state(self, zip_code: str) -> Optional[str]:
        return self._prefixes.get(zip_code[:3])

    def prefixes_for(self, state_code: str) -> list[str]:
        """All prefixes assigned to a state, sorted."""
        code = state_code.upper()
        return sorted(p for p, s in self._prefixes.items() if s == code)
