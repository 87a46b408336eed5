"""Weighted reward pool.

Sampling walks the catalog in insertion order, accumulating weights, and
returns the first entry whose cumulative weight is >= a uniform draw in
``[0, total_weight)``.  Ties at a boundary go to the earlier entry.
"""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from collections.abc import Iterable

from loot_draw.core.errors import ValidationError
from loot_draw.domain.catalog import CatalogEntry
from loot_draw.domain.tier import Tier

logger = logging.getLogger(__name__)


class RewardPool:
    """Immutable weighted catalog.

    Parameters
    ----------
    entries
        Catalog entries, tried in the given order during sampling.
    rng
        Optional ``random.Random`` used for draws.  Pass a seeded instance
        for reproducible sequences.
    """

    def __init__(
        self,
        entries: Iterable[CatalogEntry],
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._entries: tuple[CatalogEntry, ...] = tuple(entries)
        if not self._entries:
            raise ValidationError("RewardPool requires at least one entry")

        seen: set[str] = set()
        for entry in self._entries:
            if entry.id in seen:
                raise ValidationError(f"Duplicate catalog entry id: {entry.id!r}")
            seen.add(entry.id)

        self._total_weight = float(sum(e.weight for e in self._entries))
        if not self._total_weight > 0:
            raise ValidationError(
                f"RewardPool total weight must be > 0, got {self._total_weight}"
            )
        self._by_id = {e.id: e for e in self._entries}
        self._rng = rng or random.Random()

    # -- Sampling ----------------------------------------------------------

    def sample(self) -> CatalogEntry:
        """Draw one entry with probability ``weight / total_weight``."""
        draw = self._rng.random() * self._total_weight
        return self._select(draw)

    def _select(self, draw: float) -> CatalogEntry:
        cumulative = 0.0
        for entry in self._entries:
            cumulative += entry.weight
            if draw <= cumulative:
                return entry

        # Only reachable through floating-point drift.
        logger.warning(
            "Weighted walk found no entry for draw=%s total=%s; using first entry",
            draw,
            self._total_weight,
        )
        return self._entries[0]

    # -- Introspection -----------------------------------------------------

    @property
    def entries(self) -> tuple[CatalogEntry, ...]:
        return self._entries

    @property
    def total_weight(self) -> float:
        return self._total_weight

    def get(self, entry_id: str) -> CatalogEntry | None:
        return self._by_id.get(entry_id)

    def probability(self, entry_id: str) -> float:
        """Return the exact draw probability of *entry_id* (0.0 if absent)."""
        entry = self._by_id.get(entry_id)
        if entry is None:
            return 0.0
        return entry.weight / self._total_weight

    def rates(self) -> dict[str, float]:
        """Per-entry draw rate in percent, keyed by entry id."""
        return {
            e.id: e.weight / self._total_weight * 100 for e in self._entries
        }

    def tier_rates(self) -> dict[Tier, float]:
        """Effective per-tier draw rate in percent."""
        out: dict[Tier, float] = defaultdict(float)
        for entry in self._entries:
            out[entry.tier] += entry.weight / self._total_weight * 100
        return dict(out)

    def __len__(self) -> int:
        return len(self._entries)
