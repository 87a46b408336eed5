"""Catalog entries and draw results."""

from __future__ import annotations

from dataclasses import dataclass, field

from loot_draw.core.errors import ValidationError
from loot_draw.domain.tier import Tier


@dataclass(frozen=True)
class CatalogEntry:
    """One weighted item in a reward pool."""

    id: str
    name: str
    tier: Tier
    weight: float

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValidationError("CatalogEntry id cannot be empty")
        if not self.name or not self.name.strip():
            raise ValidationError("CatalogEntry name cannot be empty")
        object.__setattr__(self, "tier", Tier.parse(self.tier))
        if not self.weight > 0:
            raise ValidationError(
                f"CatalogEntry {self.id!r} weight must be > 0, got {self.weight}"
            )


@dataclass(frozen=True)
class Reward:
    """Output of a single draw.

    Two rewards with the same ``item_id`` are the same catalog item, so
    equality and hashing only look at ``item_id``.
    """

    item_id: str
    name: str = field(compare=False)
    tier: Tier = field(compare=False)
    description: str = field(default="", compare=False)

    @classmethod
    def from_entry(cls, entry: CatalogEntry, description: str = "") -> Reward:
        return cls(
            item_id=entry.id,
            name=entry.name,
            tier=entry.tier,
            description=description,
        )

    def __str__(self) -> str:
        return f"{self.name} [{self.tier.value}] (ID: {self.item_id})"
