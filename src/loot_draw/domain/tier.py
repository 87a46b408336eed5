"""Reward tier value object.

Tiers are ordered ``N < R < SR < SSR < UR``.  Each carries a display payout
rate (percent), a fixed salvage value credited on duplicate grants, and a
display name.
"""

from __future__ import annotations

from enum import Enum

from loot_draw.core.errors import ValidationError


class Tier(str, Enum):
    N = "N"
    R = "R"
    SR = "SR"
    SSR = "SSR"
    UR = "UR"

    @classmethod
    def parse(cls, value: str | Tier) -> Tier:
        """Return the tier for *value*, raising ``ValidationError`` if unknown."""
        if isinstance(value, Tier):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValidationError(
                f"Invalid tier: {value!r}. Valid tiers are: {valid}"
            ) from None

    @property
    def rank(self) -> int:
        return _ORDER.index(self)

    @property
    def payout_rate(self) -> float:
        """Advertised rate in percent.  Display only; sampling uses weights."""
        return _PAYOUT_RATES[self]

    @property
    def salvage_value(self) -> int:
        return _SALVAGE_VALUES[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_rare(self) -> bool:
        return self.rank >= Tier.SR.rank

    def is_higher_than(self, other: Tier) -> bool:
        return self.rank > other.rank

    # Ordering is by rank, never by the string value.
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return f"{self.display_name}({self.value}) - {self.payout_rate}%"


_ORDER: tuple[Tier, ...] = (Tier.N, Tier.R, Tier.SR, Tier.SSR, Tier.UR)

_PAYOUT_RATES: dict[Tier, float] = {
    Tier.N: 50.0,
    Tier.R: 30.0,
    Tier.SR: 15.0,
    Tier.SSR: 4.0,
    Tier.UR: 1.0,
}

_SALVAGE_VALUES: dict[Tier, int] = {
    Tier.N: 10,
    Tier.R: 50,
    Tier.SR: 200,
    Tier.SSR: 1000,
    Tier.UR: 5000,
}

_DISPLAY_NAMES: dict[Tier, str] = {
    Tier.N: "Normal",
    Tier.R: "Rare",
    Tier.SR: "Super Rare",
    Tier.SSR: "Super Special Rare",
    Tier.UR: "Ultra Rare",
}
