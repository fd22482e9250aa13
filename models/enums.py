"""Closed value sets used by the Albedo combat rules."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer


class Ordinal(IntEnum):
    """An ordered enum whose members persist by display name.

    The integer value is the ordinal used for comparisons and table lookups;
    the display name is derived from the member name (THREE_QUARTER ->
    "ThreeQuarter").
    """

    @property
    def label(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))

    @classmethod
    def parse(cls, value: Any) -> Ordinal:
        """Coerce a member, ordinal, numeric string or display name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"{value!r} is not a valid {cls.__name__}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            text = value.strip()
            if text.lstrip("-").isdigit():
                return cls(int(text))
            for member in cls:
                if text in (member.label, member.name):
                    return member
        raise ValueError(f"{value!r} is not a valid {cls.__name__}")

    def step_down(self) -> Ordinal:
        """The next lower member, or this one if it is already the lowest."""
        return type(self)(max(self.value - 1, 0))


class Range(Ordinal):
    """Range bands, Close to Extreme, plus the Over sentinel."""
    CLOSE = 0
    SHORT = 1
    MEDIUM = 2
    LONG = 3
    EXTREME = 4
    OVER = 5                        # Target unreachable

    @property
    def key(self) -> str:
        """Short key used in weapon range tables and the combat log."""
        return _RANGE_KEYS[self]

    @classmethod
    def bands(cls) -> list[Range]:
        """Reachable bands in walking order."""
        return [r for r in cls if r is not cls.OVER]

    @classmethod
    def parse(cls, value: Any) -> Range:
        if isinstance(value, str):
            for member, key in _RANGE_KEYS.items():
                if value.strip() == key:
                    return member
        return super().parse(value)


_RANGE_KEYS = {
    Range.CLOSE: "C",
    Range.SHORT: "S",
    Range.MEDIUM: "M",
    Range.LONG: "L",
    Range.EXTREME: "X",
    Range.OVER: "Over",
}


class Cover(Ordinal):
    """Obstruction level, used for both cover and concealment."""
    NONE = 0
    QUARTER = 1
    HALF = 2
    THREE_QUARTER = 3
    TOTAL = 4


class WoundState(Ordinal):
    """Injury severity, from unhurt to out of the fight."""
    UNINJURED = 0
    WOUNDED = 1
    CRIPPLED = 2
    INCAPACITATED = 3
    DEVASTATED = 4


class Skill(str, Enum):
    """Weapon skills a character can hold marks in."""
    BRAWL = "Brawl"
    MELEE = "Melee"
    THROW = "Throw"
    LONGARM = "Longarm"
    PISTOL = "Pistol"
    HEAVY = "Heavy"


class WeaponAction(str, Enum):
    """How a weapon is operated."""
    MELEE = "Melee"
    SINGLE = "Single"
    SEMI = "Semi"
    FULL = "Full"


class Mode(str, Enum):
    """The attacker's risk/reward stance for one attack."""
    ROTE = "Rote"                   # Take marks + 1, no dice
    ROLL = "Roll"
    PUSH = "Push"
    RISK = "Risk"
    BREEZE = "Breeze"


class AttackResult(str, Enum):
    """Categorical outcome of an attack roll."""
    MISS = "Miss"
    TIE = "Tie"
    HIT = "Hit"
    CRIT = "Crit"

    @property
    def landed(self) -> bool:
        return self in (AttackResult.HIT, AttackResult.CRIT)


class MarkerType(str, Enum):
    """Battle-map marker shape. Display only."""
    CIRCLE = "Circle"
    SQUARE = "Square"
    TRIANGLE = "Triangle"
    CROSS = "Cross"
    STAR = "Star"


RangeField = Annotated[
    Range,
    BeforeValidator(Range.parse),
    PlainSerializer(lambda r: r.key, return_type=str),
]
CoverField = Annotated[
    Cover,
    BeforeValidator(Cover.parse),
    PlainSerializer(lambda c: c.label, return_type=str),
]
WoundStateField = Annotated[
    WoundState,
    BeforeValidator(WoundState.parse),
    PlainSerializer(lambda w: w.label, return_type=str),
]
