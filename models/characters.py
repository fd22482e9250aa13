"""Character, weapon and armor data models for the Albedo calculator."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from models.enums import (
    Cover,
    CoverField,
    MarkerType,
    Mode,
    Range,
    Skill,
    WeaponAction,
    WoundState,
    WoundStateField,
)


class Record(BaseModel):
    """Base for persisted records: snake_case in Python, camelCase in JSON."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class WeaponRanges(BaseModel):
    """Maximum distance per range band. Missing bands are unreachable."""
    model_config = ConfigDict(populate_by_name=True)

    close: int | None = Field(default=None, ge=0, alias="C")
    short: int | None = Field(default=None, ge=0, alias="S")
    medium: int | None = Field(default=None, ge=0, alias="M")
    long: int | None = Field(default=None, ge=0, alias="L")
    extreme: int | None = Field(default=None, ge=0, alias="X")

    @model_validator(mode="after")
    def _check_increasing(self) -> WeaponRanges:
        previous: tuple[Range, int] | None = None
        for band in Range.bands():
            limit = self.get(band)
            if limit is None:
                continue
            if previous is not None and limit <= previous[1]:
                raise ValueError(
                    f"range {band.key}={limit} must exceed "
                    f"{previous[0].key}={previous[1]}"
                )
            previous = (band, limit)
        return self

    def get(self, band: Range) -> int | None:
        """Configured maximum distance for a band (None for Over)."""
        if band is Range.OVER:
            return None
        return getattr(self, band.label.lower())

    @property
    def envelope(self) -> int | None:
        """The farthest configured distance, if any band is configured."""
        limits = [self.get(b) for b in Range.bands() if self.get(b) is not None]
        return max(limits) if limits else None


class Weapon(Record):
    """A weapon a character can equip."""
    name: str = Field(min_length=1)
    skill: Skill
    action: WeaponAction
    ranges: WeaponRanges = WeaponRanges()
    base_damage: int = Field(ge=0)
    pen_damage: int | None = Field(default=None, ge=0)
    shotgun: bool = False           # Damage dice scale with range instead of wounds
    explosion: int | None = Field(default=None, ge=0)  # Blast radius

    @property
    def is_explosive(self) -> bool:
        return bool(self.explosion)

    @property
    def is_melee(self) -> bool:
        return self.action == WeaponAction.MELEE


class Armor(Record):
    """Worn protection."""
    name: str = Field(min_length=1)
    deflection: int = Field(ge=0)   # A damage die must beat this to penetrate
    threshold: int = Field(ge=0)    # Added to every wound breakpoint


class Marks(BaseModel):
    """Training level per weapon skill."""
    model_config = ConfigDict(populate_by_name=True)

    brawl: int = Field(default=0, ge=0, alias="Brawl")
    melee: int = Field(default=0, ge=0, alias="Melee")
    throw: int = Field(default=0, ge=0, alias="Throw")
    longarm: int = Field(default=0, ge=0, alias="Longarm")
    pistol: int = Field(default=0, ge=0, alias="Pistol")
    heavy: int = Field(default=0, ge=0, alias="Heavy")

    def for_skill(self, skill: Skill) -> int:
        return getattr(self, skill.value.lower())


class Conditions(Record):
    """Situational flags, independent of each other."""
    surprised: bool = False
    helpless: bool = False
    hiding: bool = False
    aiming: bool = False


class Gifts(Record):
    """Passive gifts."""
    tough: bool = False
    very_tough: bool = False
    strong: bool = False
    very_strong: bool = False
    semi_auto_expert: bool = False


class ActiveGifts(Record):
    """Gifts the player declares for an attack."""
    sniper_expert: bool = False
    sniper_master: bool = False
    martial_arts: bool = False
    melee_expert: bool = False


class Position(BaseModel):
    """Battle-map coordinate in map units."""
    x: float = Field(default=1.0, allow_inf_nan=False)
    y: float = Field(default=1.0, allow_inf_nan=False)


class CharacterBase(Record):
    """Fields shared by the stored record and the resolved view."""
    name: str = Field(min_length=1)
    body: int = Field(ge=0)         # Damage resistance and injury cap
    injury: int = Field(default=0, ge=0)
    marks: Marks = Marks()
    mode: Mode = Mode.ROLL
    wound_state: WoundStateField = WoundState.UNINJURED
    max_cover: CoverField = Cover.NONE
    concealment: CoverField = Cover.NONE
    morale: int = Field(ge=0)
    awe: int = Field(default=0, ge=0)
    conditions: Conditions = Conditions()
    gifts: Gifts = Gifts()
    active_gifts: ActiveGifts = ActiveGifts()
    position: Position = Position()
    marker: MarkerType = MarkerType.CIRCLE
    color: str | None = None

    @model_validator(mode="after")
    def _check_caps(self) -> CharacterBase:
        if self.injury > self.body:
            raise ValueError(f"injury {self.injury} exceeds body {self.body}")
        if self.awe > self.morale:
            raise ValueError(f"awe {self.awe} exceeds morale {self.morale}")
        return self

    @property
    def remaining_body(self) -> int:
        return max(0, self.body - self.injury)


class CharacterRecord(CharacterBase):
    """A character as stored: equipment referenced by list index."""
    weapon: int = Field(default=0, ge=0)
    armor: int = Field(default=0, ge=0)


class Character(CharacterBase):
    """A character with its weapon and armor resolved. What the rules consume."""
    weapon: Weapon
    armor: Armor

    def marks_for_weapon(self) -> int:
        return self.marks.for_skill(self.weapon.skill)
