"""Stage inputs and outputs of the combat pipeline."""

from __future__ import annotations

from enum import IntEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from models.characters import Character, Position
from models.enums import AttackResult, RangeField, WoundStateField


class FlatAttack(BaseModel):
    """Rote: the attacker takes a fixed value instead of rolling."""
    kind: Literal["flat"] = "flat"
    value: int


class DicePool(BaseModel):
    """Die sizes to roll, e.g. [8, 8] for 2d8."""
    kind: Literal["pool"] = "pool"
    dice: list[int]


class Unavailable(BaseModel):
    """The chosen mode can't be used at this skill level."""
    kind: Literal["unavailable"] = "unavailable"
    reason: str


class Decided(BaseModel):
    """The outcome is fixed without a defense roll."""
    kind: Literal["decided"] = "decided"
    result: AttackResult


AttackDice = Annotated[FlatAttack | DicePool | Unavailable, Field(discriminator="kind")]
DefenseDice = Annotated[DicePool | Decided, Field(discriminator="kind")]


class SetupResult(BaseModel):
    """Output of the attack setup stage."""
    attacker: Character
    defender: Character
    distance: int
    range: RangeField
    attack_dice: AttackDice
    defense_dice: DefenseDice


class ResolveResult(BaseModel):
    """Output of the attack resolve stage."""
    attack_roll: int | list[int]    # Flat value for Rote, else one roll per die
    defense_roll: list[int] = []
    result: AttackResult
    damage_dice_count: int


class DamageResult(BaseModel):
    """Output of the damage resolve stage for one defender."""
    damage_roll: list[int] = []
    total_damage: int
    new_status: WoundStateField
    awe: int
    injury: int


class BlastTarget(BaseModel):
    """Where an explosive actually went off."""
    center: Position
    result: AttackResult
    deviation: int = 0              # Distance from the aimed point
    direction: int | None = None    # Clock-face deviation roll (1-12)


class BlastHit(BaseModel):
    """A character caught in a blast."""
    index: int                      # Position in the character list
    distance: float
    dice_count: int


class BlastDamage(BaseModel):
    """Damage outcome for one character caught in a blast."""
    index: int
    damage: DamageResult | None = None  # None until the rolls are in
    error: str | None = None


class ExplosionResult(BaseModel):
    """Output of the explosion stage."""
    target: BlastTarget
    radius: int
    hits: list[BlastHit] = []
    damage: list[BlastDamage] = []


class Step(IntEnum):
    """Furthest pipeline stage a calculation reached."""
    SETUP = 0
    TO_HIT = 1
    ATTACK_RESOLVE = 2
    DAMAGE_RESOLVE = 3
    EXPLOSION = 4


class Calcs(BaseModel):
    """Everything the pipeline could work out from the current inputs.

    step names the stage to show; error, when set, says why the following
    stage can't run yet.
    """
    step: Step
    error: str | None = None
    setup: SetupResult | None = None
    resolve: ResolveResult | None = None
    damage: DamageResult | None = None
    explosion: ExplosionResult | None = None

    @property
    def complete(self) -> bool:
        if self.error is not None:
            return False
        if self.step == Step.EXPLOSION:
            return self.explosion is not None and all(
                d.damage is not None for d in self.explosion.damage
            )
        return self.step == Step.DAMAGE_RESOLVE
