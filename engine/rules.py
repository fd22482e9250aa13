"""Albedo combat rules: dice pools, attack results, damage and wounds.

Every function here is pure. Dice are never rolled in this module; the caller
supplies the rolled values.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from config import DAMAGE_DIE, MAX_DICE_MARKS, MAX_DIE_SIZE
from engine.errors import IncompleteRollError, InvalidRollError
from engine.grid import distance as map_distance
from engine.grid import resolve_range
from models.combat import (
    AttackDice,
    DamageResult,
    Decided,
    DefenseDice,
    DicePool,
    FlatAttack,
    ResolveResult,
    SetupResult,
    Unavailable,
)
from models.enums import (
    AttackResult,
    Cover,
    Mode,
    Range,
    Skill,
    WeaponAction,
    WoundState,
)

if TYPE_CHECKING:
    from models.characters import Character, CharacterBase


SKILL_TOO_LOW = "skill too low"
SKILL_TOO_HIGH = "skill too high"

RANGE_DIE: dict[Range, int | None] = {
    Range.CLOSE: 4,
    Range.SHORT: 6,
    Range.MEDIUM: 8,
    Range.LONG: 10,
    Range.EXTREME: 12,
    Range.OVER: None,
}

# None means the defender can't be seen at all
COVER_DICE: dict[Cover, list[int] | None] = {
    Cover.NONE: [],
    Cover.QUARTER: [8],
    Cover.HALF: [10],
    Cover.THREE_QUARTER: [12],
    Cover.TOTAL: None,
}

CONCEALMENT_DICE: dict[Cover, list[int]] = {
    Cover.NONE: [],
    Cover.QUARTER: [8],
    Cover.HALF: [10],
    Cover.THREE_QUARTER: [12],
    Cover.TOTAL: [12, 12],
}

# Most cover a defender can use while still fighting with their weapon
MAX_COVER_FOR_SKILL: dict[Skill, Cover] = {
    Skill.BRAWL: Cover.NONE,
    Skill.MELEE: Cover.NONE,
    Skill.PISTOL: Cover.THREE_QUARTER,
    Skill.THROW: Cover.HALF,
    Skill.LONGARM: Cover.HALF,
    Skill.HEAVY: Cover.HALF,
}

INJURY_FOR_STATUS: dict[WoundState, int] = {
    WoundState.UNINJURED: 0,
    WoundState.WOUNDED: 1,
    WoundState.CRIPPLED: 3,
    WoundState.INCAPACITATED: 5,
}

THRESHOLD_STEPS = (0, 10, 20, 40)


def marks_to_dice(marks: float) -> int:
    """Die size granted by a number of marks.

    Args:
        marks: Training level; may be fractional (Breeze halves it).

    Returns:
        0 below one mark, else 2 * (1 + floor(marks)) capped at d12.
    """
    if marks < 1:
        return 0
    return min(2 * (1 + math.floor(marks)), MAX_DIE_SIZE)


def _one(marks: float) -> AttackDice:
    die = marks_to_dice(marks)
    return DicePool(dice=[die]) if die else Unavailable(reason=SKILL_TOO_LOW)


def _two(marks: float) -> AttackDice:
    die = marks_to_dice(marks)
    return DicePool(dice=[die, die]) if die else Unavailable(reason=SKILL_TOO_LOW)


def attack_dice(attacker: Character) -> AttackDice:
    """Work out what the attacker rolls for their chosen mode.

    Args:
        attacker: The attacking character.

    Returns:
        FlatAttack for Rote, a DicePool for the rolling modes, or
        Unavailable when the mode doesn't suit the attacker's skill.
    """
    marks = min(attacker.marks_for_weapon(), MAX_DICE_MARKS)
    mode = attacker.mode
    if mode == Mode.ROTE:
        return FlatAttack(value=marks + 1)
    if mode == Mode.ROLL:
        return _one(marks)
    if mode == Mode.PUSH:
        return _two(marks)
    if mode == Mode.RISK:
        if marks >= 5:
            return Unavailable(reason=SKILL_TOO_HIGH)
        return _one(marks + 1)
    if mode == Mode.BREEZE:
        if marks <= 2:
            return Unavailable(reason=SKILL_TOO_LOW)
        return _two(marks / 2)
    raise ValueError(f"Unknown attack mode: {mode}")


def _is_melee_at_close(attacker: Character, range_: Range) -> bool:
    return attacker.weapon.is_melee and range_ == Range.CLOSE


def effective_cover(attacker: Character, defender: Character, range_: Range) -> Cover:
    """Cover the defender actually benefits from."""
    if defender.conditions.hiding:
        return defender.max_cover
    if _is_melee_at_close(attacker, range_):
        return Cover.QUARTER if defender.weapon.skill == Skill.MELEE else Cover.NONE
    return min(defender.max_cover, MAX_COVER_FOR_SKILL[defender.weapon.skill])


def defense_dice(
    attacker: Character,
    defender: Character,
    range_: Range,
    attack: AttackDice,
) -> DefenseDice:
    """Build the defender's dice pool.

    Args:
        attacker: The attacking character.
        defender: The defending character.
        range_: Range band from setup.
        attack: The attacker's dice, from attack_dice().

    Returns:
        A DicePool of range, cover and concealment dice, or a Decided result
        when no defense roll is needed: Miss when the attack can't happen or
        the defender is behind total cover, Hit when a Rote value beats every
        die the defender could roll.
    """
    if isinstance(attack, Unavailable) or range_ == Range.OVER:
        return Decided(result=AttackResult.MISS)

    cover = effective_cover(attacker, defender, range_)
    if _is_melee_at_close(attacker, range_):
        concealment = defender.concealment
    else:
        concealment = max(cover, defender.concealment)

    if (
        attacker.conditions.aiming
        and not attacker.weapon.is_melee
        and concealment < Cover.TOTAL
    ):
        concealment = concealment.step_down()
        cover = cover.step_down()
        range_ = range_.step_down()

    range_die = RANGE_DIE[range_]
    cover_dice = COVER_DICE[cover]
    if range_die is None or cover_dice is None:
        return Decided(result=AttackResult.MISS)

    dice = [range_die, *cover_dice, *CONCEALMENT_DICE[concealment]]
    if isinstance(attack, FlatAttack) and not any(d >= attack.value for d in dice):
        return Decided(result=AttackResult.HIT)
    return DicePool(dice=dice)


def attack_setup(
    attacker: Character,
    defender: Character,
    distance: int | None = None,
) -> SetupResult:
    """Run the setup stage: range band and both dice pools.

    Args:
        attacker: The attacking character.
        defender: The defending character.
        distance: Explicit distance; measured from map positions when None.

    Returns:
        SetupResult. An Over range or Unavailable attack dice come back as
        data, not errors.
    """
    if distance is None:
        distance = map_distance(attacker.position, defender.position)
    range_ = resolve_range(attacker.weapon, distance)
    attack = attack_dice(attacker)
    return SetupResult(
        attacker=attacker,
        defender=defender,
        distance=distance,
        range=range_,
        attack_dice=attack,
        defense_dice=defense_dice(attacker, defender, range_, attack),
    )


def validate_rolls(label: str, dice: list[int], rolls: list[int]) -> list[int]:
    """Check caller-supplied rolls against the dice they were rolled on.

    Extra values are ignored. Zero means "not rolled yet".

    Raises:
        IncompleteRollError: If fewer rolls than dice were supplied.
        InvalidRollError: If a value is out of range for its die.
    """
    taken = list(rolls[: len(dice)])
    supplied = sum(1 for r in taken if r)
    if supplied < len(dice):
        raise IncompleteRollError(label, len(dice), supplied)
    for value, size in zip(taken, dice):
        if value < 1 or value > size:
            raise InvalidRollError(label, value, size)
    return taken


def attack_result(
    attacker: Character,
    attack_roll: int | list[int],
    defense_roll: list[int],
) -> AttackResult:
    """Compare attack and defense rolls.

    Args:
        attacker: The attacking character (weapon action and gifts matter).
        attack_roll: Flat Rote value, or one value per attack die.
        defense_roll: One value per defense die.

    Returns:
        Miss, Tie, Hit or Crit.
    """
    atk = attack_roll if isinstance(attack_roll, int) else max(attack_roll)
    def_ = max(defense_roll)
    if atk < def_:
        return AttackResult.MISS
    if atk == def_:
        if attacker.gifts.semi_auto_expert and attacker.weapon.action in (
            WeaponAction.SEMI,
            WeaponAction.FULL,
        ):
            return AttackResult.HIT
        return AttackResult.TIE
    if isinstance(attack_roll, list) and sum(1 for x in attack_roll if x > def_) >= 2:
        return AttackResult.CRIT
    return AttackResult.HIT


def damage_dice_count(
    attacker: Character,
    defender: Character,
    result: AttackResult,
    range_: Range,
) -> int:
    """Number of d20 damage dice an attack earns.

    Args:
        attacker: The attacking character.
        defender: The defending character.
        result: Outcome of the attack.
        range_: Range band from setup.

    Returns:
        0 for Miss or Tie, else the dice count with all bonuses.
    """
    if not result.landed:
        return 0
    if attacker.weapon.shotgun:
        total = 4 - range_.value
    else:
        total = 1 + min(3, defender.wound_state.value)
    if result == AttackResult.CRIT:
        total += 1
    if defender.conditions.helpless:
        total += 1
    if not attacker.weapon.is_melee:
        if attacker.active_gifts.sniper_master:
            total += 3
        elif attacker.active_gifts.sniper_expert:
            total += 1
    return total


def attack_resolve(
    setup: SetupResult,
    attack_roll: list[int],
    defense_roll: list[int],
) -> ResolveResult:
    """Run the resolve stage on top of a setup.

    Args:
        setup: Output of attack_setup().
        attack_roll: Rolled attack dice (ignored for Rote).
        defense_roll: Rolled defense dice (ignored when decided).

    Returns:
        ResolveResult with the outcome and the damage dice it earns.

    Raises:
        RollError: If the rolls don't match the dice pools.
    """
    attack = setup.attack_dice
    defense = setup.defense_dice

    rolled_attack: int | list[int]
    if isinstance(attack, FlatAttack):
        rolled_attack = attack.value
    elif isinstance(attack, DicePool):
        rolled_attack = validate_rolls("Attack roll", attack.dice, attack_roll)
    else:
        rolled_attack = []

    if isinstance(defense, Decided):
        result = defense.result
        rolled_defense: list[int] = []
    else:
        rolled_defense = validate_rolls("Defense roll", defense.dice, defense_roll)
        result = attack_result(setup.attacker, rolled_attack, rolled_defense)

    return ResolveResult(
        attack_roll=rolled_attack,
        defense_roll=rolled_defense,
        result=result,
        damage_dice_count=damage_dice_count(
            setup.attacker, setup.defender, result, setup.range
        ),
    )


def penetration_damage(attacker: Character) -> int:
    """Damage added per die that beats the defender's deflection.

    Melee and brawl hits use the attacker's remaining body instead of the
    weapon's own figure.
    """
    if attacker.weapon.skill in (Skill.MELEE, Skill.BRAWL):
        return attacker.remaining_body
    return attacker.weapon.pen_damage or 0


def total_damage(
    base_damage: int,
    pen_damage: int,
    deflection: int,
    damage_roll: list[int],
) -> int:
    """Base damage plus the best die plus penetration for every die over deflection."""
    if not damage_roll:
        return 0
    penetrating = sum(1 for x in damage_roll if x > deflection)
    return base_damage + max(damage_roll) + penetrating * pen_damage


def thresholds(defender: Character) -> list[int]:
    """Damage breakpoints for Wounded, Crippled, Incapacitated and Devastated.

    Args:
        defender: The defending character, with armor resolved.

    Returns:
        Four ascending damage totals.
    """
    if defender.gifts.very_tough:
        toughness = 10
    elif defender.gifts.tough:
        toughness = 5
    else:
        toughness = 0
    base = defender.armor.threshold + 2 * defender.remaining_body + toughness
    return [base + step for step in THRESHOLD_STEPS]


def new_status(defender: Character, damage: int) -> WoundState:
    """Wound state a given amount of damage inflicts on the defender."""
    for ordinal, breakpoint in enumerate(thresholds(defender)):
        if damage < breakpoint:
            return WoundState(ordinal)
    return WoundState.DEVASTATED


def awe(
    defender: CharacterBase,
    range_: Range,
    result: AttackResult,
    status: WoundState,
) -> int:
    """Morale damage from being attacked."""
    total = 0
    if defender.conditions.surprised or defender.conditions.helpless:
        total += 1
    if range_ == Range.CLOSE:
        total += 1
    if result.landed:
        total += 1
    return total + min(3, status.value)


def injury(defender: CharacterBase, status: WoundState) -> int:
    """Injury inflicted by reaching a wound state. Devastation takes all body."""
    if status == WoundState.DEVASTATED:
        return defender.body
    return INJURY_FOR_STATUS[status]


def resolve_damage(
    defender: Character,
    *,
    base_damage: int,
    pen_damage: int,
    damage_roll: list[int],
    range_: Range,
    result: AttackResult,
) -> DamageResult:
    """Turn rolled damage dice into a wound state, awe and injury.

    Shared by single attacks and by every character caught in a blast.
    """
    damage = total_damage(base_damage, pen_damage, defender.armor.deflection, damage_roll)
    # No damage dice means no wound, even when the first breakpoint is 0
    status = new_status(defender, damage) if damage_roll else WoundState.UNINJURED
    return DamageResult(
        damage_roll=damage_roll,
        total_damage=damage,
        new_status=status,
        awe=awe(defender, range_, result, status),
        injury=injury(defender, status),
    )


def damage_resolve(
    setup: SetupResult,
    resolved: ResolveResult,
    damage_roll: list[int],
) -> DamageResult:
    """Run the damage stage for a single attack.

    Args:
        setup: Output of attack_setup().
        resolved: Output of attack_resolve().
        damage_roll: Rolled d20 damage dice.

    Returns:
        DamageResult for the defender.

    Raises:
        RollError: If fewer damage rolls than damage dice were supplied.
    """
    rolls = validate_rolls(
        "Damage roll", [DAMAGE_DIE] * resolved.damage_dice_count, damage_roll
    )
    attacker = setup.attacker
    return resolve_damage(
        setup.defender,
        base_damage=attacker.weapon.base_damage,
        pen_damage=penetration_damage(attacker),
        damage_roll=rolls,
        range_=setup.range,
        result=resolved.result,
    )


def apply_result(defender: CharacterBase, result: DamageResult) -> CharacterBase:
    """Merge a damage result into a character, returning an updated copy.

    Wound state only gets worse, injury never exceeds body and awe never
    exceeds morale.

    Args:
        defender: The character record to update. Not modified.
        result: Output of damage_resolve() or of an explosion.

    Returns:
        A copy of the record with wound_state, injury and awe updated.
    """
    return defender.model_copy(
        update={
            "wound_state": max(defender.wound_state, result.new_status),
            "injury": min(defender.body, defender.injury + result.injury),
            "awe": min(defender.morale, defender.awe + result.awe),
        }
    )
