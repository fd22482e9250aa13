"""Explosives: where the blast lands and who it catches.

A blast is resolved as a fan-out: every character near the blast center goes
through the ordinary damage stage on their own, with dice depending on how
close they stood.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from config import BLAST_MAX_DICE, DAMAGE_DIE, DEFAULT_EXPLOSION_PEN, DIRECTION_DIE
from engine.errors import RollError
from engine.grid import bearing, deviate, point_along, point_distance
from engine.rules import attack_resolve, resolve_damage, validate_rolls
from models.combat import (
    BlastDamage,
    BlastHit,
    BlastTarget,
    DamageResult,
    ExplosionResult,
    SetupResult,
)
from models.enums import AttackResult, Range, Skill

if TYPE_CHECKING:
    from models.characters import Character, Position, Weapon


def is_explosion(setup: SetupResult) -> bool:
    """Whether an attack should be resolved as a blast."""
    return setup.attacker.weapon.is_explosive


def is_thrown(weapon: Weapon) -> bool:
    return weapon.skill == Skill.THROW


def max_throw_distance(attacker: Character) -> int:
    """How far the attacker can throw their weapon.

    The weapon's farthest range band, plus 5 for Strong or 10 for Very Strong.
    """
    envelope = attacker.weapon.ranges.envelope or 0
    if attacker.gifts.very_strong:
        return envelope + 10
    if attacker.gifts.strong:
        return envelope + 5
    return envelope


def miss_margin(result: AttackResult, attack_roll: int | list[int], defense_roll: list[int]) -> int:
    """How badly a shot missed, at least 1.

    Decided misses (no defense roll) count as a margin of 1.
    """
    if result.landed or not defense_roll:
        return 1
    atk = attack_roll if isinstance(attack_roll, int) else max(attack_roll, default=0)
    return max(1, max(defense_roll) - atk)


def blast_target(
    setup: SetupResult,
    attack_roll: list[int],
    defense_roll: list[int],
    direction_roll: int | None = None,
) -> BlastTarget:
    """Work out where an explosive goes off.

    Thrown weapons fly towards the defender but no further than the
    thrower's maximum distance; on a miss they stray by the miss margin
    scaled by how much of that maximum the throw used. Fired weapons aim
    at the defender and, on a miss, stray by the margin times one plus the
    range band ordinal.

    Args:
        setup: Output of attack_setup() for an explosive weapon.
        attack_roll: Rolled attack dice.
        defense_roll: Rolled defense dice.
        direction_roll: Clock-face d12 giving the direction of a stray
            blast. Only needed when the attack doesn't land.

    Returns:
        BlastTarget with the final center.

    Raises:
        RollError: If the rolls are incomplete or invalid.
    """
    attacker = setup.attacker
    origin = attacker.position
    aim: Position = setup.defender.position
    thrown = is_thrown(attacker.weapon)
    throw_limit = max_throw_distance(attacker)

    if thrown and setup.range == Range.OVER:
        # Beyond the weapon's bands a throw still lands, just short
        result = AttackResult.MISS
        rolled_attack: int | list[int] = []
        rolled_defense: list[int] = []
    else:
        resolved = attack_resolve(setup, attack_roll, defense_roll)
        result = resolved.result
        rolled_attack = resolved.attack_roll
        rolled_defense = resolved.defense_roll

    throw_distance = float(setup.distance)
    if thrown and throw_distance > throw_limit:
        aim = point_along(origin, aim, throw_limit)
        throw_distance = float(throw_limit)

    if result.landed:
        return BlastTarget(center=aim, result=result)

    (direction,) = validate_rolls("Deviation roll", [DIRECTION_DIE], [direction_roll or 0])
    margin = miss_margin(result, rolled_attack, rolled_defense)
    if thrown:
        scale = throw_distance / throw_limit if throw_limit else 1.0
        stray = math.ceil(margin * scale)
    else:
        stray = margin * (setup.range.value + 1)
    center = deviate(aim, bearing(origin, aim), direction, stray)
    return BlastTarget(center=center, result=result, deviation=stray, direction=direction)


def blast_dice(dist: float, radius: int) -> int:
    """Damage dice for a character dist units from the blast center.

    Five dice inside the radius, one fewer per further radius; a sixth die
    for anyone within half the radius.
    """
    if radius <= 0:
        raise ValueError("Explosion radius must be positive")
    ratio = math.floor(dist / radius)
    dice = BLAST_MAX_DICE - ratio
    if ratio == 0 and dist * 2 < radius:
        dice += 1
    return dice


def blast_hits(center: Position, radius: int, positions: list[Position]) -> list[BlastHit]:
    """Characters caught in a blast, in list order.

    Args:
        center: Blast center.
        radius: Blast radius; must be positive.
        positions: Map position of every character.

    Returns:
        One BlastHit per character with at least one damage die.
    """
    hits = []
    for index, pos in enumerate(positions):
        dist = point_distance(center, pos)
        dice = blast_dice(dist, radius)
        if dice > 0:
            hits.append(BlastHit(index=index, distance=dist, dice_count=dice))
    return hits


def blast_pen_damage(weapon: Weapon, override: int | None = None) -> int:
    if override is not None:
        return override
    if weapon.pen_damage is not None:
        return weapon.pen_damage
    return DEFAULT_EXPLOSION_PEN


def blast_damage(
    weapon: Weapon,
    defender: Character,
    hit: BlastHit,
    damage_roll: list[int],
    pen_damage: int | None = None,
) -> DamageResult:
    """Damage one character caught in a blast.

    Everyone caught counts as hit; those inside the radius proper count as
    being at close range for awe.

    Raises:
        RollError: If fewer damage rolls than blast dice were supplied.
    """
    rolls = validate_rolls(
        f"Blast damage roll for {defender.name}",
        [DAMAGE_DIE] * hit.dice_count,
        damage_roll,
    )
    return resolve_damage(
        defender,
        base_damage=weapon.base_damage,
        pen_damage=blast_pen_damage(weapon, pen_damage),
        damage_roll=rolls,
        range_=Range.CLOSE if hit.dice_count >= BLAST_MAX_DICE else Range.SHORT,
        result=AttackResult.HIT,
    )


def explosion_resolve(
    setup: SetupResult,
    characters: list[Character],
    *,
    attack_roll: list[int],
    defense_roll: list[int],
    direction_roll: int | None = None,
    center: Position | None = None,
    radius: int | None = None,
    pen_damage: int | None = None,
    damage_rolls: list[list[int]] | None = None,
) -> ExplosionResult:
    """Run the explosion stage.

    Args:
        setup: Output of attack_setup() for an explosive weapon.
        characters: Every character on the map, resolved.
        attack_roll: Rolled attack dice.
        defense_roll: Rolled defense dice.
        direction_roll: Clock-face d12 for a stray blast.
        center: Blast center chosen by the caller, replacing the computed one.
        radius: Blast radius, replacing the weapon's.
        pen_damage: Penetration damage per die, replacing the weapon's.
        damage_rolls: Damage rolls per caught character, in hit order.

    Returns:
        ExplosionResult. Characters whose damage rolls are missing get a
        BlastDamage with an error instead of a result.

    Raises:
        RollError: If the attack or deviation rolls are incomplete or invalid.
        ValueError: If the radius is not positive.
    """
    target = blast_target(setup, attack_roll, defense_roll, direction_roll)
    if center is not None:
        target = target.model_copy(update={"center": center})
    blast_radius = radius if radius is not None else setup.attacker.weapon.explosion or 0

    hits = blast_hits(target.center, blast_radius, [c.position for c in characters])
    rolls = damage_rolls or []
    damage = []
    for n, hit in enumerate(hits):
        roll = rolls[n] if n < len(rolls) else []
        try:
            result = blast_damage(
                setup.attacker.weapon, characters[hit.index], hit, roll, pen_damage
            )
            damage.append(BlastDamage(index=hit.index, damage=result))
        except RollError as e:
            damage.append(BlastDamage(index=hit.index, error=e.message))
    return ExplosionResult(target=target, radius=blast_radius, hits=hits, damage=damage)

