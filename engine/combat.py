"""Session orchestration: run the pipeline, apply results, keep the log.

This is the calling layer around the pure rules. It resolves list indices
into characters, feeds the rolls entered so far through each stage, writes
finished results back onto the session document and persists it.
"""

from __future__ import annotations

import os
import random
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from config import DIRECTION_DIE
from engine.dice import roll_damage, roll_dice
from engine.errors import CombatError, InvalidDocumentError, RecordLookupError
from engine.explosion import explosion_resolve, is_explosion, is_thrown
from engine.rules import apply_result, attack_resolve, attack_setup, damage_resolve
from logs import get_logger
from models.characters import Armor, Character, CharacterBase, CharacterRecord, Weapon
from models.combat import Calcs, DicePool, SetupResult, Step
from models.defaults import DEFAULT_ARMOR, DEFAULT_WEAPONS, default_character
from models.enums import Range, WoundState
from models.session import (
    AttackLogItem,
    ExplosionLogItem,
    ExplosionResolve,
    ListSelect,
    LogItem,
    ResolveInput,
    SessionDocument,
    ToHitInput,
)

logger = get_logger(__name__)


def default_document() -> SessionDocument:
    """Create a session with the stock roster and one sample character.

    Returns:
        A fresh SessionDocument.
    """
    return SessionDocument(
        character=ListSelect[CharacterRecord](items=[default_character()]),
        weapon=ListSelect[Weapon](items=[w.model_copy(deep=True) for w in DEFAULT_WEAPONS]),
        armor=ListSelect[Armor](items=[a.model_copy(deep=True) for a in DEFAULT_ARMOR]),
    )


def _lookup(select: ListSelect, index: int | None, list_name: str):
    if index is None or index < 0 or index >= len(select.items):
        raise RecordLookupError(list_name, index)
    return select.items[index]


def get_character(document: SessionDocument, index: int | None) -> Character:
    """Resolve a stored character into the form the rules consume.

    Args:
        document: The session document.
        index: Position in the character list.

    Returns:
        The Character with its weapon and armor looked up.

    Raises:
        RecordLookupError: If the character, weapon or armor index is bad.
    """
    record = _lookup(document.character, index, "character")
    weapon = _lookup(document.weapon, record.weapon, "weapon")
    armor = _lookup(document.armor, record.armor, "armor")
    fields = {name: getattr(record, name) for name in CharacterBase.model_fields}
    return Character(**fields, weapon=weapon, armor=armor)


def _message(error: Exception) -> str:
    return error.message if isinstance(error, CombatError) else str(error)


def step_setup(document: SessionDocument) -> SetupResult:
    setup = document.setup
    return attack_setup(
        get_character(document, setup.attacker),
        get_character(document, setup.defender),
        setup.distance,
    )


def calculate(document: SessionDocument) -> Calcs:
    """Run as much of the combat pipeline as the current inputs allow.

    Never raises for missing or bad inputs: the returned Calcs names the
    furthest stage reached and carries the error blocking the next one.

    Args:
        document: The session document.

    Returns:
        Calcs with every stage result computed so far.
    """
    try:
        setup = step_setup(document)
    except (CombatError, ValueError) as e:
        logger.debug("setup blocked", error=_message(e))
        return Calcs(step=Step.SETUP, error=_message(e))

    to_hit = document.to_hit
    if is_explosion(setup):
        if setup.range == Range.OVER and not is_thrown(setup.attacker.weapon):
            return Calcs(step=Step.TO_HIT, error="Target is out of range", setup=setup)
        explosion = document.explosion_setup
        try:
            characters = [
                get_character(document, i) for i in range(len(document.character.items))
            ]
            result = explosion_resolve(
                setup,
                characters,
                attack_roll=to_hit.attack_roll,
                defense_roll=to_hit.defense_roll,
                direction_roll=to_hit.deviation_roll,
                center=explosion.center,
                radius=explosion.radius,
                pen_damage=explosion.pen_damage,
                damage_rolls=document.explosion_resolve.rolls,
            )
        except (CombatError, ValueError) as e:
            logger.debug("explosion blocked", error=_message(e))
            return Calcs(step=Step.TO_HIT, error=_message(e), setup=setup)
        logger.debug("explosion resolved", hits=len(result.hits))
        return Calcs(step=Step.EXPLOSION, setup=setup, explosion=result)

    try:
        resolved = attack_resolve(setup, to_hit.attack_roll, to_hit.defense_roll)
    except (CombatError, ValueError) as e:
        logger.debug("to-hit blocked", error=_message(e))
        return Calcs(step=Step.TO_HIT, error=_message(e), setup=setup)

    try:
        damage = damage_resolve(setup, resolved, document.resolve.damage_roll)
    except (CombatError, ValueError) as e:
        logger.debug("damage blocked", error=_message(e))
        return Calcs(
            step=Step.ATTACK_RESOLVE, error=_message(e), setup=setup, resolve=resolved
        )

    logger.debug(
        "attack resolved",
        result=resolved.result.value,
        total_damage=damage.total_damage,
    )
    return Calcs(step=Step.DAMAGE_RESOLVE, setup=setup, resolve=resolved, damage=damage)


def roll_for_me(document: SessionDocument, rng: random.Random | None = None) -> list[str]:
    """Fill in the rolls the current stage is waiting for.

    Args:
        document: The session document (mutated in place).
        rng: Optional Random instance for seeded/testing rolls.

    Returns:
        Descriptions of what was rolled, empty if nothing was needed.
    """
    rng = rng or random.Random()
    calcs = calculate(document)
    rolled: list[str] = []
    if calcs.setup is None or calcs.complete:
        return rolled

    setup = calcs.setup
    if calcs.step == Step.TO_HIT:
        if isinstance(setup.attack_dice, DicePool):
            result = roll_dice(setup.attack_dice.dice, rng)
            document.to_hit.attack_roll = result.rolls
            rolled.append(f"attack {result.notation}: {result.rolls}")
        if isinstance(setup.defense_dice, DicePool):
            result = roll_dice(setup.defense_dice.dice, rng)
            document.to_hit.defense_roll = result.rolls
            rolled.append(f"defense {result.notation}: {result.rolls}")
        if is_explosion(setup):
            (direction,) = roll_dice([DIRECTION_DIE], rng).rolls
            document.to_hit.deviation_roll = direction
            rolled.append(f"deviation d12: {direction}")
    elif calcs.step == Step.ATTACK_RESOLVE and calcs.resolve is not None:
        result = roll_damage(calcs.resolve.damage_dice_count, rng)
        document.resolve.damage_roll = result.rolls
        rolled.append(f"damage {result.notation}: {result.rolls}")
    elif calcs.step == Step.EXPLOSION and calcs.explosion is not None:
        rolls = []
        for hit in calcs.explosion.hits:
            result = roll_damage(hit.dice_count, rng)
            rolls.append(result.rolls)
            rolled.append(f"blast #{hit.index} {result.notation}: {result.rolls}")
        document.explosion_resolve.rolls = rolls
    return rolled


def _clear_rolls(document: SessionDocument) -> None:
    document.to_hit = ToHitInput()
    document.resolve = ResolveInput()
    document.explosion_resolve = ExplosionResolve()
    document.explosion_setup.center = None


def apply_calcs(
    document: SessionDocument,
    calcs: Calcs,
    now: datetime | None = None,
) -> list[LogItem]:
    """Write a finished calculation back onto the session.

    Updates the defender (or everyone caught in a blast), appends to the
    combat log and clears the entered rolls for the next attack.

    Args:
        document: The session document (mutated in place).
        calcs: A complete result from calculate().
        now: Timestamp for the log entries; defaults to the current time.

    Returns:
        The log items that were added.

    Raises:
        CombatError: If the calculation isn't complete.
    """
    if not calcs.complete or calcs.setup is None:
        raise CombatError(
            "Nothing to apply: calculation is incomplete",
            details={"step": calcs.step.name, "error": calcs.error},
        )
    now = now or datetime.now(timezone.utc)
    setup = calcs.setup
    characters = document.character.items
    added: list[LogItem] = []

    if calcs.step == Step.EXPLOSION:
        for blast in calcs.explosion.damage:
            record = characters[blast.index]
            characters[blast.index] = apply_result(record, blast.damage)
            added.append(
                ExplosionLogItem(
                    attacker=setup.attacker.name,
                    defender=record.name,
                    weapon=setup.attacker.weapon.name,
                    damage_roll=blast.damage.damage_roll,
                    total_damage=blast.damage.total_damage,
                    new_status=blast.damage.new_status,
                    injury=blast.damage.injury,
                    awe=blast.damage.awe,
                    timestamp=now,
                )
            )
    else:
        index = document.setup.defender
        record = _lookup(document.character, index, "character")
        characters[index] = apply_result(record, calcs.damage)
        added.append(
            AttackLogItem(
                attacker=setup.attacker.name,
                defender=setup.defender.name,
                weapon=setup.attacker.weapon.name,
                range=setup.range,
                attack_roll=calcs.resolve.attack_roll,
                defense_roll=calcs.resolve.defense_roll,
                result=calcs.resolve.result,
                damage_roll=calcs.damage.damage_roll,
                total_damage=calcs.damage.total_damage,
                new_status=calcs.damage.new_status,
                injury=calcs.damage.injury,
                awe=calcs.damage.awe,
                timestamp=now,
            )
        )

    document.log.extend(added)
    _clear_rolls(document)
    logger.info("result applied", entries=len(added), step=calcs.step.name)
    return added


def delete_log_item(document: SessionDocument, index: int) -> LogItem:
    """Remove one entry from the combat log.

    Raises:
        RecordLookupError: If the index is out of range.
    """
    if index < 0 or index >= len(document.log):
        raise RecordLookupError("log", index)
    return document.log.pop(index)


def _rolled(rolls: list[int]) -> str:
    return f"[{', '.join(str(r) for r in rolls)}]={max(rolls)}"


def describe_log_item(item: LogItem) -> str:
    """One-line narrative of a log entry."""
    if isinstance(item, ExplosionLogItem):
        text = f"{item.defender} was caught in a blast"
        if item.weapon:
            text += f" from {item.weapon}"
        text += "."
    else:
        if isinstance(item.attack_roll, int):
            attack = f"roting for {item.attack_roll}"
        elif item.attack_roll:
            attack = f"rolling {_rolled(item.attack_roll)}"
        else:
            attack = "unable to roll"
        defense = _rolled(item.defense_roll) if item.defense_roll else "no roll"
        text = (
            f"{item.attacker} attacked {item.defender} with {item.weapon}, "
            f"at {item.range.label} range, {attack} against {defense}. "
            f"The result was a {item.result.value}."
        )

    if item.damage_roll:
        damage = f"[{', '.join(str(r) for r in item.damage_roll)}]={item.total_damage}"
        if item.new_status not in (None, WoundState.UNINJURED):
            status = f"is {item.new_status.label}, taking"
        else:
            status = "took"
        text += (
            f" The damage was {damage}, and {item.defender} {status} "
            f"{item.injury} injuries and {item.awe} awe."
        )
    elif item.awe > 0:
        text += f" {item.defender} took {item.awe} awe from being attacked."
    return text


def export_document(document: SessionDocument) -> str:
    """Serialise a session to the JSON text the calculator imports."""
    return document.model_dump_json(by_alias=True, indent=2)


def import_document(text: str, source: str = "import") -> SessionDocument:
    """Parse and validate session JSON.

    Raises:
        InvalidDocumentError: If the JSON is malformed or fails validation.
    """
    try:
        return SessionDocument.model_validate_json(text)
    except ValidationError as e:
        raise InvalidDocumentError(source, e.errors()) from e


def save_document(document: SessionDocument, path: str) -> None:
    """Persist a session to a JSON file.

    Writes to a temporary file first, then renames for atomicity.

    Args:
        document: The session to save.
        path: File path to write to.
    """
    tmp_path = path + ".tmp"
    with open(tmp_path, "w") as f:
        f.write(export_document(document))
    os.replace(tmp_path, path)
    logger.info("session saved", path=path, characters=len(document.character.items))


def load_document(path: str) -> SessionDocument | None:
    """Load a session from a JSON file.

    Args:
        path: File path to read from.

    Returns:
        The loaded SessionDocument, or None if the file doesn't exist.

    Raises:
        InvalidDocumentError: If the file holds a malformed document.
    """
    if not Path(path).exists():
        return None
    with open(path) as f:
        document = import_document(f.read(), source=path)
    logger.info("session loaded", path=path, characters=len(document.character.items))
    return document
