"""Command-line front end for the Albedo combat calculator.

Works on a session file: pick an attacker and a defender, enter (or let the
calculator roll) the dice, then apply the result and read the combat log.

Usage:
    python main.py init
    python main.py show
    python main.py setup --attacker 0 --defender 1 --distance 12
    python main.py roll --attack 7,3 --defense 4,9
    python main.py roll --auto --seed 42
    python main.py apply
    python main.py log
    python main.py delete-log 0
    python main.py export > session.json
    python main.py import session.json

Environment variables:
    ALBEDO_DATA_DIR   Directory holding albedo.json (default: current directory)
    ALBEDO_LOG_LEVEL  Log level (default: INFO)
    ALBEDO_LOG_JSON   Set to 1 for JSON log lines
"""

import argparse
import random
import sys

from pydantic import ValidationError

from config import SAVE_FILE
from engine.combat import (
    apply_calcs,
    calculate,
    default_document,
    delete_log_item,
    describe_log_item,
    export_document,
    import_document,
    load_document,
    roll_for_me,
    save_document,
)
from engine.dice import notation
from engine.errors import CombatError
from logs import bind_context, clear_context, configure_logging
from models.combat import Calcs, Decided, DicePool, FlatAttack
from models.session import SessionDocument


def _parse_rolls(text: str) -> list[int]:
    """Parse '7,3' into [7, 3]."""
    try:
        return [int(part) for part in text.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected comma-separated numbers, got {text!r}")


def _parse_blast_rolls(text: str) -> list[list[int]]:
    """Parse '12,4;7' into [[12, 4], [7]], one group per character caught."""
    return [_parse_rolls(group) for group in text.split(";")]


def _load(path: str) -> SessionDocument:
    document = load_document(path)
    if document is None:
        print(f"Error: No session at {path}", file=sys.stderr)
        print("Run 'python main.py init' first", file=sys.stderr)
        sys.exit(1)
    return document


def init_session(path: str, force: bool) -> None:
    """Create a session with the stock weapons, armor and a sample character."""
    if not force and load_document(path) is not None:
        print(f"Error: {path} already exists (use --force to replace it)", file=sys.stderr)
        sys.exit(1)
    document = default_document()
    save_document(document, path)
    print(f"Created: {path}")
    print(f"Weapons: {len(document.weapon.items)}")
    print(f"Armor:   {len(document.armor.items)}")


def _describe_pool(pool) -> str:
    if isinstance(pool, FlatAttack):
        return f"rote {pool.value}"
    if isinstance(pool, DicePool):
        return notation(pool.dice)
    if isinstance(pool, Decided):
        return f"automatic {pool.result.value}"
    return pool.reason


def _print_calcs(calcs: Calcs) -> None:
    print(f"Step:    {calcs.step.name}")
    if calcs.setup is not None:
        setup = calcs.setup
        print(f"Attack:  {setup.attacker.name} -> {setup.defender.name}")
        print(f"Range:   {setup.range.key} ({setup.distance})")
        print(f"Attack dice:  {_describe_pool(setup.attack_dice)}")
        print(f"Defense dice: {_describe_pool(setup.defense_dice)}")
    if calcs.resolve is not None:
        print(f"Result:  {calcs.resolve.result.value}")
        print(f"Damage dice:  {calcs.resolve.damage_dice_count}d20")
    if calcs.damage is not None:
        damage = calcs.damage
        print(f"Damage:  {damage.total_damage} ({damage.new_status.label})")
        print(f"Injury:  {damage.injury}  Awe: {damage.awe}")
    if calcs.explosion is not None:
        target = calcs.explosion.target
        print(f"Blast:   {target.result.value} at ({target.center.x:g}, {target.center.y:g})")
        for hit, blast in zip(calcs.explosion.hits, calcs.explosion.damage):
            outcome = (
                f"{blast.damage.total_damage} ({blast.damage.new_status.label})"
                if blast.damage is not None
                else blast.error
            )
            print(f"  #{hit.index} at {hit.distance:.1f}: {hit.dice_count}d20 -> {outcome}")
    if calcs.error:
        print(f"Waiting: {calcs.error}")


def show_session(path: str) -> None:
    """List the characters and the state of the current attack."""
    document = _load(path)
    print(f"{'#':<3} {'NAME':<20} {'WEAPON':<24} {'STATUS':<14} {'INJ':>4} {'AWE':>4}")
    print("-" * 72)
    for i, record in enumerate(document.character.items):
        weapons = document.weapon.items
        weapon = weapons[record.weapon].name if 0 <= record.weapon < len(weapons) else "?"
        print(
            f"{i:<3} {record.name:<20} {weapon:<24} {record.wound_state.label:<14} "
            f"{record.injury:>4} {record.awe:>4}"
        )
    print()
    _print_calcs(calculate(document))


def set_setup(path: str, attacker: int | None, defender: int | None,
              distance: int | None, measure: bool) -> None:
    """Choose attacker, defender and distance, clearing any entered rolls."""
    document = _load(path)
    if attacker is not None:
        document.setup.attacker = attacker
    if defender is not None:
        document.setup.defender = defender
    if distance is not None:
        document.setup.distance = distance
    elif measure:
        document.setup.distance = None
    document.to_hit.attack_roll = []
    document.to_hit.defense_roll = []
    document.to_hit.deviation_roll = None
    document.resolve.damage_roll = []
    document.explosion_resolve.rolls = []
    save_document(document, path)
    _print_calcs(calculate(document))


def enter_rolls(path: str, args: argparse.Namespace) -> None:
    """Record rolls, or roll whatever the current stage is waiting on."""
    document = _load(path)
    if args.auto:
        rng = random.Random(args.seed) if args.seed is not None else None
        for line in roll_for_me(document, rng):
            print(f"Rolled {line}")
    if args.attack is not None:
        document.to_hit.attack_roll = args.attack
    if args.defense is not None:
        document.to_hit.defense_roll = args.defense
    if args.deviation is not None:
        document.to_hit.deviation_roll = args.deviation
    if args.damage is not None:
        document.resolve.damage_roll = args.damage
    if args.blast is not None:
        document.explosion_resolve.rolls = args.blast
    save_document(document, path)
    _print_calcs(calculate(document))


def apply_session(path: str) -> None:
    """Apply the finished attack to the defender(s) and log it."""
    document = _load(path)
    added = apply_calcs(document, calculate(document))
    save_document(document, path)
    for item in added:
        print(describe_log_item(item))


def show_log(path: str) -> None:
    document = _load(path)
    if not document.log:
        print("Combat log is empty.")
        return
    for i, item in enumerate(document.log):
        print(f"{i:<3} {item.timestamp:%Y-%m-%d %H:%M}  {describe_log_item(item)}")


def delete_log(path: str, index: int) -> None:
    document = _load(path)
    removed = delete_log_item(document, index)
    save_document(document, path)
    print(f"Deleted: {describe_log_item(removed)}")


def export_session(path: str) -> None:
    print(export_document(_load(path)))


def import_session(path: str, source: str) -> None:
    """Replace the session with a previously exported document."""
    with open(source) as f:
        document = import_document(f.read(), source=source)
    save_document(document, path)
    print(f"Imported: {source}")
    print(f"Characters: {len(document.character.items)}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Albedo tabletop combat calculator",
    )
    parser.add_argument(
        "--file",
        default=SAVE_FILE,
        help=f"Session file (default: {SAVE_FILE}, or set ALBEDO_DATA_DIR env var)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create a new session file")
    init_parser.add_argument("--force", action="store_true", help="Replace an existing session")

    subparsers.add_parser("show", help="Show characters and the current attack")

    setup_parser = subparsers.add_parser("setup", help="Choose attacker, defender and distance")
    setup_parser.add_argument("--attacker", type=int, help="Attacker's character index")
    setup_parser.add_argument("--defender", type=int, help="Defender's character index")
    setup_parser.add_argument("--distance", type=int, help="Distance in map units")
    setup_parser.add_argument(
        "--measure", action="store_true", help="Measure distance from map positions"
    )

    roll_parser = subparsers.add_parser("roll", help="Enter dice rolls")
    roll_parser.add_argument("--attack", type=_parse_rolls, help="Attack rolls, e.g. 7,3")
    roll_parser.add_argument("--defense", type=_parse_rolls, help="Defense rolls, e.g. 4,9")
    roll_parser.add_argument("--deviation", type=int, help="Blast deviation d12")
    roll_parser.add_argument("--damage", type=_parse_rolls, help="Damage d20 rolls")
    roll_parser.add_argument(
        "--blast", type=_parse_blast_rolls, help="Blast damage per character, e.g. 12,4;7"
    )
    roll_parser.add_argument("--auto", action="store_true", help="Roll whatever is needed next")
    roll_parser.add_argument("--seed", type=int, help="Seed for --auto")

    subparsers.add_parser("apply", help="Apply the finished attack and log it")
    subparsers.add_parser("log", help="Show the combat log")

    delete_parser = subparsers.add_parser("delete-log", help="Delete a combat log entry")
    delete_parser.add_argument("index", type=int, help="Log entry to delete")

    subparsers.add_parser("export", help="Print the session as JSON")

    import_parser = subparsers.add_parser("import", help="Replace the session from a JSON file")
    import_parser.add_argument("source", help="JSON file to import")

    args = parser.parse_args()

    configure_logging()
    bind_context(command=args.command, file=args.file)
    try:
        if args.command == "init":
            init_session(args.file, args.force)
        elif args.command == "show":
            show_session(args.file)
        elif args.command == "setup":
            set_setup(args.file, args.attacker, args.defender, args.distance, args.measure)
        elif args.command == "roll":
            enter_rolls(args.file, args)
        elif args.command == "apply":
            apply_session(args.file)
        elif args.command == "log":
            show_log(args.file)
        elif args.command == "delete-log":
            delete_log(args.file, args.index)
        elif args.command == "export":
            export_session(args.file)
        elif args.command == "import":
            import_session(args.file, args.source)
    except CombatError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: {e.errors()[0]['msg']}", file=sys.stderr)
        sys.exit(1)
    finally:
        clear_context()


if __name__ == "__main__":
    main()
