"""Starting roster: the stock weapons, armor and a sample character."""

from models.characters import Armor, CharacterRecord, Marks, Position, Weapon, WeaponRanges
from models.enums import Cover, Mode, Skill, WeaponAction, WoundState


def _weapon(name, skill, action, ranges, base_damage, **extra) -> Weapon:
    return Weapon(
        name=name,
        skill=skill,
        action=action,
        ranges=WeaponRanges(**ranges),
        base_damage=base_damage,
        **extra,
    )


DEFAULT_WEAPONS: list[Weapon] = [
    # Melee weapons
    _weapon("Fist", Skill.BRAWL, WeaponAction.MELEE, {"C": 1}, 0),
    _weapon("Martial Arts", Skill.MELEE, WeaponAction.MELEE, {"C": 1}, 2),
    _weapon("Improvised, 1-hand", Skill.MELEE, WeaponAction.MELEE, {"C": 1}, 2),
    _weapon("Improvised, 2-hand", Skill.MELEE, WeaponAction.MELEE, {"C": 1}, 5),
    _weapon("Knife", Skill.MELEE, WeaponAction.MELEE, {"C": 1}, 5),
    _weapon("Combat Staff", Skill.MELEE, WeaponAction.MELEE, {"C": 2}, 8),
    # Standard EDF firearms
    _weapon("CKW Precision", Skill.LONGARM, WeaponAction.SEMI,
            {"S": 15, "M": 70, "L": 560, "X": 4600}, 10, pen_damage=10),
    _weapon("GLKW 32", Skill.LONGARM, WeaponAction.SINGLE,
            {"S": 5, "M": 20, "L": 80, "X": 400}, 10, pen_damage=5, explosion=2),
    _weapon("LRCKW", Skill.LONGARM, WeaponAction.SEMI,
            {"S": 15, "M": 50, "L": 330, "X": 2300}, 24, pen_damage=12),
    _weapon("GAKW", Skill.HEAVY, WeaponAction.SEMI,
            {"S": 5, "M": 20, "L": 80, "X": 400}, 0, pen_damage=10, explosion=2),
    _weapon("PRLW", Skill.HEAVY, WeaponAction.SINGLE,
            {"S": 15, "M": 60, "L": 470, "X": 3700}, 0, pen_damage=10),
    _weapon("LAKW 1-56", Skill.LONGARM, WeaponAction.FULL,
            {"S": 15, "M": 60, "L": 470, "X": 3700}, 10, pen_damage=10),
    _weapon("MAKW 3-60", Skill.HEAVY, WeaponAction.FULL,
            {"S": 15, "M": 50, "L": 360, "X": 2600}, 11, pen_damage=10),
    _weapon("LAKW 1-30", Skill.LONGARM, WeaponAction.FULL,
            {"C": 5, "S": 15, "M": 50, "L": 330, "X": 1100}, 10, pen_damage=9),
    _weapon("MAKW 2-18", Skill.PISTOL, WeaponAction.FULL,
            {"C": 5, "S": 10, "M": 30, "L": 190, "X": 1100}, 8, pen_damage=7),
    _weapon("PAKW 4-12", Skill.PISTOL, WeaponAction.SEMI,
            {"C": 5, "S": 10, "M": 40, "L": 230, "X": 1400}, 8, pen_damage=7),
    _weapon("SBKW 10", Skill.LONGARM, WeaponAction.SINGLE,
            {"C": 5, "S": 10, "M": 20, "L": 40, "X": 60}, 5, pen_damage=5, shotgun=True),
    # Standard ILR firearms
    _weapon("AW 191 carbine", Skill.LONGARM, WeaponAction.FULL,
            {"S": 15, "M": 50, "L": 410, "X": 3000}, 8, pen_damage=9),
    _weapon("ML 199 SMG", Skill.LONGARM, WeaponAction.FULL,
            {"C": 5, "S": 10, "M": 40, "L": 230, "X": 1400}, 7, pen_damage=7),
]

DEFAULT_ARMOR: list[Armor] = [
    Armor(name="None", deflection=3, threshold=0),
    Armor(name="Battle Armor, Full Dress", deflection=11, threshold=5),
    Armor(name="Battle Armor, Vest Only", deflection=7, threshold=5),
    Armor(name="Concealed Armor", deflection=11, threshold=0),
    Armor(name="Spacesuit, Armored", deflection=13, threshold=5),
    Armor(name="Spacesuit, Typical", deflection=11, threshold=0),
]


def default_character() -> CharacterRecord:
    """A fresh copy of the sample character."""
    return CharacterRecord(
        name="Donut Steele",
        body=7,
        injury=0,
        weapon=0,
        armor=0,
        marks=Marks(),
        mode=Mode.ROLL,
        wound_state=WoundState.UNINJURED,
        max_cover=Cover.HALF,
        concealment=Cover.NONE,
        morale=5,
        awe=0,
        position=Position(x=1, y=1),
    )
