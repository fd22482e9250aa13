"""Session document: the calculator's whole persisted state."""

from datetime import datetime
from typing import Annotated, Generic, Literal, TypeVar

from pydantic import BaseModel, Field

from config import MAP_HEIGHT, MAP_SNAP, MAP_WIDTH
from models.characters import Armor, CharacterRecord, Position, Record, Weapon
from models.enums import AttackResult, RangeField, WoundStateField

T = TypeVar("T", bound=BaseModel)

Roll = Annotated[int, Field(ge=0)]  # 0 means "not rolled yet"


class ListSelect(Record, Generic[T]):
    """An editable list plus the entry currently selected for editing."""
    items: list[T] = Field(default=[], alias="list")
    idx: int = Field(default=0, ge=0)


class SetupInput(Record):
    """Who attacks whom. Distance is measured on the map when left empty."""
    attacker: int | None = Field(default=None, ge=0)
    defender: int | None = Field(default=None, ge=0)
    distance: int | None = Field(default=None, ge=0)


class ToHitInput(Record):
    """Attack and defense rolls as entered so far."""
    attack_roll: list[Roll] = []
    defense_roll: list[Roll] = []
    deviation_roll: Roll | None = None  # Clock-face d12 for stray blasts


class ResolveInput(Record):
    """Damage rolls as entered so far."""
    damage_roll: list[Roll] = []


class MapSettings(Record):
    """Battle-map dimensions. Display only."""
    width: int = Field(default=MAP_WIDTH, gt=0)
    height: int = Field(default=MAP_HEIGHT, gt=0)
    grid_cell_size: float = Field(default=1.0, gt=0, allow_inf_nan=False)
    snap: float = Field(default=MAP_SNAP, ge=0, allow_inf_nan=False)
    pixels_per_unit: int = Field(default=20, gt=0)


class ExplosionSetup(Record):
    """Caller adjustments to a blast. Empty fields fall back to the weapon."""
    center: Position | None = None
    radius: int | None = Field(default=None, gt=0)
    pen_damage: int | None = Field(default=None, ge=0)


class ExplosionResolve(Record):
    """Damage rolls for each character caught in a blast, in hit order."""
    rolls: list[list[Roll]] = []


class AttackLogItem(Record):
    """A completed single attack."""
    type: Literal["attack"] = "attack"
    attacker: str
    defender: str
    weapon: str
    range: RangeField
    attack_roll: int | list[int]
    defense_roll: list[int] = []
    result: AttackResult
    damage_roll: list[int] = []
    total_damage: int = 0
    new_status: WoundStateField | None = None
    injury: int = 0
    awe: int = 0
    timestamp: datetime


class ExplosionLogItem(Record):
    """One character's share of a completed blast."""
    type: Literal["explosion"] = "explosion"
    attacker: str | None = None
    defender: str
    weapon: str | None = None
    damage_roll: list[int] = []
    total_damage: int = 0
    new_status: WoundStateField | None = None
    injury: int = 0
    awe: int = 0
    timestamp: datetime


LogItem = Annotated[AttackLogItem | ExplosionLogItem, Field(discriminator="type")]


class SessionDocument(Record):
    """Everything the calculator keeps between sessions."""
    character: ListSelect[CharacterRecord] = ListSelect[CharacterRecord]()
    weapon: ListSelect[Weapon] = ListSelect[Weapon]()
    armor: ListSelect[Armor] = ListSelect[Armor]()
    setup: SetupInput = SetupInput()
    to_hit: ToHitInput = ToHitInput()
    resolve: ResolveInput = ResolveInput()
    map: MapSettings = MapSettings()
    explosion_setup: ExplosionSetup = ExplosionSetup()
    explosion_resolve: ExplosionResolve = ExplosionResolve()
    log: list[LogItem] = []
