"""Calculator-wide configuration constants for the Albedo combat calculator."""

import os

MAX_DICE_MARKS = 8           # Marks above this add no dice
MAX_DIE_SIZE = 12            # Largest die a pool can use
DAMAGE_DIE = 20              # Damage is always rolled on d20s
BLAST_MAX_DICE = 5           # Damage dice at the centre of a blast
DEFAULT_EXPLOSION_PEN = 10   # Penetration damage for blasts if the weapon has none
DIRECTION_DIE = 12           # Clock-face die for blast deviation
MAP_WIDTH = 25               # Battle map width in map units
MAP_HEIGHT = 25
MAP_SNAP = 1.0               # Positions snap to multiples of this
DATA_DIR = os.environ.get("ALBEDO_DATA_DIR", ".")  # Where session files live
SAVE_FILE = os.path.join(DATA_DIR, "albedo.json")
LOG_LEVEL = os.environ.get("ALBEDO_LOG_LEVEL", "INFO")
LOG_JSON = os.environ.get("ALBEDO_LOG_JSON", "").lower() in ("1", "true", "yes")
