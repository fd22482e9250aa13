"""Battle-map geometry: distances, range bands and blast deviation."""

from __future__ import annotations

import math

from models.characters import Position, Weapon
from models.enums import Range


def point_distance(pos1: Position, pos2: Position) -> float:
    """Exact Euclidean distance between two map positions."""
    return math.hypot(pos1.x - pos2.x, pos1.y - pos2.y)


def distance(pos1: Position, pos2: Position) -> int:
    """Distance between two map positions, rounded up to whole units.

    Args:
        pos1: First position.
        pos2: Second position.

    Returns:
        Euclidean distance, ceiling to the next integer.
    """
    return math.ceil(point_distance(pos1, pos2))


def resolve_range(weapon: Weapon, dist: float) -> Range:
    """Find the range band a distance falls into for a weapon.

    Bands are walked Close to Extreme and the first whose configured maximum
    covers the distance wins. Bands with no configured maximum are skipped.

    Args:
        weapon: The attacking weapon.
        dist: Distance to the target.

    Returns:
        The matching band, or Range.OVER if the target is beyond every band.
    """
    for band in Range.bands():
        limit = weapon.ranges.get(band)
        if limit is not None and dist <= limit:
            return band
    return Range.OVER


def to_nearest(raw: float, step: float) -> float:
    """Snap a coordinate to the nearest multiple of step."""
    if step <= 0:
        return raw
    return round(raw / step) * step


def snap(pos: Position, step: float) -> Position:
    """Snap a map position to the grid."""
    return Position(x=to_nearest(pos.x, step), y=to_nearest(pos.y, step))


def bearing(origin: Position, target: Position) -> float:
    """Angle of the line from origin to target, in radians.

    Map coordinates grow downwards, so positive angles turn clockwise on
    screen. Coincident points face "up" the map.
    """
    dx = target.x - origin.x
    dy = target.y - origin.y
    if dx == 0 and dy == 0:
        return -math.pi / 2
    return math.atan2(dy, dx)


def point_along(origin: Position, target: Position, dist: float) -> Position:
    """The point dist units from origin towards target."""
    angle = bearing(origin, target)
    return Position(
        x=origin.x + dist * math.cos(angle),
        y=origin.y + dist * math.sin(angle),
    )


def deviate(
    point: Position,
    line_of_fire: float,
    clock: int,
    dist: float,
) -> Position:
    """Move a point dist units in a clock-face direction.

    Twelve o'clock continues along the line of fire (overshoot), six o'clock
    falls short, three and nine drift right and left.

    Args:
        point: The aimed-at point.
        line_of_fire: Bearing of the shot, from bearing().
        clock: Clock-face direction, 1-12.
        dist: How far the point moves.

    Returns:
        The deviated point.
    """
    angle = line_of_fire + math.radians((clock % 12) * 30)
    return Position(
        x=point.x + dist * math.cos(angle),
        y=point.y + dist * math.sin(angle),
    )
