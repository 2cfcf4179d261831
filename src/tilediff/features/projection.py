"""Tile-local to geographic coordinate projection.

Inverse Web-Mercator tiling transform shared by every codec whose geometry
cannot project itself.
"""

import math
from typing import Iterable, Sequence

DEFAULT_EXTENT = 4096


def project(
    x: int,
    y: int,
    z: int,
    points: Iterable[Sequence[float]],
    extent: int = DEFAULT_EXTENT,
) -> list[list[float]]:
    """Project tile-local points to ``[lon, lat]`` pairs.

    Args:
        x: Tile column
        y: Tile row
        z: Zoom level
        points: Tile-local ``(px, py)`` pairs, origin top-left, y pointing down
        extent: Tile extent in local units

    Returns:
        List of ``[lon, lat]`` pairs in degrees

    Example:
        >>> project(0, 0, 0, [(2048, 2048)])
        [[0.0, 0.0]]
    """
    size = extent * 2**z
    x0 = extent * x
    y0 = extent * y

    projected = []
    for px, py in points:
        lon = (px + x0) * 360.0 / size - 180.0
        y2 = 180.0 - (py + y0) * 360.0 / size
        lat = 360.0 / math.pi * math.atan(math.exp(y2 * math.pi / 180.0)) - 90.0
        projected.append([lon, lat])
    return projected
