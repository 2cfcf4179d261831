"""Mapbox Vector Tile codec (the reference side of every comparison).

Decoding is delegated to the mapbox-vector-tile library. Coordinates are kept
tile-local with y pointing down, so projection matches the shared transform.
"""

from functools import partial
from typing import Any

import mapbox_vector_tile

from ..features.projection import DEFAULT_EXTENT, project
from ..features.view import DecodedTileView, FeatureView, LayerView
from .abc import Codec
from .registry import register_codec

DECODE_OPTIONS = {"y_coord_down": True}


class MvtGeometry:
    """Self-describing geometry over a decoded MVT feature."""

    __slots__ = ("_geometry", "_extent")

    def __init__(self, geometry: dict[str, Any], extent: int = DEFAULT_EXTENT):
        self._geometry = geometry
        self._extent = extent

    @property
    def type(self) -> str:
        return self._geometry["type"]

    def load_geometry(self) -> list[list[tuple[float, float]]]:
        """Flatten any geometry type to a list of rings of points."""
        kind = self._geometry["type"]
        coords = self._geometry["coordinates"]

        if kind == "Point":
            return [[_point(coords)]]
        if kind == "MultiPoint":
            return [[_point(p)] for p in coords]
        if kind == "LineString":
            return [[_point(p) for p in coords]]
        if kind in ("MultiLineString", "Polygon"):
            return [[_point(p) for p in line] for line in coords]
        if kind == "MultiPolygon":
            return [[_point(p) for p in ring] for polygon in coords for ring in polygon]
        raise ValueError(f"Unsupported MVT geometry type '{kind}'")

    def to_geojson(self, x: int, y: int, z: int) -> dict[str, Any]:
        to_lonlat = partial(_project_point, x=x, y=y, z=z, extent=self._extent)
        return {
            "type": self._geometry["type"],
            "coordinates": _map_points(self._geometry["coordinates"], to_lonlat),
        }


def _point(coords: Any) -> tuple[float, float]:
    return (coords[0], coords[1])


def _project_point(point, *, x: int, y: int, z: int, extent: int) -> list[float]:
    return project(x, y, z, [point], extent)[0]


def _map_points(coords: Any, fn) -> Any:
    # A point is a pair of numbers; anything else is a nested list of points
    if coords and not isinstance(coords[0], (list, tuple)):
        return fn(coords)
    return [_map_points(c, fn) for c in coords]


def _build_feature(record: dict[str, Any], extent: int) -> FeatureView:
    return FeatureView(
        record.get("id"),
        MvtGeometry(record["geometry"], extent),
        record.get("properties", {}),
        extent=extent,
    )


class MvtCodec(Codec):
    """Decodes MVT protobuf tiles with mapbox-vector-tile."""

    name = "mvt"

    def decode(self, blob: bytes, metadata: Any = None) -> DecodedTileView:
        decoded = mapbox_vector_tile.decode(blob, default_options=DECODE_OPTIONS)
        layers = {}
        for name, layer in decoded.items():
            extent = layer.get("extent", DEFAULT_EXTENT)
            layers[name] = LayerView(
                name, layer.get("features", []), partial(_build_feature, extent=extent)
            )
        return DecodedTileView(layers)


register_codec("mvt", MvtCodec())
