"""Feature views shared by every codec.

Public API:
    - FeatureView, LayerView, DecodedTileView: codec-independent views
    - SelfDescribingGeometry, RawPointGeometry: geometry variants
    - as_tile_view: wrap a foreign decoder's output
    - project: tile-local to lon/lat transform
"""

from .projection import DEFAULT_EXTENT, project
from .view import (
    DecodedTileView,
    FeatureView,
    LayerView,
    RawPointGeometry,
    SelfDescribingGeometry,
    as_number,
    as_tile_view,
    resolve_geometry,
)

__all__ = [
    "DEFAULT_EXTENT",
    "project",
    "DecodedTileView",
    "FeatureView",
    "LayerView",
    "RawPointGeometry",
    "SelfDescribingGeometry",
    "as_number",
    "as_tile_view",
    "resolve_geometry",
]
