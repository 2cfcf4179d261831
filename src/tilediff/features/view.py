"""Codec-independent views over a decoded tile.

A codec turns bytes into a DecodedTileView; everything downstream (validator,
benchmark) only talks to DecodedTileView, LayerView and FeatureView.

Geometry comes in two shapes. Some codecs hand back geometry objects that can
decode and/or project themselves; others only give a single tile-local point.
The shape is resolved once, when the FeatureView is built, into one of:

    SelfDescribingGeometry  - delegates load_geometry() / to_geojson(); a
                              missing method falls back to point handling
    RawPointGeometry        - one point, projected with the shared transform
"""

from dataclasses import dataclass
from numbers import Integral
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from .projection import DEFAULT_EXTENT, project

Point = tuple[float, float]
Rings = list[list[Point]]


@dataclass(frozen=True)
class RawPointGeometry:
    """A single tile-local coordinate pair."""

    point: Point
    extent: int = DEFAULT_EXTENT

    def load_geometry(self) -> Rings:
        return [[self.point]]

    def to_geojson(self, x: int, y: int, z: int) -> dict[str, Any]:
        projected = project(x, y, z, [self.point], self.extent)
        return {"type": "Point", "coordinates": projected[0]}


@dataclass(frozen=True)
class SelfDescribingGeometry:
    """Geometry object that decodes and/or projects itself.

    Each capability the source lacks is served by reading the source as a
    point, so a load-only geometry still projects when it also carries x/y.
    """

    source: Any
    can_load: bool = True
    can_project: bool = True
    extent: int = DEFAULT_EXTENT

    def load_geometry(self) -> Any:
        if self.can_load:
            return self.source.load_geometry()
        return self._as_raw_point().load_geometry()

    def to_geojson(self, x: int, y: int, z: int) -> dict[str, Any]:
        if self.can_project:
            return self.source.to_geojson(x, y, z)
        return self._as_raw_point().to_geojson(x, y, z)

    def _as_raw_point(self) -> RawPointGeometry:
        return RawPointGeometry(_as_point(self.source), self.extent)


Geometry = Union[SelfDescribingGeometry, RawPointGeometry]


def resolve_geometry(geometry: Any, extent: int = DEFAULT_EXTENT) -> Geometry:
    """Classify a codec's geometry value into one of the two variants.

    Raises:
        TypeError: If the value has neither geometry method and is not a point
    """
    if isinstance(geometry, (SelfDescribingGeometry, RawPointGeometry)):
        return geometry

    can_load = callable(getattr(geometry, "load_geometry", None))
    can_project = callable(getattr(geometry, "to_geojson", None))
    if can_load or can_project:
        return SelfDescribingGeometry(geometry, can_load, can_project, extent)
    return RawPointGeometry(_as_point(geometry), extent)


def _as_point(value: Any) -> Point:
    if isinstance(value, Mapping):
        return (value["x"], value["y"])
    if hasattr(value, "x") and hasattr(value, "y"):
        return (value.x, value.y)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        if len(value) == 2:
            return (value[0], value[1])
    raise TypeError(f"Cannot interpret {value!r} as a point geometry")


def as_number(value: Any) -> Union[int, float, None]:
    """Coerce an id to a plain Python number.

    Codecs hand out ids as numpy scalars, bigints, floats or strings.
    """
    if value is None:
        return None
    if isinstance(value, Integral):
        return int(value)
    number = float(value)
    return int(number) if number.is_integer() else number


class FeatureView:
    """One decoded feature, whatever codec produced it.

    Attributes:
        id: Feature id as the codec reported it
        geometry: Resolved geometry variant
        properties: Property mapping in codec order
    """

    __slots__ = ("id", "geometry", "properties")

    def __init__(
        self,
        id: Any,
        geometry: Any,
        properties: Optional[Mapping[str, Any]] = None,
        extent: int = DEFAULT_EXTENT,
    ):
        self.id = id
        self.geometry = resolve_geometry(geometry, extent)
        self.properties = properties if properties is not None else {}

    def load_geometry(self) -> Any:
        """Return the geometry as a list of rings of points."""
        return self.geometry.load_geometry()

    def to_geojson(self, x: int, y: int, z: int) -> dict[str, Any]:
        """Return a GeoJSON Feature projected for tile (z, x, y)."""
        return {
            "type": "Feature",
            "id": as_number(self.id),
            "geometry": self.geometry.to_geojson(x, y, z),
            "properties": self.properties,
        }

    def __repr__(self) -> str:
        return f"FeatureView(id={self.id!r}, geometry={type(self.geometry).__name__})"


class LayerView:
    """Indexed access to the features of one layer.

    Features are built on access from the codec's raw records, so a pass over
    the layer pays for the view construction like any other decode cost.
    """

    def __init__(
        self,
        name: str,
        records: Sequence[Any],
        build: Optional[Callable[[Any], FeatureView]] = None,
    ):
        self.name = name
        self._records = records
        self._build = build

    @property
    def length(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def feature(self, index: int) -> FeatureView:
        record = self._records[index]
        if self._build is None:
            return record
        return self._build(record)

    def __repr__(self) -> str:
        return f"LayerView(name={self.name!r}, length={self.length})"


class DecodedTileView:
    """Mapping from layer name to LayerView for one decode call."""

    def __init__(self, layers: Mapping[str, LayerView]):
        self.layers = dict(layers)

    def layer_names(self) -> list[str]:
        return sorted(self.layers)

    def feature_count(self) -> int:
        return sum(len(layer) for layer in self.layers.values())

    def __repr__(self) -> str:
        return f"DecodedTileView(layers={self.layer_names()})"


class _ForeignLayer(LayerView):
    """LayerView over a layer object from another decoder library."""

    def __init__(self, name: str, layer: Any):
        super().__init__(name, [], None)
        self._layer = layer

    @property
    def length(self) -> int:
        return len(self)

    def __len__(self) -> int:
        if hasattr(self._layer, "length"):
            return int(self._layer.length)
        return len(self._layer)

    def feature(self, index: int) -> FeatureView:
        feature = self._layer.feature(index)
        if isinstance(feature, FeatureView):
            return feature
        return FeatureView(
            getattr(feature, "id", None),
            feature.geometry,
            getattr(feature, "properties", None),
            extent=getattr(self._layer, "extent", DEFAULT_EXTENT),
        )


def as_tile_view(decoded: Any) -> DecodedTileView:
    """Wrap a decoder's return value as a DecodedTileView.

    Accepts a DecodedTileView as is, or any object with a ``layers`` mapping
    whose values expose ``feature(i)`` and either ``length`` or ``len()``.

    Raises:
        TypeError: If the value has no layers mapping
    """
    if isinstance(decoded, DecodedTileView):
        return decoded

    layers = getattr(decoded, "layers", None)
    if layers is None and isinstance(decoded, Mapping):
        layers = decoded.get("layers")
    if not isinstance(layers, Mapping):
        raise TypeError(
            f"Decoder returned {type(decoded).__name__}, which has no 'layers' mapping"
        )

    return DecodedTileView(
        {
            name: layer if isinstance(layer, LayerView) else _ForeignLayer(name, layer)
            for name, layer in layers.items()
        }
    )
