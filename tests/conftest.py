"""Shared test fixtures for tilediff.

Synthetic codecs build DecodedTileViews directly, so validator and benchmark
tests do not depend on any binary format.
"""

from typing import Any, Callable

import pytest

from tilediff.codecs import Codec
from tilediff.codecs.registry import CODEC_REGISTRY
from tilediff.core.logging import configure_logging
from tilediff.core.models import TileFixture
from tilediff.features import DecodedTileView, FeatureView, LayerView

# ============================================================================
# Helpers
# ============================================================================


class FakeGeometry:
    """Self-describing geometry with a fixed GeoJSON type."""

    def __init__(self, kind: str, rings: list):
        self.kind = kind
        self.rings = rings
        self.loads = 0

    def load_geometry(self):
        self.loads += 1
        return self.rings

    def to_geojson(self, x, y, z):
        return {"type": self.kind, "coordinates": self.rings}


def point_feature(id: Any, properties: dict, point=(100, 200)) -> FeatureView:
    """Feature with a raw point geometry."""
    return FeatureView(id, point, properties)


def polygon_feature(id: Any, properties: dict) -> FeatureView:
    """Feature with a self-describing polygon geometry."""
    ring = [(0, 0), (10, 0), (10, 10), (0, 0)]
    return FeatureView(id, FakeGeometry("Polygon", [ring]), properties)


def make_view(layers: dict[str, list[FeatureView]]) -> DecodedTileView:
    return DecodedTileView(
        {name: LayerView(name, features) for name, features in layers.items()}
    )


def sample_layers(drop_key_at: int = -1) -> dict[str, list[FeatureView]]:
    """A small tile: 5 buildings and 2 roads.

    Args:
        drop_key_at: Building index whose "height" property is omitted
    """
    buildings = []
    for i in range(5):
        properties = {"class": "house", "height": 10 + i}
        if i == drop_key_at:
            del properties["height"]
        buildings.append(polygon_feature(i, properties))

    roads = [point_feature(100 + i, {"name": f"road {i}"}) for i in range(2)]
    return {"building": buildings, "road": roads}


def with_reference_id(layers: dict[str, list[FeatureView]]) -> dict[str, list[FeatureView]]:
    """Copy layers adding an ``id`` property to every feature (MVT style)."""
    return {
        name: [
            FeatureView(f.id, f.geometry, {**f.properties, "id": f.id})
            for f in features
        ]
        for name, features in layers.items()
    }


class StaticCodec(Codec):
    """Codec returning a freshly built view on every decode."""

    def __init__(self, name: str, build: Callable[[], dict[str, list[FeatureView]]]):
        self.name = name
        self.build = build
        self.decodes = 0
        self.inputs: list[tuple[bytes, Any]] = []

    def decode(self, blob: bytes, metadata: Any) -> DecodedTileView:
        self.decodes += 1
        self.inputs.append((blob, metadata))
        return make_view(self.build())


class FlakyCodec(Codec):
    """Codec whose feature count changes on every other decode."""

    def __init__(self, name: str = "mlt"):
        self.name = name
        self.decodes = 0

    def decode(self, blob: bytes, metadata: Any) -> DecodedTileView:
        self.decodes += 1
        count = 3 if self.decodes % 2 else 2
        return make_view({"poi": [point_feature(i, {}) for i in range(count)]})


class BrokenCodec(Codec):
    """Codec whose decoder raises a foreign exception."""

    def __init__(self, name: str = "mlt", error: Exception = None):
        self.name = name
        self.error = error if error is not None else ValueError("corrupt")

    def decode(self, blob: bytes, metadata: Any) -> DecodedTileView:
        raise self.error


class LoadOnlyGeometry:
    """Geometry that can load itself but has neither to_geojson() nor x/y."""

    def load_geometry(self):
        return [[(0, 0), (4, 4)]]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def restore_codec_registry():
    """Restore the codec registry after every test."""
    original = CODEC_REGISTRY.copy()
    yield
    CODEC_REGISTRY.clear()
    CODEC_REGISTRY.update(original)


@pytest.fixture(autouse=True)
def no_ci(monkeypatch):
    """Tests control time bounds explicitly."""
    monkeypatch.delenv("GITHUB_RUN_ID", raising=False)
    monkeypatch.delenv("CI", raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers (and open log files) a test configured."""
    yield
    configure_logging()


@pytest.fixture
def tile_fixture() -> TileFixture:
    return TileFixture(
        tile="bing/4-8-5",
        x=8,
        y=5,
        z=4,
        mlt_tile=b"mlt-bytes",
        mvt_tile=b"mvt-bytes",
        metadata={"columns": ["class", "height"]},
    )


@pytest.fixture
def matching_codecs():
    """Candidate and reference codecs that agree on sample_layers()."""
    candidate = StaticCodec("mlt", sample_layers)
    reference = StaticCodec("mvt", lambda: with_reference_id(sample_layers()))
    return candidate, reference
