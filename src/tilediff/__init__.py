"""tilediff - cross-validation and benchmarking of MLT vs MVT tile codecs.

tilediff decodes the same vector tile through two independent codecs, proves
the results are equivalent feature by feature, and measures decode throughput
under fixed statistical bounds.

Basic Usage:
    >>> from pathlib import Path
    >>> from tilediff import get_codec, register_codec, load_fixture, validate_tile
    >>> from tilediff.fixtures import FileSystemResolver
    >>>
    >>> register_codec("mlt", decode_mlt_tile, parse_tileset_metadata)
    >>> fixture = load_fixture(
    ...     "bing/4-8-5",
    ...     FileSystemResolver(Path("test/fixtures"), Path("test/expected")),
    ...     metadata_parser=get_codec("mlt").parse_metadata,
    ... )
    >>> validate_tile(fixture).passed
    True

Public API:
    Features:
        - FeatureView, LayerView, DecodedTileView
        - project: tile-local to lon/lat transform

    Fixtures:
        - load_fixture, parse_tile_id

    Validation:
        - validate_tile

    Benchmarks:
        - run_benchmarks, ScenarioSelection

    Codecs:
        - Codec, register_codec, get_codec

    Errors:
        - TileDiffError and subclasses
"""

from .benchmark import ScenarioSelection, run_benchmarks
from .codecs import Codec, get_codec, register_codec
from .core.errors import (
    BlobNotFound,
    CodecError,
    ConfigError,
    EmptyValidation,
    EncoderError,
    EquivalenceError,
    FeatureCountMismatch,
    FixtureError,
    FixtureNotFound,
    GeometryKindMismatch,
    InvariantError,
    KeySetMismatch,
    LayerLengthMismatch,
    LayerSetMismatch,
    MalformedIdentifier,
    SchemaNotFound,
    TileDiffError,
)
from .core.models import (
    BenchmarkScenario,
    BenchmarkSettings,
    OperationKind,
    ScenarioResult,
    TileFixture,
    ValidationOutcome,
)
from .features import DecodedTileView, FeatureView, LayerView, project
from .fixtures import load_fixture, parse_tile_id
from .validation import validate_tile
from .version import __version__

__all__ = [
    # Version
    "__version__",
    # Features
    "FeatureView",
    "LayerView",
    "DecodedTileView",
    "project",
    # Fixtures
    "load_fixture",
    "parse_tile_id",
    # Validation
    "validate_tile",
    # Benchmarks
    "run_benchmarks",
    "ScenarioSelection",
    # Codecs
    "Codec",
    "register_codec",
    "get_codec",
    # Models
    "TileFixture",
    "ValidationOutcome",
    "BenchmarkScenario",
    "BenchmarkSettings",
    "OperationKind",
    "ScenarioResult",
    # Errors
    "TileDiffError",
    "ConfigError",
    "FixtureError",
    "MalformedIdentifier",
    "FixtureNotFound",
    "SchemaNotFound",
    "BlobNotFound",
    "EncoderError",
    "EquivalenceError",
    "KeySetMismatch",
    "GeometryKindMismatch",
    "LayerSetMismatch",
    "LayerLengthMismatch",
    "EmptyValidation",
    "InvariantError",
    "FeatureCountMismatch",
    "CodecError",
]
