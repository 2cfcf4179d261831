"""Data models for tilediff.

This module defines the Pydantic models shared by the fixture loader, the
equivalence validator and the benchmark orchestrator, plus the configuration
models loaded from tilediff.yaml.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Dynamically typed property value as produced by either codec
PropertyValue = Union[str, int, float, bool, None]

# Tiles benchmarked when no config file overrides them
DEFAULT_TILES = [
    "bing/4-8-5",
    "bing/4-12-6",
    "bing/4-13-6",
    "bing/5-15-10",
    "bing/5-16-11",
    "bing/5-16-9",
    "bing/5-17-10",
    "bing/5-17-11",
]

# Codec names. MLT is the candidate (Format A), MVT the reference (Format B).
MLT = "mlt"
MVT = "mvt"


# ============================================================================
# Fixture Models
# ============================================================================


class ArtifactKind(str, Enum):
    """The three artifacts every tile fixture needs."""

    METADATA = "metadata"  # MLT tileset metadata (column layout schema)
    MLT = "mlt"
    MVT = "mvt"

    @property
    def derived(self) -> bool:
        """Whether the encoder can regenerate this artifact from the MVT source."""
        return self is not ArtifactKind.MVT


class TileFixture(BaseModel):
    """A tile loaded with both encodings and the MLT metadata.

    Immutable once loaded.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    tile: str
    x: int
    y: int
    z: int
    mlt_tile: bytes = Field(repr=False)
    mvt_tile: bytes = Field(repr=False)
    metadata: Any = Field(default=None, repr=False)

    def blob(self, codec: str) -> bytes:
        """Return the encoded blob a codec decodes."""
        if codec == MLT:
            return self.mlt_tile
        if codec == MVT:
            return self.mvt_tile
        raise ValueError(f"No blob for codec '{codec}'")


# ============================================================================
# Validation Models
# ============================================================================


class ValidationOutcome(BaseModel):
    """Result of validating one tile across both codecs."""

    tile: str
    passed: bool
    layers_validated: int = 0
    features_validated: int = 0
    # Locator, set on failure
    layer: Optional[str] = None
    feature_index: Optional[int] = None
    reason: Optional[str] = None
    message: Optional[str] = None


# ============================================================================
# Benchmark Models
# ============================================================================


class OperationKind(str, Enum):
    """What each benchmark pass does with every feature."""

    LOAD_GEOMETRY = "load_geometry"
    GEOJSON = "geojson"

    @property
    def label(self) -> str:
        """Short label used in scenario names."""
        return "loadGeo" if self is OperationKind.LOAD_GEOMETRY else "GeoJSON"

    @property
    def count_label(self) -> str:
        """Label used in the processed-feature summary line."""
        return "loadGeometry" if self is OperationKind.LOAD_GEOMETRY else "json"


class BenchmarkScenario(BaseModel):
    """One (operation, codec, tile) combination measured as a timed unit."""

    model_config = ConfigDict(frozen=True)

    operation: OperationKind
    codec: str
    tile: str
    min_time: float
    max_time: float
    min_samples: int = 5
    inner_loop_iterations: int = 5

    @property
    def name(self) -> str:
        """Scenario name, e.g. ``MLT -> loadGeo bing/4-8-5``."""
        return f"{self.codec.upper()} -> {self.operation.label} {self.tile}"


class TimingStats(BaseModel):
    """Summary statistics over the timed samples of one scenario.

    All times are in seconds per sample (one sample = one inner-loop batch).
    """

    samples: list[float]
    mean: float
    deviation: float
    sem: float
    moe: float
    rme: float
    hz: float
    elapsed: float


class ScenarioResult(BaseModel):
    """Outcome of a completed benchmark scenario."""

    scenario: BenchmarkScenario
    stats: TimingStats
    feature_count: int
    memory_rss_mb: Optional[float] = None

    @property
    def summary(self) -> str:
        """benchmark.js style cycle line."""
        return (
            f"{self.scenario.name} x {self.stats.hz:,.2f} ops/sec "
            f"±{self.stats.rme:.2f}% ({len(self.stats.samples)} runs sampled)"
        )

    @property
    def count_line(self) -> str:
        return (
            f"  Total {self.scenario.codec.upper()} "
            f"features({self.scenario.operation.count_label}) processed: "
            f"{self.feature_count}"
        )


# ============================================================================
# Configuration Models
# ============================================================================


class BenchmarkSettings(BaseModel):
    """Statistical bounds for timed scenarios."""

    min_time: float = 10.0
    max_time: float = 20.0
    ci_max_time: float = 2.0
    min_samples: int = 5
    inner_loop_iterations: int = 5

    @field_validator("max_time", "ci_max_time")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Time bound must be positive (got {v})")
        return v

    @field_validator("min_time")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"min_time cannot be negative (got {v})")
        return v

    @field_validator("min_samples", "inner_loop_iterations")
    @classmethod
    def validate_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be at least 1 (got {v})")
        return v

    def for_ci(self) -> "BenchmarkSettings":
        """Copy with max_time capped at the CI bound. Never lengthens a run."""
        return self.model_copy(update={"max_time": min(self.max_time, self.ci_max_time)})


class EncoderConfig(BaseModel):
    """External encoder used to regenerate MLT artifacts from MVT fixtures."""

    project_dir: Path = Path("../java")
    jar: Path = Path("build/libs/encode.jar")
    build_command: list[str] = Field(default_factory=lambda: ["./gradlew", "cli"])
    java: str = "java"


class ProjectConfig(BaseModel):
    """Top-level configuration (loaded from tilediff.yaml)."""

    tiles: list[str] = Field(default_factory=lambda: list(DEFAULT_TILES))
    fixtures_dir: Path = Path("../test/fixtures")
    expected_dir: Path = Path("../test/expected")
    codecs: dict[str, str] = Field(default_factory=dict)  # name -> "module:callable"
    encoder: Optional[EncoderConfig] = Field(default_factory=EncoderConfig)
    benchmark: BenchmarkSettings = Field(default_factory=BenchmarkSettings)

    @field_validator("tiles")
    @classmethod
    def validate_tiles(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one tile must be configured")
        return v

    @model_validator(mode="after")
    def validate_codec_paths(self) -> "ProjectConfig":
        for name, path in self.codecs.items():
            if ":" not in path:
                raise ValueError(
                    f"Codec '{name}' import path '{path}' must look like 'module:callable'"
                )
        return self
