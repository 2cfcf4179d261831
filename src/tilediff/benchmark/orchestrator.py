"""Benchmark orchestration for tilediff.

Builds one BenchmarkScenario per (tile, operation, codec) and runs them
strictly one after another. Each timed sample performs a fixed number of full
decode-and-traverse passes; every pass must visit the same, non-zero number
of features or the whole run is aborted with FeatureCountMismatch.

Scenarios never overlap with each other or with validation: concurrent CPU
load would skew the timings being compared.

Example:
    >>> results = run_benchmarks(
    ...     fixtures,
    ...     selection=ScenarioSelection(mlt=True, mvt=True),
    ...     settings=BenchmarkSettings(min_time=1, max_time=2),
    ... )
    >>> for result in results:
    ...     print(result.summary)
"""

import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import psutil

from ..codecs import Codec, codec_errors, get_codec
from ..core.errors import FeatureCountMismatch
from ..core.logging import get_logger
from ..core.models import (
    MLT,
    MVT,
    BenchmarkScenario,
    BenchmarkSettings,
    OperationKind,
    ScenarioResult,
    TileFixture,
)
from ..features.view import DecodedTileView
from .suite import Clock, run_timed

logger = get_logger(__name__)

# Callback types
TileCallback = Callable[[TileFixture], None]
ResultCallback = Callable[[ScenarioResult], None]


@dataclass(frozen=True)
class ScenarioSelection:
    """Which operation classes to benchmark (one flag per CLI option)."""

    mvt: bool = False
    mlt: bool = False
    mvtjson: bool = False
    mltjson: bool = False

    @property
    def empty(self) -> bool:
        return not (self.mvt or self.mlt or self.mvtjson or self.mltjson)

    def pairs(self) -> list[tuple[OperationKind, str]]:
        """Selected (operation, codec) pairs in execution order."""
        ordered = [
            (self.mvt, OperationKind.LOAD_GEOMETRY, MVT),
            (self.mlt, OperationKind.LOAD_GEOMETRY, MLT),
            (self.mvtjson, OperationKind.GEOJSON, MVT),
            (self.mltjson, OperationKind.GEOJSON, MLT),
        ]
        return [(operation, codec) for selected, operation, codec in ordered if selected]

    def codecs(self) -> set[str]:
        return {codec for _, codec in self.pairs()}


class FeatureCountInvariant:
    """Per-scenario accumulator for the feature-count invariant.

    The first pass fixes the expected count. Every later pass must match it,
    and no pass may visit zero features.
    """

    def __init__(self, scenario: str):
        self.scenario = scenario
        self.expected: Optional[int] = None
        self.passes = 0

    def observe(self, count: int) -> None:
        """Record one pass.

        Raises:
            FeatureCountMismatch: On a zero count or drift from the first pass
        """
        if count < 1 or (self.expected is not None and count != self.expected):
            raise FeatureCountMismatch(
                f"Feature count mismatch for {self.scenario}: "
                f"expected {self.expected}, got {count}",
                self.scenario,
                self.expected,
                count,
            )
        if self.expected is None:
            self.expected = count
        self.passes += 1


def decode_inputs(fixture: TileFixture, codec: str) -> tuple[bytes, Any]:
    """Blob and metadata a codec decodes for a fixture."""
    return fixture.blob(codec), fixture.metadata if codec == MLT else None


def traverse(view: DecodedTileView, operation: OperationKind, fixture: TileFixture) -> int:
    """Visit every feature of every layer, apply the operation, count features.

    Results are discarded; only the count is returned.
    """
    count = 0
    for layer_name in view.layer_names():
        layer = view.layers[layer_name]
        for j in range(len(layer)):
            feature = layer.feature(j)
            if operation is OperationKind.LOAD_GEOMETRY:
                feature.load_geometry()
            else:
                feature.to_geojson(fixture.x, fixture.y, fixture.z)
            count += 1
    return count


def build_scenarios(
    fixture: TileFixture,
    selection: ScenarioSelection,
    settings: BenchmarkSettings,
) -> list[BenchmarkScenario]:
    """Scenarios for one tile, in execution order."""
    return [
        BenchmarkScenario(
            operation=operation,
            codec=codec,
            tile=fixture.tile,
            min_time=settings.min_time,
            max_time=settings.max_time,
            min_samples=settings.min_samples,
            inner_loop_iterations=settings.inner_loop_iterations,
        )
        for operation, codec in selection.pairs()
    ]


def run_scenario(
    scenario: BenchmarkScenario,
    fixture: TileFixture,
    codec: Codec,
    clock: Clock = time.perf_counter,
) -> ScenarioResult:
    """Run one timed scenario.

    Raises:
        FeatureCountMismatch: If any pass breaks the count invariant
        CodecError: If the codec raises while decoding or traversing
    """
    invariant = FeatureCountInvariant(scenario.name)
    blob, metadata = decode_inputs(fixture, scenario.codec)

    def sample() -> None:
        for _ in range(scenario.inner_loop_iterations):
            with codec_errors(scenario.codec, scenario.tile, scenario=scenario.name):
                view = codec.decode(blob, metadata)
                count = traverse(view, scenario.operation, fixture)
            invariant.observe(count)

    logger.debug(f"Starting scenario {scenario.name}")
    stats = run_timed(
        sample,
        min_time=scenario.min_time,
        max_time=scenario.max_time,
        min_samples=scenario.min_samples,
        clock=clock,
    )

    return ScenarioResult(
        scenario=scenario,
        stats=stats,
        feature_count=invariant.expected,
        memory_rss_mb=_rss_mb(),
    )


def _rss_mb() -> float:
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / 1024 / 1024


def run_benchmarks(
    fixtures: list[TileFixture],
    selection: ScenarioSelection,
    settings: BenchmarkSettings,
    codecs: Optional[Mapping[str, Codec]] = None,
    on_tile: Optional[TileCallback] = None,
    on_result: Optional[ResultCallback] = None,
    clock: Clock = time.perf_counter,
) -> list[ScenarioResult]:
    """Run every selected scenario for every fixture, sequentially.

    Args:
        fixtures: Loaded tiles, benchmarked in order
        selection: Operation classes to run
        settings: Time bounds and inner-loop count
        codecs: Codec overrides by name (defaults to the registry)
        on_tile: Called before the first scenario of each tile
        on_result: Called after each scenario completes
        clock: Clock used for timing

    Returns:
        One ScenarioResult per scenario, in execution order

    Raises:
        ConfigError: If a selected codec is not registered
        FeatureCountMismatch: Aborts the whole run on the first violation
        CodecError: Aborts the whole run on the first codec failure
    """
    codecs = dict(codecs or {})
    for name in selection.codecs():
        if name not in codecs:
            codecs[name] = get_codec(name)

    results = []
    for fixture in fixtures:
        if on_tile is not None:
            on_tile(fixture)
        for scenario in build_scenarios(fixture, selection, settings):
            result = run_scenario(scenario, fixture, codecs[scenario.codec], clock)
            logger.info(result.summary)
            results.append(result)
            if on_result is not None:
                on_result(result)
    return results
