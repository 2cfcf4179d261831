"""Decode throughput benchmarks.

Public API:
    - run_benchmarks: run all selected scenarios sequentially
    - run_scenario: run one timed scenario
    - ScenarioSelection: which operation classes to run
    - FeatureCountInvariant: per-scenario count accumulator
    - run_timed / summarize: timed sampling and statistics
"""

from .orchestrator import (
    FeatureCountInvariant,
    ScenarioSelection,
    build_scenarios,
    run_benchmarks,
    run_scenario,
    traverse,
)
from .suite import run_timed, summarize

__all__ = [
    "run_benchmarks",
    "run_scenario",
    "build_scenarios",
    "traverse",
    "ScenarioSelection",
    "FeatureCountInvariant",
    "run_timed",
    "summarize",
]
