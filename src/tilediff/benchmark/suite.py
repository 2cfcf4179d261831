"""Timed sampling and summary statistics.

One sample is one call of the measured function. Sampling stops once
``max_time`` seconds have been spent, or earlier once at least ``min_time``
seconds and ``min_samples`` samples have been collected.

Statistics mirror benchmark.js: sample mean and standard deviation, standard
error of the mean, 95% margin of error from the Student-t distribution and the
relative margin of error in percent.
"""

import math
import statistics
import time
from typing import Callable

from ..core.models import TimingStats

# Two-sided 95% critical values of Student's t, indexed by degrees of freedom
T_TABLE = {
    1: 12.706, 2: 4.303, 3: 3.182, 4: 2.776, 5: 2.571, 6: 2.447, 7: 2.365,
    8: 2.306, 9: 2.262, 10: 2.228, 11: 2.201, 12: 2.179, 13: 2.16, 14: 2.145,
    15: 2.131, 16: 2.12, 17: 2.11, 18: 2.101, 19: 2.093, 20: 2.086, 21: 2.08,
    22: 2.074, 23: 2.069, 24: 2.064, 25: 2.06, 26: 2.056, 27: 2.052, 28: 2.048,
    29: 2.045, 30: 2.042,
}
T_INFINITY = 1.96

Clock = Callable[[], float]


def critical_value(df: int) -> float:
    """Student-t critical value for the given degrees of freedom."""
    if df < 1:
        return T_INFINITY
    return T_TABLE.get(df, T_INFINITY)


def summarize(samples: list[float], elapsed: float) -> TimingStats:
    """Compute summary statistics for a list of per-sample durations.

    Raises:
        ValueError: If samples is empty
    """
    if not samples:
        raise ValueError("Cannot summarize an empty sample")

    mean = statistics.mean(samples)
    deviation = statistics.stdev(samples) if len(samples) > 1 else 0.0
    sem = deviation / math.sqrt(len(samples))
    moe = sem * critical_value(len(samples) - 1)
    rme = (moe / mean) * 100 if mean > 0 else 0.0
    hz = 1 / mean if mean > 0 else math.inf

    return TimingStats(
        samples=samples,
        mean=mean,
        deviation=deviation,
        sem=sem,
        moe=moe,
        rme=rme,
        hz=hz,
        elapsed=elapsed,
    )


def run_timed(
    fn: Callable[[], None],
    min_time: float,
    max_time: float,
    min_samples: int = 5,
    clock: Clock = time.perf_counter,
) -> TimingStats:
    """Call ``fn`` repeatedly and time each call.

    Exceptions raised by ``fn`` propagate immediately; no partial statistics
    are produced.

    Args:
        fn: Function to measure (one call = one sample)
        min_time: Minimum seconds of measurement before stopping early
        max_time: Hard upper bound in seconds; takes precedence over min_time
        min_samples: Minimum number of samples before stopping early
        clock: Monotonic clock returning seconds

    Returns:
        TimingStats over all collected samples (always at least one)
    """
    samples: list[float] = []
    elapsed = 0.0

    while True:
        start = clock()
        fn()
        duration = clock() - start
        samples.append(duration)
        elapsed += duration

        if elapsed >= max_time:
            break
        if elapsed >= min_time and len(samples) >= min_samples:
            break

    return summarize(samples, elapsed)
