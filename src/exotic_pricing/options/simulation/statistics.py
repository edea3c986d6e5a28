"""
Running statistics for Monte Carlo samples.

Implements:
- Welford's online mean/variance (no sum-of-squares cancellation)
- Pairwise merge of accumulators (Chan, Golub & LeVeque 1979)
- Convergence table snapshotting on a geometric schedule

[T1] Welford: δ = x - m_{n-1}; m_n = m_{n-1} + δ/n; M2_n = M2_{n-1} + δ(x - m_n)
[T1] Merge:   δ = m_b - m_a; M2 = M2_a + M2_b + δ² n_a n_b / n

See: Knuth TAOCP Vol. 2, Section 4.2.2
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from exotic_pricing.errors import InvalidParameter


@dataclass(frozen=True)
class ConvergenceRow:
    """
    One row of a convergence table.

    Attributes
    ----------
    n_paths : int
        Samples accumulated when the snapshot was taken
    estimate : float
        Running mean at that point
    standard_error : float
        Running standard error at that point
    """

    n_paths: int
    estimate: float
    standard_error: float


class RunningStatistics:
    """
    Online accumulator of count, mean and sum of squared deviations.

    Examples
    --------
    >>> stats = RunningStatistics()
    >>> stats.extend([1.0, 2.0, 3.0, 4.0])
    >>> stats.mean, stats.variance
    (2.5, 1.6666666666666667)
    """

    __slots__ = ("_count", "_mean", "_m2")

    def __init__(self) -> None:
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0

    def accumulate(self, value: float) -> None:
        """Add one sample."""
        value = float(value)
        self._count += 1
        delta = value - self._mean
        self._mean += delta / self._count
        self._m2 += delta * (value - self._mean)

    def extend(self, values: Iterable[float]) -> None:
        """Add samples one at a time, in order."""
        for value in values:
            self.accumulate(value)

    def merge(self, other: "RunningStatistics") -> None:
        """Fold ``other`` into this accumulator in place."""
        if other._count == 0:
            return
        if self._count == 0:
            self._count, self._mean, self._m2 = other._count, other._mean, other._m2
            return

        total = self._count + other._count
        delta = other._mean - self._mean
        self._mean += delta * other._count / total
        self._m2 += other._m2 + delta * delta * self._count * other._count / total
        self._count = total

    @classmethod
    def combine(cls, parts: Iterable["RunningStatistics"]) -> "RunningStatistics":
        """Merge several accumulators, left to right, into a new one."""
        merged = cls()
        for part in parts:
            merged.merge(part)
        return merged

    def copy(self) -> "RunningStatistics":
        clone = RunningStatistics()
        clone._count, clone._mean, clone._m2 = self._count, self._mean, self._m2
        return clone

    @property
    def count(self) -> int:
        return self._count

    @property
    def mean(self) -> float:
        """Running mean (NaN before the first sample)."""
        return self._mean if self._count else math.nan

    @property
    def sum_squared_deviations(self) -> float:
        return self._m2

    @property
    def variance(self) -> float:
        """Unbiased sample variance; 0 with fewer than two samples."""
        if self._count < 2:
            return 0.0
        return max(self._m2, 0.0) / (self._count - 1)

    @property
    def standard_deviation(self) -> float:
        return math.sqrt(self.variance)

    @property
    def standard_error(self) -> float:
        """sqrt(variance / count); NaN before the first sample."""
        if self._count == 0:
            return math.nan
        return math.sqrt(self.variance / self._count)

    def to_row(self) -> ConvergenceRow:
        return ConvergenceRow(
            n_paths=self._count,
            estimate=self.mean,
            standard_error=self.standard_error,
        )

    def __repr__(self) -> str:
        return (
            f"RunningStatistics(count={self._count}, mean={self.mean!r}, "
            f"variance={self.variance!r})"
        )


class ConvergenceTable:
    """
    Accumulator decorator recording snapshots at 1, r, r², ... samples.

    Parameters
    ----------
    statistics : RunningStatistics, optional
        Accumulator to wrap; a new one is created when omitted
    ratio : int, default 2
        Geometric ratio of the snapshot schedule

    Examples
    --------
    >>> table = ConvergenceTable()
    >>> table.extend([1.0, 3.0, 5.0])
    >>> [row.n_paths for row in table.rows()]
    [1, 2, 3]
    """

    def __init__(self, statistics: Optional[RunningStatistics] = None, ratio: int = 2):
        if ratio < 2:
            raise InvalidParameter(f"CRITICAL: ratio must be >= 2, got {ratio}")
        self._statistics = statistics if statistics is not None else RunningStatistics()
        self._ratio = int(ratio)
        self._snapshots: list[RunningStatistics] = []
        self._next_checkpoint = 1
        while self._next_checkpoint <= self._statistics.count:
            self._next_checkpoint *= self._ratio

    @property
    def statistics(self) -> RunningStatistics:
        return self._statistics

    @property
    def count(self) -> int:
        return self._statistics.count

    @property
    def next_checkpoint(self) -> int:
        return self._next_checkpoint

    def accumulate(self, value: float) -> None:
        """Add one sample, snapshotting when the schedule says so."""
        self._statistics.accumulate(value)
        if self._statistics.count == self._next_checkpoint:
            self.snapshot()
            self._next_checkpoint *= self._ratio

    def extend(self, values: Iterable[float]) -> None:
        for value in values:
            self.accumulate(value)

    def snapshot(self) -> None:
        """Record the current state (no-op if empty or already recorded)."""
        if self._statistics.count == 0:
            return
        if self._snapshots and self._snapshots[-1].count == self._statistics.count:
            return
        self._snapshots.append(self._statistics.copy())

    def states(self) -> list[RunningStatistics]:
        """Snapshot states plus the current state if it is not one of them."""
        states = list(self._snapshots)
        current = self._statistics
        if current.count and (not states or states[-1].count != current.count):
            states.append(current.copy())
        return states

    def rows(self) -> list[ConvergenceRow]:
        """The convergence table, ending with the current state."""
        return [state.to_row() for state in self.states()]


def merge_convergence_tables(tables: Iterable[ConvergenceTable]) -> list[ConvergenceRow]:
    """
    Reduce per-worker convergence tables into one table.

    Row k merges every worker's k-th state (or its final state once it has
    run out of rows). Rows whose merged count does not grow are dropped.
    The result depends only on the per-worker tables, not on thread timing.
    """
    series = [states for states in (table.states() for table in tables) if states]
    if not series:
        return []

    rows: list[ConvergenceRow] = []
    depth = max(len(states) for states in series)
    for k in range(depth):
        merged = RunningStatistics.combine(states[min(k, len(states) - 1)] for states in series)
        if not rows or merged.count > rows[-1].n_paths:
            rows.append(merged.to_row())
    return rows
