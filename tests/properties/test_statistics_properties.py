"""
Property-based tests for running statistics.

Uses Hypothesis to verify:
1. Welford accumulation agrees with two-pass numpy results
2. Merging accumulators in any split equals accumulating the union
3. Convergence tables end at the accumulator state and grow geometrically
"""

import math

import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

from exotic_pricing.options.simulation.statistics import (
    ConvergenceTable,
    RunningStatistics,
    merge_convergence_tables,
)

# =============================================================================
# Strategy Definitions
# =============================================================================

sample_strategy = st.floats(min_value=-1e4, max_value=1e4, allow_nan=False, allow_infinity=False)
samples_strategy = st.lists(sample_strategy, min_size=1, max_size=200)

# Large level plus tiny noise: where a sum-of-squares update would cancel
near_constant_strategy = st.tuples(
    st.floats(min_value=1e6, max_value=1e12),
    st.lists(st.floats(min_value=-1e-6, max_value=1e-6), min_size=1, max_size=200),
).map(lambda pair: [pair[0] + noise for noise in pair[1]])


def _accumulate(values) -> RunningStatistics:
    stats = RunningStatistics()
    stats.extend(values)
    return stats


class TestWelfordProperties:
    """[T1] Online results match the two-pass formulas."""

    @given(values=samples_strategy)
    @settings(max_examples=200)
    def test_mean_matches_numpy(self, values: list[float]) -> None:
        stats = _accumulate(values)
        assert stats.count == len(values)
        assert math.isclose(stats.mean, float(np.mean(values)), rel_tol=1e-9, abs_tol=1e-7)

    @given(values=st.lists(sample_strategy, min_size=2, max_size=200))
    @settings(max_examples=200)
    def test_variance_matches_numpy(self, values: list[float]) -> None:
        stats = _accumulate(values)
        expected = float(np.var(values, ddof=1))
        assert math.isclose(stats.variance, expected, rel_tol=1e-7, abs_tol=1e-6)

    @given(values=st.one_of(samples_strategy, near_constant_strategy))
    @settings(max_examples=200)
    def test_variance_non_negative_at_every_step(self, values: list[float]) -> None:
        stats = RunningStatistics()
        for value in values:
            stats.accumulate(value)
            assert stats.sum_squared_deviations >= 0.0
            assert stats.variance >= 0.0


class TestMergeProperties:
    """[T1] Chan et al. merge is exact up to rounding."""

    @given(values=st.lists(sample_strategy, min_size=2, max_size=200), data=st.data())
    @settings(max_examples=200)
    def test_split_merge_equals_union(self, values: list[float], data) -> None:
        cut = data.draw(st.integers(min_value=0, max_value=len(values)))
        left = _accumulate(values[:cut])
        left.merge(_accumulate(values[cut:]))
        union = _accumulate(values)

        assert left.count == union.count
        assert math.isclose(left.mean, union.mean, rel_tol=1e-9, abs_tol=1e-7)
        assert math.isclose(left.variance, union.variance, rel_tol=1e-7, abs_tol=1e-6)

    @given(parts=st.lists(st.lists(sample_strategy, max_size=30), min_size=1, max_size=6))
    @settings(max_examples=100)
    def test_combine_counts(self, parts: list[list[float]]) -> None:
        combined = RunningStatistics.combine(_accumulate(p) for p in parts)
        assert combined.count == sum(len(p) for p in parts)


class TestConvergenceTableProperties:
    """Snapshot schedule invariants."""

    @given(values=samples_strategy, ratio=st.integers(min_value=2, max_value=10))
    @settings(max_examples=100)
    def test_schedule_is_geometric(self, values: list[float], ratio: int) -> None:
        table = ConvergenceTable(ratio=ratio)
        table.extend(values)
        counts = [row.n_paths for row in table.rows()]

        assert counts[-1] == len(values)
        assert counts == sorted(set(counts))
        for count in counts[:-1]:
            # every snapshot sits on a power of the ratio
            power = 1
            while power < count:
                power *= ratio
            assert power == count

    @given(
        chunks=st.lists(st.lists(sample_strategy, min_size=1, max_size=40), min_size=1, max_size=5)
    )
    @settings(max_examples=100)
    def test_merged_table_ends_at_total(self, chunks: list[list[float]]) -> None:
        tables = []
        for chunk in chunks:
            table = ConvergenceTable()
            table.extend(chunk)
            tables.append(table)

        rows = merge_convergence_tables(tables)
        counts = [row.n_paths for row in rows]
        assert counts[-1] == sum(len(c) for c in chunks)
        assert counts == sorted(set(counts))
