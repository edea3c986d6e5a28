"""
Integration tests for the thread-pool engine.

Worker i owns a source seeded ``seed + i``, a duplicate of the payoff and
its own accumulator; accumulators are merged in worker order after join.
The merged result therefore depends only on (parameters, payoff, path
count, seed, worker count), never on thread timing.
"""

import logging

import pytest

from exotic_pricing.errors import InvalidParameter
from exotic_pricing.options.payoffs import ArithmeticAsianPayoff, CallPayoff, default_registry
from exotic_pricing.options.simulation.engine import (
    CancellationToken,
    ExoticEngine,
    PricingStatus,
)
from exotic_pricing.options.simulation.paths import PathGenerator
from exotic_pricing.options.simulation.rng import create_random_source
from exotic_pricing.options.simulation.statistics import (
    ConvergenceTable,
    RunningStatistics,
    merge_convergence_tables,
)


def _reference_tables(params, payoff, blocks, seed, generator="park_miller", antithetic=False):
    """Simulate each block on its own, the way a worker would."""
    path_generator = PathGenerator.for_payoff(params, payoff)
    tables = []
    for worker_index, n_paths in enumerate(blocks):
        source = create_random_source(
            seed + worker_index,
            dimensionality=path_generator.steps,
            generator=generator,
            antithetic=antithetic,
        )
        table = ConvergenceTable()
        for _ in range(n_paths):
            path = path_generator.build_from(source)
            table.accumulate(params.discount_factor * payoff.evaluate(path))
        tables.append(table)
    return tables


@pytest.fixture
def parallel_engine() -> ExoticEngine:
    return ExoticEngine(generator="park_miller", antithetic=False, n_workers=4)


class TestParallelDeterminism:
    """Thread scheduling never changes the answer."""

    @pytest.mark.integration
    def test_repeated_runs_identical(self, parallel_engine, monthly_params):
        payoff = ArithmeticAsianPayoff(strike=100.0)
        results = [
            parallel_engine.price(monthly_params, payoff, path_count=2_000, seed=42)
            for _ in range(3)
        ]
        assert len({r.estimate for r in results}) == 1
        assert len({r.standard_error for r in results}) == 1
        assert len({r.convergence_table for r in results}) == 1

    @pytest.mark.integration
    def test_matches_per_block_reference(self, parallel_engine, standard_params):
        """Equal to running seed, seed+1, ... sequentially and merging in order."""
        payoff = CallPayoff(strike=100.0)
        result = parallel_engine.price(standard_params, payoff, path_count=1_003, seed=42)

        tables = _reference_tables(standard_params, payoff, [251, 251, 251, 250], seed=42)
        merged = RunningStatistics.combine(t.statistics for t in tables)

        assert result.n_paths == 1_003
        assert result.estimate == merged.mean
        assert result.standard_error == merged.standard_error
        assert list(result.convergence_table) == merge_convergence_tables(tables)

    @pytest.mark.integration
    def test_antithetic_workers(self, standard_params):
        engine = ExoticEngine(antithetic=True, n_workers=3)
        payoff = CallPayoff(strike=100.0)
        result = engine.price(standard_params, payoff, path_count=600, seed=7)

        tables = _reference_tables(standard_params, payoff, [200, 200, 200], seed=7, antithetic=True)
        assert result.estimate == RunningStatistics.combine(t.statistics for t in tables).mean

    @pytest.mark.integration
    def test_pcg64_workers(self, standard_params):
        engine = ExoticEngine(generator="pcg64", n_workers=2)
        payoff = CallPayoff(strike=100.0)
        result = engine.price(standard_params, payoff, path_count=500, seed=0)

        tables = _reference_tables(standard_params, payoff, [250, 250], seed=0, generator="pcg64")
        assert result.estimate == RunningStatistics.combine(t.statistics for t in tables).mean

    @pytest.mark.integration
    def test_worker_count_changes_stream(self, standard_params):
        """Different worker counts partition different streams; both are valid."""
        payoff = CallPayoff(strike=100.0)
        one = ExoticEngine(n_workers=1).price(standard_params, payoff, 1_000, seed=42)
        four = ExoticEngine(n_workers=4).price(standard_params, payoff, 1_000, seed=42)
        assert one.valid and four.valid
        assert one.estimate != four.estimate

    @pytest.mark.integration
    def test_more_workers_than_paths(self, standard_params, payoff_doubles):
        engine = ExoticEngine(n_workers=8)
        payoff = payoff_doubles.Counting()
        result = engine.price(standard_params, payoff, path_count=3, seed=10)

        tables = _reference_tables(standard_params, payoff_doubles.Counting(), [1, 1, 1], seed=10)
        assert result.n_paths == 3
        assert result.status == PricingStatus.COMPLETED
        assert payoff.duplicates == 1 + 3
        assert result.estimate == RunningStatistics.combine(t.statistics for t in tables).mean


class TestParallelStops:
    """Cancellation and faults keep the path count exact."""

    @pytest.mark.integration
    def test_cancel_exact_count(self, parallel_engine, standard_params, payoff_doubles):
        token = CancellationToken()
        payoff = payoff_doubles.Cancelling(token, after=100)

        result = parallel_engine.price(
            standard_params, payoff, path_count=20_000, seed=1, cancel_token=token
        )

        assert result.status == PricingStatus.CANCELLED
        assert result.valid is True
        assert 100 <= result.n_paths < 20_000
        assert result.n_paths == payoff.evaluations
        assert result.convergence_table[-1].n_paths == result.n_paths

    @pytest.mark.integration
    def test_fault_aborts_all_workers(self, parallel_engine, standard_params, payoff_doubles):
        payoff = payoff_doubles.Faulting(at=200)

        result = parallel_engine.price(standard_params, payoff, path_count=20_000, seed=1)

        assert result.status == PricingStatus.FAULTED
        assert result.valid is False
        assert result.n_paths == payoff.evaluations - 1
        assert result.n_paths < 20_000
        assert "Non-finite discounted payoff" in result.message

    @pytest.mark.integration
    def test_time_budget(self, parallel_engine, standard_params, payoff_doubles):
        payoff = payoff_doubles.Sleeping(seconds=0.005)
        result = parallel_engine.price(
            standard_params, payoff, path_count=100_000, seed=1, time_budget=0.05
        )
        assert result.status == PricingStatus.CANCELLED
        assert result.message == "time budget exceeded"
        assert result.n_paths == payoff.evaluations

    @pytest.mark.integration
    def test_validation_before_workers_start(self, parallel_engine, standard_params, payoff_doubles):
        payoff = payoff_doubles.Counting()
        with pytest.raises(InvalidParameter):
            parallel_engine.price(standard_params, payoff, path_count=0, seed=1)
        assert payoff.evaluations == 0


class TestParallelWorkflow:
    """Registry -> engine -> result frame."""

    @pytest.mark.integration
    def test_registry_to_frame(self, parallel_engine, monthly_params, caplog):
        caplog.set_level(logging.INFO, logger="exotic_pricing.options.simulation.engine")

        result = parallel_engine.price_contract(
            default_registry(),
            "double_digital",
            {"lower": 90.0, "upper": 110.0, "payout": 1.0},
            monthly_params,
            path_count=4_000,
            seed=12,
        )
        frame = result.convergence_frame()

        assert result.valid
        assert 0.0 < result.estimate < 1.0
        assert frame.index[-1] == 4_000
        assert frame.index.is_monotonic_increasing
        assert any("4 worker(s)" in r.getMessage() for r in caplog.records)
