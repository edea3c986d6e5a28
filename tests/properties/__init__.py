"""
Property-based testing using Hypothesis.

This package contains property tests that verify mathematical invariants
hold across randomly generated inputs.

Modules:
    test_payoff_properties: payoff invariants (non-negativity, parity, AM-GM, barriers)
    test_statistics_properties: accumulator and convergence table invariants
"""
