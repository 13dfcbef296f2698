"""Tests for the single-trial simulator and its random draws."""
import random

import pytest

from app.simulation.defaults import default_scenario
from app.simulation.random_source import gaussian, resolve_seed, trial_seeds
from app.simulation.trial import blended_return, simulate_trial


def _make_scenario(**overrides):
    defaults = dict(
        current_age=60,
        retirement_age=60,
        terminal_age=63,
        initial_assets=1_000_000.0,
        annual_spending=40_000.0,
        expected_return=0.05,
        return_volatility=0.0,
        inflation_rate=0.0,
        tax_rate=0.0,
        rebalance_threshold=0.0,
        stock_allocation=1.0,
        bond_allocation=0.0,
        iterations=1,
    )
    defaults.update(overrides)
    return default_scenario(**defaults)


# --- Random source ---


def test_gaussian_zero_std_returns_mean():
    rng = random.Random(1)
    for _ in range(100):
        assert gaussian(rng, 0.07, 0.0) == 0.07


def test_gaussian_sample_moments():
    rng = random.Random(123)
    draws = [gaussian(rng, 0.05, 0.1) for _ in range(20_000)]
    mean = sum(draws) / len(draws)
    var = sum((d - mean) ** 2 for d in draws) / len(draws)
    assert abs(mean - 0.05) < 0.005
    assert abs(var ** 0.5 - 0.1) < 0.005


def test_trial_seeds_reproducible():
    assert trial_seeds(5, seed=42) == trial_seeds(5, seed=42)
    assert trial_seeds(5, seed=42) != trial_seeds(5, seed=43)


def test_trial_seeds_length():
    assert len(trial_seeds(17, seed=1)) == 17
    assert trial_seeds(0, seed=1) == []


def test_resolve_seed_keeps_explicit_seed():
    assert resolve_seed(0) == 0
    assert resolve_seed(12345) == 12345


def test_resolve_seed_draws_concrete_seed_when_missing():
    drawn = resolve_seed(None)
    assert isinstance(drawn, int)
    assert 0 <= drawn < 2 ** 32


# --- Blended return ---


def test_blended_return_all_stock_deterministic():
    s = _make_scenario(stock_allocation=1.0, bond_allocation=0.0)
    assert blended_return(s, random.Random(0)) == pytest.approx(0.05)


def test_blended_return_uses_bond_proxy():
    # 0.05 * 0.6 + (0.05 * 0.4) * 0.4
    s = _make_scenario(stock_allocation=0.6, bond_allocation=0.4)
    assert blended_return(s, random.Random(0)) == pytest.approx(0.038)


def test_blended_return_all_bond_deterministic():
    s = _make_scenario(stock_allocation=0.0, bond_allocation=1.0)
    assert blended_return(s, random.Random(0)) == pytest.approx(0.02)


# --- Trial path ---


def test_deterministic_path_matches_hand_calculation():
    outcome = simulate_trial(_make_scenario(), random.Random(0))
    ending = [p.ending_assets for p in outcome.path]
    assert ending == pytest.approx([1_008_000.0, 1_016_400.0, 1_025_220.0])
    assert outcome.final_assets == pytest.approx(1_025_220.0)
    assert outcome.bankrupt_year is None
    assert outcome.succeeded


def test_path_years_and_ages():
    outcome = simulate_trial(_make_scenario(), random.Random(0))
    assert [p.year for p in outcome.path] == [0, 1, 2]
    assert [p.age for p in outcome.path] == [60, 61, 62]


def test_starting_assets_chain():
    outcome = simulate_trial(_make_scenario(), random.Random(0))
    assert outcome.path[0].starting_assets == 1_000_000.0
    for prev, curr in zip(outcome.path, outcome.path[1:]):
        assert curr.starting_assets == prev.ending_assets


def test_pre_retirement_partial_draw_and_inflation():
    s = _make_scenario(
        current_age=30, retirement_age=31, terminal_age=32,
        annual_spending=100.0, inflation_rate=0.1, tax_rate=0.1,
    )
    outcome = simulate_trial(s, random.Random(0))
    first, second = outcome.path
    assert first.withdrawal == pytest.approx(30.0)
    assert first.taxes == pytest.approx(3.0)
    assert second.withdrawal == pytest.approx(110.0)
    assert second.taxes == pytest.approx(11.0)


def test_negative_tax_rate_floors_taxes_at_zero():
    outcome = simulate_trial(_make_scenario(tax_rate=-0.5), random.Random(0))
    assert all(p.taxes == 0.0 for p in outcome.path)


def test_bankrupt_trial_stops_early():
    s = _make_scenario(
        current_age=60, retirement_age=61, terminal_age=70,
        initial_assets=100.0, annual_spending=1_000.0,
    )
    outcome = simulate_trial(s, random.Random(0))
    assert len(outcome.path) == 1
    assert outcome.bankrupt_year == 0
    assert outcome.final_assets == 0.0
    assert outcome.path[-1].ending_assets == 0.0
    assert not outcome.succeeded


def test_zero_initial_assets_bankrupt_in_first_year():
    outcome = simulate_trial(_make_scenario(initial_assets=0.0), random.Random(0))
    assert outcome.bankrupt_year == 0
    assert outcome.yearly_ending_assets == [0.0]


def test_catastrophic_return_never_goes_negative():
    # Returns below -100% would flip the sign without the floor
    s = _make_scenario(expected_return=-3.0, terminal_age=65)
    outcome = simulate_trial(s, random.Random(0))
    assert outcome.final_assets == 0.0
    for p in outcome.path:
        assert p.starting_assets >= 0
        assert p.ending_assets >= 0


def test_stochastic_trial_reproducible_with_same_rng_seed():
    s = default_scenario()
    a = simulate_trial(s, random.Random(99))
    b = simulate_trial(s, random.Random(99))
    assert a.yearly_ending_assets == b.yearly_ending_assets


def test_stochastic_trial_assets_never_negative():
    s = default_scenario(return_volatility=0.4, rebalance_threshold=0.5)
    for seed in range(20):
        outcome = simulate_trial(s, random.Random(seed))
        for p in outcome.path:
            assert p.starting_assets >= 0
            assert p.ending_assets >= 0


def test_overflowing_growth_raises():
    s = _make_scenario(expected_return=1e200, terminal_age=70)
    with pytest.raises(OverflowError):
        simulate_trial(s, random.Random(0))


def test_overflowing_spending_escalation_raises():
    s = _make_scenario(initial_assets=1e300, annual_spending=1.0, inflation_rate=1e100,
                       terminal_age=70)
    with pytest.raises(OverflowError):
        simulate_trial(s, random.Random(0))
