"""Monte Carlo properties of the full generate -> filter -> test -> summarise chain."""

import pytest

from outliersim.stats.schemes.two_group.aggregate import summarize
from outliersim.stats.schemes.two_group.filters import filter_batch
from outliersim.stats.schemes.two_group.generate import generate_batch
from outliersim.stats.schemes.two_group.testing import run_tests


def _rate(batch, granularity: str = "none", cutoff_sd: float = 2.5) -> float:
    kept = filter_batch(batch, cutoff_sd, True, True, granularity)
    return summarize(run_tests(kept), alpha=0.05).rejection_rate


@pytest.fixture(scope="module")
def null_normal_batch():
    return generate_batch(2000, 20, 20, "normal", 0.0, seed=20240601, workers=4)


def test_unfiltered_null_rate_is_nominal(null_normal_batch) -> None:
    rate = _rate(null_normal_batch)
    assert 0.038 <= rate <= 0.062


def test_unit_exclusion_inflates_normal(null_normal_batch) -> None:
    assert _rate(null_normal_batch, "unit") > _rate(null_normal_batch)


@pytest.mark.parametrize("tag", ["exgaussian", "gamma"])
def test_unit_exclusion_inflates_skewed(tag: str) -> None:
    batch = generate_batch(2000, 20, 20, tag, 0.0, seed=1234, workers=4)
    assert _rate(batch, "unit") > _rate(batch)


def test_true_shift_is_detected() -> None:
    batch = generate_batch(200, 20, 20, "exgaussian", 40.0, seed=5)
    assert _rate(batch) > 0.5
