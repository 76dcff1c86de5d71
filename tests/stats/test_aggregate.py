import math

import numpy as np
import pytest

from outliersim.core.errors import InvalidArgument
from outliersim.stats.methods.common.statistical import (
    count_rejections,
    pvalue_density,
    wilson_interval,
)
from outliersim.stats.schemes.two_group.aggregate import pvalue_distribution, summarize
from outliersim.stats.schemes.two_group.core import ResultSet


def test_missing_entries_leave_the_denominator() -> None:
    rs = ResultSet.from_records([(1, 0.01), (2, 0.5), (3, None), (4, None)])
    s = summarize(rs, alpha=0.05)

    assert s.rejection_rate == 0.5
    assert s.n_valid == 2
    assert s.n_missing == 2
    assert s.n_total == 4


def test_non_finite_pvalues_are_missing() -> None:
    rs = ResultSet.from_records([(1, 0.01), (2, float("nan")), (3, float("inf")), (4, 0.5)])
    s = summarize(rs, alpha=0.05)

    assert rs.missing_ids() == [2, 3]
    assert rs.records()[1].reason == "non-finite p-value"
    assert rs.n_valid == s.n_valid == 2
    assert s.n_missing == 2
    assert s.rejection_rate == 0.5


def test_pvalue_equal_to_alpha_is_rejected() -> None:
    assert count_rejections([0.05, 0.0500001, 0.2], alpha=0.05) == (1, 3)


def test_all_missing_gives_nan_rate() -> None:
    s = summarize(ResultSet.from_records([(1, None)]), alpha=0.05)

    assert math.isnan(s.rejection_rate)
    assert s.n_valid == 0
    assert s.n_missing == 1
    assert s.p_value_distribution.get_column("count").sum() == 0


@pytest.mark.parametrize("alpha", [0.0, 1.0, -0.1, 1.5])
def test_alpha_must_be_inside_unit_interval(alpha: float) -> None:
    with pytest.raises(InvalidArgument):
        summarize(ResultSet.from_records([(1, 0.1)]), alpha=alpha)


def test_density_bins_are_right_closed() -> None:
    _, counts, _ = pvalue_density([0.0, 0.01, 0.015, 0.02, 0.995, 1.0])

    assert counts[0] == 2  # 0 and 0.01
    assert counts[1] == 2  # 0.015 and 0.02
    assert counts[99] == 2
    assert counts.sum() == 6


def test_uniform_grid_gives_unit_density() -> None:
    p = np.arange(1, 101) / 100
    rs = ResultSet.from_records(list(enumerate(p, start=1)))
    dist = pvalue_distribution(rs)

    assert dist.height == 100
    assert dist.get_column("count").to_list() == [1] * 100
    np.testing.assert_allclose(dist.get_column("density").to_numpy(), 1.0)
    assert dist.get_column("lower").to_list()[:2] == [0.0, 0.01]
    assert dist.get_column("mid")[0] == pytest.approx(0.005)


def test_density_integrates_to_one() -> None:
    rng = np.random.default_rng(0)
    _, _, density = pvalue_density(rng.beta(0.5, 1.0, size=500))
    assert density.sum() / 100 == pytest.approx(1.0)


def test_density_pairs_are_ordered_by_bin() -> None:
    s = summarize(ResultSet.from_records([(1, 0.3), (2, 0.7)]))
    pairs = s.density_pairs()

    assert len(pairs) == 100
    assert [m for m, _ in pairs] == sorted(m for m, _ in pairs)
    assert sum(d for _, d in pairs) == pytest.approx(100.0)


def test_wilson_interval_brackets_rate() -> None:
    lo, hi = wilson_interval(50, 1000)
    assert lo < 0.05 < hi
    assert 0.0 <= lo and hi <= 1.0

    lo0, hi0 = wilson_interval(0, 20)
    assert lo0 == 0.0 and hi0 > 0.0

    assert all(math.isnan(x) for x in wilson_interval(0, 0))


def test_summary_ci_fields() -> None:
    rs = ResultSet.from_records([(i, 0.01 if i <= 10 else 0.5) for i in range(1, 101)])
    s = summarize(rs, alpha=0.05)

    assert s.rejection_rate == pytest.approx(0.1)
    assert s.ci_low < 0.1 < s.ci_high
    assert s.as_dict()["n_rejected"] == 10
