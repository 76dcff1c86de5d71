"""
outliersim.stats.schemes.two_group.aggregate
============================================

Rejection rates and p-value distributions.

`summarize()` turns a `ResultSet` into a `RejectionSummary`:

- `rejection_rate`: #(p <= alpha) / #(non-missing p)
- `n_missing`: degenerate replicates, excluded from the denominator
- `p_value_distribution`: 100 right-closed bins over [0, 1] with density
  `count / (total / 100)`, so uniform p-values give density ~1 everywhere

Examples
--------
>>> from outliersim.stats.schemes.two_group.core import ResultSet
>>> from outliersim.stats.schemes.two_group.aggregate import summarize
>>> rs = ResultSet.from_records([(1, 0.01), (2, 0.2), (3, 0.04), (4, None)])
>>> s = summarize(rs, alpha=0.05)
>>> s.rejection_rate, s.n_rejected, s.n_valid, s.n_missing
(0.6666666666666666, 2, 3, 1)
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import polars as pl

from outliersim.core.errors import InvalidArgument
from outliersim.stats.methods.common.statistical import (
    N_BINS,
    count_rejections,
    pvalue_density,
    wilson_interval,
)
from outliersim.stats.schemes.two_group.core import ResultSet


def check_alpha(alpha: float) -> None:
    if not (isinstance(alpha, (int, float)) and 0.0 < alpha < 1.0):
        raise InvalidArgument(f"alpha must be in (0, 1), got {alpha!r}")


def pvalue_distribution(results: ResultSet, n_bins: int = N_BINS) -> pl.DataFrame:
    """Histogram of the non-missing p-values as a polars frame.

    Columns: bin (0-based), lower, upper, mid, count, density.
    """
    edges, counts, density = pvalue_density(results.p_values(), n_bins)
    return pl.DataFrame(
        {
            "bin": list(range(n_bins)),
            "lower": edges[:-1],
            "upper": edges[1:],
            "mid": (edges[:-1] + edges[1:]) / 2,
            "count": counts.astype("int64"),
            "density": density,
        }
    )


@dataclass(frozen=True)
class RejectionSummary:
    """Aggregate view of one result set."""

    alpha: float
    rejection_rate: float
    n_rejected: int
    n_valid: int
    n_missing: int
    ci_low: float
    ci_high: float
    p_value_distribution: pl.DataFrame = field(repr=False, compare=False)

    @property
    def n_total(self) -> int:
        return self.n_valid + self.n_missing

    def density_pairs(self) -> List[Tuple[float, float]]:
        """Ordered (bin midpoint, density) pairs."""
        d = self.p_value_distribution
        return list(zip(d.get_column("mid").to_list(), d.get_column("density").to_list()))

    def as_dict(self) -> Dict[str, Any]:
        return {
            "alpha": self.alpha,
            "rejection_rate": self.rejection_rate,
            "n_rejected": self.n_rejected,
            "n_valid": self.n_valid,
            "n_missing": self.n_missing,
            "ci_low": self.ci_low,
            "ci_high": self.ci_high,
        }


def summarize(result_set: ResultSet, alpha: float = 0.05) -> RejectionSummary:
    """
    Empirical rejection rate of `result_set` at level `alpha`.

    Missing entries are counted in `n_missing` and excluded from the
    denominator; with no valid entries the rate is NaN.
    """
    check_alpha(alpha)
    n_rejected, n_valid = count_rejections(result_set.p_values(), alpha)
    rate = n_rejected / n_valid if n_valid else math.nan
    lo, hi = wilson_interval(n_rejected, n_valid)
    return RejectionSummary(
        alpha=float(alpha),
        rejection_rate=rate,
        n_rejected=n_rejected,
        n_valid=n_valid,
        n_missing=result_set.n_missing,
        ci_low=lo,
        ci_high=hi,
        p_value_distribution=pvalue_distribution(result_set),
    )
