"""
outliersim.stats.methods.common.statistical
===========================================

Core statistical operations and utilities.

Provides the numerical building blocks of the test and aggregation stages:
two-sample t tests on unit means, rejection counting, the p-value histogram
normalisation, and a binomial confidence interval for rejection rates.
These functions are scheme-agnostic and operate on plain arrays.
"""

from __future__ import annotations
import math
from typing import Sequence, Tuple

import numpy as np
from scipy.stats import norm, ttest_ind

N_BINS = 100


def two_sample_t_pvalue(
    sample_a: Sequence[float], sample_b: Sequence[float], equal_var: bool = False
) -> float:
    """Two-sided independent-samples t test p-value.

    Uses Welch's unequal-variance test by default and Student's pooled test
    when `equal_var` is True.

    Args:
        sample_a: Observations of group 1 (here: unit means)
        sample_b: Observations of group 2
        equal_var: Pool variances (Student) instead of Welch

    Returns:
        The p-value, or NaN when the statistic is undefined (e.g. both
        samples have zero variance).
    """
    a = np.asarray(sample_a, dtype=float)
    b = np.asarray(sample_b, dtype=float)
    if a.size < 2 or b.size < 2:
        return float("nan")
    with np.errstate(divide="ignore", invalid="ignore"):
        res = ttest_ind(a, b, equal_var=equal_var)
    return float(res.pvalue)


def count_rejections(p_values: Sequence[float], alpha: float) -> Tuple[int, int]:
    """Return (#p <= alpha, #finite p)."""
    p = np.asarray(p_values, dtype=float)
    p = p[np.isfinite(p)]
    return int(np.count_nonzero(p <= alpha)), int(p.size)


def histogram_edges(n_bins: int = N_BINS) -> np.ndarray:
    """Equal-width bin edges over [0, 1].

    Edges are computed as k / n_bins so that p-values on the same grid land
    exactly on an edge.
    """
    return np.arange(n_bins + 1) / n_bins


def pvalue_density(
    p_values: Sequence[float], n_bins: int = N_BINS
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Histogram of p-values normalised so that uniform p-values give density ~1.

    Bins are right-closed, (k/n, (k+1)/n], with the first bin also holding 0.
    The density of a bin is `count / (total / n_bins)`.

    Returns:
        Tuple of (edges, counts, density)

    Examples:
        >>> edges, counts, dens = pvalue_density(np.arange(1, 101) / 100)
        >>> int(counts.min()), int(counts.max()), float(dens.min()), float(dens.max())
        (1, 1, 1.0, 1.0)
    """
    p = np.asarray(p_values, dtype=float)
    p = p[np.isfinite(p)]
    edges = histogram_edges(n_bins)
    idx = np.clip(np.searchsorted(edges, p, side="left") - 1, 0, n_bins - 1)
    counts = np.bincount(idx, minlength=n_bins)
    total = p.size
    if total == 0:
        return edges, counts, np.full(n_bins, np.nan)
    density = counts / (total / n_bins)
    return edges, counts, density


def wilson_interval(successes: int, n: int, level: float = 0.95) -> Tuple[float, float]:
    """Wilson score interval for a binomial proportion.

    Returns (nan, nan) when n == 0.
    """
    if n == 0:
        return float("nan"), float("nan")
    z = float(norm.ppf(1 - (1 - level) / 2))
    p_hat = successes / n
    denom = 1 + z * z / n
    centre = (p_hat + z * z / (2 * n)) / denom
    half = z * math.sqrt(p_hat * (1 - p_hat) / n + z * z / (4 * n * n)) / denom
    return max(0.0, centre - half), min(1.0, centre + half)
