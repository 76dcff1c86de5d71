"""
outliersim.stats.common.distributions
=====================================

Data-generating distributions for simulated reaction-time-like data.

Three families are registered by default:

- `normal`: N(effect_offset, 1)
- `exgaussian`: Gaussian(mu=320 + effect_offset, sigma=30) plus an
  exponential component with mean tau=90
- `gamma`: three-parameter Gamma(shape=3, scale=60, threshold=250 + effect_offset)

The effect offset always shifts a location parameter, so group differences
are pure location shifts and the shape of each distribution is unchanged.

All draws take an explicit `numpy.random.Generator`; nothing here touches
global random state.

Examples
--------
>>> import numpy as np
>>> from outliersim.stats.common.distributions import sample
>>> x = sample("gamma", 5, 0.0, rng=np.random.default_rng(1))
>>> x.shape, bool((x > 250).all())
((5,), True)
>>> sample("lognormal", 5, 0.0, rng=np.random.default_rng(1))
Traceback (most recent call last):
...
outliersim.core.errors.InvalidDistribution: Unknown distribution: 'lognormal'
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Union

import numpy as np
from scipy.stats import exponnorm, gamma, norm

from outliersim.core.components import Distribution
from outliersim.core.errors import InvalidArgument, InvalidDistribution
from outliersim.core.names import DistributionTag


@dataclass(kw_only=True)
class NormalDistribution(Distribution):
    """Unit-variance normal with mean `mean + effect_offset`."""

    tag: str = DistributionTag.NORMAL.value
    mean: float = 0.0
    sd: float = 1.0

    def sample(
        self, rng: np.random.Generator, count: int, effect_offset: float = 0.0
    ) -> np.ndarray:
        return norm.rvs(
            loc=self.mean + effect_offset, scale=self.sd, size=count, random_state=rng
        )


@dataclass(kw_only=True)
class ExGaussianDistribution(Distribution):
    """
    Exponentially-modified Gaussian.

    Parameterised as in the reaction-time literature: the Gaussian component
    has mean `mu` and sd `sigma`, the exponential component has mean `tau`.
    scipy's `exponnorm` uses the shape K = tau / sigma.
    """

    tag: str = DistributionTag.EXGAUSSIAN.value
    mu: float = 320.0
    sigma: float = 30.0
    tau: float = 90.0

    def sample(
        self, rng: np.random.Generator, count: int, effect_offset: float = 0.0
    ) -> np.ndarray:
        return exponnorm.rvs(
            self.tau / self.sigma,
            loc=self.mu + effect_offset,
            scale=self.sigma,
            size=count,
            random_state=rng,
        )


@dataclass(kw_only=True)
class ShiftedGammaDistribution(Distribution):
    """Gamma with a location (threshold) parameter; the offset shifts the threshold."""

    tag: str = DistributionTag.GAMMA.value
    shape: float = 3.0
    scale: float = 60.0
    threshold: float = 250.0

    def sample(
        self, rng: np.random.Generator, count: int, effect_offset: float = 0.0
    ) -> np.ndarray:
        return gamma.rvs(
            self.shape,
            loc=self.threshold + effect_offset,
            scale=self.scale,
            size=count,
            random_state=rng,
        )


# --- Registry ---

_REGISTRY: Dict[str, Distribution] = {}


def register(distribution: Distribution, *, replace: bool = False) -> None:
    """Register a distribution under its tag."""
    if distribution.tag in _REGISTRY and not replace:
        raise InvalidArgument(f"Distribution already registered: {distribution.tag!r}")
    _REGISTRY[distribution.tag] = distribution


def get_distribution(tag: Union[DistributionTag, str]) -> Distribution:
    """Look up a registered distribution; raise `InvalidDistribution` if unknown."""
    key = tag.value if isinstance(tag, DistributionTag) else str(tag)
    try:
        return _REGISTRY[key]
    except KeyError:
        raise InvalidDistribution(key) from None


def available() -> List[str]:
    return sorted(_REGISTRY)


def sample(
    distribution_tag: Union[DistributionTag, str],
    count: int,
    effect_offset: float = 0.0,
    *,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Draw `count` observations from the distribution registered as `distribution_tag`.

    Args:
        distribution_tag: Registered tag (e.g. "normal", "exgaussian", "gamma")
        count: Number of observations, must be positive
        effect_offset: Shift applied to the location parameter
        rng: Caller-controlled random generator

    Returns:
        1-D float array of length `count`
    """
    dist = get_distribution(distribution_tag)
    if isinstance(count, bool) or int(count) != count or count <= 0:
        raise InvalidArgument(f"count must be a positive integer, got {count!r}")
    return np.asarray(dist.sample(rng, int(count), float(effect_offset)), dtype=float)


for _dist in (NormalDistribution(), ExGaussianDistribution(), ShiftedGammaDistribution()):
    register(_dist)
