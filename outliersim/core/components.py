"""
outliersim.core.components
==========================

Base classes for the pluggable parts of the simulation pipeline.

The pipeline itself is fixed; what varies is *which* distribution generates
the data, *which* exclusion policy is applied, and *which* two-sample test is
run. Each of those is a small component with a single method:

- `Distribution`: draw `count` raw observations for one unit
- `Exclusion`: map a batch to a subset of its rows
- `SignificanceTest`: turn two samples of unit means into a p-value

Components are keyword-only dataclasses so their parameters are explicit and
can be recorded next to the results they produced (`describe()`).

Examples
--------
>>> import numpy as np
>>> class Constant(Distribution):
...     def sample(self, rng, count, effect_offset=0.0):
...         return np.full(count, 1.0 + effect_offset)
>>> dist = Constant(tag="constant")
>>> dist.sample(np.random.default_rng(0), 3, 0.5).tolist()
[1.5, 1.5, 1.5]
>>> dist.describe()
{'component': 'Constant', 'tag': 'constant'}
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Any, Dict, Sequence, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from outliersim.stats.schemes.two_group.core import SimulationBatch


class ComponentBase(ABC):
    """
    Base class for all pipeline components.

    Provides a uniform `describe()` for provenance records. Subclasses
    implement exactly one behavioural method.
    """

    def describe(self) -> Dict[str, Any]:
        """Return the component's class name and its dataclass parameters."""
        out: Dict[str, Any] = {"component": type(self).__name__}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            out[f.name] = value.value if hasattr(value, "value") else value
        return out


@dataclass(kw_only=True)
class Distribution(ComponentBase):
    """
    Base class for data-generating distributions.

    `effect_offset` shifts the location parameter; group 1 always receives
    0.0 and group 2 receives the configured offset.
    """

    tag: str

    @abstractmethod
    def sample(
        self, rng: np.random.Generator, count: int, effect_offset: float = 0.0
    ) -> np.ndarray:
        """Draw `count` independent observations from `rng`."""
        raise NotImplementedError("Subclasses must implement sample()")


@dataclass(kw_only=True)
class Exclusion(ComponentBase):
    """
    Base class for outlier-exclusion policies.

    An exclusion returns a batch with the same schema and summaries whose
    observation rows are a subset of the input rows.
    """

    label: str = "exclusion"

    @abstractmethod
    def apply(self, batch: "SimulationBatch") -> "SimulationBatch":
        """Override this method to implement the exclusion rule."""
        raise NotImplementedError("Subclasses must implement apply()")


@dataclass(kw_only=True)
class SignificanceTest(ComponentBase):
    """
    Base class for two-sample significance tests on unit means.

    Implementations may return NaN when the statistic is undefined; the
    test runner records such replicates as missing.
    """

    @abstractmethod
    def p_value(self, sample_a: Sequence[float], sample_b: Sequence[float]) -> float:
        """Override this method to compute a two-sided p-value."""
        raise NotImplementedError("Subclasses must implement p_value()")
