"""
outliersim.config
=================

Configuration records for simulation runs.

`SimulationConfig` is the single input record of a run. It validates itself
on construction, so a bad count, alpha, cutoff or distribution tag fails
before any sampling happens. Configurations can be built directly, from a
mapping, or from a TOML file:

.. code-block:: toml

    n_replicates = 2000
    n_obs_per_unit = 20
    n_units_per_group = 20
    distribution = "exgaussian"
    granularity = "unit"
    cutoff_sd = 2.5
    seed = 20240601

    [[filters]]
    granularity = "observation"
    cutoff_sd = 3.0

The optional `[[filters]]` array lists extra exclusion policies to sweep over
the same batch.

Examples
--------
>>> from outliersim.config import SimulationConfig
>>> cfg = SimulationConfig(n_replicates=100, granularity="unit")
>>> cfg.granularity.value, cfg.filter_spec.name
('unit', 'unit:2.5sd:both')
>>> SimulationConfig(alpha=1.5)
Traceback (most recent call last):
...
outliersim.core.errors.InvalidArgument: alpha must be in (0, 1), got 1.5
"""

from __future__ import annotations
import tomllib
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from outliersim.core.errors import InvalidArgument
from outliersim.core.names import DistributionTag, Granularity, ParallelBackend
from outliersim.stats.common.distributions import get_distribution
from outliersim.stats.schemes.two_group.aggregate import check_alpha
from outliersim.stats.schemes.two_group.filters import FilterSpec, check_unique_labels


def _positive_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidArgument(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class SimulationConfig:
    """Everything needed to reproduce one simulation run."""

    n_replicates: int = 1000
    n_obs_per_unit: int = 20
    n_units_per_group: int = 20
    distribution: Union[DistributionTag, str] = DistributionTag.NORMAL
    effect_offset: float = 0.0
    cutoff_sd: float = 2.5
    remove_upper: bool = True
    remove_lower: bool = True
    granularity: Granularity = Granularity.NONE
    alpha: float = 0.05
    seed: int = 0
    equal_var: bool = False
    workers: int = 1
    backend: ParallelBackend = ParallelBackend.THREAD

    def __post_init__(self) -> None:
        _positive_int("n_replicates", self.n_replicates)
        _positive_int("n_obs_per_unit", self.n_obs_per_unit)
        _positive_int("n_units_per_group", self.n_units_per_group)
        _positive_int("workers", self.workers)
        if isinstance(self.seed, bool) or not isinstance(self.seed, int):
            raise InvalidArgument(f"seed must be an integer, got {self.seed!r}")
        check_alpha(self.alpha)
        if not isinstance(self.effect_offset, (int, float)):
            raise InvalidArgument(f"effect_offset must be a number, got {self.effect_offset!r}")

        # Built-in tags normalise to the enum; custom registered tags stay strings.
        tag = get_distribution(self.distribution).tag
        try:
            object.__setattr__(self, "distribution", DistributionTag(tag))
        except ValueError:
            object.__setattr__(self, "distribution", tag)
        try:
            object.__setattr__(self, "granularity", Granularity(self.granularity))
            object.__setattr__(self, "backend", ParallelBackend(self.backend))
        except ValueError as exc:
            raise InvalidArgument(str(exc)) from None
        self.filter_spec  # validates cutoff_sd

    @property
    def distribution_tag(self) -> str:
        d = self.distribution
        return d.value if isinstance(d, DistributionTag) else str(d)

    @property
    def filter_spec(self) -> FilterSpec:
        return FilterSpec(
            cutoff_sd=self.cutoff_sd,
            remove_upper=self.remove_upper,
            remove_lower=self.remove_lower,
            granularity=self.granularity,
        )

    @property
    def unfiltered(self) -> bool:
        return self.filter_spec.name == "none"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SimulationConfig":
        """Build from a plain mapping; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidArgument(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        for k, v in out.items():
            if hasattr(v, "value"):
                out[k] = v.value
        return out

    def replace(self, **changes: Any) -> "SimulationConfig":
        data = self.to_dict()
        data.update(changes)
        return SimulationConfig.from_mapping(data)


def filter_spec_from_mapping(
    data: Mapping[str, Any], defaults: Optional[SimulationConfig] = None
) -> FilterSpec:
    """A `FilterSpec` from a `[[filters]]` table, filling gaps from `defaults`."""
    allowed = {"cutoff_sd", "remove_upper", "remove_lower", "granularity", "label"}
    unknown = set(data) - allowed
    if unknown:
        raise InvalidArgument(f"Unknown filter keys: {sorted(unknown)}")
    base = defaults or SimulationConfig()
    return FilterSpec(
        cutoff_sd=data.get("cutoff_sd", base.cutoff_sd),
        remove_upper=data.get("remove_upper", base.remove_upper),
        remove_lower=data.get("remove_lower", base.remove_lower),
        granularity=data.get("granularity", base.granularity),
        label=data.get("label"),
    )


def load_config(
    path: Union[str, Path], overrides: Optional[Mapping[str, Any]] = None
) -> Tuple[SimulationConfig, List[FilterSpec]]:
    """
    Read a TOML file into a config and its filter sweep.

    The sweep always starts with the config's own filter; `[[filters]]`
    entries follow in file order. `overrides` replace top-level file values
    before the sweep is built, so keys a `[[filters]]` entry leaves out are
    filled from the overridden config. Two filters with the same label are
    rejected here, before anything is sampled.
    """
    with open(path, "rb") as fh:
        raw = tomllib.load(fh)
    extra = raw.pop("filters", [])
    if not isinstance(extra, list):
        raise InvalidArgument("'filters' must be an array of tables")
    raw.update(overrides or {})
    config = SimulationConfig.from_mapping(raw)
    specs = [config.filter_spec] + [filter_spec_from_mapping(f, config) for f in extra]
    check_unique_labels(s.name for s in specs)
    return config, specs
