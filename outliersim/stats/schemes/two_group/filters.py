"""
outliersim.stats.schemes.two_group.filters
==========================================

Hierarchical outlier exclusion.

Two rules, both single-pass and both judged against summaries computed from
the *unfiltered* batch:

**Unit rule** (`granularity="unit"`)
    Drop every observation of a unit whose mean lies outside
    [GroupMean - c*GroupSD, GroupMean + c*GroupSD], where the group moments
    are those of the unit means in that unit's (replicate, group).

**Observation rule** (`granularity="observation"`)
    Drop every observation outside [UnitMean - c*UnitSD, UnitMean + c*UnitSD]
    of its own unit.

`granularity="both"` applies the unit rule to the full table and then the
observation rule to what is left, still with the original unit bounds.
`remove_upper` / `remove_lower` switch each side of the interval on or off.
Bounds are inclusive, and an undefined bound (sd of a single value) never
excludes anything.

Examples
--------
>>> import polars as pl
>>> from outliersim.stats.schemes.two_group.core import SimulationBatch
>>> from outliersim.stats.schemes.two_group.filters import filter_batch
>>> obs = pl.DataFrame({
...     "replicate": [1] * 8, "group": [1] * 8, "unit": [1] * 8,
...     "trial": list(range(1, 9)),
...     "value": [1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 9.0],
... })
>>> batch = SimulationBatch.from_observations(obs)
>>> filter_batch(batch, 2.0, True, True, "observation").height
7
>>> filter_batch(batch, 2.0, False, False, "observation").height
8
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

import polars as pl

from outliersim.core.components import Exclusion
from outliersim.core.errors import InvalidArgument
from outliersim.core.names import (
    GROUP_KEY,
    GROUP_MEAN,
    GROUP_SD,
    UNIT_KEY,
    UNIT_MEAN,
    UNIT_SD,
    VALUE,
    Granularity,
)
from outliersim.stats.schemes.two_group.core import SimulationBatch

logger = logging.getLogger(__name__)


def _within(
    value: pl.Expr,
    centre: pl.Expr,
    spread: pl.Expr,
    cutoff: float,
    remove_upper: bool,
    remove_lower: bool,
) -> pl.Expr:
    """Keep-mask for `value` against centre +/- cutoff*spread; null bounds keep."""
    keep = pl.lit(True)
    if remove_upper:
        upper = centre + cutoff * spread
        keep = keep & (upper.is_null() | (value <= upper))
    if remove_lower:
        lower = centre - cutoff * spread
        keep = keep & (lower.is_null() | (value >= lower))
    return keep


def _coerce_granularity(granularity: Union[Granularity, str]) -> Granularity:
    try:
        return Granularity(granularity)
    except ValueError:
        raise InvalidArgument(f"Unknown granularity: {granularity!r}") from None


def _check_cutoff(cutoff_sd: float) -> None:
    if not cutoff_sd > 0:
        raise InvalidArgument(f"cutoff_sd must be > 0, got {cutoff_sd!r}")


def exclude_units(
    batch: SimulationBatch,
    cutoff_sd: float,
    remove_upper: bool = True,
    remove_lower: bool = True,
) -> SimulationBatch:
    """Apply the unit rule: drop whole units whose mean is extreme within its group."""
    _check_cutoff(cutoff_sd)
    if not (remove_upper or remove_lower):
        return batch
    kept_units = (
        batch.unit_summaries.join(batch.group_summaries, on=GROUP_KEY, how="left")
        .filter(
            _within(
                pl.col(UNIT_MEAN),
                pl.col(GROUP_MEAN),
                pl.col(GROUP_SD),
                cutoff_sd,
                remove_upper,
                remove_lower,
            )
        )
        .select(UNIT_KEY)
    )
    obs = batch.observations.join(
        kept_units, on=UNIT_KEY, how="semi", maintain_order="left"
    )
    return batch.with_observations(obs)


def exclude_observations(
    batch: SimulationBatch,
    cutoff_sd: float,
    remove_upper: bool = True,
    remove_lower: bool = True,
) -> SimulationBatch:
    """Apply the observation rule against each unit's original mean and sd."""
    _check_cutoff(cutoff_sd)
    if not (remove_upper or remove_lower):
        return batch
    columns = batch.observations.columns
    obs = (
        batch.observations.join(
            batch.unit_summaries.select(UNIT_KEY + [UNIT_MEAN, UNIT_SD]),
            on=UNIT_KEY,
            how="left",
            maintain_order="left",
        )
        .filter(
            _within(
                pl.col(VALUE),
                pl.col(UNIT_MEAN),
                pl.col(UNIT_SD),
                cutoff_sd,
                remove_upper,
                remove_lower,
            )
        )
        .select(columns)
    )
    return batch.with_observations(obs)


def filter_batch(
    batch: SimulationBatch,
    cutoff_sd: float,
    remove_upper: bool,
    remove_lower: bool,
    granularity: Union[Granularity, str],
) -> SimulationBatch:
    """
    Remove outlying rows at unit level, observation level, or both.

    Parameters
    ----------
    batch : SimulationBatch
        Unfiltered batch (its summaries define every bound)
    cutoff_sd : float
        Half-width of the inclusion interval in standard deviations, > 0
    remove_upper, remove_lower : bool
        Which side(s) of the interval to enforce; both False is a no-op
    granularity : {"unit", "observation", "both", "none"}
        Which rule(s) to apply; "none" returns the batch unchanged

    Returns
    -------
    SimulationBatch
        Same schema and summaries; observation rows are a subset of the input.
    """
    gran = _coerce_granularity(granularity)
    _check_cutoff(cutoff_sd)
    if gran is Granularity.NONE:
        out = batch
    elif gran is Granularity.UNIT:
        out = exclude_units(batch, cutoff_sd, remove_upper, remove_lower)
    elif gran is Granularity.OBSERVATION:
        out = exclude_observations(batch, cutoff_sd, remove_upper, remove_lower)
    else:
        out = exclude_observations(
            exclude_units(batch, cutoff_sd, remove_upper, remove_lower),
            cutoff_sd,
            remove_upper,
            remove_lower,
        )
    logger.debug(
        "filter %s c=%s upper=%s lower=%s: %d -> %d rows",
        gran.value,
        cutoff_sd,
        remove_upper,
        remove_lower,
        batch.height,
        out.height,
    )
    return out


@dataclass(frozen=True)
class FilterSpec:
    """One exclusion configuration; `label` names it in ledgers and reports."""

    cutoff_sd: float = 2.5
    remove_upper: bool = True
    remove_lower: bool = True
    granularity: Granularity = Granularity.NONE
    label: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "granularity", _coerce_granularity(self.granularity))
        _check_cutoff(self.cutoff_sd)

    @property
    def name(self) -> str:
        if self.label:
            return self.label
        if self.granularity is Granularity.NONE or not (
            self.remove_upper or self.remove_lower
        ):
            return "none"
        sides = {(True, True): "both", (True, False): "upper", (False, True): "lower"}
        side = sides[(self.remove_upper, self.remove_lower)]
        return f"{self.granularity.value}:{self.cutoff_sd:g}sd:{side}"


def check_unique_labels(labels: Iterable[str], taken: Iterable[str] = ()) -> None:
    """
    Raise `InvalidArgument` when a sweep would record two results under one label.

    >>> check_unique_labels([FilterSpec().name, FilterSpec(granularity="unit").name])
    >>> check_unique_labels(["none", "unit:2.5sd:both", "none"])
    Traceback (most recent call last):
    ...
    outliersim.core.errors.InvalidArgument: Duplicate filter labels in sweep: ['none']
    """
    seen = set(taken)
    dupes = []
    for label in labels:
        if label in seen and label not in dupes:
            dupes.append(label)
        seen.add(label)
    if dupes:
        raise InvalidArgument(f"Duplicate filter labels in sweep: {dupes}")


@dataclass(kw_only=True)
class OutlierFilter(Exclusion):
    """`Exclusion` component wrapping `filter_batch` for a fixed `FilterSpec`."""

    spec: FilterSpec = FilterSpec()

    def __post_init__(self) -> None:
        if self.label == "exclusion":
            self.label = self.spec.name

    def apply(self, batch: SimulationBatch) -> SimulationBatch:
        return filter_batch(
            batch,
            self.spec.cutoff_sd,
            self.spec.remove_upper,
            self.spec.remove_lower,
            self.spec.granularity,
        )
