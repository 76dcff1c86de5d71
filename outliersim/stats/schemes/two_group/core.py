"""
outliersim.stats.schemes.two_group.core
=======================================

Core data structures for two-group, repeated-measures simulations.

This module provides the tables every other stage reads and writes:

- Observation, unit-summary and group-summary schemas
- `SimulationBatch`: observations plus the summaries they were generated with
- `PValueRecord` / `ResultSet`: one p-value (or a missing marker) per replicate

A batch carries its summaries as separate tables keyed by
(replicate, group, unit) and (replicate, group). Filtering replaces only the
observation table; the summary tables are passed along untouched, so every
bound that a filter compares against is the one computed from the full,
unfiltered data.

Examples
--------
>>> import polars as pl
>>> from outliersim.stats.schemes.two_group.core import SimulationBatch
>>> obs = pl.DataFrame({
...     "replicate": [1, 1, 1, 1], "group": [1, 1, 2, 2],
...     "unit": [1, 1, 1, 1], "trial": [1, 2, 1, 2],
...     "value": [1.0, 3.0, 2.0, 4.0],
... })
>>> batch = SimulationBatch.from_observations(obs)
>>> batch.unit_summaries.get_column("unit_mean").to_list()
[2.0, 3.0]
>>> batch.replicate_ids
[1]
"""

from __future__ import annotations
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union, cast

import numpy as np
import polars as pl

from outliersim.core.errors import InvalidArgument
from outliersim.core.names import (
    GROUP,
    GROUP_KEY,
    GROUP_MEAN,
    GROUP_SD,
    P_VALUE,
    REASON,
    REPLICATE,
    STATUS,
    TRIAL,
    UNIT,
    UNIT_KEY,
    UNIT_MEAN,
    UNIT_SD,
    VALUE,
    ReplicateStatus,
)


# --- Schemas ---

OBS_SCHEMA: Dict[str, Any] = {
    REPLICATE: pl.Int64,
    GROUP: pl.Int64,
    UNIT: pl.Int64,
    TRIAL: pl.Int64,
    VALUE: pl.Float64,
}

UNIT_SUMMARY_SCHEMA: Dict[str, Any] = {
    REPLICATE: pl.Int64,
    GROUP: pl.Int64,
    UNIT: pl.Int64,
    UNIT_MEAN: pl.Float64,
    UNIT_SD: pl.Float64,
}

GROUP_SUMMARY_SCHEMA: Dict[str, Any] = {
    REPLICATE: pl.Int64,
    GROUP: pl.Int64,
    GROUP_MEAN: pl.Float64,
    GROUP_SD: pl.Float64,
}

RESULT_SCHEMA: Dict[str, Any] = {
    REPLICATE: pl.Int64,
    P_VALUE: pl.Float64,
    STATUS: pl.Utf8,
    REASON: pl.Utf8,
}


def _sample_sd(col: str) -> pl.Expr:
    # Sample sd is undefined for a single value; keep it null rather than NaN.
    return (
        pl.when(pl.col(col).count() > 1)
        .then(pl.col(col).std(ddof=1))
        .otherwise(None)
    )


def summarize_units(observations: pl.DataFrame) -> pl.DataFrame:
    """Mean and sample sd of each unit's observations."""
    return (
        observations.group_by(UNIT_KEY, maintain_order=True)
        .agg(
            pl.col(VALUE).mean().alias(UNIT_MEAN),
            _sample_sd(VALUE).alias(UNIT_SD),
        )
        .sort(UNIT_KEY)
        .cast(cast(Any, UNIT_SUMMARY_SCHEMA))
    )


def summarize_groups(unit_summaries: pl.DataFrame) -> pl.DataFrame:
    """Mean and sample sd of the unit means within each (replicate, group)."""
    return (
        unit_summaries.group_by(GROUP_KEY, maintain_order=True)
        .agg(
            pl.col(UNIT_MEAN).mean().alias(GROUP_MEAN),
            _sample_sd(UNIT_MEAN).alias(GROUP_SD),
        )
        .sort(GROUP_KEY)
        .cast(cast(Any, GROUP_SUMMARY_SCHEMA))
    )


# --- Batches ---


@dataclass(frozen=True)
class BatchDesign:
    """Parameters a batch was generated with (provenance only)."""

    n_obs_per_unit: int
    n_units_per_group: int
    distribution: str
    effect_offset: float
    seed: Optional[int] = None


@dataclass(frozen=True, eq=False)
class SimulationBatch:
    """
    Observations of one or more replicates together with their fixed summaries.

    The same type serves as a single Replicate, a full Batch, and a Filtered
    Table: a filtered table is a batch whose observation rows are a subset
    of the original while its summary tables are the original ones.
    """

    observations: pl.DataFrame
    unit_summaries: pl.DataFrame
    group_summaries: pl.DataFrame
    design: Optional[BatchDesign] = None

    @classmethod
    def from_observations(
        cls, observations: pl.DataFrame, design: Optional[BatchDesign] = None
    ) -> "SimulationBatch":
        """Build a batch from raw observations, computing summaries once."""
        missing = set(OBS_SCHEMA) - set(observations.columns)
        if missing:
            raise InvalidArgument(f"Observation table lacks columns: {sorted(missing)}")
        obs = observations.select(list(OBS_SCHEMA)).cast(cast(Any, OBS_SCHEMA))
        units = summarize_units(obs)
        return cls(
            observations=obs,
            unit_summaries=units,
            group_summaries=summarize_groups(units),
            design=design,
        )

    @classmethod
    def concat(
        cls, batches: Sequence["SimulationBatch"], design: Optional[BatchDesign] = None
    ) -> "SimulationBatch":
        """Stack batches whose replicate ids do not overlap."""
        if not batches:
            raise InvalidArgument("Cannot concatenate an empty sequence of batches")
        return cls(
            observations=pl.concat([b.observations for b in batches]),
            unit_summaries=pl.concat([b.unit_summaries for b in batches]),
            group_summaries=pl.concat([b.group_summaries for b in batches]),
            design=design if design is not None else batches[0].design,
        )

    def with_observations(self, observations: pl.DataFrame) -> "SimulationBatch":
        """Same summaries, different observation rows."""
        return replace(self, observations=observations)

    @property
    def height(self) -> int:
        return int(self.observations.height)

    @property
    def replicate_ids(self) -> List[int]:
        """All replicate ids of the batch, including fully filtered ones."""
        return self.group_summaries.get_column(REPLICATE).unique().sort().to_list()

    def replicate(self, replicate_id: int) -> "SimulationBatch":
        """Sub-batch of a single replicate."""
        sel = pl.col(REPLICATE) == replicate_id
        return replace(
            self,
            observations=self.observations.filter(sel),
            unit_summaries=self.unit_summaries.filter(sel),
            group_summaries=self.group_summaries.filter(sel),
        )

    def annotated(self) -> pl.DataFrame:
        """Observations joined with their (original) unit and group summaries."""
        return self.observations.join(
            self.unit_summaries, on=UNIT_KEY, how="left", maintain_order="left"
        ).join(self.group_summaries, on=GROUP_KEY, how="left", maintain_order="left")


# Logical alias: a replicate is a batch holding exactly one replicate id.
Replicate = SimulationBatch


# --- Results ---


@dataclass(frozen=True)
class PValueRecord:
    """One p-value per replicate; `p_value` is None when the test was undefined."""

    replicate_id: int
    p_value: Optional[float]
    status: ReplicateStatus = ReplicateStatus.OK
    reason: Optional[str] = None

    @classmethod
    def missing(cls, replicate_id: int, reason: str) -> "PValueRecord":
        return cls(replicate_id, None, ReplicateStatus.DEGENERATE, reason)


RecordLike = Union[PValueRecord, Tuple[int, Optional[float]]]


class ResultSet:
    """
    Immutable mapping from replicate id to p-value (or a missing marker).

    Backed by a polars frame sorted by replicate id with columns
    `replicate, p_value, status, reason`.
    """

    def __init__(self, df: pl.DataFrame) -> None:
        self._df = df.select(list(RESULT_SCHEMA)).cast(cast(Any, RESULT_SCHEMA)).sort(REPLICATE)

    @classmethod
    def from_records(cls, records: Iterable[RecordLike]) -> "ResultSet":
        """
        Build from records or (replicate, p_value) pairs.

        A NaN or infinite p-value is stored as missing, like an untestable
        replicate.

        >>> rs = ResultSet.from_records([(1, 0.2), (2, float("nan")), (3, None)])
        >>> rs.missing_ids(), rs.n_valid
        ([2, 3], 1)
        """
        rows: Dict[str, List[Any]] = {k: [] for k in RESULT_SCHEMA}
        for rec in records:
            if not isinstance(rec, PValueRecord):
                rid, p = rec
                rec = (
                    PValueRecord(int(rid), float(p))
                    if p is not None
                    else PValueRecord.missing(int(rid), "missing")
                )
            if rec.p_value is not None and not math.isfinite(rec.p_value):
                rec = PValueRecord.missing(rec.replicate_id, "non-finite p-value")
            rows[REPLICATE].append(rec.replicate_id)
            rows[P_VALUE].append(rec.p_value)
            rows[STATUS].append(ReplicateStatus(rec.status).value)
            rows[REASON].append(rec.reason)
        return cls(pl.DataFrame(rows, schema=cast(Any, RESULT_SCHEMA)))

    @classmethod
    def merge(cls, parts: Iterable["ResultSet"]) -> "ResultSet":
        """Combine per-task result sets; replicate ids must be disjoint."""
        frames = [p.frame() for p in parts]
        if not frames:
            return cls.from_records([])
        merged = pl.concat(frames)
        if merged.get_column(REPLICATE).is_duplicated().any():
            raise InvalidArgument("Result sets to merge share replicate ids")
        return cls(merged)

    def frame(self) -> pl.DataFrame:
        return self._df.clone()

    def records(self) -> List[PValueRecord]:
        return [
            PValueRecord(
                r[REPLICATE], r[P_VALUE], ReplicateStatus(r[STATUS]), r[REASON]
            )
            for r in self._df.iter_rows(named=True)
        ]

    def as_dict(self) -> Dict[int, Optional[float]]:
        """Replicate id -> p-value, None for missing entries."""
        return dict(
            zip(
                self._df.get_column(REPLICATE).to_list(),
                self._df.get_column(P_VALUE).to_list(),
            )
        )

    def p_values(self) -> np.ndarray:
        """Non-missing p-values in replicate order."""
        return self._df.get_column(P_VALUE).drop_nulls().to_numpy()

    @property
    def replicate_ids(self) -> List[int]:
        return self._df.get_column(REPLICATE).to_list()

    def missing_ids(self) -> List[int]:
        return (
            self._df.filter(pl.col(P_VALUE).is_null()).get_column(REPLICATE).to_list()
        )

    @property
    def n_missing(self) -> int:
        return int(self._df.get_column(P_VALUE).null_count())

    @property
    def n_valid(self) -> int:
        return int(self._df.height) - self.n_missing

    def __len__(self) -> int:
        return int(self._df.height)

    def __getitem__(self, replicate_id: int) -> Optional[float]:
        hit = self._df.filter(pl.col(REPLICATE) == replicate_id)
        if hit.height == 0:
            raise KeyError(replicate_id)
        return hit.item(0, P_VALUE)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResultSet):
            return NotImplemented
        return self._df.equals(other._df)

    def __repr__(self) -> str:
        return f"ResultSet(n={len(self)}, missing={self.n_missing})"
