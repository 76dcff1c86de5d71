"""
outliersim.core.ledger
======================

A **Polars-backed**, append-only ledger of p-value records.

A simulation run feeds one unfiltered batch through several exclusion
policies. Each policy yields a `ResultSet`; the ledger collects them under a
filter label so they can be compared, summarised or persisted together.
Entries are never mutated: `append()` concatenates, `merge()` combines two
ledgers whose labels do not overlap.

No persistence here (see `outliersim.backends.polars.io`).

Examples
--------
>>> from outliersim.core.ledger import ResultLedger
>>> from outliersim.stats.schemes.two_group.core import ResultSet
>>> L = ResultLedger()
>>> L.append("none", ResultSet.from_records([(1, 0.2), (2, 0.01)]))
>>> L.labels()
['none']
>>> L.count(label="none")
2
>>> L.result_set("none").as_dict()
{1: 0.2, 2: 0.01}
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, cast

import polars as pl

from outliersim.core.errors import InvalidArgument
from outliersim.core.names import LABEL, P_VALUE, REASON, REPLICATE, STATUS
from outliersim.stats.schemes.two_group.core import RESULT_SCHEMA, ResultSet

logger = logging.getLogger(__name__)


class ResultLedger:
    """Append-only table of (label, replicate, p_value, status, reason) rows."""

    _SCHEMA = {LABEL: pl.Utf8, **RESULT_SCHEMA}

    def __init__(self, df: Optional[pl.DataFrame] = None) -> None:
        self._df = (
            df if df is not None else pl.DataFrame(schema=cast(Any, self._SCHEMA))
        )
        self._meta: Dict[str, Dict[str, Any]] = {}

    # ---- writers ----

    def append(
        self,
        label: str,
        results: ResultSet,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append a result set under `label`; a label can be written once."""
        if label in self.labels():
            raise InvalidArgument(f"Label already recorded in ledger: {label!r}")
        rows = results.frame().select(
            pl.lit(label, dtype=pl.Utf8).alias(LABEL),
            pl.col(REPLICATE),
            pl.col(P_VALUE),
            pl.col(STATUS),
            pl.col(REASON),
        )
        self._df = pl.concat([self._df, rows], how="vertical_relaxed")
        self._meta[label] = dict(meta or {})
        logger.debug("ledger: appended %d records under %r", rows.height, label)

    def merge(self, other: "ResultLedger") -> "ResultLedger":
        """Return a new ledger holding the rows of both ledgers."""
        clash = set(self.labels()) & set(other.labels())
        if clash:
            raise InvalidArgument(f"Cannot merge ledgers with shared labels: {sorted(clash)}")
        merged = ResultLedger(pl.concat([self._df, other._df], how="vertical_relaxed"))
        merged._meta = {**self._meta, **other._meta}
        return merged

    # ---- readers ----

    def labels(self) -> List[str]:
        """Labels in insertion order."""
        return self._df.get_column(LABEL).unique(maintain_order=True).to_list()

    def count(self, *, label: Optional[str] = None) -> int:
        q = self._df if label is None else self._df.filter(pl.col(LABEL) == label)
        return int(q.height)

    def result_set(self, label: str) -> ResultSet:
        if label not in self.labels():
            raise KeyError(label)
        return ResultSet(self._df.filter(pl.col(LABEL) == label).drop(LABEL))

    def meta(self, label: str) -> Dict[str, Any]:
        return dict(self._meta.get(label, {}))

    # ---- frame helpers (no I/O) ----

    def frame(self) -> pl.DataFrame:
        """Return a copy of the underlying Polars DataFrame."""
        return self._df.clone()

    @classmethod
    def from_frame(cls, df: pl.DataFrame) -> "ResultLedger":
        """Rebuild a ledger from a frame, normalising its schema."""
        for c, t in cls._SCHEMA.items():
            if c not in df.columns:
                df = df.with_columns(pl.lit(None, dtype=cast(Any, t)).alias(c))
        return cls(df.select(list(cls._SCHEMA.keys())).cast(cast(Any, cls._SCHEMA)))
