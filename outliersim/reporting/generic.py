"""
outliersim.reporting.generic
============================

A policy-agnostic reporter that tabulates rejection rates per filter label.

The reporter works only from a `ResultLedger`, so it is equally happy with a
fresh run or with a ledger read back from disk. It produces polars tables and
plain text; plotting is left to the caller.

Examples
--------
>>> from outliersim.core.ledger import ResultLedger
>>> from outliersim.reporting.generic import LedgerReporter
>>> from outliersim.stats.schemes.two_group.core import ResultSet
>>> L = ResultLedger()
>>> L.append("none", ResultSet.from_records([(1, 0.01), (2, 0.5)]))
>>> L.append("unit:2.5sd:both", ResultSet.from_records([(1, 0.01), (2, None)]))
>>> rep = LedgerReporter(L, alpha=0.05)
>>> rep.rejection_table().get_column("rejection_rate").to_list()
[0.5, 1.0]
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List

import polars as pl

from outliersim.core.ledger import ResultLedger
from outliersim.stats.schemes.two_group.aggregate import summarize


@dataclass
class LedgerReporter:
    """
    A generic reporter for any result ledger.
    Summaries are recomputed from the ledger on every call.
    """

    ledger: ResultLedger
    alpha: float = 0.05

    def labels(self) -> List[str]:
        return self.ledger.labels()

    def rejection_table(self) -> pl.DataFrame:
        """
        One row per label: rejection rate, its Wilson CI, and missing counts.

        Returns
        -------
        pl.DataFrame
            Columns label, rejection_rate, ci_low, ci_high, n_rejected,
            n_valid, n_missing
        """
        rows = []
        for label in self.ledger.labels():
            s = summarize(self.ledger.result_set(label), self.alpha)
            rows.append({"label": label, **{k: v for k, v in s.as_dict().items() if k != "alpha"}})
        schema = {
            "label": pl.Utf8,
            "rejection_rate": pl.Float64,
            "n_rejected": pl.Int64,
            "n_valid": pl.Int64,
            "n_missing": pl.Int64,
            "ci_low": pl.Float64,
            "ci_high": pl.Float64,
        }
        return pl.DataFrame(rows, schema=schema).select(
            "label", "rejection_rate", "ci_low", "ci_high", "n_rejected", "n_valid", "n_missing"
        )

    def density_table(self) -> pl.DataFrame:
        """Long table of p-value densities: label, bin, mid, density."""
        frames = [
            summarize(self.ledger.result_set(label), self.alpha)
            .p_value_distribution.select("bin", "mid", "density")
            .with_columns(pl.lit(label).alias("label"))
            for label in self.ledger.labels()
        ]
        if not frames:
            return pl.DataFrame(
                schema={"label": pl.Utf8, "bin": pl.Int64, "mid": pl.Float64, "density": pl.Float64}
            )
        return pl.concat(frames).select("label", "bin", "mid", "density")

    def render(self) -> str:
        """Fixed-width text table of `rejection_table()`."""
        table = self.rejection_table()
        header = f"{'filter':<28} {'rate':>7} {'95% CI':>17} {'valid':>7} {'missing':>7}"
        lines = [header, "-" * len(header)]
        for r in table.iter_rows(named=True):
            ci = f"[{r['ci_low']:.4f}, {r['ci_high']:.4f}]"
            lines.append(
                f"{r['label']:<28} {r['rejection_rate']:>7.4f} {ci:>17} "
                f"{r['n_valid']:>7d} {r['n_missing']:>7d}"
            )
        return "\n".join(lines)
