"""
Two-group outlier-exclusion scheme.

Two groups of units (subjects), each unit contributing repeated observations
(trials). The pipeline runs in four stages, one module each:

Module Organization
-------------------
- `core`: Tables, schemas, `SimulationBatch` and `ResultSet`
- `generate`: Seeded sampling of replicates
- `filters`: Unit- and observation-level SD exclusion
- `testing`: Per-replicate two-sample t-tests on unit means
- `aggregate`: Rejection rate, interval and p-value density

Example Usage
-------------
>>> from outliersim.stats.schemes.two_group import (
...     FilterSpec, filter_batch, generate_batch, run_tests, summarize,
... )
>>> batch = generate_batch(30, 10, 10, "normal", seed=3)
>>> kept = filter_batch(batch, 2.5, True, True, "unit")
>>> summary = summarize(run_tests(kept), alpha=0.05)
>>> summary.n_total
30
"""

from __future__ import annotations

from outliersim.stats.schemes.two_group.aggregate import (
    RejectionSummary,
    pvalue_distribution,
    summarize,
)
from outliersim.stats.schemes.two_group.core import (
    PValueRecord,
    Replicate,
    ResultSet,
    SimulationBatch,
)
from outliersim.stats.schemes.two_group.filters import (
    FilterSpec,
    OutlierFilter,
    check_unique_labels,
    filter_batch,
)
from outliersim.stats.schemes.two_group.generate import generate_batch, generate_replicate
from outliersim.stats.schemes.two_group.testing import TTest, replicate_pvalue, run_tests

__all__ = [
    "FilterSpec",
    "OutlierFilter",
    "PValueRecord",
    "RejectionSummary",
    "Replicate",
    "ResultSet",
    "SimulationBatch",
    "TTest",
    "check_unique_labels",
    "filter_batch",
    "generate_batch",
    "generate_replicate",
    "pvalue_distribution",
    "replicate_pvalue",
    "run_tests",
    "summarize",
]
