"""
outliersim.stats.schemes.two_group.testing
==========================================

Per-replicate two-sample tests on unit means.

For every replicate of a (possibly filtered) batch the runner averages each
surviving unit's observations, collects those unit means per group, and
compares the two groups with a two-sample t test. Units with no remaining
observations contribute nothing. A group left with fewer than two unit means
makes the test undefined: that replicate raises `DegenerateGroup`, which is
caught and recorded as a missing entry, and the batch carries on.

Replicate ids are taken from the batch's group summaries, not from the
surviving rows, so a replicate emptied by filtering still shows up as a
missing entry instead of silently disappearing.

Examples
--------
>>> from outliersim.stats.schemes.two_group.generate import generate_batch
>>> from outliersim.stats.schemes.two_group.testing import run_tests
>>> batch = generate_batch(4, 10, 8, "normal", 0.0, seed=3)
>>> results = run_tests(batch)
>>> len(results), results.n_missing
(4, 0)
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import polars as pl

from outliersim.core.components import SignificanceTest
from outliersim.core.errors import DegenerateGroup
from outliersim.core.names import GROUP, REPLICATE, UNIT_KEY, UNIT_MEAN, VALUE, ParallelBackend
from outliersim.runtime.parallel import ordered_map
from outliersim.stats.methods.common.statistical import two_sample_t_pvalue
from outliersim.stats.schemes.two_group.core import PValueRecord, ResultSet, SimulationBatch

logger = logging.getLogger(__name__)

MIN_UNITS = 2


@dataclass(kw_only=True)
class TTest(SignificanceTest):
    """Two-sided independent-samples t test (Welch unless `equal_var`)."""

    equal_var: bool = False

    def p_value(self, sample_a: Sequence[float], sample_b: Sequence[float]) -> float:
        return two_sample_t_pvalue(sample_a, sample_b, equal_var=self.equal_var)


def unit_means(batch: SimulationBatch) -> pl.DataFrame:
    """Mean of the surviving observations of every (replicate, group, unit)."""
    return (
        batch.observations.group_by(UNIT_KEY, maintain_order=True)
        .agg(pl.col(VALUE).mean().alias(UNIT_MEAN))
        .sort(UNIT_KEY)
    )


def replicate_pvalue(
    replicate_id: int,
    group_1: Sequence[float],
    group_2: Sequence[float],
    test: Optional[SignificanceTest] = None,
) -> float:
    """
    p-value for one replicate; raise `DegenerateGroup` if it is undefined.

    Args:
        replicate_id: Id used in the error message
        group_1: Unit means of group 1
        group_2: Unit means of group 2
        test: Significance test component (default: Welch t test)
    """
    test = test or TTest()
    for group, sample in ((1, group_1), (2, group_2)):
        if len(sample) < MIN_UNITS:
            raise DegenerateGroup(replicate_id, group=group, n_units=len(sample))
    p = float(test.p_value(group_1, group_2))
    if not math.isfinite(p):
        raise DegenerateGroup(replicate_id, reason="test statistic undefined (zero variance)")
    return p


def _test_one(job: Tuple[Any, ...]) -> PValueRecord:
    replicate_id, group_1, group_2, test = job
    try:
        p = replicate_pvalue(replicate_id, group_1, group_2, test)
    except DegenerateGroup as exc:
        logger.debug("%s", exc)
        return PValueRecord.missing(replicate_id, exc.reason)
    return PValueRecord(replicate_id, p)


def _samples_by_replicate(
    means: pl.DataFrame,
) -> Dict[int, Dict[int, List[float]]]:
    out: Dict[int, Dict[int, List[float]]] = {}
    for (rid, group), part in means.group_by([REPLICATE, GROUP], maintain_order=True):
        out.setdefault(int(rid), {})[int(group)] = part.get_column(UNIT_MEAN).to_list()
    return out


def run_tests(
    table: SimulationBatch,
    *,
    equal_var: bool = False,
    test: Optional[SignificanceTest] = None,
    workers: int = 1,
    backend: Union[ParallelBackend, str] = ParallelBackend.THREAD,
) -> ResultSet:
    """
    One p-value (or missing marker) per replicate of `table`.

    Parameters
    ----------
    table : SimulationBatch
        Filtered or unfiltered batch
    equal_var : bool
        Student's pooled t test instead of Welch; ignored if `test` is given
    test : SignificanceTest, optional
        Custom two-sample test component
    workers, backend
        Optional parallel map over replicates

    Returns
    -------
    ResultSet
        Entries for every replicate id in the batch, sorted by id.
    """
    test = test or TTest(equal_var=equal_var)
    samples = _samples_by_replicate(unit_means(table))
    jobs = [
        (
            rid,
            samples.get(rid, {}).get(1, []),
            samples.get(rid, {}).get(2, []),
            test,
        )
        for rid in table.replicate_ids
    ]
    records = ordered_map(_test_one, jobs, workers=workers, backend=backend)
    results = ResultSet.from_records(records)
    if results.n_missing:
        logger.warning(
            "%d of %d replicates had an undefined test and were recorded as missing",
            results.n_missing,
            len(results),
        )
    return results
