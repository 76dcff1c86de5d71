"""
outliersim.stats.schemes.two_group.generate
===========================================

Synthetic two-group datasets.

- `generate_replicate()`: one experiment (2 groups x units x observations)
- `generate_batch()`: many independent replicates with ids 1..R

Every replicate draws from its own random stream, spawned from a single
`numpy.random.SeedSequence(seed)`. Replicate i always receives child i, so a
batch is identical whether it was generated in one thread or many.

Examples
--------
>>> import numpy as np
>>> from outliersim.stats.schemes.two_group.generate import generate_replicate, generate_batch
>>> rep = generate_replicate(5, 4, "normal", 0.0, rng=np.random.default_rng(7))
>>> rep.height, rep.unit_summaries.height, rep.group_summaries.height
(40, 8, 2)
>>> batch = generate_batch(3, 5, 4, "exgaussian", 0.0, seed=11)
>>> batch.replicate_ids
[1, 2, 3]
"""

from __future__ import annotations
import logging
from typing import Any, List, Optional, Tuple, Union

import numpy as np
import polars as pl

from outliersim.core.errors import InvalidArgument
from outliersim.core.names import (
    GROUP,
    REPLICATE,
    TRIAL,
    UNIT,
    VALUE,
    DistributionTag,
    ParallelBackend,
)
from outliersim.runtime.parallel import ordered_map
from outliersim.stats.common.distributions import get_distribution, sample
from outliersim.stats.schemes.two_group.core import BatchDesign, Replicate, SimulationBatch

logger = logging.getLogger(__name__)

GROUPS = (1, 2)


def _check_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
        raise InvalidArgument(f"{name} must be a positive integer, got {value!r}")


def replicate_streams(seed: Optional[int], n_replicates: int) -> List[np.random.SeedSequence]:
    """One independent child SeedSequence per replicate, in replicate order."""
    return np.random.SeedSequence(seed).spawn(n_replicates)


def generate_replicate(
    n_obs_per_unit: int,
    n_units_per_group: int,
    distribution_tag: Union[DistributionTag, str],
    effect_offset: float = 0.0,
    *,
    rng: np.random.Generator,
    replicate_id: int = 1,
) -> Replicate:
    """
    Build one replicate: both groups, every unit, every observation.

    Units are drawn in a fixed order (group 1 units 1..n, then group 2 units
    1..n); group 1 receives offset 0.0 and group 2 receives `effect_offset`.
    Unit and group summaries are computed once, here, from the full data.
    """
    _check_positive("n_obs_per_unit", n_obs_per_unit)
    _check_positive("n_units_per_group", n_units_per_group)
    get_distribution(distribution_tag)

    values = np.empty((len(GROUPS), n_units_per_group, n_obs_per_unit), dtype=float)
    for gi, group in enumerate(GROUPS):
        offset = effect_offset if group == 2 else 0.0
        for ui in range(n_units_per_group):
            values[gi, ui, :] = sample(distribution_tag, n_obs_per_unit, offset, rng=rng)

    g, u, t = np.meshgrid(
        np.array(GROUPS),
        np.arange(1, n_units_per_group + 1),
        np.arange(1, n_obs_per_unit + 1),
        indexing="ij",
    )
    obs = pl.DataFrame(
        {
            REPLICATE: np.full(values.size, replicate_id, dtype=np.int64),
            GROUP: g.ravel().astype(np.int64),
            UNIT: u.ravel().astype(np.int64),
            TRIAL: t.ravel().astype(np.int64),
            VALUE: values.ravel(),
        }
    )
    return SimulationBatch.from_observations(obs)


def _generate_one(job: Tuple[Any, ...]) -> SimulationBatch:
    replicate_id, stream, n_obs, n_units, tag, offset = job
    logger.debug("generating replicate %d", replicate_id)
    return generate_replicate(
        n_obs,
        n_units,
        tag,
        offset,
        rng=np.random.default_rng(stream),
        replicate_id=replicate_id,
    )


def generate_batch(
    n_replicates: int,
    n_obs_per_unit: int,
    n_units_per_group: int,
    distribution_tag: Union[DistributionTag, str],
    effect_offset: float = 0.0,
    *,
    seed: Optional[int] = None,
    workers: int = 1,
    backend: Union[ParallelBackend, str] = ParallelBackend.THREAD,
) -> SimulationBatch:
    """
    Generate `n_replicates` independent replicates and stack them.

    Parameters
    ----------
    n_replicates : int
        Number of replicates; ids are 1..n_replicates
    n_obs_per_unit, n_units_per_group : int
        Design of each replicate
    distribution_tag : DistributionTag or str
        Registered distribution
    effect_offset : float
        Location shift of group 2
    seed : int, optional
        Root seed; None draws fresh entropy (not reproducible)
    workers : int
        Parallel workers; the result does not depend on this value
    backend : {"thread", "process"}
        Pool type used when workers > 1

    Returns
    -------
    SimulationBatch
        All observations with per-replicate summaries.
    """
    _check_positive("n_replicates", n_replicates)
    _check_positive("n_obs_per_unit", n_obs_per_unit)
    _check_positive("n_units_per_group", n_units_per_group)
    tag = get_distribution(distribution_tag).tag

    streams = replicate_streams(seed, n_replicates)
    jobs = [
        (rid, stream, n_obs_per_unit, n_units_per_group, tag, float(effect_offset))
        for rid, stream in enumerate(streams, start=1)
    ]
    logger.info(
        "generating %d replicates (%s, offset=%s, %d units x %d obs per group)",
        n_replicates,
        tag,
        effect_offset,
        n_units_per_group,
        n_obs_per_unit,
    )
    replicates = ordered_map(_generate_one, jobs, workers=workers, backend=backend)
    design = BatchDesign(
        n_obs_per_unit=n_obs_per_unit,
        n_units_per_group=n_units_per_group,
        distribution=tag,
        effect_offset=float(effect_offset),
        seed=seed,
    )
    return SimulationBatch.concat(replicates, design=design)
