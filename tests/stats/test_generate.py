import numpy as np
import polars as pl
import pytest

from outliersim.core.errors import InvalidArgument, InvalidDistribution
from outliersim.stats.schemes.two_group.generate import (
    generate_batch,
    generate_replicate,
    replicate_streams,
)


def test_replicate_layout() -> None:
    rep = generate_replicate(6, 4, "normal", rng=np.random.default_rng(0), replicate_id=9)
    obs = rep.observations

    assert obs.height == 2 * 4 * 6
    assert obs.get_column("replicate").unique().to_list() == [9]
    assert sorted(obs.get_column("group").unique().to_list()) == [1, 2]
    assert sorted(obs.get_column("unit").unique().to_list()) == [1, 2, 3, 4]
    assert sorted(obs.get_column("trial").unique().to_list()) == list(range(1, 7))
    # every (group, unit) has exactly n_obs_per_unit observations
    sizes = obs.group_by(["group", "unit"]).len().get_column("len").unique().to_list()
    assert sizes == [6]


def test_summaries_match_numpy() -> None:
    rep = generate_replicate(8, 5, "gamma", rng=np.random.default_rng(3))
    obs = rep.observations.filter((pl.col("group") == 2) & (pl.col("unit") == 3))
    values = obs.get_column("value").to_numpy()
    unit = rep.unit_summaries.filter((pl.col("group") == 2) & (pl.col("unit") == 3))

    assert unit.item(0, "unit_mean") == pytest.approx(values.mean())
    assert unit.item(0, "unit_sd") == pytest.approx(values.std(ddof=1))

    means = rep.unit_summaries.filter(pl.col("group") == 1).get_column("unit_mean").to_numpy()
    group = rep.group_summaries.filter(pl.col("group") == 1)
    assert group.item(0, "group_mean") == pytest.approx(means.mean())
    assert group.item(0, "group_sd") == pytest.approx(means.std(ddof=1))


def test_effect_offset_only_shifts_group_two() -> None:
    rep = generate_replicate(20, 10, "normal", 100.0, rng=np.random.default_rng(1))
    g = rep.group_summaries.sort("group").get_column("group_mean").to_list()

    assert abs(g[0]) < 1.0
    assert abs(g[1] - 100.0) < 1.0


def test_batch_shape_and_ids() -> None:
    batch = generate_batch(5, 3, 4, "exgaussian", seed=1)

    assert batch.height == 5 * 2 * 4 * 3
    assert batch.replicate_ids == [1, 2, 3, 4, 5]
    assert batch.unit_summaries.height == 5 * 2 * 4
    assert batch.group_summaries.height == 5 * 2
    assert batch.design is not None
    assert batch.design.distribution == "exgaussian"


def test_same_seed_same_batch() -> None:
    a = generate_batch(6, 5, 4, "gamma", 10.0, seed=2024)
    b = generate_batch(6, 5, 4, "gamma", 10.0, seed=2024)
    c = generate_batch(6, 5, 4, "gamma", 10.0, seed=2025)

    assert a.observations.equals(b.observations)
    assert not a.observations.equals(c.observations)


@pytest.mark.parametrize("workers", [2, 4])
def test_batch_independent_of_worker_count(workers: int) -> None:
    serial = generate_batch(8, 5, 3, "normal", seed=77)
    parallel = generate_batch(8, 5, 3, "normal", seed=77, workers=workers, backend="thread")

    assert serial.observations.equals(parallel.observations)
    assert serial.group_summaries.equals(parallel.group_summaries)


def test_replicate_uses_its_own_stream() -> None:
    batch = generate_batch(4, 5, 3, "normal", seed=8)
    stream = replicate_streams(8, 4)[2]
    alone = generate_replicate(5, 3, "normal", rng=np.random.default_rng(stream), replicate_id=3)

    assert batch.replicate(3).observations.equals(alone.observations)


@pytest.mark.parametrize(
    "args",
    [(0, 5, 5), (3, 0, 5), (3, 5, 0), (3, 2.0, 5)],
)
def test_bad_counts(args) -> None:
    with pytest.raises(InvalidArgument):
        generate_batch(*args, "normal", seed=0)


def test_unknown_distribution() -> None:
    with pytest.raises(InvalidDistribution):
        generate_batch(2, 2, 2, "cauchy", seed=0)
