import polars as pl
import pytest

from outliersim.core.errors import InvalidArgument
from outliersim.core.names import Granularity
from outliersim.stats.schemes.two_group.core import SimulationBatch
from outliersim.stats.schemes.two_group.filters import (
    FilterSpec,
    OutlierFilter,
    exclude_observations,
    exclude_units,
    filter_batch,
)
from outliersim.stats.schemes.two_group.generate import generate_batch

KEY = ["replicate", "group", "unit", "trial"]


def _batch(units):
    """Single-replicate batch from {(group, unit): [values]}."""
    rows = {"replicate": [], "group": [], "unit": [], "trial": [], "value": []}
    for (group, unit), values in units.items():
        for trial, value in enumerate(values, start=1):
            rows["replicate"].append(1)
            rows["group"].append(group)
            rows["unit"].append(unit)
            rows["trial"].append(trial)
            rows["value"].append(float(value))
    return SimulationBatch.from_observations(pl.DataFrame(rows))


@pytest.fixture(scope="module")
def skewed_batch():
    return generate_batch(30, 12, 10, "exgaussian", seed=99)


def _is_subset(inner: pl.DataFrame, outer: pl.DataFrame) -> bool:
    return inner.select(KEY).join(outer.select(KEY), on=KEY, how="anti").height == 0


@pytest.mark.parametrize("granularity", ["unit", "observation", "both", "none"])
def test_both_flags_off_is_a_noop(skewed_batch, granularity: str) -> None:
    out = filter_batch(skewed_batch, 0.5, False, False, granularity)
    assert out.observations.equals(skewed_batch.observations)


def test_granularity_none_is_a_noop(skewed_batch) -> None:
    out = filter_batch(skewed_batch, 0.5, True, True, Granularity.NONE)
    assert out.observations.equals(skewed_batch.observations)


@pytest.mark.parametrize("granularity", ["unit", "observation", "both"])
def test_larger_cutoff_keeps_at_least_as_many_rows(skewed_batch, granularity: str) -> None:
    heights = [
        filter_batch(skewed_batch, c, True, True, granularity).height
        for c in (0.5, 1.0, 1.5, 2.0, 2.5, 3.0)
    ]
    assert heights == sorted(heights)
    assert heights[0] < skewed_batch.height


def test_filtered_rows_are_nested_subsets(skewed_batch) -> None:
    full = skewed_batch.observations
    unit = filter_batch(skewed_batch, 1.5, True, True, "unit").observations
    obs = filter_batch(skewed_batch, 1.5, True, True, "observation").observations
    both = filter_batch(skewed_batch, 1.5, True, True, "both").observations

    assert _is_subset(unit, full)
    assert _is_subset(obs, full)
    assert _is_subset(both, unit)
    assert _is_subset(both, obs)


def test_upper_tail_trims_more_for_right_skewed_data(skewed_batch) -> None:
    upper = filter_batch(skewed_batch, 1.0, True, False, "observation")
    lower = filter_batch(skewed_batch, 1.0, False, True, "observation")
    both = filter_batch(skewed_batch, 1.0, True, True, "observation")

    assert both.height <= min(upper.height, lower.height)
    # ex-Gaussian has a long right tail, so the upper bound trims more
    assert upper.height < lower.height


def test_summaries_are_carried_forward_unchanged(skewed_batch) -> None:
    out = filter_batch(skewed_batch, 1.0, True, True, "both")

    assert out.height < skewed_batch.height
    assert out.unit_summaries.equals(skewed_batch.unit_summaries)
    assert out.group_summaries.equals(skewed_batch.group_summaries)


def test_filtering_twice_changes_nothing(skewed_batch) -> None:
    # bounds come from the original summaries, so a second pass is a no-op
    once = filter_batch(skewed_batch, 1.0, True, True, "observation")
    twice = filter_batch(once, 1.0, True, True, "observation")
    assert twice.observations.equals(once.observations)


def test_observation_bounds_are_inclusive() -> None:
    # mean 0, sample sd 1
    batch = _batch({(1, 1): [1.0, -1.0, 0.0]})

    assert filter_batch(batch, 1.0, True, True, "observation").height == 3
    assert filter_batch(batch, 0.5, True, True, "observation").height == 1
    kept = filter_batch(batch, 0.5, True, False, "observation")
    assert sorted(kept.observations.get_column("value").to_list()) == [-1.0, 0.0]


def test_unit_bounds_are_inclusive() -> None:
    # unit means 1, -1, 0: group mean 0, group sd 1
    batch = _batch({(1, 1): [1.0, 1.0], (1, 2): [-1.0, -1.0], (1, 3): [0.0, 0.0]})

    assert exclude_units(batch, 1.0).height == 6
    kept = exclude_units(batch, 0.5)
    assert kept.observations.get_column("unit").unique().to_list() == [3]
    kept_lower = exclude_units(batch, 0.5, remove_upper=True, remove_lower=False)
    assert sorted(kept_lower.observations.get_column("unit").unique().to_list()) == [2, 3]


def test_unit_rule_removes_whole_units() -> None:
    batch = _batch(
        {
            (1, 1): [1.0, 1.0, 1.0],
            (1, 2): [1.1, 0.9, 1.0],
            (1, 3): [0.9, 1.1, 1.0],
            (1, 4): [1.0, 1.0, 1.0],
            (1, 5): [9.0, 9.0, 9.0],
            (2, 1): [1.0, 2.0, 3.0],
        }
    )
    out = exclude_units(batch, 1.5)
    units = out.observations.filter(pl.col("group") == 1).get_column("unit").unique().sort()

    assert units.to_list() == [1, 2, 3, 4]
    # a lone unit has no group sd and is never excluded
    assert out.observations.filter(pl.col("group") == 2).height == 3


def test_single_observation_unit_is_never_excluded() -> None:
    batch = _batch({(1, 1): [100.0], (1, 2): [0.0, 0.0, 0.0, 10.0]})
    out = exclude_observations(batch, 0.1)

    assert out.observations.filter(pl.col("unit") == 1).height == 1


def test_zero_sd_unit_keeps_identical_values() -> None:
    batch = _batch({(1, 1): [2.0, 2.0, 2.0]})
    assert exclude_observations(batch, 0.1).height == 3


def test_both_applies_unit_rule_then_observation_rule() -> None:
    batch = _batch(
        {
            (1, 1): [0.0, 0.0, 0.0, 6.0],
            (1, 2): [0.0, 0.0, 0.0, 0.0],
            (1, 3): [0.0, 0.0, 0.0, 0.0],
            (1, 4): [50.0, 50.0, 50.0, 50.0],
        }
    )
    unit_only = filter_batch(batch, 1.4, True, True, "unit")
    both = filter_batch(batch, 1.4, True, True, "both")

    assert 4 not in unit_only.observations.get_column("unit").to_list()
    assert both.height == unit_only.height - 1
    assert 6.0 not in both.observations.get_column("value").to_list()


@pytest.mark.parametrize("cutoff", [0.0, -1.0])
def test_non_positive_cutoff_raises(skewed_batch, cutoff: float) -> None:
    with pytest.raises(InvalidArgument):
        filter_batch(skewed_batch, cutoff, True, True, "unit")


def test_unknown_granularity_raises(skewed_batch) -> None:
    with pytest.raises(InvalidArgument):
        filter_batch(skewed_batch, 2.0, True, True, "subject")


def test_filter_spec_names() -> None:
    assert FilterSpec().name == "none"
    assert FilterSpec(granularity="unit").name == "unit:2.5sd:both"
    assert FilterSpec(granularity="observation", cutoff_sd=3, remove_upper=False).name == (
        "observation:3sd:lower"
    )
    assert FilterSpec(granularity="both", remove_upper=False, remove_lower=False).name == "none"
    assert FilterSpec(granularity="unit", label="mine").name == "mine"


def test_outlier_filter_component(skewed_batch) -> None:
    spec = FilterSpec(granularity="unit", cutoff_sd=1.0)
    component = OutlierFilter(spec=spec)

    assert component.label == "unit:1sd:both"
    assert component.apply(skewed_batch).observations.equals(
        filter_batch(skewed_batch, 1.0, True, True, "unit").observations
    )
    assert component.describe()["component"] == "OutlierFilter"
