import pytest

from outliersim.core.errors import (
    DegenerateGroup,
    InvalidArgument,
    InvalidDistribution,
    OutlierSimError,
)


def test_error_hierarchy() -> None:
    assert issubclass(InvalidArgument, ValueError)
    assert issubclass(InvalidDistribution, ValueError)
    assert issubclass(DegenerateGroup, ArithmeticError)
    for cls in (InvalidArgument, InvalidDistribution, DegenerateGroup):
        assert issubclass(cls, OutlierSimError)


def test_degenerate_group_default_reason_names_group_and_count() -> None:
    err = DegenerateGroup(4, group=1, n_units=0)

    assert err.replicate_id == 4
    assert "group 1" in err.reason
    assert "0 unit mean" in err.reason
    assert str(err).startswith("replicate 4:")


def test_degenerate_group_custom_reason() -> None:
    err = DegenerateGroup(2, reason="zero variance")
    assert err.reason == "zero variance"
    assert err.group is None


def test_invalid_distribution_keeps_tag() -> None:
    with pytest.raises(InvalidDistribution) as info:
        raise InvalidDistribution("weibull")
    assert info.value.tag == "weibull"
    assert "weibull" in str(info.value)
