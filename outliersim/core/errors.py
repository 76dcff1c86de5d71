"""
outliersim.core.errors
======================

Error taxonomy.

Configuration-level errors (`InvalidArgument`, `InvalidDistribution`) are
raised before any sampling happens and abort the run. `DegenerateGroup` is
raised for a single replicate whose test is undefined; the test runner
records it as a missing entry and moves on.

Examples
--------
>>> from outliersim.core.errors import InvalidArgument, DegenerateGroup
>>> issubclass(InvalidArgument, ValueError)
True
>>> err = DegenerateGroup(7, group=2, n_units=1)
>>> err.replicate_id, err.group
(7, 2)
"""

from __future__ import annotations
from typing import Optional


class OutlierSimError(Exception):
    """Base class for all package errors."""


class InvalidArgument(OutlierSimError, ValueError):
    """A count, probability, cutoff or enum value is out of range."""


class InvalidDistribution(OutlierSimError, ValueError):
    """The distribution tag is not registered."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"Unknown distribution: {tag!r}")
        self.tag = tag


class DegenerateGroup(OutlierSimError, ArithmeticError):
    """Fewer than two unit means remain in a group of one replicate."""

    def __init__(
        self,
        replicate_id: int,
        group: Optional[int] = None,
        n_units: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        if reason is None:
            reason = f"group {group} has {n_units} unit mean(s); at least 2 required"
        super().__init__(f"replicate {replicate_id}: {reason}")
        self.replicate_id = replicate_id
        self.group = group
        self.n_units = n_units
        self.reason = reason
