"""
outliersim.core.names
=====================

Typed names shared across the package.

- `DistributionTag`: an Enum of the built-in data-generating distributions.
- `Granularity`: the level at which an exclusion rule is applied.
- `ReplicateStatus`: outcome marker stored with every p-value record.
- `ReplicateId`, `FilterLabel`: NewType wrappers for clarity.
- Column-name constants for the observation, summary and result tables.

Examples
--------
>>> from outliersim.core.names import Granularity, DistributionTag, ReplicateId
>>> Granularity.UNIT.value
'unit'
>>> DistributionTag("gamma") is DistributionTag.GAMMA
True
>>> rid = ReplicateId(3); isinstance(rid, int)
True
"""

from __future__ import annotations
from enum import Enum
from typing import Literal, NewType


class DistributionTag(str, Enum):
    """Built-in data-generating distributions.

    - NORMAL: standard normal, location shifted by the effect offset
    - EXGAUSSIAN: ex-Gaussian reaction times (mu 320, sigma 30, tau 90)
    - GAMMA: three-parameter gamma (shape 3, scale 60, threshold 250)
    """

    NORMAL = "normal"
    EXGAUSSIAN = "exgaussian"
    GAMMA = "gamma"


class Granularity(str, Enum):
    """Where an exclusion rule looks for outliers.

    - UNIT: unit means against the distribution of unit means in their group
    - OBSERVATION: single values against their own unit's mean and sd
    - BOTH: unit rule first, then observation rule on what is left
    - NONE: no exclusion (only meaningful in configuration records)
    """

    UNIT = "unit"
    OBSERVATION = "observation"
    BOTH = "both"
    NONE = "none"


class ReplicateStatus(str, Enum):
    OK = "ok"
    DEGENERATE = "degenerate"


class ParallelBackend(str, Enum):
    THREAD = "thread"
    PROCESS = "process"


# Typed aliases for logical identifiers.
ReplicateId = NewType("ReplicateId", int)
FilterLabel = NewType("FilterLabel", str)

# Column names.
REPLICATE = "replicate"
GROUP = "group"
UNIT = "unit"
TRIAL = "trial"
VALUE = "value"
UNIT_MEAN = "unit_mean"
UNIT_SD = "unit_sd"
GROUP_MEAN = "group_mean"
GROUP_SD = "group_sd"
P_VALUE = "p_value"
STATUS = "status"
REASON = "reason"
LABEL = "label"

UNIT_KEY = [REPLICATE, GROUP, UNIT]
GROUP_KEY = [REPLICATE, GROUP]

GroupId = Literal[1, 2]
