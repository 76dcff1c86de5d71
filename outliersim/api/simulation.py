"""
outliersim.api.simulation
=========================

Outlier-exclusion simulations with study-oriented interfaces.

This module speaks the language of the lab rather than of the pipeline:
"subjects" and "trials" instead of units and observations, "false-positive
rate" and "power" instead of rejection rates under the null and the
alternative.

Examples
--------
>>> from outliersim.api.simulation import false_positive_rate
>>> s = false_positive_rate("normal", exclusion="none", n_replicates=50, seed=1)
>>> 0.0 <= s.rejection_rate <= 1.0
True
"""

from __future__ import annotations
from typing import Any, Dict, Literal, Optional, Sequence, Tuple

from outliersim.config import SimulationConfig
from outliersim.core.ledger import ResultLedger
from outliersim.core.names import Granularity
from outliersim.runtime.experiment_template import AnalysisResult, SimulationTemplate
from outliersim.runtime.runners import SequentialRunner
from outliersim.stats.schemes.two_group.aggregate import RejectionSummary
from outliersim.stats.schemes.two_group.filters import FilterSpec

ExclusionLevel = Literal["none", "subject", "trial", "subject_and_trial"]
Tails = Literal["both", "slow", "fast"]

# Map study terms to pipeline terms.
_LEVEL_MAP: Dict[str, Granularity] = {
    "none": Granularity.NONE,
    "subject": Granularity.UNIT,
    "trial": Granularity.OBSERVATION,
    "subject_and_trial": Granularity.BOTH,
}
_TAIL_MAP: Dict[str, Tuple[bool, bool]] = {
    "both": (True, True),
    "slow": (True, False),
    "fast": (False, True),
}


def exclusion_rule(
    exclusion: ExclusionLevel = "subject",
    cutoff_sd: float = 2.5,
    tails: Tails = "both",
    label: Optional[str] = None,
) -> FilterSpec:
    """
    Build a `FilterSpec` from study terms.

    Parameters
    ----------
    exclusion : {"none", "subject", "trial", "subject_and_trial"}
        Exclude whole subjects, single trials, or subjects then trials
    cutoff_sd : float, default=2.5
        Distance from the mean, in standard deviations, beyond which data are dropped
    tails : {"both", "slow", "fast"}, default="both"
        Which tail to trim; "slow" is the upper tail of reaction times

    Examples
    --------
    >>> exclusion_rule("trial", 3.0, tails="slow").name
    'observation:3sd:upper'
    """
    upper, lower = _TAIL_MAP[tails]
    return FilterSpec(
        cutoff_sd=cutoff_sd,
        remove_upper=upper,
        remove_lower=lower,
        granularity=_LEVEL_MAP[exclusion],
        label=label,
    )


def _run(config: SimulationConfig, experiment_id: str) -> AnalysisResult:
    template = SimulationTemplate(experiment_id, config)
    return SequentialRunner(template).analyze()


def false_positive_rate(
    distribution: str = "normal",
    exclusion: ExclusionLevel = "none",
    cutoff_sd: float = 2.5,
    tails: Tails = "both",
    **config: Any,
) -> RejectionSummary:
    """
    Rejection rate when both groups come from the same distribution.

    Extra keyword arguments go to `SimulationConfig` (n_replicates, seed, ...);
    `effect_offset` is forced to 0.
    """
    spec = exclusion_rule(exclusion, cutoff_sd, tails)
    cfg = SimulationConfig(
        distribution=distribution,
        cutoff_sd=spec.cutoff_sd,
        remove_upper=spec.remove_upper,
        remove_lower=spec.remove_lower,
        granularity=spec.granularity,
        **{**config, "effect_offset": 0.0},
    )
    return _run(cfg, f"fpr:{distribution}").summary


def power(
    effect_offset: float,
    distribution: str = "normal",
    exclusion: ExclusionLevel = "none",
    cutoff_sd: float = 2.5,
    tails: Tails = "both",
    **config: Any,
) -> RejectionSummary:
    """
    Rejection rate when group 2 is shifted by `effect_offset`.

    Examples
    --------
    >>> s = power(1.0, "normal", n_replicates=40, n_units_per_group=10, seed=2)
    >>> s.rejection_rate > 0.5
    True
    """
    spec = exclusion_rule(exclusion, cutoff_sd, tails)
    cfg = SimulationConfig(
        distribution=distribution,
        effect_offset=effect_offset,
        cutoff_sd=spec.cutoff_sd,
        remove_upper=spec.remove_upper,
        remove_lower=spec.remove_lower,
        granularity=spec.granularity,
        **config,
    )
    return _run(cfg, f"power:{distribution}").summary


def compare_exclusion_rules(
    rules: Sequence[FilterSpec],
    distribution: str = "normal",
    effect_offset: float = 0.0,
    ledger: Optional[ResultLedger] = None,
    **config: Any,
) -> Dict[str, RejectionSummary]:
    """
    Apply several exclusion rules to one simulated batch.

    Every rule sees the same data, so differences between the returned
    rejection rates are due to the rules alone. Results are appended to
    `ledger` when given.
    """
    cfg = SimulationConfig(distribution=distribution, effect_offset=effect_offset, **config)
    runner = SequentialRunner(SimulationTemplate(f"compare:{distribution}", cfg), ledger)
    return {r.label: r.summary for r in runner.run(list(rules))}
