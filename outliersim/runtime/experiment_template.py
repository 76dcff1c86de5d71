"""
outliersim.runtime.experiment_template
======================================

Base classes and infrastructure for simulation templates.

A template owns one unfiltered batch and knows how to push it through an
exclusion policy, test every replicate, and summarise the outcome. The batch
is generated once in `setup()`; each call to `analyze()` filters that same
batch independently, so different policies are compared on identical data.

Examples
--------
>>> from outliersim.config import SimulationConfig
>>> from outliersim.core.ledger import ResultLedger
>>> from outliersim.runtime.experiment_template import SimulationTemplate
>>> from outliersim.stats.schemes.two_group.filters import FilterSpec
>>> template = SimulationTemplate("demo", SimulationConfig(n_replicates=20, seed=1))
>>> ledger = ResultLedger()
>>> template.setup(ledger)
>>> template._is_setup
True
>>> result = template.analyze(FilterSpec(granularity="unit", cutoff_sd=2.0))
>>> result.label, len(result.results)
('unit:2sd:both', 20)
>>> ledger.labels()
['unit:2sd:both']
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from outliersim.config import SimulationConfig
from outliersim.core.components import Exclusion, SignificanceTest
from outliersim.core.ledger import ResultLedger
from outliersim.stats.schemes.two_group.aggregate import RejectionSummary, summarize
from outliersim.stats.schemes.two_group.core import ResultSet, SimulationBatch
from outliersim.stats.schemes.two_group.filters import FilterSpec, OutlierFilter
from outliersim.stats.schemes.two_group.generate import generate_batch
from outliersim.stats.schemes.two_group.testing import TTest, run_tests

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Outcome of one exclusion policy applied to the template's batch."""

    # Core results
    label: str
    results: ResultSet
    summary: RejectionSummary

    # Additional context
    rows_before: int = 0
    rows_after: int = 0
    exclusion: Optional[Dict[str, Any]] = None

    # Method-specific results
    additional_metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def rejection_rate(self) -> float:
        return self.summary.rejection_rate

    @property
    def n_missing(self) -> int:
        return self.summary.n_missing

    @property
    def retained_fraction(self) -> float:
        return self.rows_after / self.rows_before if self.rows_before else float("nan")


class ExperimentTemplate(ABC):
    """
    Base class for portable simulation templates.

    Encapsulates:
    - Generation of the unfiltered batch
    - Component configuration (significance test, default exclusion)
    - The filter -> test -> summarise pipeline
    - Recording results in a ledger

    Subclasses decide how the batch is produced and which components are used.
    """

    def __init__(self, experiment_id: str):
        self.experiment_id = experiment_id
        self.ledger: Optional[ResultLedger] = None
        self.batch: Optional[SimulationBatch] = None
        self._is_setup = False
        self._analyses: List[str] = []

    @abstractmethod
    def configure_components(self) -> Dict[str, Any]:
        """
        Configure the components.

        Returns
        -------
        Dict[str, Any]
            Dictionary with keys 'test' (a SignificanceTest) and 'exclusion'
            (the default Exclusion applied by `analyze()` with no argument).
        """
        pass

    @abstractmethod
    def build_batch(self) -> SimulationBatch:
        """Generate the unfiltered batch."""
        pass

    @property
    @abstractmethod
    def alpha(self) -> float:
        pass

    def setup(self, ledger: Optional[ResultLedger] = None) -> None:
        """Generate the batch and bind an optional ledger."""
        self.ledger = ledger
        self.components = self.configure_components()
        self.batch = self.build_batch()
        self._is_setup = True
        logger.info(
            "%s: batch ready (%d replicates, %d rows)",
            self.experiment_id,
            len(self.batch.replicate_ids),
            self.batch.height,
        )

    def _as_exclusion(self, exclusion: Any) -> Exclusion:
        if exclusion is None:
            return self.components["exclusion"]
        if isinstance(exclusion, FilterSpec):
            return OutlierFilter(spec=exclusion)
        if isinstance(exclusion, Exclusion):
            return exclusion
        raise TypeError(f"Expected FilterSpec or Exclusion, got {type(exclusion).__name__}")

    def label_of(self, exclusion: Any = None) -> str:
        """Ledger label that `analyze(exclusion)` would record under."""
        if exclusion is None and not self._is_setup:
            return self.configure_components()["exclusion"].label
        return self._as_exclusion(exclusion).label

    def test(self, table: SimulationBatch) -> ResultSet:
        """Run the configured significance test on every replicate."""
        test: SignificanceTest = self.components["test"]
        return run_tests(table, test=test)

    def analyze(self, exclusion: Any = None) -> AnalysisResult:
        """Filter the batch, test every replicate, and summarise."""
        if not self._is_setup or self.batch is None:
            raise RuntimeError("Template not setup. Call setup() first.")

        policy = self._as_exclusion(exclusion)
        filtered = policy.apply(self.batch)
        results = self.test(filtered)
        summary = summarize(results, self.alpha)

        if self.ledger is not None:
            self.ledger.append(policy.label, results, meta=policy.describe())
        self._analyses.append(policy.label)
        logger.info(
            "%s [%s]: rejection rate %.4f (%d valid, %d missing)",
            self.experiment_id,
            policy.label,
            summary.rejection_rate,
            summary.n_valid,
            summary.n_missing,
        )
        return AnalysisResult(
            label=policy.label,
            results=results,
            summary=summary,
            rows_before=self.batch.height,
            rows_after=filtered.height,
            exclusion=policy.describe(),
        )

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the template state."""
        if not self._is_setup:
            return {
                "experiment_id": str(self.experiment_id),
                "status": "not_setup",
                "analyses": list(self._analyses),
            }

        return {
            "experiment_id": str(self.experiment_id),
            "status": "ready",
            "analyses": list(self._analyses),
            "components": list(self.components.keys()),
        }

    def reset(self) -> None:
        """Forget past analyses (the batch and the ledger are kept)."""
        self._analyses = []


class SimulationTemplate(ExperimentTemplate):
    """
    Template driven by a `SimulationConfig`.

    The config's own filter fields define the default exclusion; other
    policies can be passed to `analyze()` and run on the same batch.
    """

    def __init__(self, experiment_id: str, config: SimulationConfig):
        super().__init__(experiment_id)
        self.config = config

    @property
    def alpha(self) -> float:
        return self.config.alpha

    def configure_components(self) -> Dict[str, Any]:
        return {
            "test": TTest(equal_var=self.config.equal_var),
            "exclusion": OutlierFilter(spec=self.config.filter_spec),
        }

    def build_batch(self) -> SimulationBatch:
        c = self.config
        return generate_batch(
            c.n_replicates,
            c.n_obs_per_unit,
            c.n_units_per_group,
            c.distribution_tag,
            c.effect_offset,
            seed=c.seed,
            workers=c.workers,
            backend=c.backend,
        )

    def test(self, table: SimulationBatch) -> ResultSet:
        return run_tests(
            table,
            test=self.components["test"],
            workers=self.config.workers,
            backend=self.config.backend,
        )

    def get_summary(self) -> Dict[str, Any]:
        summary = super().get_summary()
        summary.update(
            {
                "experiment_type": "two_group_outlier_simulation",
                "config": self.config.to_dict(),
            }
        )
        return summary
