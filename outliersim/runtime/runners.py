"""
outliersim.runtime.runners
==========================

Generic runners that execute simulation templates with different strategies.

Runners provide the execution environment while templates define the
simulation. `SequentialRunner` sweeps a list of exclusion policies over one
template's batch; `BatchRunner` does the same for several templates (for
example one per distribution), each with its own ledger.

Examples
--------
>>> from outliersim.config import SimulationConfig
>>> from outliersim.runtime.experiment_template import SimulationTemplate
>>> from outliersim.runtime.runners import SequentialRunner
>>> from outliersim.stats.schemes.two_group.filters import FilterSpec
>>> runner = SequentialRunner(SimulationTemplate("demo", SimulationConfig(n_replicates=10)))
>>> results = runner.run([FilterSpec(), FilterSpec(granularity="observation")])
>>> [r.label for r in results]
['none', 'observation:2.5sd:both']
"""

from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from outliersim.core.ledger import ResultLedger
from outliersim.runtime.experiment_template import AnalysisResult, ExperimentTemplate
from outliersim.stats.schemes.two_group.filters import check_unique_labels

logger = logging.getLogger(__name__)


class SequentialRunner:
    """
    Basic sequential runner.

    Provides a simple execution environment for one template with:
    - Setup (batch generation) and a result ledger
    - A sweep over exclusion policies
    - Result history
    """

    def __init__(self, template: ExperimentTemplate, ledger: Optional[ResultLedger] = None):
        self.template = template
        self.ledger = ledger if ledger is not None else ResultLedger()
        self._results_history: List[AnalysisResult] = []

    def setup(self) -> None:
        """Setup the template (generates its batch) if not done yet."""
        if not self.template._is_setup:
            self.template.setup(self.ledger)

    def analyze(self, exclusion: Any = None) -> AnalysisResult:
        """Run one exclusion policy and store the result."""
        self.setup()
        result = self.template.analyze(exclusion)
        self._results_history.append(result)
        return result

    def run(self, exclusions: Sequence[Any]) -> List[AnalysisResult]:
        """
        Run every policy in order on the same batch.

        Labels are checked against each other and the ledger before the
        batch is generated; a clash raises `InvalidArgument`.
        """
        exclusions = list(exclusions)
        check_unique_labels(
            (self.template.label_of(e) for e in exclusions), taken=self.ledger.labels()
        )
        return [self.analyze(e) for e in exclusions]

    def get_summary(self) -> Dict[str, Any]:
        """Get comprehensive summary including template and runner state."""
        summary = self.template.get_summary()
        summary.update(
            {
                "runner_type": "sequential",
                "total_analyses": len(self._results_history),
                "ledger_records": self.ledger.count(),
            }
        )
        return summary

    def get_results_history(self) -> List[AnalysisResult]:
        """Get history of all analysis results."""
        return self._results_history.copy()

    def reset(self) -> None:
        """Reset template and runner state; the ledger is replaced."""
        self.template.reset()
        self._results_history.clear()
        self.ledger = ResultLedger()
        self.template.ledger = self.ledger


class BatchRunner:
    """
    Runner for several templates sharing one policy sweep.

    Useful for comparing the same exclusion rules across distributions.
    """

    def __init__(
        self,
        templates: List[ExperimentTemplate],
        ledger_factory: Optional[Callable[[], ResultLedger]] = None,
    ):
        self.templates = templates
        self.ledger_factory = ledger_factory or ResultLedger
        self.runners: List[SequentialRunner] = []

    def setup(self) -> None:
        """Setup all templates with separate ledger instances."""
        self.runners = [SequentialRunner(t, self.ledger_factory()) for t in self.templates]
        for runner in self.runners:
            runner.setup()

    def run_all(self, exclusions: Sequence[Any]) -> Dict[str, List[AnalysisResult]]:
        """Run the sweep on every template, keyed by experiment id."""
        if not self.runners:
            self.setup()
        out: Dict[str, List[AnalysisResult]] = {}
        for runner in self.runners:
            logger.info("running sweep for %s", runner.template.experiment_id)
            out[runner.template.experiment_id] = runner.run(exclusions)
        return out

    def get_comparison_summary(self) -> Dict[str, Any]:
        """Get comparative summary across all templates."""
        summaries = [runner.get_summary() for runner in self.runners]

        return {
            "total_templates": len(self.templates),
            "templates": summaries,
            "total_analyses": sum(s.get("total_analyses", 0) for s in summaries),
        }
