"""
outliersim.cli
==============

Command-line entry point.

``outliersim run`` simulates one batch and sweeps one or more exclusion
rules over it; ``outliersim report`` re-tabulates a saved ledger. Settings
resolve CLI > config file > built-in default.

Examples
--------
.. code-block:: console

    $ outliersim run --distribution exgaussian --granularity unit --replicates 2000
    $ outliersim run --config sweep.toml --results sweep.parquet
    $ outliersim report sweep.parquet --alpha 0.01
"""

from __future__ import annotations
import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from outliersim.backends.polars.io import (
    read_ledger,
    sink_for,
    source_for,
    write_batch,
    write_ledger,
)
from outliersim.config import SimulationConfig, load_config
from outliersim.core.errors import OutlierSimError
from outliersim.core.names import Granularity, ParallelBackend
from outliersim.reporting.generic import LedgerReporter
from outliersim.runtime.experiment_template import SimulationTemplate
from outliersim.runtime.runners import SequentialRunner
from outliersim.stats.common.distributions import available
from outliersim.stats.schemes.two_group.filters import FilterSpec, check_unique_labels

logger = logging.getLogger(__name__)

# CLI flag -> SimulationConfig field
_FLAG_FIELDS = {
    "replicates": "n_replicates",
    "obs_per_unit": "n_obs_per_unit",
    "units_per_group": "n_units_per_group",
    "distribution": "distribution",
    "effect_offset": "effect_offset",
    "cutoff_sd": "cutoff_sd",
    "remove_upper": "remove_upper",
    "remove_lower": "remove_lower",
    "granularity": "granularity",
    "alpha": "alpha",
    "seed": "seed",
    "equal_var": "equal_var",
    "workers": "workers",
    "backend": "backend",
}


def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="outliersim",
        description="Simulate how outlier exclusion changes two-sample test rejection rates",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="simulate a batch and sweep exclusion rules")
    run.add_argument(
        "--config",
        type=Path,
        default=None,
        help="TOML config file (CLI args override file values)",
    )
    run.add_argument("--replicates", type=int, default=None)
    run.add_argument("--obs-per-unit", type=int, default=None)
    run.add_argument("--units-per-group", type=int, default=None)
    run.add_argument("--distribution", type=str, choices=available(), default=None)
    run.add_argument("--effect-offset", type=float, default=None)
    run.add_argument("--cutoff-sd", type=float, default=None)
    run.add_argument("--remove-upper", action=argparse.BooleanOptionalAction, default=None)
    run.add_argument("--remove-lower", action=argparse.BooleanOptionalAction, default=None)
    run.add_argument(
        "--granularity",
        type=str,
        choices=[g.value for g in Granularity],
        default=None,
    )
    run.add_argument("--alpha", type=float, default=None)
    run.add_argument("--seed", type=int, default=None)
    run.add_argument(
        "--equal-var",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Student's pooled t test instead of Welch",
    )
    run.add_argument("--workers", type=int, default=None)
    run.add_argument(
        "--backend",
        type=str,
        choices=[b.value for b in ParallelBackend],
        default=None,
    )
    run.add_argument(
        "--compare-unfiltered",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Also run the 'none' rule on the same batch",
    )
    run.add_argument("--results", type=Path, default=None, help="ledger output (.parquet/.csv)")
    run.add_argument(
        "--batch-output",
        type=Path,
        default=None,
        help="annotated unfiltered observations (.parquet/.csv)",
    )

    report = sub.add_parser("report", help="tabulate a saved ledger")
    report.add_argument("ledger", type=Path)
    report.add_argument("--alpha", type=float, default=0.05)
    return parser


def _resolve_config(args: argparse.Namespace) -> Tuple[SimulationConfig, List[FilterSpec]]:
    """CLI > file > default resolution; returns the config and its filter sweep."""
    overrides: Dict[str, Any] = {
        field: getattr(args, flag)
        for flag, field in _FLAG_FIELDS.items()
        if getattr(args, flag) is not None
    }
    if args.config is not None:
        config, specs = load_config(args.config, overrides)
    else:
        config = SimulationConfig.from_mapping(overrides)
        specs = [config.filter_spec]

    if args.compare_unfiltered and all(s.name != "none" for s in specs):
        specs = [FilterSpec()] + specs
    check_unique_labels(s.name for s in specs)
    return config, specs


def _run(args: argparse.Namespace) -> int:
    config, specs = _resolve_config(args)
    template = SimulationTemplate("cli", config)
    runner = SequentialRunner(template)
    runner.run(specs)

    if args.batch_output is not None and template.batch is not None:
        write_batch(template.batch, sink_for(args.batch_output))
        logger.info("wrote batch to %s", args.batch_output)
    if args.results is not None:
        write_ledger(runner.ledger, sink_for(args.results))
        logger.info("wrote ledger to %s", args.results)

    print(LedgerReporter(runner.ledger, alpha=config.alpha).render())
    return 0


def _report(args: argparse.Namespace) -> int:
    ledger = read_ledger(source_for(args.ledger))
    print(LedgerReporter(ledger, alpha=args.alpha).render())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "report" and not args.ledger.exists():
        parser.error(f"Ledger file not found: {args.ledger}")
    if args.command == "run" and args.config is not None and not args.config.exists():
        parser.error(f"Config file not found: {args.config}")

    try:
        if args.command == "run":
            return _run(args)
        return _report(args)
    except OutlierSimError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
