"""CLI entry points for fitting, simulating and sweeping."""

from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence
import argparse
import hashlib
import json
import logging

import pandas as pd

from mosim.config import Config
from mosim.engine import OutcomeSimulator
from mosim.exceptions import ConfigurationError, MOSimError
from mosim.models.fitted import FittedModel
from mosim.models.fitting import bootstrap_ensemble, fit_multinomial
from mosim.models.outcomes import OutcomeSet
from mosim.ops import configure_logging, get_metrics_recorder
from mosim.presentation import PresentationAdapter
from mosim.reporting import write_frame_csv, write_result_json, write_rows_csv
from mosim.runtime.manifest import RunManifest
from mosim.variables.registry import VariableRegistry

logger = logging.getLogger(__name__)


def _hash_config(config: Config) -> str:
    payload = json.dumps(asdict(config), sort_keys=True).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def _parse_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_grid(value: Optional[str]) -> Optional[List[float]]:
    items = _parse_list(value)
    if not items:
        return None
    try:
        return [float(item) for item in items]
    except ValueError as exc:
        raise ConfigurationError("grid", f"grid values must be numbers: {value!r}") from exc


def _load_case(case_path: Optional[str]) -> Optional[Dict[str, float]]:
    if not case_path:
        return None
    payload = json.loads(Path(case_path).read_text(encoding="utf-8"))
    case = payload.get("case", payload) if isinstance(payload, dict) else None
    if not isinstance(case, dict):
        raise ConfigurationError("case", f"{case_path} must hold a variable -> value mapping")
    try:
        return {str(k): float(v) for k, v in case.items()}
    except (TypeError, ValueError) as exc:
        raise ConfigurationError("case", f"case values must be numbers: {case!r}") from exc


def _load_table(variables_path: Optional[str]) -> Dict:
    if not variables_path:
        return {}
    payload = json.loads(Path(variables_path).read_text(encoding="utf-8"))
    return payload if isinstance(payload, dict) else {}


def _load_outcomes(outcomes: Optional[str], variables_path: Optional[str]) -> OutcomeSet:
    labels = _parse_list(outcomes)
    if labels:
        return OutcomeSet.of(labels)
    table = _load_table(variables_path)
    if table.get("outcomes"):
        return OutcomeSet.from_config(table)
    raise ConfigurationError("outcomes", "pass --outcomes or list them in the variable table")


def _load_formula(formula: Optional[str], variables_path: Optional[str]) -> str:
    if formula:
        return formula
    table_formula = _load_table(variables_path).get("formula")
    if table_formula:
        return str(table_formula)
    raise ConfigurationError("formula", "pass --formula or set it in the variable table")


def _start_run(command: str, config: Config) -> RunManifest:
    manifest = RunManifest(command=command)
    manifest.config_hash = _hash_config(config)
    manifest.seed = config.seed
    configure_logging(run_id=manifest.run_id, level=config.log_level)
    return manifest


def _build_simulator(config: Config) -> OutcomeSimulator:
    if not config.model_path:
        raise ConfigurationError("model_path", "pass --model or set MOSIM_MODEL_PATH")
    if not config.variables_path:
        raise ConfigurationError("variables_path", "pass --variables or set MOSIM_VARIABLES_PATH")
    model = FittedModel.load_json(config.model_path)
    registry = VariableRegistry.from_json(config.variables_path, config.rounding_fallback)
    return OutcomeSimulator(model, registry, sampling_method=config.sampling_method)


def _resolve_case(
    simulator: OutcomeSimulator,
    case_path: Optional[str],
    data_path: Optional[str],
) -> Dict[str, float]:
    case = _load_case(case_path)
    if data_path:
        frame = pd.read_csv(data_path)
        variables = simulator.model.formula.variables if simulator.model.formula else None
        baseline = PresentationAdapter(simulator.registry).baseline_case(frame, variables)
        if case:
            baseline.update(case)
        return baseline
    if case is None:
        raise ConfigurationError("case", "pass --case and/or --data")
    return case


def _apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    if getattr(args, "model_path", None):
        config.model_path = args.model_path
    if getattr(args, "variables_path", None):
        config.variables_path = args.variables_path
    if getattr(args, "output_dir", None):
        config.output_dir = args.output_dir
    if getattr(args, "draws", None) is not None:
        config.draw_count = args.draws
    if getattr(args, "seed", None) is not None:
        config.seed = args.seed
    if getattr(args, "points", None) is not None:
        config.sweep_points = args.points
    return config


def run_fit(
    config: Config,
    data_path: str,
    formula: Optional[str] = None,
    outcomes: Optional[str] = None,
    output_path: Optional[str] = None,
    bootstrap: int = 0,
    ridge: float = 0.0,
) -> int:
    """Fit a multinomial logit to a CSV dataset and save it as JSON."""
    manifest = _start_run("fit", config)
    try:
        formula = _load_formula(formula, config.variables_path or None)
        outcome_set = _load_outcomes(outcomes, config.variables_path or None)
        frame = pd.read_csv(data_path)
        logger.info("Loaded %d rows from %s", len(frame), data_path)
        if bootstrap:
            model = bootstrap_ensemble(
                frame, formula, outcome_set, replicates=bootstrap, seed=config.seed, ridge=ridge,
            )
        else:
            model = fit_multinomial(frame, formula, outcome_set, ridge=ridge)
    except (MOSimError, FileNotFoundError) as exc:
        logger.error("Fit failed: %s", exc)
        return 1

    output_dir = Path(config.output_dir)
    model_path = Path(output_path) if output_path else output_dir / "model.json"
    manifest.outputs["model"] = model.save_json(model_path)
    manifest.outputs["coefficients_csv"] = write_frame_csv(
        model.coefficient_frame(),
        str(output_dir / f"coefficients_{manifest.run_id}.csv"),
    )
    manifest.parameters.update({"formula": formula, "bootstrap": bootstrap, "ridge": ridge})
    manifest.write(output_dir)
    logger.info("Model written to %s", model_path)
    return 0


def run_simulate(
    config: Config,
    case_path: Optional[str] = None,
    data_path: Optional[str] = None,
) -> int:
    """Simulate the dot cloud for one case and write it as CSV."""
    manifest = _start_run("simulate", config)
    manifest.model_path = config.model_path
    try:
        simulator = _build_simulator(config)
        case = _resolve_case(simulator, case_path, data_path)
        result = simulator.simulate(case, draw_count=config.draw_count, seed=config.seed)
    except (MOSimError, FileNotFoundError) as exc:
        logger.error("Simulation failed: %s", exc)
        return 1

    output_dir = Path(config.output_dir)
    manifest.parameters.update({"case": result.case, "draw_count": config.draw_count})
    manifest.outputs["dot_cloud_csv"] = write_frame_csv(
        result.to_frame(),
        str(output_dir / f"dot_cloud_{manifest.run_id}.csv"),
    )
    summary = result.summary()
    manifest.outputs["summary_csv"] = write_frame_csv(
        summary,
        str(output_dir / f"dot_cloud_summary_{manifest.run_id}.csv"),
    )
    manifest.outputs["result_json"] = write_result_json(
        result,
        str(output_dir / f"dot_cloud_{manifest.run_id}.json"),
    )
    for row in summary.itertuples(index=False):
        logger.info("%s: mean %.3f (90%% of draws in %.3f-%.3f)", row.outcome, row.mean, row.q05, row.q95)
    manifest.parameters["metrics"] = get_metrics_recorder().snapshot()
    manifest.write(output_dir)
    return 0


def run_sweep(
    config: Config,
    variable: str,
    case_path: Optional[str] = None,
    data_path: Optional[str] = None,
    grid: Optional[str] = None,
) -> int:
    """Sweep one axis variable and write the ribbon data as CSV."""
    manifest = _start_run("sweep", config)
    manifest.model_path = config.model_path
    try:
        simulator = _build_simulator(config)
        case = _resolve_case(simulator, case_path, data_path)
        grid_values = _parse_grid(grid)
        if grid_values is None:
            adapter = PresentationAdapter(simulator.registry)
            frame = pd.read_csv(data_path) if data_path else None
            grid_values = adapter.default_grid(frame, variable, config.sweep_points)
        result = simulator.sweep(case, variable, grid_values)
    except (MOSimError, FileNotFoundError) as exc:
        logger.error("Sweep failed: %s", exc)
        return 1

    output_dir = Path(config.output_dir)
    manifest.parameters.update({"variable": variable, "grid": result.x_values, "baseline": result.baseline})
    manifest.outputs["ribbon_csv"] = write_frame_csv(
        result.to_frame(),
        str(output_dir / f"ribbon_{variable}_{manifest.run_id}.csv"),
    )
    manifest.outputs["result_json"] = write_result_json(
        result,
        str(output_dir / f"ribbon_{variable}_{manifest.run_id}.json"),
    )
    manifest.write(output_dir)
    logger.info("Swept %s over %d points", variable, len(result))
    return 0


def run_variables(config: Config, output_path: Optional[str] = None) -> int:
    """Describe the variable table: roles, rounding and transforms."""
    configure_logging(level=config.log_level)
    try:
        if not config.variables_path:
            raise ConfigurationError("variables_path", "pass --variables or set MOSIM_VARIABLES_PATH")
        registry = VariableRegistry.from_json(config.variables_path, config.rounding_fallback)
    except (MOSimError, FileNotFoundError) as exc:
        logger.error("Could not load variables: %s", exc)
        return 1
    instance_name = _load_table(config.variables_path).get("instance_name")
    if instance_name:
        logger.info("%s", instance_name)

    rows = [
        {
            "variable": spec.name,
            "display_name": spec.label,
            "slider": spec.is_slider_candidate,
            "facet": spec.is_facet_candidate,
            "x_axis": spec.is_axis_candidate,
            "rounding": registry.rounding_granularity(spec.name),
            "transform": spec.transform.name,
        }
        for spec in registry
    ]
    for row in rows:
        logger.info(
            "%-20s slider=%-5s facet=%-5s x_axis=%-5s transform=%s",
            row["variable"], row["slider"], row["facet"], row["x_axis"], row["transform"],
        )
    if output_path:
        write_rows_csv(rows, output_path)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Multinomial Outcome Simulator CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--config", dest="config_path", help="Path to config file (.env or .json)")
        sub.add_argument("--variables", dest="variables_path", help="Variable table JSON")
        sub.add_argument("--output-dir", dest="output_dir", help="Output directory for artifacts")

    fit = subparsers.add_parser("fit", help="Fit a multinomial logit to a CSV dataset")
    add_common(fit)
    fit.add_argument("--data", dest="data_path", required=True, help="Dataset CSV")
    fit.add_argument("--formula", dest="formula", help="e.g. 'outcome ~ a + b'; defaults to the variable table's formula")
    fit.add_argument("--outcomes", dest="outcomes", help="Comma-separated outcome labels, reference first")
    fit.add_argument("--output", dest="output_path", help="Model JSON path")
    fit.add_argument("--bootstrap", dest="bootstrap", type=int, default=0, help="Bootstrap replicates")
    fit.add_argument("--ridge", dest="ridge", type=float, default=0.0, help="L2 penalty")
    fit.add_argument("--seed", dest="seed", type=int, help="Bootstrap seed")

    simulate = subparsers.add_parser("simulate", help="Simulate outcome probabilities for one case")
    add_common(simulate)
    simulate.add_argument("--model", dest="model_path", help="Fitted model JSON")
    simulate.add_argument("--case", dest="case_path", help="Case JSON (display-space values)")
    simulate.add_argument("--data", dest="data_path", help="Dataset CSV for baseline values")
    simulate.add_argument("--draws", dest="draws", type=int, help="Number of uncertainty draws")
    simulate.add_argument("--seed", dest="seed", type=int, help="Random seed")

    sweep = subparsers.add_parser("sweep", help="Sweep one variable across a grid")
    add_common(sweep)
    sweep.add_argument("--model", dest="model_path", help="Fitted model JSON")
    sweep.add_argument("--variable", dest="variable", required=True, help="X-axis variable")
    sweep.add_argument("--case", dest="case_path", help="Baseline case JSON")
    sweep.add_argument("--data", dest="data_path", help="Dataset CSV for baseline values and grid range")
    sweep.add_argument("--grid", dest="grid", help="Comma-separated display-space grid")
    sweep.add_argument("--points", dest="points", type=int, help="Grid size when no grid is given")

    variables = subparsers.add_parser("variables", help="Describe the variable table")
    add_common(variables)
    variables.add_argument("--output", dest="output_path", help="Optional CSV output path")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    config = _apply_overrides(Config.load(config_path=getattr(args, "config_path", None)), args)

    if args.command == "fit":
        return run_fit(
            config,
            data_path=args.data_path,
            formula=getattr(args, "formula", None),
            outcomes=getattr(args, "outcomes", None),
            output_path=getattr(args, "output_path", None),
            bootstrap=getattr(args, "bootstrap", 0),
            ridge=getattr(args, "ridge", 0.0),
        )
    if args.command == "simulate":
        return run_simulate(
            config,
            case_path=getattr(args, "case_path", None),
            data_path=getattr(args, "data_path", None),
        )
    if args.command == "sweep":
        return run_sweep(
            config,
            variable=args.variable,
            case_path=getattr(args, "case_path", None),
            data_path=getattr(args, "data_path", None),
            grid=getattr(args, "grid", None),
        )
    if args.command == "variables":
        return run_variables(config, output_path=getattr(args, "output_path", None))

    parser.error("Unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
