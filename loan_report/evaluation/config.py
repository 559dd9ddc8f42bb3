from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import List, Optional

import numpy as np
import yaml

from notebooks.logging_config import MyLogger
from loan_report.config import LOG_DIR
from loan_report.evaluation.errors import InvalidInput
from loan_report.evaluation.objects import CaseColumns

DEF_LOG_FILE = LOG_DIR / "threshold_evaluation.log"
DEF_EVAL_LOGGER = MyLogger(label="EVAL", section_name="Threshold Evaluation", file_log_path=DEF_LOG_FILE)

DEF_COLUMNS = CaseColumns()
DEF_N_JOBS = 1


def threshold_grid(start: float, stop: float, step: float) -> List[float]:
    """
    Inclusive, evenly spaced grid of thresholds rounded to 4 decimals so
    that 0.1 + 0.2 style float drift does not leak into the result table.
    """
    if step <= 0:
        raise InvalidInput(f"Threshold grid step must be positive, got {step}.")
    if stop < start:
        raise InvalidInput(f"Threshold grid stop ({stop}) is below start ({start}).")

    n_steps = int(np.floor((stop - start) / step + 1e-9))
    grid = start + step * np.arange(n_steps + 1)
    return [round(float(t), 4) for t in grid]


DEF_THRESHOLDS = threshold_grid(0.05, 0.95, 0.05)


@dataclass(frozen=True)
class RunConfig:
    thresholds: List[float] = field(default_factory=lambda: list(DEF_THRESHOLDS))
    columns: CaseColumns = DEF_COLUMNS
    n_jobs: int = DEF_N_JOBS


RUN_CONFIG_KEYS = {"thresholds", "columns", "n_jobs"}


def _parse_thresholds(raw) -> List[float]:
    if isinstance(raw, dict):
        missing = {"start", "stop", "step"} - set(raw)
        if missing:
            raise InvalidInput(f"Threshold grid is missing {sorted(missing)}.")
        return threshold_grid(float(raw["start"]), float(raw["stop"]), float(raw["step"]))

    if isinstance(raw, (list, tuple)):
        return [float(t) for t in raw]

    raise InvalidInput(f"'thresholds' must be a list or a start/stop/step mapping, got {type(raw).__name__}.")


def _parse_columns(raw) -> CaseColumns:
    if not isinstance(raw, dict):
        raise InvalidInput(f"'columns' must be a mapping, got {type(raw).__name__}.")

    known = {f.name for f in fields(CaseColumns)}
    unknown = set(raw) - known
    if unknown:
        raise InvalidInput(f"Unknown column keys {sorted(unknown)}, expected a subset of {sorted(known)}.")

    return replace(DEF_COLUMNS, **{key: str(value) for key, value in raw.items()})


def load_run_config(path: Optional[Path], logger: MyLogger = DEF_EVAL_LOGGER) -> RunConfig:
    """
    Reads an optional YAML run file, e.g.

        thresholds: {start: 0.1, stop: 0.9, step: 0.1}
        columns:
          total_paid: total_rec_prncp
        n_jobs: 4

    Keys that are left out keep their defaults.
    """
    if path is None:
        return RunConfig()

    logger.log_check(f"Loading run configuration from {path}...")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise InvalidInput(f"Run configuration {path} must be a mapping.")

    unknown = set(data) - RUN_CONFIG_KEYS
    if unknown:
        err_msg = f"Unknown run configuration keys {sorted(unknown)} in {path}."
        logger.log_error(err_msg)
        raise InvalidInput(err_msg)

    config = RunConfig()
    if "thresholds" in data:
        config = replace(config, thresholds=_parse_thresholds(data["thresholds"]))
    if "columns" in data:
        config = replace(config, columns=_parse_columns(data["columns"]))
    if "n_jobs" in data:
        config = replace(config, n_jobs=int(data["n_jobs"]))

    logger.log_result(f"Run configuration: {len(config.thresholds)} thresholds, n_jobs={config.n_jobs}.")
    return config
