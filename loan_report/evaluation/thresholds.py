import math
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, NamedTuple, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix
from tqdm import tqdm

from notebooks import constants
from notebooks.logging_config import MyLogger
from loan_report.evaluation.config import DEF_EVAL_LOGGER
from loan_report.evaluation.errors import InvalidInput, UndefinedMetric
from loan_report.evaluation.objects import Case, LoanLabel, MissingFinancials, ThresholdResult

LABEL_ORDER = [LoanLabel.GOOD, LoanLabel.BAD]


class _CaseArrays(NamedTuple):
    probabilities: np.ndarray
    labels: np.ndarray
    # NaN where amount or total_paid is missing
    profits: np.ndarray


def _as_arrays(cases: Sequence[Case]) -> _CaseArrays:
    probabilities = np.array([c.predicted_probability for c in cases], dtype=float)
    labels = np.array([int(c.true_label) for c in cases], dtype=int)
    profits = np.array(
        [np.nan if c.profit is None else c.profit for c in cases], dtype=float
    )

    for arr in (probabilities, labels, profits):
        arr.setflags(write=False)

    return _CaseArrays(probabilities, labels, profits)


def _resolve_n_jobs(n_jobs: int) -> int:
    if n_jobs == -1:
        return os.cpu_count() or 1
    if n_jobs < 1:
        raise InvalidInput(f"n_jobs must be a positive integer or -1, got {n_jobs}.")
    return n_jobs


def _reject(msg: str, logger: MyLogger):
    logger.log_error(msg)
    raise InvalidInput(msg)


def validate_request(
    cases: Sequence[Case],
    thresholds: Sequence[float],
    strict_bounds: bool = True,
    logger: MyLogger = DEF_EVAL_LOGGER,
):
    """
    Rejects a malformed request as a whole before anything is computed.

    Thresholds must lie strictly inside (0, 1), or inside [0, 1] when
    ``strict_bounds`` is False. Probabilities must lie in [0, 1] and labels
    must be GOOD (0) or BAD (1).
    """
    if len(cases) == 0:
        _reject("The case sequence is empty.", logger)

    if len(thresholds) == 0:
        _reject("The threshold sequence is empty.", logger)

    for t in thresholds:
        if not isinstance(t, (int, float, np.number)) or isinstance(t, bool) or not math.isfinite(t):
            _reject(f"Threshold {t!r} is not a finite number.", logger)

        in_range = 0 < t < 1 if strict_bounds else 0 <= t <= 1
        if not in_range:
            bounds = "(0, 1)" if strict_bounds else "[0, 1]"
            _reject(f"Threshold {t} is outside {bounds}.", logger)

    if len(set(thresholds)) != len(thresholds):
        logger.log_warning("Duplicate thresholds found, each is evaluated separately.")

    for i, case in enumerate(cases):
        p = case.predicted_probability
        if not isinstance(p, (int, float, np.number)) or isinstance(p, bool):
            _reject(f"Case {i}: predicted probability {p!r} is not a number.", logger)

        if not (0 <= p <= 1):
            _reject(f"Case {i}: predicted probability {p!r} is outside [0, 1].", logger)

        try:
            LoanLabel(case.true_label)
        except ValueError:
            _reject(f"Case {i}: label {case.true_label!r} is neither GOOD (0) nor BAD (1).", logger)


def _ratio(numerator: int, denominator: int, metric: str, threshold: float) -> float:
    if denominator == 0:
        raise UndefinedMetric(metric, threshold)
    return numerator / denominator


def _metric_or_nan(numerator: int, denominator: int, metric: str, threshold: float, logger: MyLogger) -> float:
    try:
        return _ratio(numerator, denominator, metric, threshold)
    except UndefinedMetric as e:
        logger.log_warning(f"{e}, reported as NaN.", print_to_console=False)
        return float("nan")


def _evaluate(arrays: _CaseArrays, threshold: float, logger: MyLogger) -> ThresholdResult:
    predicted = np.where(arrays.probabilities > threshold, int(LoanLabel.BAD), int(LoanLabel.GOOD))

    # rows are true labels, columns are predicted labels
    matrix = confusion_matrix(arrays.labels, predicted, labels=[int(label) for label in LABEL_ORDER])
    counts = {
        (pred_label, true_label): int(matrix[i_true, i_pred])
        for i_true, true_label in enumerate(LABEL_ORDER)
        for i_pred, pred_label in enumerate(LABEL_ORDER)
    }

    good_good = counts[(LoanLabel.GOOD, LoanLabel.GOOD)]
    bad_bad = counts[(LoanLabel.BAD, LoanLabel.BAD)]
    n_true_good = good_good + counts[(LoanLabel.BAD, LoanLabel.GOOD)]
    n_true_bad = bad_bad + counts[(LoanLabel.GOOD, LoanLabel.BAD)]

    disbursed = predicted == int(LoanLabel.GOOD)

    return ThresholdResult(
        threshold=float(threshold),
        confusion_counts=counts,
        overall_accuracy=_metric_or_nan(good_good + bad_bad, len(predicted), "overall_accuracy", threshold, logger),
        bad_loan_accuracy=_metric_or_nan(bad_bad, n_true_bad, "bad_loan_accuracy", threshold, logger),
        good_loan_accuracy=_metric_or_nan(good_good, n_true_good, "good_loan_accuracy", threshold, logger),
        disbursed_count=int(disbursed.sum()),
        total_profit=float(np.nansum(arrays.profits[disbursed])),
    )


def evaluate_threshold(
    cases: Sequence[Case],
    threshold: float,
    strict_bounds: bool = True,
    logger: MyLogger = DEF_EVAL_LOGGER,
) -> ThresholdResult:
    validate_request(cases, [threshold], strict_bounds=strict_bounds, logger=logger)
    return _evaluate(_as_arrays(cases), threshold, logger)


def evaluate_thresholds(
    cases: Sequence[Case],
    thresholds: Sequence[float],
    n_jobs: int = 1,
    strict_bounds: bool = True,
    logger: MyLogger = DEF_EVAL_LOGGER,
    show_progress: bool = False,
) -> List[ThresholdResult]:
    """
    Evaluates every threshold independently and returns one result per
    threshold, in the order the thresholds were given.

    A loan is classified BAD when its predicted probability is strictly
    above the threshold. Only loans classified GOOD are disbursed, so the
    profit of a threshold is the sum of ``total_paid - amount`` over those
    loans; loans missing either field count towards ``disbursed_count`` but
    add nothing to the profit.

    With ``n_jobs`` > 1 (or -1 for all cores) the thresholds are spread over
    a thread pool. The output is the same as the sequential run.
    """
    thresholds = list(thresholds)
    validate_request(cases, thresholds, strict_bounds=strict_bounds, logger=logger)
    n_jobs = _resolve_n_jobs(n_jobs)

    logger.log_check(f"Sweeping {len(thresholds)} thresholds over {len(cases)} cases (n_jobs={n_jobs})...")
    start = time.time()

    arrays = _as_arrays(cases)

    if n_jobs == 1:
        results = [
            _evaluate(arrays, t, logger)
            for t in tqdm(thresholds, desc="Thresholds", unit="threshold", disable=not show_progress)
        ]
    else:
        results = [None] * len(thresholds)

        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            futures = {
                executor.submit(_evaluate, arrays, t, logger): i
                for i, t in enumerate(thresholds)
            }

            pbar = tqdm(total=len(futures), desc="Thresholds", unit="threshold", disable=not show_progress)
            for future in as_completed(futures):
                results[futures[future]] = future.result()
                pbar.update(1)
            pbar.close()

    end = time.time()
    logger.log_result(f"Sweep completed. Time: {end - start:.2f}s")

    return results


def best_profit_threshold(results: Sequence[ThresholdResult]) -> ThresholdResult:
    """Result with the highest total profit; ties go to the lowest threshold."""
    if len(results) == 0:
        raise InvalidInput("Cannot select a threshold from an empty result sequence.")

    return min(results, key=lambda r: (-r.total_profit, r.threshold))


def baseline_profit(cases: Sequence[Case]) -> float:
    """Profit without a model, i.e. when every loan is disbursed."""
    return float(sum(c.profit for c in cases if c.profit is not None and not math.isnan(c.profit)))


def audit_missing_financials(cases: Sequence[Case], logger: MyLogger = DEF_EVAL_LOGGER) -> MissingFinancials:
    logger.log_check("Auditing missing financial fields...")

    def _missing(value) -> bool:
        return value is None or (isinstance(value, float) and math.isnan(value))

    missing_amount = sum(_missing(c.amount) for c in cases)
    missing_total_paid = sum(_missing(c.total_paid) for c in cases)
    missing_any = sum(_missing(c.amount) or _missing(c.total_paid) for c in cases)

    audit = MissingFinancials(
        total_cases=len(cases),
        missing_amount=missing_amount,
        missing_total_paid=missing_total_paid,
        missing_any=missing_any,
    )

    logger.log_result(
        f"Missing amount: {missing_amount} | Missing total paid: {missing_total_paid} "
        f"| Excluded from profit when disbursed: {missing_any} ({audit.missing_rate:.2%})"
    )
    if missing_any:
        logger.log_warning(f"{missing_any} cases add nothing to the profit sums.")

    return audit


def results_to_frame(results: Sequence[ThresholdResult]) -> pd.DataFrame:
    """One row per threshold, in sweep order."""
    return pd.DataFrame(
        [r.as_row() for r in results],
        columns=constants.RESULT_COLUMNS + constants.CONFUSION_COLUMNS,
    )
