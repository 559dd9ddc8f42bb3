import argparse
from dataclasses import replace
from pathlib import Path

from main_config import setup
from notebooks.logging_config import MyLogger
from loan_report.config import LOG_DIR, SCORED_TEST_FILE, THRESHOLD_RESULTS_FILE
from loan_report.evaluation.config import load_run_config
import loan_report.evaluation.data_utils as dutls
import loan_report.evaluation.thresholds as thr
from loan_report.versioning import VersionedFileManager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Threshold sweep of a loan default model: accuracy and profit per decision threshold"
    )

    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="Held-out evaluation table (.csv or .feather). Defaults to the newest version of the scored test file.",
    )
    parser.add_argument(
        "--model",
        type=Path,
        default=None,
        help="Optional joblib-persisted classifier used to score the input rows.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML run file with thresholds, column names and n_jobs.",
    )
    parser.add_argument(
        "--thresholds",
        type=float,
        nargs="+",
        default=None,
        help="Explicit thresholds, overriding the run file.",
    )
    parser.add_argument(
        "--n-jobs",
        type=int,
        default=None,
        help="Threads used for the sweep (-1 for all cores).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=THRESHOLD_RESULTS_FILE,
        help="Base path of the result table; each run writes the next '_vN' version.",
    )

    return parser


def main(argv=None, logger: MyLogger = None) -> Path:
    args = build_parser().parse_args(argv)

    setup()

    # a logger created here is closed here, a passed-in one belongs to the caller
    if logger is not None:
        return run(args, logger)

    script_logger = MyLogger(
        label="THRESHOLDS",
        section_name="THRESHOLD EVALUATION SCRIPT",
        file_log_path=LOG_DIR / "threshold_evaluation_script.log",
    )
    try:
        return run(args, script_logger)
    finally:
        script_logger.close()


def run(args: argparse.Namespace, logger: MyLogger) -> Path:
    logger.start_session()

    # -----------------------------------------------------------------------------
    # Configuration
    # -----------------------------------------------------------------------------

    run_config = load_run_config(args.config, logger=logger)
    if args.thresholds:
        run_config = replace(run_config, thresholds=args.thresholds)
    if args.n_jobs is not None:
        run_config = replace(run_config, n_jobs=args.n_jobs)
    columns = run_config.columns

    # -----------------------------------------------------------------------------
    # Dataset Loading
    # -----------------------------------------------------------------------------

    input_path = args.input
    if input_path is None:
        input_path = VersionedFileManager(file_path=SCORED_TEST_FILE).current_newest
    if input_path is None or not Path(input_path).exists():
        raise FileNotFoundError(f"No evaluation table found at {input_path or SCORED_TEST_FILE}")

    test_df = dutls.load_df(input_path, logger=logger)

    # -----------------------------------------------------------------------------
    # Inference
    # -----------------------------------------------------------------------------

    if args.model is not None:
        model = dutls.load_model(args.model, logger=logger)
        test_df[columns.probability] = dutls.infer(model, test_df, columns=columns, logger=logger)

    if columns.label not in test_df.columns:
        test_df = dutls.encode_loan_status(test_df, columns=columns, logger=logger)

    cases = dutls.cases_from_frame(test_df, columns=columns, logger=logger)
    thr.audit_missing_financials(cases, logger=logger)

    # -----------------------------------------------------------------------------
    # Threshold Sweep
    # -----------------------------------------------------------------------------

    results = thr.evaluate_thresholds(
        cases,
        run_config.thresholds,
        n_jobs=run_config.n_jobs,
        logger=logger,
        show_progress=True,
    )
    results_df = thr.results_to_frame(results)
    logger.log_result(f"\n{results_df.to_string(index=False)}")

    best = thr.best_profit_threshold(results)
    baseline = thr.baseline_profit(cases)

    logger.log_result(
        f"Best profit threshold: {best.threshold:.4f} | Profit: {best.total_profit:,.2f} "
        f"| Disbursed: {best.disbursed_count} | Overall accuracy: {best.overall_accuracy:.4f}"
    )
    logger.log_result(f"No-model baseline profit (disburse all): {baseline:,.2f}")
    logger.log_result(f"Profit gain over baseline: {best.total_profit - baseline:,.2f}")

    # -----------------------------------------------------------------------------
    # Saving
    # -----------------------------------------------------------------------------

    output_path = VersionedFileManager(file_path=args.output).next_base_output
    dutls.save_df(results_df, output_path, logger=logger)

    return output_path


if __name__ == "__main__":
    main()
