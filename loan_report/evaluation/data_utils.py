from pathlib import Path
from typing import List

import joblib
import numpy as np
import pandas as pd
from pandas import DataFrame
from sklearn.base import BaseEstimator

from notebooks import constants
from notebooks.logging_config import MyLogger
from loan_report.evaluation.config import DEF_COLUMNS, DEF_EVAL_LOGGER
from loan_report.evaluation.errors import InvalidInput
from loan_report.evaluation.objects import Case, CaseColumns, LoanLabel


def load_df(df_file_path: Path, logger: MyLogger = DEF_EVAL_LOGGER) -> DataFrame:
    df_file_path = Path(df_file_path)
    logger.log_check(f"Loading the dataset from {df_file_path.absolute()}...")

    if df_file_path.suffix == ".feather":
        df = pd.read_feather(df_file_path)
    else:
        df = pd.read_csv(df_file_path)

    logger.log_result(f"Loaded dataframe with {len(df)} rows and {len(df.columns)} columns")
    return df


def save_df(df: DataFrame, df_file_path: Path, logger: MyLogger = DEF_EVAL_LOGGER):
    df_file_path = Path(df_file_path)
    logger.log_check("Saving the dataset...")

    df_file_path.parent.mkdir(parents=True, exist_ok=True)

    if df_file_path.suffix == ".feather":
        df.reset_index(drop=True).to_feather(df_file_path)
    else:
        df.to_csv(df_file_path, index=False)

    logger.log_result(f"Dataset saved to {df_file_path}")


def load_model(path: Path, logger: MyLogger = DEF_EVAL_LOGGER) -> BaseEstimator:
    logger.log_check("Loading a trained model...")

    model = joblib.load(path)

    logger.log_result("Loading successful.")
    logger.log_result(f"Hyperparameters: {model.get_params()}")
    if hasattr(model, "feature_names_in_"):
        logger.log_result(f"The model was trained on {len(model.feature_names_in_)} features.")

    return model


def infer(
    model: BaseEstimator,
    X_test: DataFrame,
    columns: CaseColumns = DEF_COLUMNS,
    logger: MyLogger = DEF_EVAL_LOGGER,
) -> np.ndarray:
    """
    Probability of the BAD class for every row. The model must be a fitted
    binary classifier trained with BAD (1) as its positive class.

    A model fitted on named columns is fed exactly those columns. A model
    fitted on a bare array gets every column except the case columns
    (probability, label, amount, total paid, loan status), in table order.
    """
    logger.log_check("Performing model inference...")

    classes = list(getattr(model, "classes_", []))
    if classes and classes != [LoanLabel.GOOD, LoanLabel.BAD]:
        err_msg = f"Expected a binary model with classes [0, 1], got {classes}."
        logger.log_error(err_msg)
        raise InvalidInput(err_msg)

    if hasattr(model, "feature_names_in_"):
        missing = [f for f in model.feature_names_in_ if f not in X_test.columns]
        if missing:
            err_msg = f"Input is missing model features: {missing}"
            logger.log_error(err_msg)
            raise InvalidInput(err_msg)
        X_test = X_test[list(model.feature_names_in_)]
    else:
        case_cols = [
            columns.probability,
            columns.label,
            columns.amount,
            columns.total_paid,
            columns.loan_status,
        ]
        X_test = X_test.drop(columns=case_cols, errors="ignore")

        n_expected = getattr(model, "n_features_in_", None)
        if n_expected is not None and X_test.shape[1] != n_expected:
            err_msg = (
                f"Model expects {n_expected} unnamed features, but {X_test.shape[1]} "
                f"columns remain after dropping the case columns: {list(X_test.columns)}"
            )
            logger.log_error(err_msg)
            raise InvalidInput(err_msg)

        X_test = X_test.to_numpy()

    probabilities = model.predict_proba(X_test)[:, 1]  # Probability of the positive class

    logger.log_result("Inference complete.")
    return probabilities


def encode_loan_status(
    df: DataFrame,
    columns: CaseColumns = DEF_COLUMNS,
    logger: MyLogger = DEF_EVAL_LOGGER,
) -> DataFrame:
    """
    Derives the binary label from the loan status. Fully paid loans are
    GOOD, charged off and defaulted loans are BAD; rows with any other status
    (current, late, in grace period...) are dropped.
    """
    logger.log_check(f"Encoding '{columns.loan_status}' into '{columns.label}'...")

    if columns.loan_status not in df.columns:
        err_msg = f"Column '{columns.loan_status}' not found in the DataFrame."
        logger.log_error(err_msg)
        raise InvalidInput(err_msg)

    status = df[columns.loan_status].astype(str).str.strip()
    is_good = status.isin(constants.GOOD_STATUSES)
    is_bad = status.isin(constants.BAD_STATUSES)

    keep = is_good | is_bad
    n_dropped = int((~keep).sum())
    if n_dropped:
        logger.log_result(f"Dropping {n_dropped} rows outside the Fully Paid vs Charged Off/Default criterion")

    df = df[keep].copy()
    df[columns.label] = np.where(is_bad[keep], int(LoanLabel.BAD), int(LoanLabel.GOOD))
    df = df.reset_index(drop=True)

    logger.log_result(
        f"Good loans: {int((df[columns.label] == LoanLabel.GOOD).sum())} | "
        f"Bad loans: {int((df[columns.label] == LoanLabel.BAD).sum())}"
    )
    return df


def _optional(value):
    return None if pd.isna(value) else float(value)


def cases_from_frame(
    df: DataFrame,
    columns: CaseColumns = DEF_COLUMNS,
    logger: MyLogger = DEF_EVAL_LOGGER,
) -> List[Case]:
    logger.log_check("Building evaluation cases...")

    required = [columns.probability, columns.label, columns.amount, columns.total_paid]
    missing = [col for col in required if col not in df.columns]
    if missing:
        err_msg = f"Columns {missing} not found in the DataFrame."
        logger.log_error(err_msg)
        raise InvalidInput(err_msg)

    if df[columns.label].isna().any():
        err_msg = f"Column '{columns.label}' contains missing labels."
        logger.log_error(err_msg)
        raise InvalidInput(err_msg)

    unknown = sorted(set(df[columns.label].unique()) - {int(LoanLabel.GOOD), int(LoanLabel.BAD)})
    if unknown:
        err_msg = f"Column '{columns.label}' contains labels other than 0 and 1: {unknown}"
        logger.log_error(err_msg)
        raise InvalidInput(err_msg)

    cases = [
        Case(
            predicted_probability=float(p),
            true_label=LoanLabel(int(label)),
            amount=_optional(amount),
            total_paid=_optional(total_paid),
        )
        for p, label, amount, total_paid in df[required].itertuples(index=False, name=None)
    ]

    logger.log_result(f"Built {len(cases)} cases.")
    return cases
