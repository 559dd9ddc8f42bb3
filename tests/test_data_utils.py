import math

import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LogisticRegression

from loan_report.evaluation.errors import InvalidInput
from loan_report.evaluation.objects import CaseColumns, LoanLabel
import loan_report.evaluation.data_utils as dutls


@pytest.fixture
def loans_df():
    return pd.DataFrame(
        {
            "loan_status": ["Fully Paid", "Charged Off", "Current", "Default", "Late (31-120 days)"],
            "loan_amnt": [1000.0, 2000.0, 1500.0, 500.0, 700.0],
            "total_pymnt": [1100.0, 300.0, 200.0, np.nan, 100.0],
            "pred_proba": [0.1, 0.7, 0.4, 0.6, 0.5],
        }
    )


def test_encode_loan_status_keeps_two_classes(loans_df, logger):
    df = dutls.encode_loan_status(loans_df, logger=logger)

    assert df["loan_status"].tolist() == ["Fully Paid", "Charged Off", "Default"]
    assert df["label"].tolist() == [LoanLabel.GOOD, LoanLabel.BAD, LoanLabel.BAD]
    assert list(df.index) == [0, 1, 2]


def test_encode_loan_status_requires_status_column(logger):
    with pytest.raises(InvalidInput):
        dutls.encode_loan_status(pd.DataFrame({"loan_amnt": [1.0]}), logger=logger)


def test_cases_from_frame(loans_df, logger):
    df = dutls.encode_loan_status(loans_df, logger=logger)

    cases = dutls.cases_from_frame(df, logger=logger)

    assert len(cases) == 3
    assert cases[0].predicted_probability == 0.1
    assert cases[0].true_label == LoanLabel.GOOD
    assert cases[0].profit == pytest.approx(100.0)
    # NaN financial fields become None
    assert cases[2].total_paid is None
    assert cases[2].profit is None


def test_cases_from_frame_with_custom_columns(logger):
    df = pd.DataFrame({"p": [0.2], "y": [1], "funded": [300.0], "paid": [350.0]})
    columns = CaseColumns(probability="p", label="y", amount="funded", total_paid="paid")

    (case,) = dutls.cases_from_frame(df, columns=columns, logger=logger)

    assert case.true_label == LoanLabel.BAD
    assert case.profit == pytest.approx(50.0)


def test_cases_from_frame_missing_columns(loans_df, logger):
    with pytest.raises(InvalidInput, match="label"):
        dutls.cases_from_frame(loans_df, logger=logger)


def test_cases_from_frame_missing_labels(logger):
    df = pd.DataFrame({"pred_proba": [0.2], "label": [np.nan], "loan_amnt": [1.0], "total_pymnt": [1.0]})

    with pytest.raises(InvalidInput):
        dutls.cases_from_frame(df, logger=logger)


@pytest.mark.parametrize("suffix", [".csv", ".feather"])
def test_save_and_load_df(loans_df, tmp_path, suffix, logger):
    path = tmp_path / "nested" / f"scored{suffix}"

    dutls.save_df(loans_df, path, logger=logger)
    loaded = dutls.load_df(path, logger=logger)

    assert path.exists()
    assert loaded.shape == loans_df.shape
    assert loaded["loan_status"].tolist() == loans_df["loan_status"].tolist()
    assert math.isnan(loaded.loc[3, "total_pymnt"])


@pytest.fixture
def fitted_model():
    X = pd.DataFrame({"int_rate": [5.0, 7.0, 9.0, 18.0, 22.0, 25.0], "dti": [5, 8, 10, 25, 30, 35]})
    y = np.array([0, 0, 0, 1, 1, 1])
    return LogisticRegression().fit(X, y)


def test_infer_uses_model_features(fitted_model, logger):
    X_test = pd.DataFrame({"dti": [6, 33], "int_rate": [6.0, 24.0], "loan_amnt": [1000.0, 2000.0]})

    probabilities = dutls.infer(fitted_model, X_test, logger=logger)

    assert probabilities.shape == (2,)
    assert ((probabilities >= 0) & (probabilities <= 1)).all()
    assert probabilities[0] < probabilities[1]


def test_infer_missing_features(fitted_model, logger):
    with pytest.raises(InvalidInput):
        dutls.infer(fitted_model, pd.DataFrame({"int_rate": [6.0]}), logger=logger)


def test_model_roundtrip(fitted_model, tmp_path, logger):
    import joblib

    path = tmp_path / "logreg_model.joblib"
    joblib.dump(fitted_model, path)

    model = dutls.load_model(path, logger=logger)

    assert list(model.feature_names_in_) == ["int_rate", "dti"]


@pytest.fixture
def array_model():
    X = np.array([[5.0], [7.0], [22.0], [25.0]])
    return LogisticRegression().fit(X, [0, 0, 1, 1])


def test_infer_array_model_ignores_case_columns(array_model, logger):
    X_test = pd.DataFrame(
        {
            "int_rate": [6.0, 24.0],
            "label": [1, 0],
            "loan_amnt": [1000.0, 2000.0],
            "total_pymnt": [1100.0, 0.0],
            "pred_proba": [0.9, 0.1],
        }
    )

    probabilities = dutls.infer(array_model, X_test, logger=logger)

    expected = array_model.predict_proba(np.array([[6.0], [24.0]]))[:, 1]
    assert probabilities == pytest.approx(expected)


def test_infer_array_model_width_mismatch(array_model, logger):
    X_test = pd.DataFrame({"int_rate": [6.0], "dti": [10.0], "label": [0]})

    with pytest.raises(InvalidInput, match="expects 1 unnamed features"):
        dutls.infer(array_model, X_test, logger=logger)


def test_cases_from_frame_labels_are_loan_labels(loans_df, logger):
    cases = dutls.cases_from_frame(dutls.encode_loan_status(loans_df, logger=logger), logger=logger)

    assert all(type(case.true_label) is LoanLabel for case in cases)


def test_cases_from_frame_rejects_unknown_labels(logger):
    df = pd.DataFrame({"pred_proba": [0.2], "label": [2], "loan_amnt": [1.0], "total_pymnt": [1.0]})

    with pytest.raises(InvalidInput, match="other than 0 and 1"):
        dutls.cases_from_frame(df, logger=logger)
