import numpy as np
import pytest

from main_config import RANDOM_STATE
from notebooks.logging_config import MyLogger
from loan_report.evaluation.objects import Case, LoanLabel


@pytest.fixture
def logger(tmp_path):
    test_logger = MyLogger(
        label="TEST",
        section_name="Test session",
        file_log_path=tmp_path / "test.log",
        print_to_console=False,
    )
    yield test_logger
    test_logger.close()


@pytest.fixture
def four_cases():
    return [
        Case(0.3, LoanLabel.GOOD, amount=100.0, total_paid=120.0),
        Case(0.6, LoanLabel.BAD, amount=200.0, total_paid=50.0),
        Case(0.8, LoanLabel.BAD, amount=150.0, total_paid=0.0),
        Case(0.4, LoanLabel.GOOD, amount=80.0, total_paid=90.0),
    ]


@pytest.fixture
def synthetic_cases():
    """Bad loans drawn with higher default probabilities than good ones."""
    rng = np.random.default_rng(RANDOM_STATE)
    n = 400

    labels = rng.integers(0, 2, size=n)
    probabilities = np.clip(rng.normal(0.35 + 0.3 * labels, 0.15), 0.001, 0.999)
    amounts = rng.uniform(1_000, 35_000, size=n).round(2)
    paid = np.where(labels == 1, amounts * rng.uniform(0.0, 0.8, size=n), amounts * 1.15).round(2)

    return [
        Case(float(p), LoanLabel(int(y)), amount=float(a), total_paid=float(t))
        for p, y, a, t in zip(probabilities, labels, amounts, paid)
    ]
