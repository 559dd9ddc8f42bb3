from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from notebooks import constants


class LoanLabel(IntEnum):
    GOOD = 0  # fully paid
    BAD = 1  # charged off or defaulted


ConfusionKey = Tuple[LoanLabel, LoanLabel]  # (predicted, true)


@dataclass(frozen=True)
class Case:
    predicted_probability: float
    true_label: LoanLabel
    amount: Optional[float] = None
    total_paid: Optional[float] = None

    @property
    def profit(self) -> Optional[float]:
        if self.amount is None or self.total_paid is None:
            return None
        return self.total_paid - self.amount


@dataclass(frozen=True)
class ThresholdResult:
    threshold: float
    confusion_counts: Mapping[ConfusionKey, int]
    overall_accuracy: float
    bad_loan_accuracy: float
    good_loan_accuracy: float
    disbursed_count: int
    total_profit: float

    def __post_init__(self):
        # read-only view so a finished result cannot be altered
        if not isinstance(self.confusion_counts, MappingProxyType):
            object.__setattr__(
                self, "confusion_counts", MappingProxyType(dict(self.confusion_counts))
            )

    def count(self, predicted: LoanLabel, true: LoanLabel) -> int:
        return self.confusion_counts[(LoanLabel(predicted), LoanLabel(true))]

    def as_row(self) -> dict:
        return {
            "threshold": self.threshold,
            "overall_accuracy": self.overall_accuracy,
            "bad_loan_accuracy": self.bad_loan_accuracy,
            "good_loan_accuracy": self.good_loan_accuracy,
            "disbursed_count": self.disbursed_count,
            "total_profit": self.total_profit,
            "pred_good_true_good": self.count(LoanLabel.GOOD, LoanLabel.GOOD),
            "pred_good_true_bad": self.count(LoanLabel.GOOD, LoanLabel.BAD),
            "pred_bad_true_good": self.count(LoanLabel.BAD, LoanLabel.GOOD),
            "pred_bad_true_bad": self.count(LoanLabel.BAD, LoanLabel.BAD),
        }


@dataclass(frozen=True)
class CaseColumns:
    """Column names the evaluation table is read with."""

    probability: str = constants.PROBABILITY
    label: str = constants.TARGET
    amount: str = constants.AMOUNT
    total_paid: str = constants.TOTAL_PAID
    loan_status: str = constants.LOAN_STATUS


@dataclass(frozen=True)
class MissingFinancials:
    total_cases: int
    missing_amount: int
    missing_total_paid: int
    missing_any: int

    @property
    def missing_rate(self) -> float:
        return self.missing_any / self.total_cases if self.total_cases else 0.0
