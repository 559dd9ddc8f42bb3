# LendingClub column names of the held-out evaluation partition
PROBABILITY = "pred_proba"
TARGET = "label"
AMOUNT = "loan_amnt"
TOTAL_PAID = "total_pymnt"
LOAN_STATUS = "loan_status"

GOOD_STATUSES = [
    "Fully Paid",
    "Does not meet the credit policy. Status:Fully Paid",
]
BAD_STATUSES = [
    "Charged Off",
    "Default",
    "Does not meet the credit policy. Status:Charged Off",
]

RESULT_COLUMNS = [
    "threshold",
    "overall_accuracy",
    "bad_loan_accuracy",
    "good_loan_accuracy",
    "disbursed_count",
    "total_profit",
]

CONFUSION_COLUMNS = [
    "pred_good_true_good",
    "pred_good_true_bad",
    "pred_bad_true_good",
    "pred_bad_true_bad",
]
