class LoanReportError(Exception):
    """Base class for errors raised by the threshold evaluation."""


class InvalidInput(LoanReportError, ValueError):
    """
    The evaluation request as a whole is malformed (no cases, no thresholds,
    a threshold or probability out of range, an unknown label). Raised before
    any threshold is evaluated.
    """


class UndefinedMetric(LoanReportError, ArithmeticError):
    """
    A ratio metric has a zero denominator for one threshold. The evaluator
    catches it and reports the metric as NaN.
    """

    def __init__(self, metric: str, threshold: float):
        self.metric = metric
        self.threshold = threshold
        super().__init__(f"'{metric}' is undefined at threshold {threshold}: zero denominator")
