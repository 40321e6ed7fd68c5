"""Classifier-quality metrics over recorded outcomes.

Binarization (evaluation only, differs from the training labels in outcomes.py):
- predicted positive: predicted_success_score > 0.5
- actual positive: actual_outcome == "success" (partial_success is negative)
"""

from typing import List, Sequence

from src.models.models import MetricsReport, Outcome


CLASSIFICATION_THRESHOLD = 0.5
DEFAULT_RECENT_WINDOW = 100


def _predicted_positive(outcome: Outcome) -> bool:
    return outcome.predicted_success_score > CLASSIFICATION_THRESHOLD


def _actual_positive(outcome: Outcome) -> bool:
    return outcome.actual_outcome == "success"


def _accuracy(outcomes: Sequence[Outcome]) -> float:
    if not outcomes:
        return 0.0
    correct = sum(1 for o in outcomes if _predicted_positive(o) == _actual_positive(o))
    return correct / len(outcomes)


def evaluate_outcomes(outcomes: Sequence[Outcome], recent_window: int = DEFAULT_RECENT_WINDOW) -> MetricsReport:
    """Compute accuracy, precision, recall, F1 and recent accuracy.

    Only outcomes carrying a predicted score are evaluated. Outcomes are
    ordered newest first before the recent window is taken. When no more than
    recent_window outcomes qualify, the oldest one is left out so the recent
    subset stays strictly smaller than the evaluated window.

    Args:
        outcomes: Recorded outcomes, any order.
        recent_window: Maximum number of most recent outcomes in recent_accuracy.

    Returns:
        MetricsReport; all zeros when nothing qualifies.
    """
    qualifying: List[Outcome] = sorted(
        (o for o in outcomes if o.predicted_success_score is not None),
        key=lambda o: o.created_at,
        reverse=True,
    )
    total = len(qualifying)
    if total == 0:
        return MetricsReport()

    tp = fp = tn = fn = 0
    for outcome in qualifying:
        predicted = _predicted_positive(outcome)
        actual = _actual_positive(outcome)
        if predicted and actual:
            tp += 1
        elif predicted:
            fp += 1
        elif actual:
            fn += 1
        else:
            tn += 1

    precision = tp / max(1, tp + fp)
    recall = tp / max(1, tp + fn)
    recent_size = recent_window if total > recent_window else max(1, total - 1)

    return MetricsReport(
        accuracy=(tp + tn) / total,
        precision=precision,
        recall=recall,
        f1_score=2 * precision * recall / max(0.001, precision + recall),
        total_predictions=total,
        recent_accuracy=_accuracy(qualifying[:recent_size]),
    )
