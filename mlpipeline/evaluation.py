from typing import Any, Dict
import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score, confusion_matrix, f1_score, precision_score, recall_score, roc_auc_score
)


def evaluate_model(model: Any, X_test: pd.DataFrame, y_test: pd.Series) -> Dict[str, Any]:
    """
    Score a fitted classifier on held-out data.

    Precision, recall and F1 use the binary average for two-class targets
    and the support-weighted average otherwise. ``roc_auc`` is included for
    binary targets when the model exposes ``predict_proba`` and both classes
    occur in ``y_test``.

    Returns:
        Dict[str, Any]: JSON-safe metrics
    """
    if len(X_test) == 0:
        raise ValueError("Cannot evaluate a model on an empty test set")

    y_pred = model.predict(X_test)
    classes = getattr(model, 'classes_', None)
    if classes is None:
        classes = np.unique(np.concatenate([np.asarray(y_test), np.asarray(y_pred)]))
    binary = len(classes) == 2

    average_kwargs = {'average': 'binary', 'pos_label': classes[1]} if binary else {'average': 'weighted'}
    metrics = {
        'accuracy': float(accuracy_score(y_test, y_pred)),
        'precision': float(precision_score(y_test, y_pred, zero_division=0, **average_kwargs)),
        'recall': float(recall_score(y_test, y_pred, zero_division=0, **average_kwargs)),
        'f1': float(f1_score(y_test, y_pred, zero_division=0, **average_kwargs)),
        'confusion_matrix': confusion_matrix(y_test, y_pred, labels=classes).tolist(),
        'support': int(len(y_test))
    }

    if binary and hasattr(model, 'predict_proba') and pd.Series(y_test).nunique() == 2:
        probabilities = model.predict_proba(X_test)[:, 1]
        metrics['roc_auc'] = float(roc_auc_score(y_test, probabilities))

    return metrics


def meets_threshold(metrics: Dict[str, Any], threshold: float, metric: str = "accuracy") -> bool:
    """Whether a metric reaches the promotion threshold."""
    if metric not in metrics:
        raise ValueError(f"Metric '{metric}' not found in {sorted(metrics)}")
    return float(metrics[metric]) >= threshold
