from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
from sklearn.metrics import accuracy_score, confusion_matrix, precision_recall_fscore_support

from gestkit.exceptions import DatasetError, DimensionMismatchError
from gestkit.objects.classification_data import NULL_CLASS_LABEL


@dataclass
class ClassificationTestResults:
    """
    Metrics from testing a classifier.

    Rows of confusion_matrix are true labels and columns predicted labels,
    both ordered as confusion_labels. When null rejection was enabled the
    first label is the null class label, so rejected samples show up in
    the first column.
    """
    num_test_samples: int
    accuracy: float
    precision: Dict[int, float]
    recall: Dict[int, float]
    f_measure: Dict[int, float]
    confusion_labels: List[int]
    confusion_matrix: np.ndarray
    rejection_rate: float = 0.0
    predictions: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int), repr=False)


@dataclass
class RegressionTestResults:
    """Metrics from testing a regression module."""
    num_test_samples: int
    total_squared_error: float
    rms_error: float
    rms_error_per_dimension: np.ndarray
    outputs: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)), repr=False)


def evaluate_classification(y_true: Sequence[int], y_pred: Sequence[int], class_labels: Sequence[int],
                            include_null_class: bool = False) -> ClassificationTestResults:
    """
    Compute accuracy, per-class precision/recall/F-measure and the confusion matrix.

    A rejected prediction (null class label) always counts as wrong.

    Args:
        y_true: True class labels.
        y_pred: Predicted class labels.
        class_labels: The labels the classifier was trained on.
        include_null_class: Add the null class label as the first confusion matrix label.
    """
    y_true = np.asarray(y_true, dtype=int)
    y_pred = np.asarray(y_pred, dtype=int)
    if len(y_true) == 0:
        raise DatasetError("Cannot evaluate on an empty set of predictions")
    if len(y_true) != len(y_pred):
        raise DimensionMismatchError(f"Got {len(y_true)} true labels but {len(y_pred)} predictions")

    class_labels = [int(label) for label in class_labels]
    confusion_labels = ([NULL_CLASS_LABEL] if include_null_class else []) + class_labels
    # labels only seen in the test data still need a row
    for label in np.unique(np.concatenate([y_true, y_pred])):
        if int(label) not in confusion_labels:
            confusion_labels.append(int(label))

    precision, recall, f_measure, _ = precision_recall_fscore_support(
        y_true, y_pred, labels=class_labels, average=None, zero_division=0,
    )

    return ClassificationTestResults(
        num_test_samples=len(y_true),
        accuracy=float(accuracy_score(y_true, y_pred)),
        precision={label: float(p) for label, p in zip(class_labels, precision)},
        recall={label: float(r) for label, r in zip(class_labels, recall)},
        f_measure={label: float(f) for label, f in zip(class_labels, f_measure)},
        confusion_labels=confusion_labels,
        confusion_matrix=confusion_matrix(y_true, y_pred, labels=confusion_labels),
        rejection_rate=float(np.mean(y_pred == NULL_CLASS_LABEL)),
        predictions=y_pred,
    )


def evaluate_regression(outputs: np.ndarray, targets: np.ndarray) -> RegressionTestResults:
    """
    Total squared error over every sample and dimension, and
    RMS error = sqrt(total squared error / number of samples).
    """
    outputs = np.atleast_2d(np.asarray(outputs, dtype=float))
    targets = np.atleast_2d(np.asarray(targets, dtype=float))
    if outputs.shape != targets.shape:
        raise DimensionMismatchError(f"Outputs have shape {outputs.shape}, targets {targets.shape}")
    n_samples = outputs.shape[0]
    if n_samples == 0:
        raise DatasetError("Cannot evaluate on an empty set of predictions")

    squared_errors = (outputs - targets) ** 2
    total_squared_error = float(np.sum(squared_errors))
    return RegressionTestResults(
        num_test_samples=n_samples,
        total_squared_error=total_squared_error,
        rms_error=float(np.sqrt(total_squared_error / n_samples)),
        rms_error_per_dimension=np.sqrt(squared_errors.mean(axis=0)),
        outputs=outputs,
    )
