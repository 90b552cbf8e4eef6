"""Holdout evaluation of the selected model and scoring of unlabeled data."""

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.metrics import cohen_kappa_score, confusion_matrix

from .config import EvaluationResult
from .errors import DataError
from .models import TrainedModel
from .preprocessing import split_features
from .utils import get_logger

logger = get_logger(__name__)


def _ratio(numerator: float, denominator: float) -> float:
    return float(numerator / denominator) if denominator else float('nan')


def class_statistics(matrix: pd.DataFrame) -> pd.DataFrame:
    """Per-class rates from a prediction × reference count table."""
    values = matrix.to_numpy()
    total = values.sum()
    rows = []
    for i, cls in enumerate(matrix.columns):
        tp = values[i, i]
        fn = values[:, i].sum() - tp
        fp = values[i, :].sum() - tp
        tn = total - tp - fn - fp
        sensitivity = _ratio(tp, tp + fn)
        specificity = _ratio(tn, tn + fp)
        rows.append({
            'Class': cls,
            'Sensitivity': sensitivity,
            'Specificity': specificity,
            'Precision': _ratio(tp, tp + fp),
            'Prevalence': _ratio(tp + fn, total),
            'Balanced_Accuracy': (sensitivity + specificity) / 2,
        })
    return pd.DataFrame(rows).set_index('Class').round(5)


def evaluate_model(model: TrainedModel, test_subset: pd.DataFrame, label_column: str = 'classe',
                   confidence_level: float = 0.95) -> EvaluationResult:
    """Predict the testing subset and summarize agreement with its labels.

    The confusion matrix has predictions as rows and reference labels as
    columns, both in sorted class order. The accuracy interval is the exact
    Clopper-Pearson binomial interval.
    """
    X, y = split_features(test_subset, label_column)
    if len(X) == 0:
        raise DataError("Testing subset is empty")
    model.validate_features(X)

    predictions = pd.Series(model.predict(X), index=X.index, name='prediction')
    classes = sorted(set(model.classes) | set(y.astype(str)))
    counts = confusion_matrix(y.astype(str), predictions.astype(str), labels=classes).T
    matrix = pd.DataFrame(
        counts,
        index=pd.Index(classes, name='Prediction'),
        columns=pd.Index(classes, name='Reference'),
    )

    total = int(counts.sum())
    correct = int(np.trace(counts))
    accuracy = correct / total
    interval = stats.binomtest(correct, total).proportion_ci(
        confidence_level=confidence_level, method='exact'
    )
    no_information_rate = float(y.value_counts(normalize=True).max())
    p_value = stats.binomtest(correct, total, p=no_information_rate, alternative='greater').pvalue
    kappa = cohen_kappa_score(y.astype(str), predictions.astype(str), labels=classes)

    logger.info(f"{model.model_id} holdout accuracy: {accuracy:.4f} "
                f"({total - correct} of {total} misclassified)")
    return EvaluationResult(
        model_id=model.model_id,
        predictions=predictions,
        confusion_matrix=matrix,
        accuracy=accuracy,
        confidence_interval=(float(interval.low), float(interval.high)),
        confidence_level=confidence_level,
        kappa=float(kappa),
        no_information_rate=no_information_rate,
        p_value_vs_nir=float(p_value),
        class_statistics=class_statistics(matrix),
    )


def predict_evaluation(model: TrainedModel, evaluation_data: pd.DataFrame) -> pd.Series:
    """Predict every record of the schema-aligned, unlabeled evaluation data."""
    if len(evaluation_data) == 0:
        raise DataError("Evaluation dataset is empty")
    predictions = pd.Series(model.predict(evaluation_data), index=evaluation_data.index, name='prediction')
    logger.info(f"Predicted {len(predictions)} evaluation records with {model.model_id}")
    return predictions


# ---------------------------------------------------------------------------
# Features implemented in this module
# - Schema validation before any prediction
# - Confusion matrix in canonical class order (prediction × reference)
# - Accuracy with exact binomial interval, kappa, no-information rate test
# - Per-class sensitivity, specificity, precision, balanced accuracy
# - Predictions for the unlabeled evaluation dataset
# ---------------------------------------------------------------------------
