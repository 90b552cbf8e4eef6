"""Cross-validated training of the candidate classifiers.

Every method is evaluated on the same stratified folds (derived from one
seed) so that per-fold accuracies can be compared pairwise. Each fold and the
final refit draw model randomness from their own seed in a counter-indexed
stream, which keeps results identical whether folds run in parallel or not.
"""

import time
import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from joblib import Parallel, delayed
from sklearn.base import BaseEstimator, clone
from sklearn.discriminant_analysis import LinearDiscriminantAnalysis
from sklearn.ensemble import RandomForestClassifier, GradientBoostingClassifier
from sklearn.metrics import accuracy_score
from sklearn.model_selection import StratifiedKFold
from sklearn.pipeline import Pipeline
from sklearn.tree import DecisionTreeClassifier

from .config import CVResult, ReportConfig
from .errors import DataError, SchemaMismatchError, TrainingError
from .preprocessing import create_preprocessing_steps, split_features
from .utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ModelSpec:
    """A modeling method: estimator factory, defaults and default preprocessing."""
    method: str
    model_id: str
    factory: Callable[..., BaseEstimator]
    defaults: Dict[str, Any] = field(default_factory=dict)
    preprocessing: Tuple[str, ...] = ()

    def build(self, preprocessing: Optional[Sequence[str]] = None, **options) -> Pipeline:
        """Unfitted pipeline of preprocessing steps followed by the model."""
        steps = create_preprocessing_steps(self.preprocessing if preprocessing is None else preprocessing)
        try:
            estimator = self.factory(**{**self.defaults, **options})
        except TypeError as e:
            raise TrainingError(f"Invalid options {sorted(options)}: {e}", self.model_id) from e
        steps.append(('model', estimator))
        return Pipeline(steps)


MODEL_SPECS: Dict[str, ModelSpec] = {
    'rpart': ModelSpec('rpart', 'DecisionTree', DecisionTreeClassifier),
    'rf': ModelSpec('rf', 'RandomForest', RandomForestClassifier, {'n_estimators': 100}),
    'gbm': ModelSpec('gbm', 'GradientBoosting', GradientBoostingClassifier, {'n_estimators': 100}),
    'lda': ModelSpec('lda', 'LinearDiscriminantAnalysis', LinearDiscriminantAnalysis,
                     preprocessing=('center', 'scale')),
}


def get_model_spec(method: str) -> ModelSpec:
    if method not in MODEL_SPECS:
        raise DataError(f"Unknown method '{method}'. Must be one of {list(MODEL_SPECS)}")
    return MODEL_SPECS[method]


class TrainedModel:
    """A fitted pipeline plus the exact feature list it expects."""

    def __init__(self, model_id: str, method: str, pipeline: Pipeline,
                 feature_names: Sequence[str], classes: Sequence[str]):
        self.model_id = model_id
        self.method = method
        self.pipeline = pipeline
        self.feature_names = list(feature_names)
        self.classes = list(classes)

    def __repr__(self) -> str:
        return f"TrainedModel({self.model_id!r}, features={len(self.feature_names)}, classes={self.classes})"

    def validate_features(self, X: pd.DataFrame) -> None:
        if list(X.columns) != self.feature_names:
            raise SchemaMismatchError(self.feature_names, X.columns)

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        self.validate_features(X)
        return self.pipeline.predict(X)

    def feature_importance(self) -> Dict[str, float]:
        """Native importances, or mean absolute coefficients for linear models.

        Empty when the model exposes neither.
        """
        model = self.pipeline.named_steps['model']
        if hasattr(model, 'feature_importances_'):
            importances = np.asarray(model.feature_importances_)
        elif hasattr(model, 'coef_'):
            coefs = np.asarray(model.coef_)
            importances = np.mean(np.abs(coefs), axis=0) if coefs.ndim > 1 else np.abs(coefs)
        else:
            return {}

        if len(self.pipeline.steps) > 1:
            names = self.pipeline[:-1].get_feature_names_out(self.feature_names)
        else:
            names = self.feature_names
        return {str(name): float(imp) for name, imp in zip(names, importances)}


def make_folds(labels: pd.Series, fold_count: int = 10, seed: int = 1234) -> List[Tuple[np.ndarray, np.ndarray]]:
    """Stratified, shuffled folds as (train_positions, test_positions) pairs.

    Depends only on the labels and the seed, never on the method.
    """
    splitter = StratifiedKFold(n_splits=fold_count, shuffle=True, random_state=seed)
    try:
        return [(train_idx, test_idx) for train_idx, test_idx
                in splitter.split(np.zeros(len(labels)), np.asarray(labels))]
    except ValueError as e:
        raise TrainingError(f"Cannot build {fold_count} folds: {e}") from e


def fold_seeds(seed: int, fold_count: int) -> List[int]:
    """One seed per fold plus a final one for the full refit."""
    return [int(s) for s in np.random.SeedSequence(seed).generate_state(fold_count + 1)]


def _check_fold_classes(labels: pd.Series, folds, model_id: str) -> None:
    classes = set(labels.unique())
    values = np.asarray(labels)
    for i, (train_idx, _) in enumerate(folds):
        absent = classes - set(values[train_idx])
        if absent:
            raise TrainingError(f"Fold {i + 1} training partition lacks classes {sorted(absent)}", model_id)


def _seeded(pipeline: Pipeline, seed: int) -> Pipeline:
    estimator = clone(pipeline)
    if 'model__random_state' in estimator.get_params():
        estimator.set_params(model__random_state=seed)
    return estimator


def _fit_fold(pipeline: Pipeline, X: pd.DataFrame, y: pd.Series,
              train_idx: np.ndarray, test_idx: np.ndarray, seed: int) -> Tuple[float, float]:
    estimator = _seeded(pipeline, seed)
    start_time = time.perf_counter()
    estimator.fit(X.iloc[train_idx], y.iloc[train_idx])
    elapsed = time.perf_counter() - start_time
    accuracy = accuracy_score(y.iloc[test_idx], estimator.predict(X.iloc[test_idx]))
    return float(accuracy), elapsed


def fit_model(training_data: pd.DataFrame, method: str, label_column: str = 'classe',
              preprocessing: Optional[Sequence[str]] = None, fold_count: int = 10,
              seed: int = 1234, n_jobs: int = 1, **method_options) -> Tuple[TrainedModel, CVResult]:
    """Cross-validate ``method`` on ``training_data`` and refit on all of it.

    Raises TrainingError when a fold lacks a class or the method fails to fit.
    """
    spec = get_model_spec(method)
    X, y = split_features(training_data, label_column)
    if X.shape[1] == 0:
        raise DataError("Training data has no feature columns")

    pipeline = spec.build(preprocessing, **method_options)
    folds = make_folds(y, fold_count, seed)
    _check_fold_classes(y, folds, spec.model_id)
    seeds = fold_seeds(seed, fold_count)

    logger.info(f"Training {spec.model_id} with {fold_count}-fold cross-validation")
    start_time = time.perf_counter()
    try:
        with Parallel(n_jobs=n_jobs, prefer='threads') as parallel:
            outcomes = parallel(
                delayed(_fit_fold)(pipeline, X, y, train_idx, test_idx, seeds[i])
                for i, (train_idx, test_idx) in enumerate(folds)
            )

        final = _seeded(pipeline, seeds[-1])
        final_start = time.perf_counter()
        final.fit(X, y)
        final_time = time.perf_counter() - final_start
    except (ValueError, ArithmeticError, np.linalg.LinAlgError) as e:
        raise TrainingError(f"Fitting failed: {e}", spec.model_id) from e
    total_time = time.perf_counter() - start_time

    cv_result = CVResult(
        model_id=spec.model_id,
        method=method,
        fold_accuracies=tuple(acc for acc, _ in outcomes),
        fold_times=tuple(round(t, 6) for _, t in outcomes),
        total_time=total_time,
        final_time=final_time,
    )
    trained = TrainedModel(spec.model_id, method, final, X.columns, final.classes_)
    logger.info(f"{spec.model_id} completed - Accuracy: {cv_result.mean:.4f} "
                f"(sd {cv_result.std:.4f}), Time: {total_time:.2f}s")
    return trained, cv_result


def _train_one(training_data: pd.DataFrame, method: str, config: ReportConfig,
               options: Dict[str, Any]):
    try:
        model, cv_result = fit_model(
            training_data, method, config.label_column,
            fold_count=config.fold_count, seed=config.seed, n_jobs=1, **options
        )
    except TrainingError as e:
        logger.error(f"Error training {method}: {e}")
        return method, None, None, str(e)
    return method, model, cv_result, None


def train_models(training_data: pd.DataFrame, config: ReportConfig,
                 method_options: Optional[Dict[str, Dict[str, Any]]] = None
                 ) -> Tuple[Dict[str, TrainedModel], Dict[str, CVResult], Dict[str, str]]:
    """Train every configured method on a worker pool and wait for all.

    Returns (models, cv_results, failures) keyed by model id. A failing
    method lands in ``failures``; if every method fails, TrainingError.
    """
    method_options = method_options or {}
    specs = [get_model_spec(m) for m in config.methods]
    workers = min(config.worker_count, len(specs))
    logger.info(f"Training {len(specs)} models on {workers} workers")

    # the pool is torn down when the block exits, on success or error
    with Parallel(n_jobs=workers, prefer='threads') as parallel:
        outcomes = parallel(
            delayed(_train_one)(training_data, spec.method, config, method_options.get(spec.method, {}))
            for spec in specs
        )

    models, cv_results, failures = {}, {}, {}
    for method, model, cv_result, error in outcomes:
        model_id = MODEL_SPECS[method].model_id
        if error is not None:
            failures[model_id] = error
            continue
        models[model_id] = model
        cv_results[model_id] = cv_result

    if not cv_results:
        raise TrainingError(f"No models trained successfully: {failures}")
    return models, cv_results, failures


# ---------------------------------------------------------------------------
# Features implemented in this module
# - Registry of modeling methods (rpart, rf, gbm, lda) with defaults
# - TrainedModel wrapper: schema-checked predict, feature importance
# - Seeded stratified folds shared by every method, per-fold seed stream
# - fit_model: k-fold CV with optional parallel folds, then full refit
# - train_models: independent model fits on a bounded worker pool
# ---------------------------------------------------------------------------
