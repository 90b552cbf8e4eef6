"""End-to-end report pipeline.

Clean → Partition → Train×N → Compare → Select → Evaluate, strictly in
that order; any data error stops the run before results are produced.
"""

import pandas as pd
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .comparison import compare_models
from .config import ComparisonReport, EvaluationResult, ReportConfig
from .eda import summarize_dataset
from .errors import DataError, SchemaMismatchError
from .evaluation import evaluate_model, predict_evaluation
from .models import MODEL_SPECS, TrainedModel, train_models
from .preprocessing import clean_dataset, load_dataset, split_dataset
from .utils import get_logger

logger = get_logger(__name__)


@dataclass
class PipelineResult:
    """Everything the report and the web app need from one run."""
    config: ReportConfig
    feature_columns: list
    summaries: Dict[str, Dict[str, Any]]
    models: Dict[str, TrainedModel]
    comparison: ComparisonReport
    evaluation: EvaluationResult
    evaluation_predictions: Optional[pd.Series] = None
    feature_importance: Dict[str, float] = field(default_factory=dict)

    @property
    def best_model(self) -> TrainedModel:
        return self.models[self.comparison.selected]


def run_pipeline(training_df: pd.DataFrame, evaluation_df: Optional[pd.DataFrame] = None,
                 config: Optional[ReportConfig] = None,
                 method_options: Optional[Dict[str, Dict[str, Any]]] = None) -> PipelineResult:
    """Run the full workflow on already loaded data frames."""
    config = config or ReportConfig()
    errors = config.validate(known_methods=MODEL_SPECS)
    if errors:
        raise DataError("; ".join(errors))

    logger.info(f"Starting report: label={config.label_column}, seed={config.seed}, "
                f"folds={config.fold_count}, split={config.train_fraction}")

    cleaned = clean_dataset(training_df, config.label_column, drop_leading=config.drop_leading)
    feature_columns = [c for c in cleaned.columns if c != config.label_column]
    aligned = None
    if evaluation_df is not None:
        aligned = clean_dataset(evaluation_df, config.label_column, is_labeled=False,
                                reference_features=feature_columns)
        if list(aligned.columns) != feature_columns:
            raise SchemaMismatchError(feature_columns, aligned.columns)

    train, test = split_dataset(cleaned, config.label_column, config.train_fraction, config.seed)

    summaries = {
        'raw': summarize_dataset(training_df, config.label_column),
        'cleaned': summarize_dataset(cleaned, config.label_column),
        'training': summarize_dataset(train, config.label_column),
        'testing': summarize_dataset(test, config.label_column),
    }

    models, cv_results, failures = train_models(train, config, method_options)
    comparison = compare_models(cv_results, config.confidence_level, failures)

    best = models[comparison.selected]
    evaluation = evaluate_model(best, test, config.label_column, config.evaluation_confidence_level)

    evaluation_predictions = None
    if aligned is not None:
        summaries['evaluation'] = summarize_dataset(aligned)
        evaluation_predictions = predict_evaluation(best, aligned)

    return PipelineResult(
        config=config,
        feature_columns=feature_columns,
        summaries=summaries,
        models=models,
        comparison=comparison,
        evaluation=evaluation,
        evaluation_predictions=evaluation_predictions,
        feature_importance=best.feature_importance(),
    )


def run_pipeline_from_files(training_path: str, evaluation_path: Optional[str] = None,
                            config: Optional[ReportConfig] = None) -> PipelineResult:
    """Load the CSV exports and run the full workflow."""
    training_df = load_dataset(training_path)
    evaluation_df = load_dataset(evaluation_path) if evaluation_path else None
    return run_pipeline(training_df, evaluation_df, config)


# ---------------------------------------------------------------------------
# Features implemented in this module
# - PipelineResult bundling models, comparison, evaluation and summaries
# - run_pipeline: validated configuration, linear stage ordering
# - run_pipeline_from_files: CSV entry point for the app and the CLI
# ---------------------------------------------------------------------------
