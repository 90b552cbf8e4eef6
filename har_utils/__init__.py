"""
Weight-lifting activity classification report.
Cleans the sensor exports, cross-validates four sklearn classifiers on shared
folds, compares them statistically and evaluates the best one on a holdout.
"""

from .config import ReportConfig, CVResult, ComparisonReport, EvaluationResult, calculate_split_percentages
from .errors import PipelineError, DataError, SchemaMismatchError, TrainingError
from .preprocessing import load_dataset, clean_dataset, propagate_schema, split_dataset
from .models import MODEL_SPECS, TrainedModel, fit_model, make_folds, train_models
from .comparison import compare_models
from .evaluation import evaluate_model, predict_evaluation
from .pipeline import PipelineResult, run_pipeline, run_pipeline_from_files
from .report import render_report, write_report
from .utils import get_logger, safe_json_convert, validate_file_upload

__all__ = [
    'ReportConfig',
    'CVResult',
    'ComparisonReport',
    'EvaluationResult',
    'calculate_split_percentages',
    'PipelineError',
    'DataError',
    'SchemaMismatchError',
    'TrainingError',
    'load_dataset',
    'clean_dataset',
    'propagate_schema',
    'split_dataset',
    'MODEL_SPECS',
    'TrainedModel',
    'fit_model',
    'make_folds',
    'train_models',
    'compare_models',
    'evaluate_model',
    'predict_evaluation',
    'PipelineResult',
    'run_pipeline',
    'run_pipeline_from_files',
    'render_report',
    'write_report',
    'get_logger',
    'safe_json_convert',
    'validate_file_upload'
]
