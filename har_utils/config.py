"""Configuration and typed result structures for the activity report."""

import html
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Optional, Tuple, Any, Iterable, Mapping

import numpy as np
import pandas as pd


DEFAULT_METHODS: Tuple[str, ...] = ('rpart', 'rf', 'gbm', 'lda')


@dataclass
class ReportConfig:
    """Configuration object for cleaning, training and evaluation."""
    label_column: str = 'classe'
    seed: int = 1234
    fold_count: int = 10
    train_fraction: float = 0.8
    confidence_level: float = 0.995
    evaluation_confidence_level: float = 0.95
    n_jobs: Optional[int] = None
    methods: Tuple[str, ...] = DEFAULT_METHODS
    drop_leading: int = 7

    @property
    def worker_count(self) -> int:
        """Size of the training worker pool; one per core unless set."""
        if self.n_jobs is not None and self.n_jobs > 0:
            return self.n_jobs
        return os.cpu_count() or 1

    def validate(self, known_methods: Optional[Iterable[str]] = None) -> List[str]:
        """Return a list of configuration problems (empty when valid)."""
        errors = []
        if not self.label_column:
            errors.append("Label column must be provided")
        if not 0 < self.train_fraction < 1:
            errors.append("Train fraction must be between 0 and 1")
        if self.fold_count < 2:
            errors.append("Fold count must be at least 2")
        for name, level in (('Confidence level', self.confidence_level),
                            ('Evaluation confidence level', self.evaluation_confidence_level)):
            if not 0 < level < 1:
                errors.append(f"{name} must be between 0 and 1")
        if self.drop_leading < 0:
            errors.append("Number of leading columns to drop cannot be negative")
        if not self.methods:
            errors.append("At least one modeling method is required")
        if known_methods is not None:
            known = set(known_methods)
            unknown = [m for m in self.methods if m not in known]
            if unknown:
                errors.append(f"Unknown methods {unknown}. Must be among {sorted(known)}")
        return errors


@dataclass(frozen=True)
class CVResult:
    """Per-fold accuracies and timings of one cross-validated model."""
    model_id: str
    method: str
    fold_accuracies: Tuple[float, ...]
    fold_times: Tuple[float, ...] = ()
    total_time: float = 0.0
    final_time: float = 0.0

    @property
    def fold_count(self) -> int:
        return len(self.fold_accuracies)

    @property
    def mean(self) -> float:
        return float(np.mean(self.fold_accuracies))

    @property
    def std(self) -> float:
        # sample standard deviation; a single fold has no spread
        if self.fold_count < 2:
            return 0.0
        return float(np.std(self.fold_accuracies, ddof=1))

    def summary(self) -> Dict[str, Any]:
        return {
            'Model': self.model_id,
            'Method': self.method,
            'Accuracy_Mean': round(self.mean, 5),
            'Accuracy_SD': round(self.std, 5),
            'Accuracy_Min': round(float(np.min(self.fold_accuracies)), 5),
            'Accuracy_Max': round(float(np.max(self.fold_accuracies)), 5),
            'Total_Time': round(self.total_time, 3),
            'Final_Fit_Time': round(self.final_time, 3),
        }


@dataclass(frozen=True)
class PairwiseComparison:
    """Paired accuracy differences between two models (``model_a - model_b``)."""
    model_a: str
    model_b: str
    differences: Tuple[float, ...]
    confidence_level: float
    mean_difference: float
    lower: Optional[float] = None
    upper: Optional[float] = None
    p_value: Optional[float] = None
    computable: bool = True
    note: str = ''

    def as_row(self) -> Dict[str, Any]:
        return {
            'Comparison': f'{self.model_a} - {self.model_b}',
            'Mean_Difference': round(self.mean_difference, 5),
            'Lower': None if self.lower is None else round(self.lower, 5),
            'Upper': None if self.upper is None else round(self.upper, 5),
            'Adjusted_P_Value': None if self.p_value is None else float(f'{self.p_value:.4g}'),
            'Note': self.note or ('' if self.computable else 'not computable'),
        }


@dataclass(frozen=True)
class TTestSummary:
    """Paired t-test between the two best-ranked models."""
    model_a: str
    model_b: str
    statistic: Optional[float]
    p_value: Optional[float]
    df: int
    computable: bool = True
    note: str = ''


@dataclass(frozen=True)
class ComparisonReport:
    """Ranked cross-validation results plus pairwise statistics.

    Created once after all models finish training; never mutated.
    """
    results: Mapping[str, CVResult]
    ranking: Tuple[str, ...]
    pairwise: Tuple[PairwiseComparison, ...]
    top_two: Optional[TTestSummary]
    confidence_level: float
    failures: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'results', MappingProxyType(dict(self.results)))
        object.__setattr__(self, 'failures', MappingProxyType(dict(self.failures)))

    @property
    def selected(self) -> str:
        return self.ranking[0]

    @property
    def complete(self) -> bool:
        return not self.failures

    def summary_frame(self) -> pd.DataFrame:
        rows = [self.results[name].summary() for name in self.ranking]
        return pd.DataFrame(rows).set_index('Model')

    def pairwise_frame(self) -> pd.DataFrame:
        return pd.DataFrame([p.as_row() for p in self.pairwise])

    def fold_frame(self) -> pd.DataFrame:
        """Per-fold accuracies, one column per model in rank order."""
        return pd.DataFrame({name: list(self.results[name].fold_accuracies)
                             for name in self.ranking})


@dataclass
class EvaluationResult:
    """Held-out evaluation of a single trained model."""
    model_id: str
    predictions: pd.Series
    confusion_matrix: pd.DataFrame
    accuracy: float
    confidence_interval: Tuple[float, float]
    confidence_level: float
    kappa: float
    no_information_rate: float
    p_value_vs_nir: float
    class_statistics: pd.DataFrame

    @property
    def misclassified(self) -> int:
        values = self.confusion_matrix.to_numpy()
        return int(values.sum() - np.trace(values))

    def overall_statistics(self) -> Dict[str, Any]:
        return {
            'Accuracy': round(self.accuracy, 5),
            f'CI_Lower_{int(self.confidence_level * 100)}': round(self.confidence_interval[0], 5),
            f'CI_Upper_{int(self.confidence_level * 100)}': round(self.confidence_interval[1], 5),
            'Kappa': round(self.kappa, 5),
            'No_Information_Rate': round(self.no_information_rate, 5),
            'P_Value_Acc_Greater_NIR': float(f'{self.p_value_vs_nir:.4g}'),
            'Misclassified': self.misclassified,
        }


def generate_table_html(rows: List[Dict], columns: List[str], caption: str = '') -> str:
    """Render a list of records as an escaped HTML table."""
    if not rows or not columns:
        return '<div class="text-center text-gray-500">No data available</div>'

    html_content = '<table class="data-table">'
    if caption:
        html_content += f'<caption>{html.escape(caption)}</caption>'
    html_content += '<thead><tr>'

    for col in columns:
        html_content += f'<th>{html.escape(str(col))}</th>'
    html_content += '</tr></thead><tbody>'

    for row in rows:
        html_content += '<tr>'
        for col in columns:
            value = row.get(col, '') if row else ''
            if value is None or str(value).lower() == 'nan':
                value = ''
            html_content += f'<td>{html.escape(str(value))}</td>'
        html_content += '</tr>'
    html_content += '</tbody></table>'

    return html_content


def frame_to_table_html(frame: pd.DataFrame, caption: str = '', index_label: Optional[str] = None) -> str:
    """Render a DataFrame, index included, through ``generate_table_html``."""
    if frame is None or frame.empty:
        return generate_table_html([], [], caption)
    data = frame.reset_index()
    if index_label:
        data = data.rename(columns={data.columns[0]: index_label})
    data.columns = [str(c) for c in data.columns]
    return generate_table_html(data.to_dict('records'), list(data.columns), caption)


def calculate_split_percentages(split_ratio: float) -> tuple[int, int]:
    """Calculate train/test split percentages."""
    train_percent = int(round(split_ratio * 100))
    test_percent = 100 - train_percent
    return train_percent, test_percent


# ---------------------------------------------------------------------------
# Features implemented in this module
# - ReportConfig dataclass for seeds, folds, split, confidence and workers
# - Frozen result types for cross-validation and pairwise comparisons
# - EvaluationResult with overall holdout statistics
# - HTML-safe table generators for the rendered report
# - Utility to convert split ratio into train/test percentages
# ---------------------------------------------------------------------------
