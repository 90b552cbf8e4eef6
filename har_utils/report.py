"""Render a PipelineResult as a standalone HTML report."""

import html
import pandas as pd
from typing import List

from .charts import (
    create_confusion_matrix_chart,
    create_feature_importance_chart,
    create_fold_accuracy_chart,
    create_pairwise_difference_chart,
)
from .config import calculate_split_percentages, frame_to_table_html, generate_table_html
from .eda import class_balance_frame
from .pipeline import PipelineResult

PLOTLY_CDN = '<script src="https://cdn.plot.ly/plotly-2.35.2.min.js" charset="utf-8"></script>'

STYLE = """
body { font-family: Helvetica, Arial, sans-serif; margin: 2em auto; max-width: 1100px; color: #222; }
.data-table { border-collapse: collapse; margin: 1em 0; }
.data-table th, .data-table td { border: 1px solid #ccc; padding: 4px 10px; text-align: right; }
.data-table th { background: #f2f2f2; }
.data-table caption { font-weight: bold; text-align: left; padding-bottom: 4px; }
.warning { background: #fff3cd; border: 1px solid #ffe08a; padding: 8px 12px; }
.chart-placeholder { color: #888; font-style: italic; }
"""


def _section(title: str, *parts: str) -> str:
    return f'<section><h2>{html.escape(title)}</h2>{"".join(parts)}</section>'


def _paragraph(text: str) -> str:
    return f'<p>{html.escape(text)}</p>'


def _data_section(result: PipelineResult) -> str:
    config = result.config
    raw, cleaned = result.summaries['raw'], result.summaries['cleaned']
    train_percent, test_percent = calculate_split_percentages(config.train_fraction)
    text = (
        f"The training file holds {raw['rows']} records and {raw['cols']} columns. "
        f"Dropping the {config.drop_leading} leading identifier columns, non-numeric columns and "
        f"columns with missing values leaves {len(result.feature_columns)} features plus the "
        f"'{config.label_column}' label. The cleaned data is split {train_percent}/{test_percent} "
        f"stratified on the label (seed {config.seed})."
    )
    balance = class_balance_frame({
        'Cleaned': cleaned,
        'Training': result.summaries['training'],
        'Testing': result.summaries['testing'],
    })
    return _section('Data', _paragraph(text), frame_to_table_html(balance, 'Records per class'))


def _comparison_section(result: PipelineResult) -> str:
    comparison = result.comparison
    parts: List[str] = []
    if not comparison.complete:
        failed = '; '.join(f'{name}: {msg}' for name, msg in comparison.failures.items())
        parts.append(f'<div class="warning">Incomplete comparison. Failed models: {html.escape(failed)}</div>')

    parts.append(_paragraph(
        f"Each model is cross-validated with {result.config.fold_count} folds shared across all models. "
        f"Selected model: {comparison.selected}."
    ))
    parts.append(frame_to_table_html(comparison.summary_frame(), 'Cross-validation accuracy', 'Model'))
    parts.append(create_fold_accuracy_chart(comparison))

    pairwise = comparison.pairwise_frame()
    if not pairwise.empty:
        parts.append(generate_table_html(
            pairwise.to_dict('records'),
            list(pairwise.columns),
            f'Pairwise differences ({round(comparison.confidence_level * 100, 1)}% intervals, '
            f'Bonferroni-adjusted p-values)',
        ))
        parts.append(create_pairwise_difference_chart(comparison))

    top_two = comparison.top_two
    if top_two is not None:
        if top_two.computable:
            parts.append(_paragraph(
                f"Paired t-test {top_two.model_a} vs {top_two.model_b}: "
                f"t = {top_two.statistic:.4f}, df = {top_two.df}, p-value = {top_two.p_value:.4g}."
            ))
        else:
            parts.append(_paragraph(
                f"Paired t-test {top_two.model_a} vs {top_two.model_b}: {top_two.note}."
            ))
    return _section('Model Comparison', *parts)


def _evaluation_section(result: PipelineResult) -> str:
    evaluation = result.evaluation
    overall = pd.DataFrame([evaluation.overall_statistics()])
    parts = [
        _paragraph(
            f"{evaluation.model_id} applied to the {len(evaluation.predictions)} held-out records "
            f"misclassifies {evaluation.misclassified}."
        ),
        frame_to_table_html(evaluation.confusion_matrix, 'Confusion matrix (rows: prediction, columns: reference)',
                            'Prediction'),
        generate_table_html(overall.to_dict('records'), list(overall.columns), 'Overall statistics'),
        frame_to_table_html(evaluation.class_statistics, 'Statistics by class', 'Class'),
        create_confusion_matrix_chart(evaluation),
        create_feature_importance_chart(result.feature_importance, evaluation.model_id),
    ]
    return _section('Out-of-Sample Evaluation', *parts)


def _prediction_section(result: PipelineResult) -> str:
    predictions = result.evaluation_predictions
    if predictions is None:
        return ''
    frame = predictions.to_frame()
    return _section(
        'Evaluation Set Predictions',
        frame_to_table_html(frame, f'Predictions of {result.comparison.selected}', frame.index.name or 'Record'),
    )


def render_report(result: PipelineResult, title: str = 'Weight Lifting Exercise Classification') -> str:
    """Full HTML document with tables and embedded plotly charts."""
    body = ''.join([
        f'<h1>{html.escape(title)}</h1>',
        _data_section(result),
        _comparison_section(result),
        _evaluation_section(result),
        _prediction_section(result),
    ])
    return (
        '<!DOCTYPE html><html><head><meta charset="utf-8">'
        f'<title>{html.escape(title)}</title><style>{STYLE}</style>{PLOTLY_CDN}</head>'
        f'<body>{body}</body></html>'
    )


def write_report(result: PipelineResult, path: str, **kwargs) -> str:
    with open(path, 'w', encoding='utf-8') as f:
        f.write(render_report(result, **kwargs))
    return path


# ---------------------------------------------------------------------------
# Features implemented in this module
# - Data, comparison, evaluation and prediction sections
# - Incomplete-comparison warning when models failed to train
# - Standalone HTML document with plotly loaded from the CDN
# ---------------------------------------------------------------------------
