"""
Plotly charts embedded in the HTML report.
Every function returns an HTML fragment (plotly.js is loaded once by the page).
"""
import plotly.graph_objects as go
from typing import Dict

from .config import ComparisonReport, EvaluationResult


CHART_CONFIG = {
    'displayModeBar': True,
    'displaylogo': False,
    'modeBarButtonsToRemove': ['pan2d', 'lasso2d', 'select2d'],
    'responsive': True
}

COLORS = ['#1FB8CD', '#FF6B6B', '#4ECDC4', '#45B7D1', '#96CEB4', '#FECA57', '#FF9FF3']


def _base_layout(fig: go.Figure, title: str, **layout) -> None:
    fig.update_layout(
        title=title,
        height=layout.pop('height', 400),
        margin=layout.pop('margin', dict(l=50, r=50, t=60, b=60)),
        font=dict(size=12),
        plot_bgcolor='rgba(0,0,0,0)',
        paper_bgcolor='rgba(0,0,0,0)',
        **layout
    )


def create_pairwise_difference_chart(report: ComparisonReport) -> str:
    """Dot plot of pairwise accuracy differences with their confidence intervals."""
    computable = [p for p in report.pairwise if p.computable]
    if not computable:
        return "<div class='chart-placeholder'>No computable pairwise differences</div>"

    labels = [f'{p.model_a} - {p.model_b}' for p in computable]
    estimates = [p.mean_difference for p in computable]

    fig = go.Figure(data=[
        go.Scatter(
            x=estimates,
            y=labels,
            mode='markers',
            marker=dict(color='#1FB8CD', size=10),
            error_x=dict(
                type='data',
                symmetric=False,
                array=[p.upper - p.mean_difference for p in computable],
                arrayminus=[p.mean_difference - p.lower for p in computable],
            ),
            hovertemplate='%{y}: %{x:.4f}<extra></extra>',
        )
    ])
    fig.add_vline(x=0, line_dash='dash', line_color='#888888')

    level = round(report.confidence_level * 100, 1)
    _base_layout(
        fig,
        f'Accuracy Differences<br><sub>{level}% confidence intervals, paired by fold</sub>',
        xaxis_title='Difference in Accuracy',
        height=max(300, 60 * len(labels) + 120),
        margin=dict(l=260, r=50, t=70, b=50),
    )
    return fig.to_html(full_html=False, include_plotlyjs=False, config=CHART_CONFIG, div_id="pairwiseChart")


def create_fold_accuracy_chart(report: ComparisonReport) -> str:
    """Box plot of per-fold accuracy for each model in rank order."""
    if not report.results:
        return "<div class='chart-placeholder'>No cross-validation results available</div>"

    fig = go.Figure()
    for i, name in enumerate(report.ranking):
        fig.add_trace(go.Box(
            y=list(report.results[name].fold_accuracies),
            name=name,
            boxpoints='all',
            marker=dict(color=COLORS[i % len(COLORS)]),
        ))

    _base_layout(
        fig,
        f'Cross-Validation Accuracy<br><sub>{report.results[report.selected].fold_count} folds per model</sub>',
        yaxis_title='Accuracy',
        showlegend=False,
        margin=dict(l=50, r=50, t=70, b=100),
        xaxis=dict(tickangle=45),
    )
    return fig.to_html(full_html=False, include_plotlyjs=False, config=CHART_CONFIG, div_id="foldChart")


def create_confusion_matrix_chart(evaluation: EvaluationResult) -> str:
    """Heatmap of the holdout confusion matrix."""
    matrix = evaluation.confusion_matrix
    if matrix.empty:
        return "<div class='chart-placeholder'>No confusion matrix available</div>"

    fig = go.Figure(data=[go.Heatmap(
        z=matrix.to_numpy(),
        x=[str(c) for c in matrix.columns],
        y=[str(c) for c in matrix.index],
        colorscale='Blues',
        text=matrix.to_numpy(),
        texttemplate='%{text}',
        hovertemplate='Predicted %{y}, actual %{x}: %{z}<extra></extra>',
    )])

    _base_layout(
        fig,
        f'Confusion Matrix - {evaluation.model_id}<br><sub>Accuracy {evaluation.accuracy:.4f}</sub>',
        xaxis_title='Reference',
        yaxis_title='Prediction',
        yaxis=dict(autorange='reversed'),
        height=450,
    )
    return fig.to_html(full_html=False, include_plotlyjs=False, config=CHART_CONFIG, div_id="confusionChart")


def create_feature_importance_chart(importance: Dict[str, float], model_name: str, top_n: int = 20) -> str:
    """Horizontal bars for the most important features of a model."""
    if not importance:
        return f"<div class='chart-placeholder'>No feature importance data for {model_name}</div>"

    sorted_features = sorted(importance.items(), key=lambda x: x[1], reverse=True)[:top_n]
    features = [item[0] for item in sorted_features][::-1]
    values = [item[1] for item in sorted_features][::-1]

    fig = go.Figure(data=[
        go.Bar(
            x=values,
            y=features,
            orientation='h',
            marker=dict(color='#1FB8CD'),
            text=[f'{v:.4f}' for v in values],
            textposition='auto',
        )
    ])

    _base_layout(
        fig,
        f'Feature Importance - {model_name}',
        xaxis_title='Importance Score',
        yaxis_title='Features',
        height=max(400, 22 * len(features) + 120),
        margin=dict(l=160, r=50, t=50, b=50),
    )
    return fig.to_html(full_html=False, include_plotlyjs=False, config=CHART_CONFIG, div_id="featureImportanceChart")


# ---------------------------------------------------------------------------
# Features implemented in this module
# - Pairwise accuracy-difference intervals (the comparison plot)
# - Per-fold accuracy box plots
# - Confusion matrix heatmap
# - Feature importance bars for the selected model
# ---------------------------------------------------------------------------
