"""Tests for model ranking and pairwise comparison."""
import numpy as np
import pytest
from scipy import stats

from har_utils import CVResult, DataError, TrainingError, compare_models
from har_utils.comparison import compare_pair, rank_models


def cv(name, accuracies, total_time=1.0):
    return CVResult(model_id=name, method=name.lower(), fold_accuracies=tuple(accuracies),
                    total_time=total_time, final_time=total_time / 10)


@pytest.fixture
def cv_results():
    return {
        'DecisionTree': cv('DecisionTree', [0.70, 0.74, 0.72, 0.69, 0.75]),
        'RandomForest': cv('RandomForest', [0.95, 0.97, 0.96, 0.94, 0.98]),
        'LinearDiscriminantAnalysis': cv('LinearDiscriminantAnalysis', [0.80, 0.78, 0.83, 0.79, 0.81]),
    }


class TestRanking:
    """Test suite for rank_models."""

    def test_ranks_by_mean_accuracy(self, cv_results):
        assert rank_models(cv_results) == ('RandomForest', 'LinearDiscriminantAnalysis', 'DecisionTree')

    def test_ranking_ignores_input_order(self, cv_results):
        reversed_results = dict(reversed(list(cv_results.items())))

        assert rank_models(reversed_results) == rank_models(cv_results)

    def test_tie_broken_by_std_then_time(self):
        results = {
            'Wide': cv('Wide', [0.5, 1.0, 0.75], total_time=1.0),
            'Narrow': cv('Narrow', [0.625, 0.875, 0.75], total_time=5.0),
            'NarrowFast': cv('NarrowFast', [0.625, 0.875, 0.75], total_time=2.0),
        }

        assert rank_models(results) == ('NarrowFast', 'Narrow', 'Wide')

    def test_rounding_noise_does_not_break_tie(self):
        results = {
            'Slow': cv('Slow', [0.1, 0.2, 0.3], total_time=9.0),
            'Fast': cv('Fast', [0.3, 0.2, 0.1], total_time=1.0),
        }

        assert rank_models(results) == ('Fast', 'Slow')


class TestComparePair:
    """Test suite for compare_pair."""

    def test_interval_matches_t_distribution(self, cv_results):
        a, b = cv_results['RandomForest'], cv_results['DecisionTree']

        pair = compare_pair(a, b, confidence_level=0.995)

        diffs = np.array(a.fold_accuracies) - np.array(b.fold_accuracies)
        margin = stats.t.ppf(0.9975, 4) * diffs.std(ddof=1) / np.sqrt(5)
        assert pair.mean_difference == pytest.approx(diffs.mean())
        assert pair.lower == pytest.approx(diffs.mean() - margin)
        assert pair.upper == pytest.approx(diffs.mean() + margin)
        assert pair.computable

    def test_bonferroni_adjustment(self, cv_results):
        a, b = cv_results['LinearDiscriminantAnalysis'], cv_results['DecisionTree']

        raw = compare_pair(a, b, adjustment=1)
        adjusted = compare_pair(a, b, adjustment=3)

        assert adjusted.p_value == pytest.approx(min(1.0, raw.p_value * 3))

    def test_zero_variance_difference_not_computable(self):
        a = cv('A', [0.9, 0.8, 0.85])
        b = cv('B', [0.8, 0.7, 0.75])

        pair = compare_pair(a, b)

        assert not pair.computable
        assert pair.lower is None and pair.upper is None and pair.p_value is None
        assert pair.mean_difference == pytest.approx(0.1)
        assert 'not computable' in pair.note


class TestCompareModels:
    """Test suite for compare_models."""

    def test_report_contents(self, cv_results):
        report = compare_models(cv_results)

        assert report.selected == 'RandomForest'
        assert list(report.results) == list(report.ranking)
        assert len(report.pairwise) == 3
        assert report.confidence_level == 0.995
        assert report.complete

        summary = report.summary_frame()
        assert list(summary.index) == list(report.ranking)
        for column in ('Accuracy_Mean', 'Accuracy_SD', 'Total_Time', 'Final_Fit_Time'):
            assert column in summary.columns

    def test_top_two_paired_t_test(self, cv_results):
        report = compare_models(cv_results)

        expected = stats.ttest_rel(cv_results['RandomForest'].fold_accuracies,
                                   cv_results['LinearDiscriminantAnalysis'].fold_accuracies)
        assert report.top_two.model_a == 'RandomForest'
        assert report.top_two.model_b == 'LinearDiscriminantAnalysis'
        assert report.top_two.p_value == pytest.approx(expected.pvalue)
        assert report.top_two.df == 4

    def test_top_two_degenerate(self):
        report = compare_models({'A': cv('A', [1.0, 1.0, 1.0]), 'B': cv('B', [1.0, 1.0, 1.0])})

        assert not report.top_two.computable
        assert report.top_two.p_value is None

    def test_single_model(self):
        report = compare_models({'A': cv('A', [0.9, 0.8])})

        assert report.selected == 'A'
        assert report.pairwise == ()
        assert report.top_two is None

    def test_failures_mark_report_incomplete(self, cv_results):
        report = compare_models(cv_results, failures={'GradientBoosting': 'did not converge'})

        assert not report.complete
        assert report.failures['GradientBoosting'] == 'did not converge'

    def test_report_is_immutable(self, cv_results):
        report = compare_models(cv_results)

        with pytest.raises(TypeError):
            report.results['Other'] = cv('Other', [0.1] * 5)
        with pytest.raises(AttributeError):
            report.ranking = ()

    def test_mismatched_fold_counts(self, cv_results):
        cv_results['Short'] = cv('Short', [0.9, 0.9, 0.8])

        with pytest.raises(DataError):
            compare_models(cv_results)

    def test_nothing_to_compare(self):
        with pytest.raises(TrainingError):
            compare_models({})
