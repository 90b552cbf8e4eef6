"""Ranking and paired statistical comparison of cross-validated models."""

import itertools
import numpy as np
from scipy import stats
from typing import Dict, Mapping, Optional, Tuple

from .config import CVResult, ComparisonReport, PairwiseComparison, TTestSummary
from .errors import DataError, TrainingError
from .utils import get_logger

logger = get_logger(__name__)

NOT_COMPUTABLE = 'not computable: accuracy differences have zero variance'

# means equal to this many decimals count as tied
TIE_DECIMALS = 12


def rank_models(cv_results: Mapping[str, CVResult]) -> Tuple[str, ...]:
    """Model ids by mean accuracy, then lower std, then lower total time."""
    return tuple(sorted(
        cv_results,
        key=lambda name: (-round(cv_results[name].mean, TIE_DECIMALS),
                          round(cv_results[name].std, TIE_DECIMALS),
                          cv_results[name].total_time, name)
    ))


def _is_degenerate(differences: np.ndarray) -> bool:
    return len(differences) < 2 or bool(np.allclose(differences, differences[0], rtol=0.0, atol=1e-12))


def compare_pair(a: CVResult, b: CVResult, confidence_level: float = 0.995,
                 adjustment: int = 1) -> PairwiseComparison:
    """Confidence interval and paired t-test for ``a - b`` fold by fold.

    ``adjustment`` is the Bonferroni multiplier applied to the p-value.
    """
    differences = np.asarray(a.fold_accuracies) - np.asarray(b.fold_accuracies)
    mean_difference = float(np.mean(differences))

    if _is_degenerate(differences):
        return PairwiseComparison(
            a.model_id, b.model_id, tuple(differences.tolist()), confidence_level,
            mean_difference, computable=False, note=NOT_COMPUTABLE,
        )

    k = len(differences)
    se = np.std(differences, ddof=1) / np.sqrt(k)
    margin = stats.t.ppf((1 + confidence_level) / 2, df=k - 1) * se
    p_value = stats.ttest_rel(a.fold_accuracies, b.fold_accuracies).pvalue

    return PairwiseComparison(
        a.model_id, b.model_id, tuple(differences.tolist()), confidence_level,
        mean_difference,
        lower=float(mean_difference - margin),
        upper=float(mean_difference + margin),
        p_value=float(min(1.0, p_value * adjustment)),
    )


def paired_t_test(a: CVResult, b: CVResult) -> TTestSummary:
    """Unadjusted paired t-test of two models' per-fold accuracies."""
    differences = np.asarray(a.fold_accuracies) - np.asarray(b.fold_accuracies)
    df = max(len(differences) - 1, 0)
    if _is_degenerate(differences):
        return TTestSummary(a.model_id, b.model_id, None, None, df, computable=False, note=NOT_COMPUTABLE)

    result = stats.ttest_rel(a.fold_accuracies, b.fold_accuracies)
    return TTestSummary(a.model_id, b.model_id, float(result.statistic), float(result.pvalue), df)


def compare_models(cv_results: Mapping[str, CVResult], confidence_level: float = 0.995,
                   failures: Optional[Dict[str, str]] = None) -> ComparisonReport:
    """Rank models and compute every pairwise accuracy difference.

    Pairing by fold index assumes all models were trained on the same folds.
    """
    if not cv_results:
        raise TrainingError("No cross-validation results to compare")

    fold_counts = {name: r.fold_count for name, r in cv_results.items()}
    if len(set(fold_counts.values())) > 1:
        raise DataError(f"Models were cross-validated with different fold counts: {fold_counts}")

    ranking = rank_models(cv_results)
    pairs = list(itertools.combinations(ranking, 2))
    pairwise = tuple(
        compare_pair(cv_results[a], cv_results[b], confidence_level, adjustment=len(pairs))
        for a, b in pairs
    )
    top_two = paired_t_test(cv_results[ranking[0]], cv_results[ranking[1]]) if len(ranking) > 1 else None

    if failures:
        logger.warning(f"Comparison is incomplete; failed models: {sorted(failures)}")
    logger.info(f"Selected model: {ranking[0]} (mean accuracy {cv_results[ranking[0]].mean:.4f})")

    return ComparisonReport(
        results={name: cv_results[name] for name in ranking},
        ranking=ranking,
        pairwise=pairwise,
        top_two=top_two,
        confidence_level=confidence_level,
        failures=failures or {},
    )


# ---------------------------------------------------------------------------
# Features implemented in this module
# - rank_models: mean accuracy with std and training-time tie-breaks
# - compare_pair: paired-difference t interval with Bonferroni p-value
# - paired_t_test: top-two significance test
# - Zero-variance differences reported as not computable
# ---------------------------------------------------------------------------
