"""
Command-line entry point for the activity classification report.

Usage:
    python -m har_utils pml-training.csv --evaluation pml-testing.csv --output report.html
    python -m har_utils pml-training.csv --folds 5 --methods rf lda --jobs 2
"""

import argparse
import sys

from joblib import dump

from .config import DEFAULT_METHODS, ReportConfig
from .errors import PipelineError
from .pipeline import run_pipeline_from_files
from .report import write_report
from .utils import get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = ReportConfig()
    parser = argparse.ArgumentParser(
        description="Cross-validate and compare activity classifiers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("training", help="Labeled training CSV")
    parser.add_argument("--evaluation", "-e", help="Unlabeled evaluation CSV")
    parser.add_argument("--output", "-o", default="report.html", help="HTML report path")
    parser.add_argument("--model-output", help="Write the selected model with joblib")
    parser.add_argument("--label", default=defaults.label_column, help="Label column name")
    parser.add_argument("--seed", type=int, default=defaults.seed)
    parser.add_argument("--folds", type=int, default=defaults.fold_count)
    parser.add_argument("--train-fraction", type=float, default=defaults.train_fraction)
    parser.add_argument("--confidence", type=float, default=defaults.confidence_level,
                        help="Confidence level of pairwise accuracy differences")
    parser.add_argument("--jobs", type=int, default=None, help="Worker pool size (default: all cores)")
    parser.add_argument("--methods", nargs="+", default=list(DEFAULT_METHODS),
                        help="Modeling methods to compare")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = ReportConfig(
        label_column=args.label,
        seed=args.seed,
        fold_count=args.folds,
        train_fraction=args.train_fraction,
        confidence_level=args.confidence,
        n_jobs=args.jobs,
        methods=tuple(args.methods),
    )

    try:
        result = run_pipeline_from_files(args.training, args.evaluation, config)
    except PipelineError as e:
        logger.error(f"Report failed: {e}")
        return 1

    write_report(result, args.output)
    if args.model_output:
        dump(result.best_model, args.model_output)

    evaluation = result.evaluation
    print(f"Selected model: {result.comparison.selected}")
    print(f"Holdout accuracy: {evaluation.accuracy:.4f} "
          f"({evaluation.confidence_interval[0]:.4f}-{evaluation.confidence_interval[1]:.4f})")
    if not result.comparison.complete:
        print(f"Incomplete comparison, failed: {', '.join(result.comparison.failures)}")
    if result.evaluation_predictions is not None:
        print("Evaluation predictions: " + " ".join(result.evaluation_predictions.astype(str)))
    print(f"Report written to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
