"""Exception hierarchy for the activity classification report.

Data errors abort the whole run; training errors abort a single model and
are collected by ``train_models`` so the comparison can continue.
"""


class PipelineError(Exception):
    """Base class for every error raised by the report pipeline."""


class DataError(PipelineError, ValueError):
    """Input data is missing, malformed or has no usable features."""


class SchemaMismatchError(DataError):
    """Feature columns differ from the ones a model was fitted with."""

    def __init__(self, expected, actual):
        self.expected = list(expected)
        self.actual = list(actual)
        missing = [c for c in self.expected if c not in self.actual]
        extra = [c for c in self.actual if c not in self.expected]
        if missing or extra:
            detail = f"missing={missing[:5]}, unexpected={extra[:5]}"
        else:
            detail = "same columns in a different order"
        super().__init__(f"Feature schema mismatch ({detail})")


class TrainingError(PipelineError, RuntimeError):
    """A model could not be fitted or cross-validated."""

    def __init__(self, message: str, model_id: str = None):
        self.model_id = model_id
        prefix = f"{model_id}: " if model_id else ""
        super().__init__(f"{prefix}{message}")


# ---------------------------------------------------------------------------
# Features implemented in this module
# - PipelineError base class
# - DataError / SchemaMismatchError for fatal input problems
# - TrainingError carrying the failing model id
# ---------------------------------------------------------------------------
