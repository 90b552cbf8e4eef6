"""Loading, cleaning and partitioning of the sensor datasets.

The training file is cleaned once; the evaluation file only ever receives
the training file's feature set so both stay aligned with the fitted models.
"""

import os
import pandas as pd
from typing import List, Optional, Sequence, Tuple
from sklearn.decomposition import PCA
from sklearn.feature_selection import VarianceThreshold
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import StandardScaler

from .errors import DataError
from .utils import get_logger

logger = get_logger(__name__)

# Tokens the sensor exports use for missing or undefined readings
NA_VALUES = ['NA', '#DIV/0!', '']

PREPROCESSING_STEPS = ('center', 'scale', 'zv', 'pca')


def load_dataset(path: str) -> pd.DataFrame:
    """Read a CSV export, treating ``NA``, ``#DIV/0!`` and blanks as missing."""
    if not path or not os.path.exists(path):
        raise DataError(f"Input file not found: {path}")
    if os.path.getsize(path) == 0:
        raise DataError(f"Input file is empty: {path}")
    try:
        df = pd.read_csv(path, na_values=NA_VALUES, keep_default_na=True, low_memory=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataError(f"Failed to read {path}: {e}") from e
    if df.empty:
        raise DataError(f"Input file contains no records: {path}")
    logger.info(f"Loaded {os.path.basename(path)}: {df.shape}")
    return df


def clean_dataset(df: pd.DataFrame, label_column: str, is_labeled: bool = True,
                  drop_leading: int = 7,
                  reference_features: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Reduce a raw export to complete numeric features (plus the label).

    Labeled data loses its ``drop_leading`` identifier/timestamp/window
    columns, every non-numeric column and every column holding a missing
    value. Unlabeled data is never cleaned on its own: it is restricted to
    ``reference_features`` (the cleaned training features).
    """
    if not is_labeled:
        if reference_features is None:
            raise DataError("Unlabeled data must be aligned to the training features")
        return propagate_schema(df, reference_features)

    if df.shape[1] <= drop_leading:
        raise DataError(f"Dataset has {df.shape[1]} columns; expected more than {drop_leading}")

    trimmed = df.iloc[:, drop_leading:]
    if label_column not in trimmed.columns:
        raise DataError(f"Label column '{label_column}' not found in dataset")

    label = trimmed[label_column]
    if label.isna().any():
        raise DataError(f"Label column '{label_column}' has {int(label.isna().sum())} missing values")

    features = trimmed.drop(columns=[label_column]).select_dtypes(include=['number'])
    # whole columns go, never individual rows
    complete = features.columns[features.notna().all()]
    dropped = features.shape[1] - len(complete)
    features = features[complete]

    if features.shape[1] == 0:
        raise DataError("No numeric feature columns left after cleaning; nothing to train on")

    logger.info(
        f"Cleaned dataset: {df.shape[1]} -> {features.shape[1]} features "
        f"({drop_leading} leading and {dropped} incomplete numeric columns removed)"
    )
    cleaned = features.copy()
    cleaned[label_column] = label.astype(str)
    return cleaned


def propagate_schema(df: pd.DataFrame, training_features: Sequence[str],
                     id_column: Optional[str] = 'problem_id') -> pd.DataFrame:
    """Keep the training features present in ``df``, in training order.

    An ``id_column`` such as ``problem_id`` becomes the index instead of a
    feature.
    """
    frame = df
    if id_column and id_column in frame.columns:
        frame = frame.set_index(id_column)

    kept = [c for c in training_features if c in frame.columns]
    missing = [c for c in training_features if c not in frame.columns]
    if missing:
        logger.warning(f"Evaluation data lacks {len(missing)} training features: {missing[:5]}")
    return frame[kept].copy()


def split_dataset(df: pd.DataFrame, label_column: str, train_fraction: float = 0.8,
                  seed: int = 1234) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Stratified, seeded train/test partition on the label."""
    if not 0 < train_fraction < 1:
        raise DataError("Train fraction must be between 0 and 1")
    if label_column not in df.columns:
        raise DataError(f"Label column '{label_column}' not found in dataset")

    try:
        train, test = train_test_split(
            df, train_size=train_fraction, stratify=df[label_column], random_state=seed
        )
    except ValueError as e:
        raise DataError(f"Stratified split failed: {e}") from e

    logger.info(f"Split {len(df)} records into {len(train)} training / {len(test)} testing")
    return train.sort_index(), test.sort_index()


def split_features(df: pd.DataFrame, label_column: str) -> Tuple[pd.DataFrame, pd.Series]:
    """Separate the feature matrix from the label."""
    if label_column not in df.columns:
        raise DataError(f"Label column '{label_column}' not found in dataset")
    return df.drop(columns=[label_column]), df[label_column]


def create_preprocessing_steps(preprocessing: Optional[Sequence[str]] = None) -> List[Tuple[str, object]]:
    """Translate preprocessing names into unfitted pipeline steps.

    Steps are fitted on each fold's training portion only, because they run
    inside the same ``Pipeline`` as the model.
    """
    steps = []
    for name in preprocessing or ():
        if name == 'center':
            steps.append(('center', StandardScaler(with_std=False)))
        elif name == 'scale':
            steps.append(('scale', StandardScaler(with_mean=False)))
        elif name == 'zv':
            steps.append(('zv', VarianceThreshold(threshold=0.0)))
        elif name == 'pca':
            steps.append(('pca', PCA(n_components=0.95, svd_solver='full')))
        else:
            raise DataError(f"Unknown preprocessing step '{name}'. Must be one of {list(PREPROCESSING_STEPS)}")
    return steps


# ---------------------------------------------------------------------------
# Features implemented in this module
# - CSV loading with sensor-specific missing tokens
# - Column-wise cleaning: leading metadata, non-numeric, incomplete columns
# - Schema propagation from training features to the evaluation file
# - Seeded stratified train/test split
# - Named preprocessing steps (center, scale, zv, pca) for model pipelines
# ---------------------------------------------------------------------------
