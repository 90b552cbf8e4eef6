"""Pytest configuration and fixtures."""
import os
import sys
import tempfile
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
os.environ.setdefault('HAR_UPLOAD_FOLDER', tempfile.mkdtemp(prefix='har_uploads_'))

from har_utils import ReportConfig  # noqa: E402

CLASSES = ['A', 'B', 'C', 'D', 'E']
SENSORS = [f'accel_{part}_{axis}' for part in ('belt', 'arm') for axis in ('x', 'y', 'z')]


def make_sensor_frame(n_per_class=60, seed=0, labeled=True):
    """Synthetic export with the layout of the weight lifting recordings.

    Seven leading metadata columns, informative numeric sensors, one noise
    sensor, one mostly-missing numeric column, one '#DIV/0!' text column and
    the ``classe`` label (or ``problem_id`` for unlabeled data).
    """
    rng = np.random.default_rng(seed)
    rows = n_per_class * len(CLASSES)
    labels = np.repeat(CLASSES, n_per_class)
    rng.shuffle(labels)
    codes = np.searchsorted(CLASSES, labels)

    df = pd.DataFrame({
        'X': np.arange(1, rows + 1),
        'user_name': rng.choice(['adelmo', 'carlitos', 'pedro'], rows),
        'raw_timestamp_part_1': rng.integers(1322489605, 1323095002, rows),
        'raw_timestamp_part_2': rng.integers(0, 999999, rows),
        'cvtd_timestamp': '05/12/2011 11:23',
        'new_window': rng.choice(['no', 'yes'], rows, p=[0.95, 0.05]),
        'num_window': rng.integers(1, 864, rows),
    })
    for sensor in SENSORS:
        df[sensor] = codes + rng.normal(0, 1.0, rows)
    df['roll_dumbbell'] = rng.normal(0, 1.0, rows)
    kurtosis = rng.normal(0, 1.0, rows)
    kurtosis[rng.random(rows) < 0.9] = np.nan
    kurtosis[0] = np.nan
    df['kurtosis_roll_belt'] = kurtosis
    df['skewness_yaw_belt'] = np.where(rng.random(rows) < 0.5, '#DIV/0!', '0.25')

    if labeled:
        df['classe'] = labels
    else:
        df['problem_id'] = np.arange(1, rows + 1)
    return df


@pytest.fixture
def sensor_frame():
    """Raw labeled training data (300 records, 5 classes)."""
    return make_sensor_frame()


@pytest.fixture
def evaluation_frame():
    """Raw unlabeled evaluation data with a problem_id column."""
    return make_sensor_frame(n_per_class=4, seed=7, labeled=False)


@pytest.fixture
def feature_columns():
    return SENSORS + ['roll_dumbbell']


@pytest.fixture
def cleaned_frame(sensor_frame):
    from har_utils import clean_dataset
    return clean_dataset(sensor_frame, 'classe')


@pytest.fixture
def small_config():
    """Fast configuration for end-to-end runs."""
    return ReportConfig(fold_count=3, n_jobs=2, methods=('rpart', 'rf', 'lda'))


@pytest.fixture
def training_csv(tmp_path, sensor_frame):
    path = tmp_path / 'pml-training.csv'
    sensor_frame.to_csv(path, index=False)
    return path


@pytest.fixture
def evaluation_csv(tmp_path, evaluation_frame):
    path = tmp_path / 'pml-testing.csv'
    evaluation_frame.to_csv(path, index=False)
    return path
