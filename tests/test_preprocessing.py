"""Tests for loading, cleaning, schema propagation and splitting."""
import numpy as np
import pandas as pd
import pytest

from har_utils import DataError, clean_dataset, load_dataset, propagate_schema, split_dataset
from har_utils.preprocessing import create_preprocessing_steps


class TestCleanDataset:
    """Test suite for clean_dataset."""

    def test_keeps_complete_numeric_features_and_label(self, sensor_frame, feature_columns):
        cleaned = clean_dataset(sensor_frame, 'classe')

        assert list(cleaned.columns) == feature_columns + ['classe']
        features = cleaned.drop(columns=['classe'])
        assert all(pd.api.types.is_numeric_dtype(features[c]) for c in features.columns)
        assert not features.isna().any().any()
        assert len(cleaned) == len(sensor_frame)

    def test_drops_leading_metadata_by_position(self, sensor_frame):
        cleaned = clean_dataset(sensor_frame, 'classe')

        for column in sensor_frame.columns[:7]:
            assert column not in cleaned.columns

    def test_drops_whole_columns_not_rows(self, sensor_frame):
        cleaned = clean_dataset(sensor_frame, 'classe')

        assert 'kurtosis_roll_belt' not in cleaned.columns
        assert 'skewness_yaw_belt' not in cleaned.columns
        assert len(cleaned) == len(sensor_frame)

    def test_zero_features_is_fatal(self, sensor_frame):
        text_only = sensor_frame[list(sensor_frame.columns[:7]) + ['skewness_yaw_belt', 'classe']]

        with pytest.raises(DataError):
            clean_dataset(text_only, 'classe')

    def test_missing_label_column(self, sensor_frame):
        with pytest.raises(DataError):
            clean_dataset(sensor_frame.drop(columns=['classe']), 'classe')

    def test_label_with_missing_values(self, sensor_frame):
        sensor_frame.loc[3, 'classe'] = np.nan

        with pytest.raises(DataError):
            clean_dataset(sensor_frame, 'classe')

    def test_unlabeled_requires_reference_features(self, evaluation_frame):
        with pytest.raises(DataError):
            clean_dataset(evaluation_frame, 'classe', is_labeled=False)

    def test_unlabeled_uses_training_schema(self, evaluation_frame, feature_columns):
        aligned = clean_dataset(evaluation_frame, 'classe', is_labeled=False,
                                reference_features=feature_columns)

        assert list(aligned.columns) == feature_columns


class TestPropagateSchema:
    """Test suite for propagate_schema."""

    def test_subset_in_training_order(self, evaluation_frame, feature_columns):
        shuffled = evaluation_frame[list(reversed(evaluation_frame.columns))].drop(columns=['accel_arm_z'])

        aligned = propagate_schema(shuffled, feature_columns)

        expected = [c for c in feature_columns if c != 'accel_arm_z']
        assert list(aligned.columns) == expected

    def test_problem_id_becomes_index(self, evaluation_frame, feature_columns):
        aligned = propagate_schema(evaluation_frame, feature_columns)

        assert aligned.index.name == 'problem_id'
        assert list(aligned.index) == list(evaluation_frame['problem_id'])
        assert 'problem_id' not in aligned.columns


class TestLoadDataset:
    """Test suite for load_dataset."""

    def test_sensor_missing_tokens_become_nan(self, training_csv):
        df = load_dataset(str(training_csv))

        assert pd.api.types.is_numeric_dtype(df['skewness_yaw_belt'])
        assert df['skewness_yaw_belt'].isna().any()

    def test_cleaning_loaded_file(self, training_csv, feature_columns):
        cleaned = clean_dataset(load_dataset(str(training_csv)), 'classe')

        assert list(cleaned.columns) == feature_columns + ['classe']

    def test_file_not_found(self, tmp_path):
        with pytest.raises(DataError):
            load_dataset(str(tmp_path / 'missing.csv'))

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'empty.csv'
        path.write_text('')

        with pytest.raises(DataError):
            load_dataset(str(path))


class TestSplitDataset:
    """Test suite for split_dataset."""

    def test_stratified_share_per_class(self, cleaned_frame):
        train, test = split_dataset(cleaned_frame, 'classe', 0.8, seed=1234)

        totals = cleaned_frame['classe'].value_counts()
        train_counts = train['classe'].value_counts()
        for cls, total in totals.items():
            assert abs(train_counts[cls] - 0.8 * total) <= 1
        assert len(train) + len(test) == len(cleaned_frame)
        assert set(train.index).isdisjoint(test.index)

    def test_deterministic_for_seed(self, cleaned_frame):
        first, _ = split_dataset(cleaned_frame, 'classe', seed=99)
        second, _ = split_dataset(cleaned_frame, 'classe', seed=99)
        other, _ = split_dataset(cleaned_frame, 'classe', seed=100)

        assert list(first.index) == list(second.index)
        assert list(first.index) != list(other.index)

    def test_invalid_fraction(self, cleaned_frame):
        with pytest.raises(DataError):
            split_dataset(cleaned_frame, 'classe', train_fraction=1.0)


class TestPreprocessingSteps:
    """Test suite for create_preprocessing_steps."""

    def test_named_steps(self):
        steps = create_preprocessing_steps(['center', 'scale', 'zv'])

        assert [name for name, _ in steps] == ['center', 'scale', 'zv']

    def test_none_means_no_steps(self):
        assert create_preprocessing_steps(None) == []

    def test_unknown_step(self):
        with pytest.raises(DataError):
            create_preprocessing_steps(['impute'])
