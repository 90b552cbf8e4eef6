"""Tests for the Flask report app."""
import io

import pytest

from app import app as flask_app
from app_helpers import app_cache


@pytest.fixture
def client(tmp_path):
    flask_app.config.update(TESTING=True, UPLOAD_FOLDER=str(tmp_path))
    with flask_app.test_client() as client:
        yield client
    app_cache['results'].clear()


def upload(client, training_csv, evaluation_csv=None):
    data = {'training': (io.BytesIO(training_csv.read_bytes()), 'pml-training.csv')}
    if evaluation_csv is not None:
        data['evaluation'] = (io.BytesIO(evaluation_csv.read_bytes()), 'pml-testing.csv')
    return client.post('/', data=data, content_type='multipart/form-data')


@pytest.fixture
def trained_client(client, training_csv, evaluation_csv):
    upload(client, training_csv, evaluation_csv)
    response = client.post('/train', data={'folds': '3', 'jobs': '2', 'methods': 'rpart,lda'})
    assert response.status_code == 200
    return client


class TestUpload:
    """Test suite for file upload."""

    def test_index_page(self, client):
        response = client.get('/')

        assert response.status_code == 200
        assert b'Training CSV' in response.data

    def test_upload_training_and_evaluation(self, client, training_csv, evaluation_csv):
        response = upload(client, training_csv, evaluation_csv)

        payload = response.get_json()
        assert payload['success'] is True
        assert payload['file_shape'] == [300, 17]
        assert payload['evaluation_uploaded'] is True

    def test_reject_non_csv(self, client):
        response = client.post('/', data={'training': (io.BytesIO(b'x'), 'data.xlsx')},
                               content_type='multipart/form-data')

        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_missing_training_file(self, client):
        response = client.post('/', data={}, content_type='multipart/form-data')

        assert response.status_code == 400
        payload = response.get_json()
        assert payload['success'] is False
        assert payload['error'] == 'No training file uploaded.'

    def test_train_requires_upload(self, client):
        response = client.post('/train', data={})

        assert response.status_code == 400


class TestTraining:
    """Test suite for training and result endpoints."""

    def test_comparison_endpoint(self, trained_client):
        payload = trained_client.get('/model_comparison').get_json()

        assert set(payload['ranking']) == {'DecisionTree', 'LinearDiscriminantAnalysis'}
        assert payload['selected'] == payload['ranking'][0]
        assert len(payload['pairwise']) == 1
        assert all(len(folds) == 3 for folds in payload['fold_accuracies'].values())

    def test_confusion_matrix_endpoint(self, trained_client):
        payload = trained_client.get('/confusion_matrix').get_json()

        assert payload['classes'] == ['A', 'B', 'C', 'D', 'E']
        assert sum(sum(row) for row in payload['matrix']) == 60

    def test_predictions_endpoint(self, trained_client):
        payload = trained_client.get('/predictions').get_json()

        assert payload['success'] is True
        assert len(payload['predictions']) == 20

    def test_report_and_exports(self, trained_client):
        report = trained_client.get('/report')
        assert report.status_code == 200
        assert b'Model Comparison' in report.data

        export = trained_client.get('/export_results')
        assert export.status_code == 200
        assert export.data.decode().startswith('Model,Selected')

        download = trained_client.get('/download_model')
        assert download.status_code == 200

    def test_invalid_training_parameters(self, client, training_csv):
        upload(client, training_csv)

        response = client.post('/train', data={'split': '1.5'})

        assert response.status_code == 400

    def test_results_missing_before_training(self, client):
        assert client.get('/model_comparison').status_code == 404

    def test_reset_session(self, trained_client):
        trained_client.post('/reset_session')

        assert trained_client.get('/report').status_code == 404
