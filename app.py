"""
Flask front end for the activity classification report.
Upload the training/evaluation CSV exports, train and compare the models,
then browse the comparison, holdout evaluation and rendered report.
"""

import os
import csv
import io
import zipfile
import tempfile
from flask import Flask, request, session, send_file, jsonify, make_response, render_template_string
from har_utils import render_report
from app_helpers import (
    api_response, require_file, require_results, get_session_result, clear_session_cache,
    handle_file_upload, handle_training, comparison_payload, confusion_payload, predictions_payload
)

UPLOAD_FOLDER = os.environ.get('HAR_UPLOAD_FOLDER', 'uploads')

app = Flask(__name__)
app.secret_key = os.urandom(24)  # Generate random secret key
app.config['UPLOAD_FOLDER'] = UPLOAD_FOLDER
app.config['MAX_CONTENT_LENGTH'] = 50 * 1024 * 1024  # 50MB max file size

os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

app.config['SESSION_PERMANENT'] = True
app.config['PERMANENT_SESSION_LIFETIME'] = 3600  # 1 hour

UPLOAD_FORM = """<!DOCTYPE html>
<html><head><title>Activity Classification Report</title></head>
<body>
<h1>Activity Classification Report</h1>
<form method="post" enctype="multipart/form-data">
  <p>Training CSV: <input type="file" name="training" accept=".csv"></p>
  <p>Evaluation CSV: <input type="file" name="evaluation" accept=".csv"></p>
  <p><input type="submit" value="Upload"></p>
</form>
{% if uploaded %}<p>Uploaded training file with {{ shape[0] }} rows and {{ shape[1] }} columns.</p>{% endif %}
</body></html>
"""


@app.route('/', methods=['GET', 'POST'])
@api_response
def index():
    """Main page: upload form (GET) and file upload (POST)."""
    if request.method == 'POST':
        return handle_file_upload()
    return render_template_string(
        UPLOAD_FORM, uploaded='training_path' in session, shape=session.get('file_shape', [0, 0])
    )


@app.route('/train', methods=['POST'])
@api_response
@require_file
def train():
    """Run cleaning, cross-validation, comparison and holdout evaluation."""
    return handle_training()


@app.route('/model_comparison', methods=['GET'])
@api_response
@require_results
def model_comparison():
    """Ranked cross-validation results and pairwise statistics."""
    return comparison_payload(get_session_result())


@app.route('/confusion_matrix', methods=['GET'])
@api_response
@require_results
def get_confusion_matrix():
    """Holdout confusion matrix and statistics of the selected model."""
    return confusion_payload(get_session_result())


@app.route('/predictions', methods=['GET'])
@api_response
@require_results
def get_predictions():
    """Predictions of the selected model on the evaluation file."""
    return predictions_payload(get_session_result())


@app.route('/feature_importance', methods=['GET'])
@api_response
@require_results
def get_feature_importance():
    """Feature importance of the selected model."""
    result = get_session_result()
    return {'model': result.comparison.selected, 'importance': result.feature_importance}


@app.route('/report', methods=['GET'])
@api_response
@require_results
def report():
    """Rendered HTML report."""
    response = make_response(render_report(get_session_result()))
    response.headers['Content-Type'] = 'text/html; charset=utf-8'
    return response


@app.route('/reset_session', methods=['POST'])
@api_response
def reset_session():
    """Reset session and drop cached results."""
    clear_session_cache()
    session.clear()
    return {'message': 'Session cleared successfully'}


@app.route('/download_model')
def download_model():
    """Download the selected trained model."""
    model_path = session.get('model_path')
    if not model_path or not os.path.exists(model_path):
        return "No trained model available.", 404

    try:
        temp_dir = tempfile.mkdtemp()
        zip_path = os.path.join(temp_dir, 'selected_model.zip')

        with zipfile.ZipFile(zip_path, 'w') as zipf:
            zipf.write(model_path, 'model.joblib')
            zipf.writestr('README.md', f'''# Activity Classification Model

model.joblib holds the selected model ({session.get('best_model_name', 'unknown')}),
a har_utils.TrainedModel wrapping a fitted scikit-learn pipeline.

## Usage:
```python
from joblib import load

model = load('model.joblib')
predictions = model.predict(features[model.feature_names])
```
''')

        return send_file(zip_path, as_attachment=True, download_name='selected_model.zip')

    except OSError as e:
        app.logger.error(f"Error creating model package: {str(e)}")
        return f"Error creating model package: {str(e)}", 500


@app.route('/export_results')
def export_results():
    """Export cross-validation summary as CSV."""
    result = get_session_result()
    if result is None:
        return "No training results available for export.", 404

    comparison = result.comparison
    summary = comparison.summary_frame().reset_index()

    output = io.StringIO()
    writer = csv.writer(output)
    header = ['Model', 'Selected'] + [c for c in summary.columns if c != 'Model']
    writer.writerow(header)
    for row in summary.to_dict('records'):
        is_best = 'Yes' if row['Model'] == comparison.selected else 'No'
        writer.writerow([row['Model'], is_best] + [row[c] for c in header[2:]])
    for name, message in comparison.failures.items():
        writer.writerow([name, 'Failed', message])

    response = make_response(output.getvalue())
    response.headers['Content-Type'] = 'text/csv'
    response.headers['Content-Disposition'] = 'attachment; filename=model_comparison.csv'
    return response


@app.errorhandler(413)
def too_large(_error):
    return jsonify({'success': False, 'error': 'File too large (50MB max).'}), 413


# Clean up uploads on shutdown
import atexit
@atexit.register
def cleanup_uploads():
    """Cleanup uploads folder on shutdown."""
    import shutil
    shutil.rmtree(UPLOAD_FOLDER, ignore_errors=True)

if __name__ == "__main__":
    app.run(host='127.0.0.1', port=5002)
