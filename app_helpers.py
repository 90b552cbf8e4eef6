"""
Helper functions and decorators for the Flask report app.
Upload handling, per-session result cache and request → ReportConfig mapping.
"""

import os
import uuid
import functools
import pandas as pd
from flask import session, jsonify, request, current_app
from typing import Callable, Dict, Any, Optional
from joblib import dump

from har_utils import (
    DataError, ReportConfig, load_dataset, run_pipeline_from_files,
    safe_json_convert, validate_file_upload
)
from har_utils.config import DEFAULT_METHODS

# Server-side cache: pipeline results are too large for the session cookie
app_cache = {
    'results': {}
}

UPLOAD_FIELDS = ('training', 'evaluation')


def api_response(func: Callable) -> Callable:
    """Decorator for standardized API responses with error handling"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            result = func(*args, **kwargs)
            if isinstance(result, (dict, list)):
                return jsonify(safe_json_convert(result))
            return result
        except DataError as e:
            current_app.logger.warning(f"Data error in {func.__name__}: {e}")
            return jsonify({'success': False, 'error': str(e)}), 400
        except Exception as e:
            current_app.logger.error(f"API Error in {func.__name__}: {str(e)}")
            return jsonify({'success': False, 'error': str(e)}), 500
    return wrapper


def require_file(func: Callable) -> Callable:
    """Decorator to ensure a training file is uploaded and accessible"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        filepath = session.get('training_path')
        if not filepath or not os.path.exists(filepath):
            return jsonify({
                'success': False,
                'error': 'No uploaded training file found. Please upload a dataset first.'
            }), 400
        return func(*args, **kwargs)
    return wrapper


def require_results(func: Callable) -> Callable:
    """Decorator to ensure the pipeline has run for this session"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if get_session_result() is None:
            return jsonify({
                'success': False,
                'error': 'No training results available. Please train models first.'
            }), 404
        return func(*args, **kwargs)
    return wrapper


def get_session_result():
    """Cached PipelineResult for the current session, if any"""
    session_id = session.get('session_id')
    if not session_id:
        return None
    return app_cache['results'].get(session_id)


def set_session_result(result) -> None:
    session_id = session.get('session_id')
    if not session_id:
        session_id = str(uuid.uuid4())
        session['session_id'] = session_id
    app_cache['results'][session_id] = result


def clear_session_cache() -> None:
    """Clear all cached data for current session"""
    session_id = session.get('session_id')
    if session_id:
        for cache in app_cache.values():
            cache.pop(session_id, None)


def _save_upload(field: str) -> Optional[str]:
    file = request.files.get(field)
    if file is None or not file.filename:
        return None
    is_valid, message = validate_file_upload(file)
    if not is_valid:
        raise DataError(f"{field}: {message}")
    filename = f"{uuid.uuid4().hex}_{field}.csv"
    filepath = os.path.join(current_app.config['UPLOAD_FOLDER'], filename)
    file.save(filepath)
    current_app.logger.info(f"Saved {field} upload {file.filename} to {filepath}")
    return filepath


def handle_file_upload() -> Dict[str, Any]:
    """Store the training (required) and evaluation (optional) uploads"""
    clear_session_cache()
    session.clear()

    training_path = _save_upload('training')
    if training_path is None:
        raise DataError("No training file uploaded.")
    evaluation_path = _save_upload('evaluation')

    df = load_dataset(training_path)
    session['training_path'] = training_path
    session['evaluation_path'] = evaluation_path
    session['file_shape'] = list(df.shape)
    session['file_columns'] = list(df.columns)

    preview = df.head(5).astype(object).where(df.head(5).notna(), '')
    return {
        'success': True,
        'file_shape': list(df.shape),
        'columns': list(df.columns),
        'preview_data': preview.to_dict('records'),
        'evaluation_uploaded': evaluation_path is not None,
        'message': 'Files uploaded successfully!'
    }


def config_from_request() -> ReportConfig:
    """Build a ReportConfig from form or JSON parameters, defaults elsewhere"""
    data = request.get_json(silent=True) or request.form
    defaults = ReportConfig()

    def value(key, cast, default):
        raw = data.get(key)
        if raw in (None, ''):
            return default
        try:
            return cast(raw)
        except (TypeError, ValueError):
            raise DataError(f"Invalid value for '{key}': {raw!r}")

    methods = data.get('methods') or ','.join(DEFAULT_METHODS)
    if isinstance(methods, str):
        methods = [m.strip() for m in methods.split(',') if m.strip()]

    return ReportConfig(
        label_column=value('label', str, defaults.label_column),
        seed=value('seed', int, defaults.seed),
        fold_count=value('folds', int, defaults.fold_count),
        train_fraction=value('split', float, defaults.train_fraction),
        confidence_level=value('confidence', float, defaults.confidence_level),
        n_jobs=value('jobs', int, defaults.n_jobs),
        methods=tuple(methods),
    )


def handle_training() -> Dict[str, Any]:
    """Run the full pipeline on the uploaded files and cache the result"""
    config = config_from_request()
    errors = config.validate()
    if errors:
        raise DataError("; ".join(errors))

    training_path = session['training_path']
    result = run_pipeline_from_files(training_path, session.get('evaluation_path'), config)

    model_path = f"{training_path}_bestmodel.joblib"
    dump(result.best_model, model_path)
    session['model_path'] = model_path
    session['best_model_name'] = result.comparison.selected
    set_session_result(result)
    current_app.logger.info(f"Training completed. Best model: {result.comparison.selected}")

    return {
        'success': True,
        'best_model': result.comparison.selected,
        'complete': result.comparison.complete,
        'failures': dict(result.comparison.failures),
        'comparison': comparison_payload(result),
        'holdout': result.evaluation.overall_statistics(),
        'message': f'Training completed! Best model: {result.comparison.selected}'
    }


def comparison_payload(result) -> Dict[str, Any]:
    comparison = result.comparison
    top_two = comparison.top_two
    return {
        'ranking': list(comparison.ranking),
        'selected': comparison.selected,
        'summary': comparison.summary_frame().reset_index().to_dict('records'),
        'fold_accuracies': {name: list(r.fold_accuracies) for name, r in comparison.results.items()},
        'pairwise': comparison.pairwise_frame().to_dict('records'),
        'top_two_test': None if top_two is None else {
            'models': [top_two.model_a, top_two.model_b],
            'statistic': top_two.statistic,
            'p_value': top_two.p_value,
            'df': top_two.df,
            'computable': top_two.computable,
        },
        'confidence_level': comparison.confidence_level,
    }


def confusion_payload(result) -> Dict[str, Any]:
    evaluation = result.evaluation
    matrix = evaluation.confusion_matrix
    return {
        'model': evaluation.model_id,
        'classes': [str(c) for c in matrix.columns],
        'matrix': matrix.to_numpy().tolist(),
        'overall': evaluation.overall_statistics(),
        'by_class': evaluation.class_statistics.reset_index().to_dict('records'),
    }


def predictions_payload(result) -> Dict[str, Any]:
    predictions: Optional[pd.Series] = result.evaluation_predictions
    if predictions is None:
        return {'success': False, 'error': 'No evaluation file was uploaded.'}
    return {
        'success': True,
        'model': result.comparison.selected,
        'predictions': {str(k): str(v) for k, v in predictions.items()},
    }
