"""Utility helpers for logging, JSON safety and upload validation."""

import logging
import numpy as np
import pandas as pd
from typing import Union, Dict, Any, Iterable, Optional


JSONSafe = Union[int, float, list, Dict[str, Any], str, None]

ALLOWED_EXTENSIONS = {'csv'}


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a configured logger for the report pipeline."""
    logger = logging.getLogger(name or "har_utils")
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def safe_json_convert(obj: Any) -> JSONSafe:
    """Convert NumPy/pandas values and containers to JSON-safe values.

    Rules:
    - numpy scalars/arrays → native ints/floats/lists
    - NaN/None → None
    - DataFrame → list of records, Series → dict
    - mappings/iterables → recursively converted
    - anything else → str(obj)
    """
    if obj is None:
        return None
    if isinstance(obj, (bool, np.bool_)):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (float, np.floating)):
        return None if np.isnan(obj) else float(obj)
    if isinstance(obj, (int, str)):
        return obj

    if isinstance(obj, np.ndarray):
        return [safe_json_convert(x) for x in obj.tolist()]
    if isinstance(obj, pd.DataFrame):
        return [safe_json_convert(row) for row in obj.reset_index().to_dict('records')]
    if isinstance(obj, pd.Series):
        return {str(k): safe_json_convert(v) for k, v in obj.items()}

    if isinstance(obj, dict):
        return {str(k): safe_json_convert(v) for k, v in obj.items()}

    if isinstance(obj, Iterable) and not isinstance(obj, bytes):
        return [safe_json_convert(x) for x in obj]

    return str(obj)


def validate_file_upload(file) -> tuple[bool, str]:
    """Check that an uploaded file is present and is a CSV file."""
    if not file or not file.filename:
        return False, "No file selected"

    if not ('.' in file.filename and
            file.filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS):
        return False, "Invalid file type. Only CSV files are supported."

    return True, "File validation passed"


# ---------------------------------------------------------------------------
# Features implemented in this module
# - get_logger: single stream handler per named logger
# - safe_json_convert: normalize numpy/pandas objects to JSON-safe values
# - validate_file_upload: file presence and extension checks
# ---------------------------------------------------------------------------
