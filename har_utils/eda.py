"""Compact dataset summaries for the report header."""

import pandas as pd
from typing import Dict, Any, Optional

from .utils import safe_json_convert


def summarize_dataset(df: pd.DataFrame, label_column: Optional[str] = None) -> Dict[str, Any]:
    """Shape, dtype mix, missingness and (for labeled data) class balance."""
    total_cells = df.shape[0] * df.shape[1]
    missing = df.isnull().sum()
    stats = {
        "rows": df.shape[0],
        "cols": df.shape[1],
        "numerics": len(df.select_dtypes(include=['number']).columns),
        "non_numerics": len(df.select_dtypes(exclude=['number']).columns),
        "columns_with_missing": int((missing > 0).sum()),
        "data_completeness": round((1 - missing.sum() / total_cells) * 100, 2) if total_cells else 100.0,
    }

    if label_column and label_column in df.columns:
        counts = df[label_column].value_counts().sort_index()
        stats["class_counts"] = {str(k): int(v) for k, v in counts.items()}
        stats["class_share"] = {str(k): round(v / len(df), 4) for k, v in counts.items()} if len(df) else {}

    return {key: safe_json_convert(value) for key, value in stats.items()}


def class_balance_frame(summaries: Dict[str, Dict[str, Any]]) -> pd.DataFrame:
    """Class counts side by side for several labeled summaries."""
    columns = {name: pd.Series(summary.get("class_counts", {}), dtype='int64')
               for name, summary in summaries.items()}
    frame = pd.DataFrame(columns).fillna(0).astype(int)
    frame.index.name = 'Class'
    return frame


# ---------------------------------------------------------------------------
# Features implemented in this module
# - summarize_dataset: shape, dtype mix, missingness, class balance
# - class_balance_frame: side-by-side class counts (e.g. train vs test)
# ---------------------------------------------------------------------------
