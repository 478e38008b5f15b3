"""CSV ingestion into feature/label point records."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping, Sequence

import numpy as np
import pandas as pd

from ..core.types import PointRecord, Value

logger = logging.getLogger(__name__)


def spread_record_fields(record: Mapping[str, Any], selector: Any) -> Value:
    """Pick ``selector`` (a column name or a list of names) out of ``record``."""

    if not isinstance(selector, (list, tuple)):
        return float(record[selector])
    return [float(record[column]) for column in selector]


def _selected_columns(params: Sequence[Any]) -> List[str]:
    columns: List[str] = []
    for selector in params[:2]:
        names = selector if isinstance(selector, (list, tuple)) else [selector]
        columns.extend(str(name) for name in names)
    return columns


def consume_csv(
    locator: str | Path,
    params: Sequence[Any],
    *,
    seed: int | None = None,
) -> List[PointRecord]:
    """Read ``locator`` and reduce every row to a :class:`PointRecord`.

    Records are shuffled and the last one is dropped.  Passing ``seed``
    makes the shuffle repeatable, which keeps re-ingestion during snapshot
    restore consistent with the training run.
    """

    if locator is None:
        raise ValueError("system.csv_path is not configured")
    df = pd.read_csv(locator)
    for column in _selected_columns(params):
        if column not in df.columns:
            raise KeyError(f"Column {column!r} not found in CSV")

    points = [
        PointRecord(
            x=spread_record_fields(row, params[0]),
            y=spread_record_fields(row, params[1]),
        )
        for row in df.to_dict(orient="records")
    ]
    rng = np.random.default_rng(seed)
    order = rng.permutation(len(points))
    points = [points[i] for i in order]
    if points:
        points.pop()
    logger.debug("Ingested %d points from %s", len(points), locator)
    return points


__all__ = ["consume_csv", "spread_record_fields"]
