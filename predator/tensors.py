"""Tensor construction from point records."""

from __future__ import annotations

from typing import Any, MutableMapping, MutableSequence, Sequence

import numpy as np

from .core.normalization import NormalizationCache, normalize
from .core.shapes import SIDES, Dimension, product, resolve_shape
from .core.types import Array, PointRecord, flatten_values


def make_tensor(values: Sequence[Any], shape: Sequence[int]) -> Array:
    """Build a float tensor of exactly ``shape`` from (nested) values."""

    flat = np.asarray(flatten_values(values), dtype=np.float64)
    if flat.size != product(shape):
        raise ValueError(
            f"Based on the provided shape {list(shape)}, the tensor should have "
            f"{product(shape)} values but has {flat.size}"
        )
    return flat.reshape(tuple(shape))


def tensor_from_points(
    shape: MutableSequence[Dimension],
    points: Sequence[PointRecord],
    field: str,
    *,
    cache: NormalizationCache | None = None,
    config: MutableMapping[str, Any] | None = None,
) -> Array:
    """Resolve ``shape`` against ``points`` and return the normalized tensor.

    Values of ``field`` are flattened and truncated to the product of the
    resolved shape; trailing values that do not fill a sample are dropped.
    With a ``cache`` the statistics of the raw tensor are appended to it,
    and with a ``config`` the resolved shape replaces the configured one.
    """

    adjusted = None
    if config is not None:
        adjusted = config.setdefault("generated", {}).setdefault("adjusted", [])
    concrete = resolve_shape(shape, points, field=field, adjusted=adjusted)
    if config is not None:
        config["neural"]["layers"]["tensor_shapes"][SIDES[field]] = concrete

    values = flatten_values([getattr(point, field) for point in points])
    needed = product(concrete)
    if len(values) < needed:
        raise ValueError(
            f"Shape {concrete} needs {needed} {field!r} values but the dataset only has {len(values)}"
        )
    tensor = make_tensor(values[:needed], concrete)
    if cache is not None:
        cache.record(tensor)
    return normalize(tensor)


def split_train_test(tensor: Array, parts: int) -> tuple[Array, Array]:
    """Split along the first axis into ``parts`` sections; return the first two."""

    parts = int(parts)
    if parts < 2:
        raise ValueError(f"tt_split must be at least 2, got {parts}")
    sections = np.array_split(tensor, parts, axis=0)
    return sections[0], sections[1]


__all__ = ["make_tensor", "split_train_test", "tensor_from_points"]
