"""Tensor shape dimensions that may depend on the ingested dataset.

A tensor shape is a list mixing literal ``int`` dimensions with
:class:`Deferred` dimensions.  A deferred dimension names a registered
function of the point records (``max`` counts records, ``columns`` counts
values per record on one side) plus a divisor.  :func:`resolve_shape`
rewrites every deferred dimension into its literal value in a single pass
before any tensor is built.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, MutableSequence, Sequence, Union

from .types import PointRecord

DeferredFn = Callable[[Sequence[PointRecord], str, float], float]

SIDES: Mapping[str, int] = {"x": 0, "y": 1}

_REGISTRY: Dict[str, DeferredFn] = {}


def register_deferred(name: str) -> Callable[[DeferredFn], DeferredFn]:
    """Register a deferred dimension function under ``name``."""

    def _decorator(func: DeferredFn) -> DeferredFn:
        _REGISTRY[name] = func
        return func

    return _decorator


def available_functions() -> Iterable[str]:
    return sorted(_REGISTRY)


@register_deferred("max")
def _record_count(points: Sequence[PointRecord], field: str, divisor: float) -> float:
    return len(points) / divisor


@register_deferred("columns")
def _column_count(points: Sequence[PointRecord], field: str, divisor: float) -> float:
    if not points:
        return 0
    value = getattr(points[0], field)
    width = len(value) if isinstance(value, (list, tuple)) else 1
    return width / divisor


@dataclass(frozen=True)
class Deferred:
    """A named, parameterized dimension evaluated against point records."""

    name: str
    param: float = 1

    def __post_init__(self) -> None:
        if self.name not in _REGISTRY:
            available = ", ".join(available_functions())
            raise KeyError(f"Unknown deferred dimension {self.name!r}. Available: {available}")

    def __call__(self, points: Sequence[PointRecord], field: str = "x") -> int:
        value = _REGISTRY[self.name](points, field, self.param)
        dim = int(math.floor(value))
        if dim < 1:
            raise ValueError(
                f"Deferred dimension {self.name}({self.param}) resolved to {value} "
                f"over {len(points)} points; dimensions must be positive"
            )
        return dim

    def to_dict(self) -> Dict[str, Any]:
        return {"fn": self.name, "param": self.param}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Deferred":
        return cls(name=str(data["fn"]), param=data.get("param", 1))


Dimension = Union[int, Deferred]


def max_of(divide: float = 1) -> Deferred:
    """Dimension equal to the number of point records divided by ``divide``."""

    return Deferred("max", divide)


def columns_of(divide: float = 1) -> Deferred:
    """Dimension equal to the values per record divided by ``divide``."""

    return Deferred("columns", divide)


def coerce_dimension(value: Any) -> Dimension:
    """Turn the serialized ``{"fn": ..., "param": ...}`` form into a :class:`Deferred`."""

    if isinstance(value, Deferred):
        return value
    if isinstance(value, Mapping):
        return Deferred.from_mapping(value)
    return int(value)


def encode_dimension(value: Dimension) -> Any:
    if isinstance(value, Deferred):
        return value.to_dict()
    return int(value)


def resolve_shape(
    shape: MutableSequence[Dimension],
    points: Sequence[PointRecord],
    *,
    field: str = "x",
    adjusted: MutableSequence[Any] | None = None,
) -> List[int]:
    """Resolve deferred dimensions of ``shape`` in place and return it.

    When ``adjusted`` is given, the function name and parameter of the
    deferred dimension are recorded at the index of ``field``'s side.
    """

    for index, value in enumerate(shape):
        if isinstance(value, Deferred):
            if adjusted is not None:
                side = SIDES[field]
                while len(adjusted) <= side:
                    adjusted.append(None)
                adjusted[side] = {"with": value.name, "using": value.param}
            shape[index] = value(points, field)
    return list(shape)  # type: ignore[arg-type]


def migrate_tensor_shapes(shapes: Sequence[Any]) -> List[List[Dimension]]:
    """Upgrade a legacy single shape record into the feature/label pair."""

    if shapes and not isinstance(shapes[0], (list, tuple)):
        return [list(shapes), list(shapes)]
    return [list(shape) for shape in shapes]


def product(shape: Sequence[int]) -> int:
    return int(math.prod(shape))


__all__ = [
    "Deferred",
    "Dimension",
    "SIDES",
    "available_functions",
    "coerce_dimension",
    "columns_of",
    "encode_dimension",
    "max_of",
    "migrate_tensor_shapes",
    "product",
    "register_deferred",
    "resolve_shape",
]
