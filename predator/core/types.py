"""Core typing contracts for Predator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence, Union

import numpy as np

Array = np.ndarray

Value = Union[float, List[float]]


@dataclass(frozen=True)
class PointRecord:
    """One ingested row reduced to its feature (``x``) and label (``y``)."""

    x: Value
    y: Value

    def as_dict(self) -> dict[str, Value]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PointRecord":
        return cls(x=data["x"], y=data["y"])


@dataclass(frozen=True)
class NormalizationEntry:
    """Min/max statistics captured from a tensor at build time."""

    min: float
    max: float

    @classmethod
    def from_tensor(cls, tensor: Array) -> "NormalizationEntry":
        return cls(min=float(np.min(tensor)), max=float(np.max(tensor)))

    @property
    def span(self) -> float:
        return self.max - self.min


@dataclass
class History:
    """Per-epoch loss values returned by :meth:`SequentialModel.fit`."""

    loss: List[float] = field(default_factory=list)


def flatten_values(values: Sequence[Value]) -> List[float]:
    """Flatten a sequence of scalars or lists one level deep."""

    flat: List[float] = []
    for value in values:
        if isinstance(value, (list, tuple)):
            flat.extend(float(v) for v in value)
        else:
            flat.append(float(value))
    return flat
