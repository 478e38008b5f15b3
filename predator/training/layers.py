"""Symmetric dense stack derivation from resolved tensor shapes."""

from __future__ import annotations

import numbers
from typing import Any, Dict, List, Sequence

from ..core.errors import DNNGeneratorException


def _concrete(shape: Sequence[Any], label: str) -> List[int]:
    dims = []
    for dim in shape:
        if isinstance(dim, bool) or not isinstance(dim, numbers.Real) or int(dim) != dim:
            raise TypeError(f"{label} shape {list(shape)!r} contains unresolved dimension {dim!r}")
        dims.append(int(dim))
    if len(dims) < 2:
        raise ValueError(f"{label} shape {dims} has no addressable unit dimension")
    if any(d < 1 for d in dims):
        raise ValueError(f"{label} shape {dims} has non-positive dimensions")
    return dims


def symmetric_dnn_generator(
    *,
    amount: int,
    units: int,
    bias: bool,
    activation: str | None,
    tensor_shapes: Sequence[Sequence[Any]],
) -> List[Dict[str, Any]]:
    """Generate ``amount`` dense layers mapping feature shape to label shape.

    Hidden layers share ``units`` and stay linear; only the output layer
    carries ``activation`` and is sized to the last label dimension.
    """

    try:
        if int(amount) < 1 or int(units) < 1:
            raise ValueError(f"amount ({amount}) and units ({units}) must be positive")
        x_shape = _concrete(tensor_shapes[0], "Feature")
        y_shape = _concrete(tensor_shapes[1], "Label")
        if x_shape[1:-1] != y_shape[1:-1]:
            raise ValueError(
                f"Dense layers only map the last axis; feature shape {x_shape} "
                f"cannot produce label shape {y_shape}"
            )

        hidden_shape = x_shape[1:-1] + [int(units)]
        layers: List[Dict[str, Any]] = []
        for i in range(int(amount)):
            input_shape = x_shape[1:] if i == 0 else hidden_shape
            if i == int(amount) - 1:
                layers.append(
                    {
                        "units": y_shape[-1],
                        "use_bias": bool(bias),
                        "activation": activation,
                        "input_shape": input_shape,
                    }
                )
            else:
                layers.append({"units": int(units), "use_bias": bool(bias), "input_shape": input_shape})
        return layers
    except (TypeError, ValueError, IndexError) as exc:
        raise DNNGeneratorException(
            "Symmetric DNN could not be generated. Please check your inputs.\n\n"
            f"Error message: {exc}."
        ) from exc


__all__ = ["symmetric_dnn_generator"]
