"""Activation utilities for the dense backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .types import Array


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def _relu_deriv(x: Array, out: Array) -> Array:
    return (x > 0).astype(x.dtype)


def sigmoid(x: Array) -> Array:
    return 1.0 / (1.0 + np.exp(-x))


def _sigmoid_deriv(x: Array, out: Array) -> Array:
    return out * (1.0 - out)


def _tanh_deriv(x: Array, out: Array) -> Array:
    return 1.0 - out**2


def linear(x: Array) -> Array:
    return x


def _linear_deriv(x: Array, out: Array) -> Array:
    return np.ones_like(x)


@dataclass(frozen=True)
class Activation:
    """Forward function paired with its derivative ``d(out)/d(x)``."""

    name: str
    fn: Callable[[Array], Array]
    deriv: Callable[[Array, Array], Array]


_REGISTRY: Dict[str, Activation] = {}


def register(name: str, fn: Callable[[Array], Array], deriv: Callable[[Array, Array], Array]) -> None:
    _REGISTRY[name] = Activation(name, fn, deriv)


def get(name: str | None) -> Activation:
    key = name or "linear"
    if key not in _REGISTRY:
        available = ", ".join(names())
        raise KeyError(f"Unknown activation {key!r}. Available activations: {available}")
    return _REGISTRY[key]


def names() -> Iterable[str]:
    return sorted(_REGISTRY)


register("linear", linear, _linear_deriv)
register("relu", relu, _relu_deriv)
register("sigmoid", sigmoid, _sigmoid_deriv)
register("tanh", np.tanh, _tanh_deriv)

__all__ = ["Activation", "get", "linear", "names", "register", "relu", "sigmoid"]
