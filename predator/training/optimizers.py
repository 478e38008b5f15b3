"""Gradient-descent optimizers for the dense backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Mapping, MutableMapping

import numpy as np

from ..core.types import Array

Params = MutableMapping[str, Array]
Gradients = Mapping[str, Array]


@dataclass
class SGDOptimizer:
    """Vanilla SGD."""

    lr: float = 0.01

    def step(self, params: Params, grads: Gradients) -> None:
        for name, grad in grads.items():
            params[name] = params[name] - self.lr * grad


@dataclass
class MomentumOptimizer:
    """SGD with classical momentum."""

    lr: float = 0.01
    momentum: float = 0.9
    _velocity: Dict[str, Array] = field(default_factory=dict, init=False, repr=False)

    def step(self, params: Params, grads: Gradients) -> None:
        for name, grad in grads.items():
            velocity = self.momentum * self._velocity.get(name, np.zeros_like(grad)) + grad
            self._velocity[name] = velocity
            params[name] = params[name] - self.lr * velocity


@dataclass
class AdamOptimizer:
    """Adam with bias-corrected moment estimates."""

    lr: float = 0.001
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-7
    _m: Dict[str, Array] = field(default_factory=dict, init=False, repr=False)
    _v: Dict[str, Array] = field(default_factory=dict, init=False, repr=False)
    _t: int = field(default=0, init=False, repr=False)

    def step(self, params: Params, grads: Gradients) -> None:
        self._t += 1
        for name, grad in grads.items():
            m = self.beta1 * self._m.get(name, np.zeros_like(grad)) + (1 - self.beta1) * grad
            v = self.beta2 * self._v.get(name, np.zeros_like(grad)) + (1 - self.beta2) * grad**2
            self._m[name], self._v[name] = m, v
            m_hat = m / (1 - self.beta1**self._t)
            v_hat = v / (1 - self.beta2**self._t)
            params[name] = params[name] - self.lr * m_hat / (np.sqrt(v_hat) + self.epsilon)


_REGISTRY: Dict[str, Callable[..., object]] = {
    "sgd": SGDOptimizer,
    "momentum": MomentumOptimizer,
    "adam": AdamOptimizer,
}


def names() -> Iterable[str]:
    return sorted(_REGISTRY)


def create_optimizer(name: str, learning_rate: float | None = None):
    """Instantiate the optimizer registered as ``name``."""

    if name not in _REGISTRY:
        available = ", ".join(names())
        raise KeyError(f"Unknown optimizer {name!r}. Available optimizers: {available}")
    if learning_rate is None:
        return _REGISTRY[name]()
    return _REGISTRY[name](lr=float(learning_rate))


__all__ = ["AdamOptimizer", "MomentumOptimizer", "SGDOptimizer", "create_optimizer", "names"]
