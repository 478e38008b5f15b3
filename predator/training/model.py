"""Sequential dense network used as the training and prediction backend."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import numpy as np

from ..core import activations
from ..core.types import Array, History
from .losses import REGISTRY as LOSS_REGISTRY
from .optimizers import create_optimizer

ARTIFACT_FORMAT = "predator-sequential"
ARTIFACT_VERSION = 1


@dataclass(frozen=True)
class DenseLayerSpec:
    """Description of one dense layer.

    Dense layers act on the last axis, so ``input_shape`` only matters for
    the first layer of a stack.
    """

    units: int
    use_bias: bool = True
    activation: str | None = None
    input_shape: Tuple[int, ...] | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DenseLayerSpec":
        shape = data.get("input_shape")
        return cls(
            units=int(data["units"]),
            use_bias=bool(data.get("use_bias", True)),
            activation=data.get("activation"),
            input_shape=tuple(int(d) for d in shape) if shape else None,
        )

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"units": self.units, "use_bias": self.use_bias}
        if self.activation is not None:
            payload["activation"] = self.activation
        if self.input_shape is not None:
            payload["input_shape"] = list(self.input_shape)
        return payload


class SequentialModel:
    """Stack of dense layers trained with a registered loss and optimizer."""

    def __init__(
        self,
        layers: Sequence[DenseLayerSpec | Mapping[str, Any]],
        optimizer: str = "adam",
        loss: str = "mse",
        *,
        learning_rate: float | None = None,
        seed: int = 0,
        name: str | None = None,
    ) -> None:
        specs = [
            layer if isinstance(layer, DenseLayerSpec) else DenseLayerSpec.from_mapping(layer)
            for layer in layers
        ]
        if not specs:
            raise ValueError("A model needs at least one layer")
        if specs[0].input_shape is None:
            raise ValueError("The first layer must declare input_shape")
        for spec in specs:
            activations.get(spec.activation)
        self.layers: List[DenseLayerSpec] = specs
        self.optimizer_name = optimizer
        self.loss_name = loss
        self.learning_rate = learning_rate
        self.name = name
        self._loss = LOSS_REGISTRY.resolve(loss)
        self._optimizer = create_optimizer(optimizer, learning_rate)
        self._rng = np.random.default_rng(seed + 1)
        self.params: Dict[str, Array] = {}
        self.reset(seed)

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return tuple(self.layers[0].input_shape or ())

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return (*self.input_shape[:-1], self.layers[-1].units)

    def reset(self, seed: int) -> None:
        rng = np.random.default_rng(seed)
        params: Dict[str, Array] = {}
        in_dim = self.input_shape[-1]
        for idx, spec in enumerate(self.layers):
            limit = np.sqrt(6.0 / (in_dim + spec.units))
            params[f"W{idx}"] = rng.uniform(-limit, limit, size=(in_dim, spec.units))
            if spec.use_bias:
                params[f"b{idx}"] = np.zeros(spec.units)
            in_dim = spec.units
        self.params = params

    def _check_input(self, inputs: Array) -> Array:
        inputs = np.asarray(inputs, dtype=np.float64)
        if tuple(inputs.shape[1:]) != self.input_shape:
            raise ValueError(
                f"Expected input of shape [None, {', '.join(map(str, self.input_shape))}] "
                f"but got {list(inputs.shape)}"
            )
        return inputs

    def _forward(self, inputs: Array) -> tuple[Array, List[tuple[Array, Array, Array]]]:
        caches: List[tuple[Array, Array, Array]] = []
        x = inputs
        for idx, spec in enumerate(self.layers):
            z = x @ self.params[f"W{idx}"]
            if spec.use_bias:
                z = z + self.params[f"b{idx}"]
            out = activations.get(spec.activation).fn(z)
            caches.append((x, z, out))
            x = out
        return x, caches

    def _backward(self, caches: List[tuple[Array, Array, Array]], delta: Array) -> Dict[str, Array]:
        grads: Dict[str, Array] = {}
        for idx in reversed(range(len(self.layers))):
            spec = self.layers[idx]
            x, z, out = caches[idx]
            dz = delta * activations.get(spec.activation).deriv(z, out)
            flat_x = x.reshape(-1, x.shape[-1])
            flat_dz = dz.reshape(-1, dz.shape[-1])
            grads[f"W{idx}"] = flat_x.T @ flat_dz
            if spec.use_bias:
                grads[f"b{idx}"] = flat_dz.sum(axis=0)
            delta = dz @ self.params[f"W{idx}"].T
        return grads

    def predict(self, inputs: Array) -> Array:
        outputs, _ = self._forward(self._check_input(inputs))
        return outputs

    def evaluate(self, inputs: Array, targets: Array) -> float:
        outputs = self.predict(inputs)
        loss, _ = self._loss(outputs, np.asarray(targets, dtype=np.float64))
        return loss

    def fit(
        self,
        inputs: Array,
        targets: Array,
        epochs: int,
        *,
        batch_size: int = 32,
        shuffle: bool = True,
        callbacks: Sequence[object] = (),
    ) -> History:
        inputs = self._check_input(inputs)
        targets = np.asarray(targets, dtype=np.float64)
        if targets.shape[0] != inputs.shape[0]:
            raise ValueError(
                f"Feature and label tensors disagree on sample count: "
                f"{inputs.shape[0]} != {targets.shape[0]}"
            )
        if tuple(targets.shape[1:]) != self.output_shape:
            raise ValueError(
                f"Label shape {list(targets.shape[1:])} does not match model output "
                f"{list(self.output_shape)}"
            )
        history = History()
        n = inputs.shape[0]
        for epoch in range(1, int(epochs) + 1):
            order = self._rng.permutation(n) if shuffle else np.arange(n)
            losses: List[float] = []
            weights: List[int] = []
            for start in range(0, n, batch_size):
                idx = order[start : start + batch_size]
                outputs, caches = self._forward(inputs[idx])
                loss, delta = self._loss(outputs, targets[idx])
                self._optimizer.step(self.params, self._backward(caches, delta))
                losses.append(loss)
                weights.append(idx.size)
            epoch_loss = float(np.average(losses, weights=weights)) if losses else 0.0
            history.loss.append(epoch_loss)
            for callback in callbacks:
                if hasattr(callback, "on_epoch"):
                    callback.on_epoch(epoch, {"loss": epoch_loss})  # type: ignore[attr-defined]
                elif callable(callback):
                    callback(epoch, {"loss": epoch_loss})
        return history

    def to_json(self) -> str:
        return json.dumps(
            {
                "format": ARTIFACT_FORMAT,
                "version": ARTIFACT_VERSION,
                "name": self.name,
                "layers": [spec.as_dict() for spec in self.layers],
                "optimizer": self.optimizer_name,
                "loss": self.loss_name,
                "learning_rate": self.learning_rate,
                "weights": {key: value.tolist() for key, value in self.params.items()},
            }
        )

    @classmethod
    def from_json(cls, text: str) -> "SequentialModel":
        payload = json.loads(text)
        if payload.get("format") != ARTIFACT_FORMAT:
            raise ValueError(f"Not a {ARTIFACT_FORMAT} artifact")
        model = cls(
            payload["layers"],
            payload.get("optimizer", "adam"),
            payload.get("loss", "mse"),
            learning_rate=payload.get("learning_rate"),
            name=payload.get("name"),
        )
        weights = payload["weights"]
        for key in model.params:
            if key not in weights:
                raise KeyError(f"Missing weight {key} in artifact")
            model.params[key] = np.asarray(weights[key], dtype=np.float64)
        return model


def create_model(
    layers: Sequence[DenseLayerSpec | Mapping[str, Any]],
    optimizer: str,
    loss: str,
    *,
    learning_rate: float | None = None,
    seed: int = 0,
) -> SequentialModel:
    """Build a compiled sequential model from layer specifications."""

    return SequentialModel(layers, optimizer, loss, learning_rate=learning_rate, seed=seed)


__all__ = ["DenseLayerSpec", "SequentialModel", "create_model"]
