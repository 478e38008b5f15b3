"""Training sessions: train, predict, and restore saved snapshots."""

from __future__ import annotations

import logging
import math
import numbers
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, MutableMapping, Sequence

import numpy as np

from .config import copy_config, param_length, resolve_config
from .core.errors import (
    BadInput,
    IncorrectInputType,
    InstanceNotTrainedYet,
    NoAggregationModel,
    NoModelAvailable,
    NoPredictionModel,
)
from .core.normalization import NormalizationCache, denormalize, normalize
from .core.shapes import coerce_dimension, migrate_tensor_shapes, product
from .core.types import PointRecord, flatten_values
from .data.csv_source import consume_csv
from .reporting.plots import PlotAdapter
from .resolver import ByHandle, ByName, Implicit, ModelReference, as_reference, unpack
from .storage.blob import BlobStore
from .storage.snapshots import get_config, load_points, save_snapshot, saved_models
from .tensors import make_tensor, split_train_test, tensor_from_points
from .training.layers import symmetric_dnn_generator
from .training.model import SequentialModel, create_model

logger = logging.getLogger(__name__)

MODEL_FALLBACK_NAME = "Anonymous"
IO_FALLBACK_NAME = "Unknown"
NORMALIZATION_DEFAULT = "predator.core.normalization.normalize"
PREDICTION_SCALER = 100

Ingest = Callable[..., List[PointRecord]]


def valid_inputs(values: Sequence[Any]) -> bool:
    """True when every value is a finite real number."""

    return all(
        isinstance(v, numbers.Real) and not isinstance(v, bool) and math.isfinite(v)
        for v in values
    )


def _selector_label(selector: Any) -> str:
    if isinstance(selector, (list, tuple)):
        return ", ".join(str(s) for s in selector)
    return str(selector)


class Predator:
    """A training session over one configuration.

    The session owns its configuration, point records and normalization
    cache; models are shared with other sessions only through ``store``.
    Calls on one session must not overlap.
    """

    def __init__(
        self,
        config: MutableMapping[str, Any],
        store: BlobStore,
        *,
        ingest: Ingest = consume_csv,
        plotter: PlotAdapter | None = None,
    ) -> None:
        self.config = resolve_config(config)
        self.config["generated"] = {}
        self.store = store
        self.ingest = ingest
        self.plotter = plotter
        self.tensor_cache = NormalizationCache()
        self.points: List[PointRecord] = []

    # ------------------------------------------------------------------
    # State helpers

    @property
    def active_model(self) -> SequentialModel | None:
        return self.config["generated"].get("latest_model")

    @property
    def plots(self) -> PlotAdapter:
        if self.plotter is None:
            system = self.config["system"]
            self.plotter = PlotAdapter(
                Path(system.get("plot_dir") or "plots"),
                enable_plots=bool(system.get("visual")),
            )
        return self.plotter

    def saved_models(self) -> List[str]:
        return saved_models(self.store)

    def _ingest(self, config: MutableMapping[str, Any]) -> List[PointRecord]:
        system = config["system"]
        return self.ingest(system.get("csv_path"), system["params"], seed=system.get("seed"))

    # ------------------------------------------------------------------
    # Training

    def train(self, name: str | None = None) -> SequentialModel:
        """Run a full training session and optionally save it as ``name``."""

        start = time.perf_counter()
        logger.info("Training in progress...")

        config = copy_config(self.config)
        cache = NormalizationCache()
        points = self._ingest(config)
        neural = config["neural"]
        layers_cfg, model_cfg = neural["layers"], neural["model"]
        generated = config.setdefault("generated", {})

        shapes = layers_cfg["tensor_shapes"]
        features = tensor_from_points(shapes[0], points, "x", cache=cache, config=config)
        labels = tensor_from_points(shapes[1], points, "y", cache=cache, config=config)

        generated["normalized"] = {
            "was": True,
            "with": NORMALIZATION_DEFAULT,
            "stats": cache.as_list(),
            "sample": {
                "original": flatten_values([p.x for p in points[:3]]),
                "normal": features[:3].ravel().tolist(),
            },
        }

        train_x, test_x = split_train_test(features, model_cfg["tt_split"])
        train_y, test_y = split_train_test(labels, model_cfg["tt_split"])

        layers = layers_cfg.get("override") or symmetric_dnn_generator(
            amount=layers_cfg["amount"],
            units=layers_cfg["nodes"],
            bias=layers_cfg["bias"],
            activation=layers_cfg["activation"],
            tensor_shapes=layers_cfg["tensor_shapes"],
        )
        generated["layers"] = layers

        model = create_model(
            layers,
            model_cfg["optimizer"],
            model_cfg["loss"],
            learning_rate=model_cfg.get("learning_rate"),
            seed=int(config["system"].get("seed") or 0),
        )
        visual = bool(config["system"].get("visual"))
        callbacks = [self.plots] if visual else []
        history = model.fit(train_x, train_y, model_cfg["epochs"], callbacks=callbacks)

        model.name = name or MODEL_FALLBACK_NAME
        generated["latest_model"] = model
        self.config, self.points, self.tensor_cache = config, points, cache

        if name:
            save_snapshot(model, name, self.points, self.config, self.store)

        test_loss = model.evaluate(test_x, test_y)
        train_loss = history.loss[-1] if history.loss else float("nan")
        generated["loss"] = {"train": train_loss, "test": test_loss}

        self.merge_plot(False, True)
        if visual:
            self.plots.barchart(
                [{"index": "Test", "value": test_loss}, {"index": "Train", "value": train_loss}],
                name="Test vs Train",
            )
            self.plots.close()

        generated["performance"] = f"{round(time.perf_counter() - start, 2)}s"
        logger.info("Training finished.")
        return model

    # ------------------------------------------------------------------
    # Prediction

    def predict(self, values: Sequence[Any], ref: Any = None) -> List[float]:
        """Predict labels for one sample of feature ``values``.

        ``ref`` may be omitted (this session's model), a model name, a live
        model, or a :mod:`predator.resolver` reference.
        """

        if isinstance(values, (str, bytes)) or not valid_inputs(values):
            raise IncorrectInputType("One of input values has incorrect type.")

        ref = as_reference(ref)
        latest = self.active_model
        should_aggregate = True
        if latest is not None and (
            isinstance(ref, Implicit)
            or (isinstance(ref, ByName) and ref.name == latest.name)
            or (isinstance(ref, ByHandle) and ref.handle is latest)
        ):
            ref = ByHandle(latest)
            should_aggregate = False

        model = unpack(ref, self.store)
        if model is None:
            raise NoModelAvailable("No model was found for this prediction.")

        if should_aggregate:
            if not getattr(model, "name", None):
                raise NoAggregationModel("Model was found but has no name to restore its snapshot.")
            self.restore_snapshot(model.name, True, handle=model)

        expected = param_length(self.config["system"]["params"][0])
        if expected != len(values):
            raise BadInput(model.name, expected, len(values))

        input_shape = [1, *self.config["neural"]["layers"]["tensor_shapes"][0][1:]]
        inputs = normalize(make_tensor(list(values), input_shape), self.tensor_cache.features)
        outputs = denormalize(model.predict(inputs), self.tensor_cache.labels)
        return np.asarray(outputs).ravel().tolist()

    def generate_prediction_points(self, ref: Any = None) -> List[Dict[str, float]]:
        """Sweep the normalized input range and return denormalized ``{x, y}`` points.

        A model other than the active one is swept with the statistics of
        its own snapshot, which is restored first.
        """

        latest = self.active_model
        model = unpack(as_reference(ref), self.store) or latest
        if model is None:
            return []
        if model is not latest:
            if not getattr(model, "name", None):
                raise NoPredictionModel("Model was found but has no name to restore its snapshot.")
            self.restore_snapshot(model.name, True, handle=model)
        target = list(self.config["neural"]["layers"]["tensor_shapes"][0][1:])
        amount = product(target) * PREDICTION_SCALER

        normalized_xs = np.linspace(0.0, 1.0, amount)
        normalized_ys = model.predict(normalized_xs.reshape([PREDICTION_SCALER, *target]))
        xs = denormalize(normalized_xs, self.tensor_cache.features).ravel()
        ys = denormalize(np.asarray(normalized_ys), self.tensor_cache.labels).ravel()
        return [{"x": float(x), "y": float(y)} for x, y in zip(xs, ys)]

    # ------------------------------------------------------------------
    # Snapshots

    def restore_snapshot(
        self,
        model_name: str,
        fast_path: bool = False,
        *,
        allow_fallback: bool = True,
        handle: Any = None,
    ) -> bool:
        """Rebuild config, points and normalization cache of ``model_name``.

        Returns ``False`` without touching the store when ``model_name`` is
        already the active model.  With ``fast_path`` the point records
        saved with the model are reused instead of re-reading the dataset.
        Session state is only replaced once every step has succeeded.
        """

        latest = self.active_model
        if latest is not None and latest.name == model_name:
            return False

        fallback = copy_config(self.config) if allow_fallback else None
        config = get_config(model_name, self.store, fallback)

        model = handle if handle is not None else unpack(ByName(model_name), self.store)
        if model is None:
            raise NoModelAvailable(f"No model named {model_name!r} could be restored.")
        generated = config.setdefault("generated", {})
        generated["latest_model"] = model

        layers_cfg = config["neural"]["layers"]
        layers_cfg["tensor_shapes"] = [
            [coerce_dimension(dim) for dim in shape]
            for shape in migrate_tensor_shapes(layers_cfg["tensor_shapes"])
        ]

        points = load_points(model_name, self.store) if fast_path else None
        if fast_path and points is None:
            logger.info("No cached dataset for model %r; re-ingesting the source.", model_name)
        if points is None:
            points = self._ingest(config)

        cache = NormalizationCache()
        shapes = layers_cfg["tensor_shapes"]
        tensor_from_points(shapes[0], points, "x", cache=cache, config=config)
        tensor_from_points(shapes[1], points, "y", cache=cache, config=config)

        self.config, self.points, self.tensor_cache = config, points, cache
        logger.info("Restored snapshot of model %r (%d points).", model_name, len(points))
        return True

    # ------------------------------------------------------------------
    # Plotting

    def merge_plot(
        self,
        should_aggregate: bool = False,
        should_predict: bool = True,
        ref: Any = None,
    ) -> bool:
        """Plot session data and/or a prediction line.

        Without ``ref`` the session's own model is used and aggregation is
        skipped.  Returns ``False`` when ``system.visual`` is off.
        """

        ref = as_reference(ref)
        if isinstance(ref, Implicit):
            latest = self.active_model
            if latest is None:
                raise InstanceNotTrainedYet(
                    "Predator instance has to train a model first before it can render anonymous merge plot."
                )
            ref = ByHandle(latest)
            should_aggregate = False

        if not self.config["system"].get("visual"):
            return False

        model = unpack(ref, self.store)
        if model is None and should_predict:
            raise NoPredictionModel("No model could be retrieved for prediction.")

        if should_aggregate:
            if model is None or not getattr(model, "name", None):
                raise NoAggregationModel(
                    "No model could be retrieved for aggregation, or model was found but has no name."
                )
            self.restore_snapshot(model.name, True, handle=model)

        predicted = self.generate_prediction_points(ByHandle(model)) if should_predict else []
        self._generic_plot([
            [p.as_dict() for p in self.points],
            predicted,
        ], ["original", "predicted"], ref)
        return True

    def _generic_plot(
        self,
        values: Sequence[Sequence[Dict[str, Any]]],
        series: Sequence[str],
        ref: ModelReference,
    ) -> None:
        model_name = ref.name or MODEL_FALLBACK_NAME
        params = get_config(model_name, self.store, self.config)["system"].get("params")
        if params:
            feature_name, label_name = _selector_label(params[0]), _selector_label(params[1])
        else:
            feature_name = label_name = IO_FALLBACK_NAME
        self.plots.scatter(
            values,
            series,
            x_label=feature_name,
            y_label=label_name,
            name=f"{feature_name} and {label_name} correlation ({model_name})",
        )


__all__ = ["Predator", "MODEL_FALLBACK_NAME", "valid_inputs"]
