"""Session configuration: defaults, file loading and serialization.

Recognized keys (defaults in brackets)::

    neural.model   epochs [10], loss ["mse"], optimizer ["adam"], tt_split [2]
    neural.layers  bias [True], activation ["sigmoid"], amount [3], nodes [10],
                   tensor_shapes [[max(1), len(params[0])], [max(1), len(params[1])]],
                   override (optional explicit layer list)
    system         visual [False], params (required), csv_path, seed (optional)

``generated`` is written by training and never read from user input.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, MutableMapping, Sequence, Tuple

from .core.shapes import Deferred, coerce_dimension, encode_dimension, max_of, migrate_tensor_shapes

logger = logging.getLogger(__name__)

Config = Dict[str, Any]

# Never persisted: the live handle cannot be serialized and the loss is per-run.
TRANSIENT_GENERATED_KEYS: Tuple[str, ...] = ("latest_model", "loss")

_DEFAULTS: Tuple[Tuple[str, str, Any], ...] = (
    ("model", "epochs", 10),
    ("model", "loss", "mse"),
    ("model", "optimizer", "adam"),
    ("model", "tt_split", 2),
    ("layers", "bias", True),
    ("layers", "activation", "sigmoid"),
    ("layers", "amount", 3),
    ("layers", "nodes", 10),
)


def param_length(param: Any) -> int:
    """Number of columns selected by a feature or label selector."""

    if isinstance(param, (list, tuple)):
        return len(param)
    return 1


def default_tensor_shapes(params: Sequence[Any]) -> list:
    return [
        [max_of(1), param_length(params[0])],
        [max_of(1), param_length(params[1])],
    ]


def _coerce_shapes(shapes: Sequence[Any]) -> list:
    migrated = migrate_tensor_shapes(list(shapes))
    return [[coerce_dimension(dim) for dim in shape] for shape in migrated]


def resolve_config(config: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Fill missing configuration keys with defaults.

    The mapping is updated in place and returned.  ``system.params`` must be
    present; shape defaults are derived from it.
    """

    params = config["system"]["params"]
    neural = config.setdefault("neural", {})
    if neural is None:
        neural = config["neural"] = {}
    for section in ("model", "layers"):
        if neural.get(section) is None:
            neural[section] = {}
    model = neural["model"]
    layers = neural["layers"]

    if not model and not layers:
        logger.info(
            "Using default preset for standard regression task. "
            "Feel free to specify your configuration @ session.config."
        )

    sections = {"model": model, "layers": layers}
    for space, key, default in _DEFAULTS:
        if sections[space].get(key) is None:
            sections[space][key] = default

    if layers.get("tensor_shapes") is None:
        layers["tensor_shapes"] = default_tensor_shapes(params)
    else:
        layers["tensor_shapes"] = _coerce_shapes(layers["tensor_shapes"])

    system = config["system"]
    system.setdefault("visual", False)
    system.setdefault("csv_path", None)
    return config


def load_config(path: str | Path) -> Config:
    """Read a configuration mapping from a JSON or YAML file."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load configuration files in YAML format") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return dict(data)


def _encode(value: Any) -> Any:
    if isinstance(value, Deferred):
        return encode_dimension(value)
    if isinstance(value, Mapping):
        return {str(k): _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    if hasattr(value, "item") and callable(value.item):
        return value.item()
    return value


def config_to_json(config: Mapping[str, Any], *, exclude: Iterable[str] = TRANSIENT_GENERATED_KEYS) -> str:
    """Serialize ``config`` leaving out transient ``generated`` entries."""

    reduced = {k: v for k, v in config.items() if k != "generated"}
    generated = config.get("generated")
    if generated is not None:
        skip = set(exclude)
        reduced["generated"] = {k: v for k, v in generated.items() if k not in skip}
    return json.dumps(_encode(reduced))


def config_from_json(text: str) -> Config:
    data = json.loads(text)
    layers = data.get("neural", {}).get("layers", {})
    if layers.get("tensor_shapes") is not None:
        layers["tensor_shapes"] = _coerce_shapes(layers["tensor_shapes"])
    data.setdefault("generated", {})
    return data


def copy_config(config: Mapping[str, Any]) -> Config:
    """Deep copy ``config`` while sharing the live ``latest_model`` handle."""

    memo: Dict[int, Any] = {}
    latest = (config.get("generated") or {}).get("latest_model")
    if latest is not None:
        memo[id(latest)] = latest
    return copy.deepcopy(dict(config), memo)


__all__ = [
    "Config",
    "TRANSIENT_GENERATED_KEYS",
    "config_from_json",
    "config_to_json",
    "copy_config",
    "default_tensor_shapes",
    "load_config",
    "param_length",
    "resolve_config",
]
