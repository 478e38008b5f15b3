"""Snapshot persistence: config, point records and model artifact per name."""

from __future__ import annotations

import json
import logging
from typing import Any, List, Mapping, Sequence

from ..config import Config, config_from_json, config_to_json
from ..core.errors import ConfigLookupFailure
from ..core.types import PointRecord
from .blob import BlobStore

logger = logging.getLogger(__name__)

CONFIG_PATH = "predator/config"
BIGDATA_PATH = "predator/bigdata"
MODELS_PATH = "predator/models"


def config_key(name: str) -> str:
    return f"{CONFIG_PATH}/{name}"


def bigdata_key(name: str) -> str:
    return f"{BIGDATA_PATH}/{name}"


def model_key(name: str) -> str:
    return f"{MODELS_PATH}/{name}"


def save_snapshot(
    model: Any,
    name: str,
    points: Sequence[PointRecord],
    config: Mapping[str, Any],
    store: BlobStore,
) -> None:
    """Persist the whole snapshot for ``name``, replacing any previous one."""

    store.set(config_key(name), config_to_json(config))
    store.set(bigdata_key(name), json.dumps([p.as_dict() for p in points]))
    store.set(model_key(name), model.to_json())
    logger.info("Saved model %r with %d points", name, len(points))


def get_config(name: str, store: BlobStore, fallback: Config | None = None) -> Config:
    """Return the persisted configuration for ``name`` or ``fallback``."""

    data = store.get(config_key(name))
    if data is not None:
        logger.info("Config for model %r found.", name)
        return config_from_json(data)

    logger.info("Config for model %r not found.", name)
    if fallback is None:
        raise ConfigLookupFailure(
            f"Config for model {name!r} does not exist and no fallback was provided."
        )
    logger.info("Predator will use config fallback, since it is present.")
    return fallback


def load_points(name: str, store: BlobStore) -> List[PointRecord] | None:
    data = store.get(bigdata_key(name))
    if data is None:
        return None
    return [PointRecord.from_mapping(item) for item in json.loads(data)]


def saved_models(store: BlobStore) -> List[str]:
    """Names of every model artifact in ``store``."""

    prefix = f"{MODELS_PATH}/"
    return [key[len(prefix):] for key in store.list_keys() if key.startswith(prefix)]


__all__ = [
    "BIGDATA_PATH",
    "CONFIG_PATH",
    "MODELS_PATH",
    "bigdata_key",
    "config_key",
    "get_config",
    "load_points",
    "model_key",
    "save_snapshot",
    "saved_models",
]
