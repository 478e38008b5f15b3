"""Model references and their resolution into live predictors.

Every component obtains a concrete model through :func:`unpack`; nothing
else reads model artifacts from the blob store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .storage.blob import BlobStore
from .storage.snapshots import model_key
from .training.model import SequentialModel


@dataclass(frozen=True)
class ByHandle:
    """A live model, used as is."""

    handle: Any

    @property
    def name(self) -> str | None:
        return getattr(self.handle, "name", None)


@dataclass(frozen=True)
class ByName:
    """A model name to look up in the blob store."""

    name: str
    on_missing: Optional[Callable[[], None]] = None


@dataclass(frozen=True)
class Implicit:
    """Whatever the session trained or restored last."""

    name = None


ModelReference = Union[ByHandle, ByName, Implicit]


def as_reference(value: Any) -> ModelReference:
    """Convert ``None``, a model name or a live model into a reference."""

    if isinstance(value, (ByHandle, ByName, Implicit)):
        return value
    if value is None:
        return Implicit()
    if isinstance(value, str):
        return ByName(value)
    if callable(getattr(value, "predict", None)):
        return ByHandle(value)
    raise TypeError(f"Cannot use {type(value).__name__} as a model reference")


def get_model_by_name(name: str, store: BlobStore) -> SequentialModel | None:
    data = store.get(model_key(name))
    if data is None:
        return None
    model = SequentialModel.from_json(data)
    model.name = name
    return model


def unpack(ref: ModelReference, store: BlobStore) -> Any | None:
    """Resolve ``ref`` into a model, or ``None`` when nothing matches."""

    if isinstance(ref, Implicit):
        return None
    if isinstance(ref, ByHandle):
        return ref.handle
    if isinstance(ref, ByName):
        model = get_model_by_name(ref.name, store)
        if model is None and ref.on_missing is not None:
            ref.on_missing()
        return model
    raise TypeError(f"Unsupported model reference: {ref!r}")


__all__ = [
    "ByHandle",
    "ByName",
    "Implicit",
    "ModelReference",
    "as_reference",
    "get_model_by_name",
    "unpack",
]
