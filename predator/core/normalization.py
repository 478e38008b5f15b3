"""Global min-max normalization and the per-session statistics cache."""

from __future__ import annotations

import logging
from typing import Iterator, List

import numpy as np

from .types import Array, NormalizationEntry

logger = logging.getLogger(__name__)

FEATURES = 0
LABELS = 1


def normalize(tensor: Array, entry: NormalizationEntry | None = None) -> Array:
    """Scale ``tensor`` into ``[0, 1]``.

    Statistics come from ``entry`` when supplied, otherwise from the tensor
    itself.  A zero range is not special-cased and yields non-finite values.
    """

    stats = entry if entry is not None else NormalizationEntry.from_tensor(tensor)
    with np.errstate(divide="ignore", invalid="ignore"):
        return (tensor - stats.min) / (stats.max - stats.min)


def denormalize(tensor: Array, entry: NormalizationEntry) -> Array:
    """Undo :func:`normalize` with the statistics captured at build time."""

    if entry is None:
        raise ValueError("denormalize requires an explicit normalization entry")
    return tensor * (entry.max - entry.min) + entry.min


class NormalizationCache:
    """Append-only statistics store: feature entry first, label entry second."""

    def __init__(self) -> None:
        self._entries: List[NormalizationEntry] = []

    def append(self, entry: NormalizationEntry) -> None:
        if entry.span == 0:
            logger.warning(
                "Tensor at cache index %d has min == max == %s; normalized values will not be finite",
                len(self._entries),
                entry.min,
            )
        self._entries.append(entry)

    def record(self, tensor: Array) -> NormalizationEntry:
        entry = NormalizationEntry.from_tensor(tensor)
        self.append(entry)
        return entry

    def __getitem__(self, index: int) -> NormalizationEntry:
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[NormalizationEntry]:
        return iter(self._entries)

    @property
    def features(self) -> NormalizationEntry:
        return self._entries[FEATURES]

    @property
    def labels(self) -> NormalizationEntry:
        return self._entries[LABELS]

    def as_list(self) -> List[dict[str, float]]:
        return [{"min": e.min, "max": e.max} for e in self._entries]


__all__ = ["NormalizationCache", "normalize", "denormalize", "FEATURES", "LABELS"]
