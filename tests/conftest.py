from __future__ import annotations

from typing import List

import numpy as np
import pandas as pd
import pytest

from predator.storage import MemoryBlobStore


class CountingStore(MemoryBlobStore):
    """In-memory store that remembers every key read."""

    def __init__(self) -> None:
        super().__init__()
        self.reads: List[str] = []

    def get(self, key: str) -> str | None:
        self.reads.append(key)
        return super().get(key)


@pytest.fixture
def store() -> CountingStore:
    return CountingStore()


@pytest.fixture
def write_csv(tmp_path):
    def _write(rows: int = 21, name: str = "data.csv", offset: float = 0.0):
        x = np.arange(rows, dtype=np.float64)
        frame = pd.DataFrame({"a": x + offset, "b": 2 * x + offset, "c": 3 * x + 1 + offset})
        path = tmp_path / name
        frame.to_csv(path, index=False)
        return path

    return _write


@pytest.fixture
def make_config(write_csv):
    def _config(*, rows: int = 21, name: str = "data.csv", offset: float = 0.0, **system):
        path = write_csv(rows=rows, name=name, offset=offset)
        cfg = {
            "neural": {"model": {"epochs": 3}},
            "system": {"params": [["a", "b"], ["c"]], "csv_path": str(path), "seed": 0},
        }
        cfg["system"].update(system)
        return cfg

    return _config
