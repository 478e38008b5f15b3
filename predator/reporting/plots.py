"""Headless-safe plotting adapters."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, List, Mapping, Sequence, Tuple


def _pyplot():
    import matplotlib

    matplotlib.use("Agg", force=True)
    import matplotlib.pyplot as plt  # imported lazily for headless safety

    return plt


def _slug(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "-", name).strip("-").lower() or "plot"


def _scalar(value: Any) -> float:
    if isinstance(value, (list, tuple)):
        return float(value[0])
    return float(value)


class PlotAdapter:
    """Render scatter, bar and loss-curve figures as PNG files under ``run_dir``."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float]] = []
        self.rendered: List[Path] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self._history.append((epoch, float(metrics.get("loss", 0.0))))

    __call__ = on_epoch

    def _save(self, fig, name: str) -> Path:
        plt = _pyplot()
        path = self.run_dir / f"{_slug(name)}.png"
        fig.savefig(path)
        plt.close(fig)
        self.rendered.append(path)
        return path

    def scatter(
        self,
        values: Sequence[Sequence[Mapping[str, Any]]],
        series: Sequence[str],
        *,
        x_label: str,
        y_label: str,
        name: str,
    ) -> Path | None:
        """Plot each list of ``{x, y}`` points as its own labelled series."""

        if not self.enable_plots:
            return None
        plt = _pyplot()
        fig, ax = plt.subplots()
        for points, label in zip(values, series):
            if not points:
                continue
            xs = [_scalar(p["x"]) for p in points]
            ys = [_scalar(p["y"]) for p in points]
            ax.scatter(xs, ys, s=8, label=label)
        ax.set_xlabel(x_label)
        ax.set_ylabel(y_label)
        ax.set_title(name)
        ax.legend()
        return self._save(fig, name)

    def barchart(self, bars: Sequence[Mapping[str, Any]], *, name: str) -> Path | None:
        if not self.enable_plots:
            return None
        plt = _pyplot()
        fig, ax = plt.subplots()
        ax.bar([str(b["index"]) for b in bars], [float(b["value"]) for b in bars])
        ax.set_title(name)
        return self._save(fig, name)

    def close(self) -> Path | None:
        """Write the collected epoch losses as ``training-performance.png``."""

        if not self.enable_plots or not self._history:
            return None
        plt = _pyplot()
        epochs, losses = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(epochs, losses)
        ax.set_xlabel("Epoch")
        ax.set_ylabel("Loss")
        ax.set_title("Training Performance")
        self._history = []
        return self._save(fig, "Training Performance")
