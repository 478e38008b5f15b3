"""Command line entry point for Predator training sessions."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from predator.config import load_config
from predator.core.errors import PredatorError
from predator.logging_config import setup_logging
from predator.session import Predator
from predator.storage import DirectoryBlobStore, saved_models


def _format_result(payload: dict) -> str:
    return json.dumps(payload, sort_keys=True)


def _columns(text: str) -> str | list[str]:
    names = [name.strip() for name in text.split(",") if name.strip()]
    return names[0] if len(names) == 1 else names


def _values(text: str) -> list[float]:
    return [float(value) for value in text.split(",") if value.strip()]


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", type=Path, help="JSON/YAML session configuration")
    parser.add_argument("--csv-path", help="Override system.csv_path")
    parser.add_argument(
        "--features", type=_columns, help="Comma separated feature column(s)"
    )
    parser.add_argument("--labels", type=_columns, help="Comma separated label column(s)")
    parser.add_argument("--epochs", type=int, help="Override neural.model.epochs")
    parser.add_argument("--seed", type=int, help="Seed used for dataset shuffling and weights")
    parser.add_argument(
        "--store-dir",
        type=Path,
        help="Blob store directory (defaults to $PREDATOR_STORE_DIR or ~/.cache/predator)",
    )
    parser.add_argument("--train", metavar="NAME", help="Train and save the model as NAME")
    parser.add_argument(
        "--predict", type=_values, metavar="V1,V2", help="Predict labels for one sample"
    )
    parser.add_argument("--model", help="Model name used by --predict")
    parser.add_argument(
        "--list-models", action="store_true", help="List saved models and exit"
    )
    parser.add_argument(
        "--enable-plots", action="store_true", help="Render plots (sets system.visual)"
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> dict:
    config: dict = load_config(args.config) if args.config else {}
    system = config.setdefault("system", {})
    params = list(system.get("params") or [None, None])
    if args.features is not None:
        params[0] = args.features
    if args.labels is not None:
        params[1] = args.labels
    system["params"] = params
    if args.csv_path:
        system["csv_path"] = args.csv_path
    if args.seed is not None:
        system["seed"] = int(args.seed)
    if args.enable_plots:
        system["visual"] = True
    if args.epochs is not None:
        config.setdefault("neural", {}).setdefault("model", {})["epochs"] = int(args.epochs)
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(getattr(logging, str(args.log_level).upper(), logging.INFO))
    store = DirectoryBlobStore(args.store_dir)

    if args.list_models:
        for name in saved_models(store):
            print(name)
        raise SystemExit(0)

    if not args.train and args.predict is None:
        raise SystemExit("Nothing to do: pass --train NAME and/or --predict V1,V2")

    config = _build_config(args)
    if args.train and None in config["system"]["params"]:
        raise SystemExit("Training needs feature and label columns (--features/--labels or config)")
    if None in config["system"]["params"]:
        # Prediction against a stored model only needs its persisted config.
        config["system"]["params"] = [[], []]

    session = Predator(config, store)
    try:
        if args.train:
            session.train(args.train)
            generated = session.config["generated"]
            print(
                _format_result(
                    {
                        "model": args.train,
                        "loss": generated["loss"],
                        "tensor_shapes": session.config["neural"]["layers"]["tensor_shapes"],
                        "performance": generated["performance"],
                    }
                )
            )
        if args.predict is not None:
            prediction = session.predict(args.predict, args.model)
            print(_format_result({"model": session.active_model.name, "prediction": prediction}))
    except PredatorError as exc:
        raise SystemExit(f"{exc.code}: {exc}") from exc


if __name__ == "__main__":
    main()
