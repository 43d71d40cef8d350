# hmmtag/config.py
"""Manages the loading and validation of training configuration.

This module defines the `Config` dataclass, the single typed container for
every knob of the training and tagging scripts, and `load_config`, which reads
those settings from a YAML file and fills in defaults for anything missing.
Command-line flags in the scripts are applied on top of the returned object
with `dataclasses.replace`.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional

import yaml

LEARNING_RATE_SCHEDULES = ("constant", "linear", "sqrt")
STORE_KINDS = ("sparse", "dense")


@dataclass
class Config:
    """
    A typed configuration object for perceptron training and tagging.

    Attributes:
        epochs: Number of passes over the training set.
        learning_rate: Base amount added to / subtracted from each parameter
                       touched by an update.
        learning_rate_schedule: How the rate evolves per epoch: ``constant``,
                                ``linear`` (rate / epoch) or ``sqrt``
                                (rate / sqrt(epoch)).
        average: When true, the final model is the average of the per-epoch
                 parameters instead of the last ones.
        shuffle: Shuffle the training examples at the start of every epoch.
        seed: Seed for the shuffling RNG. ``None`` means nondeterministic.
        default_state: Label used as the decoder's tie-break state. It is put
                       first in the state encoding, so it gets code 0.
        store: Parameter backing, ``sparse`` or ``dense``.
        paths: Free-form paths (``model``, ``train``, ``test``) relative to the
               config file.
    """
    epochs: int = 10
    learning_rate: float = 1.0
    learning_rate_schedule: str = "constant"
    average: bool = True
    shuffle: bool = True
    seed: Optional[int] = None
    default_state: str = "O"
    store: str = "sparse"
    paths: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.epochs < 1:
            raise ValueError(f"epochs must be at least 1, got {self.epochs}.")
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}.")
        if self.learning_rate_schedule not in LEARNING_RATE_SCHEDULES:
            raise ValueError(
                f"Unknown learning_rate_schedule '{self.learning_rate_schedule}'. "
                f"Expected one of {LEARNING_RATE_SCHEDULES}."
            )
        if self.store not in STORE_KINDS:
            raise ValueError(f"Unknown store '{self.store}'. Expected one of {STORE_KINDS}.")


def _section(y: dict, name: str, path: str) -> dict:
    section = y.get(name, {}) or {}
    if not isinstance(section, dict):
        raise TypeError(f"Section '{name}' in {path} must be a dictionary.")
    return section


def _flag(section: dict, key: str, default: bool, path: str) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' in {path} must be true or false, got {value!r}.")
    return value


def load_config(path: str = "config.yaml") -> Config:
    """
    Loads and validates a YAML configuration file into a `Config` object.

    The file has a ``training`` section (epochs, learning rate, schedule,
    averaging, shuffling, seed), a ``model`` section (default state, store
    kind) and a flat ``paths`` mapping. Any missing key falls back to the
    `Config` default.

    Args:
        path: The path to the YAML configuration file.

    Returns:
        A fully populated and validated `Config` object.

    Raises:
        FileNotFoundError: If the configuration file cannot be found.
        ValueError: If the YAML cannot be parsed or a value is invalid.
        TypeError: If the root of the YAML file or one of its sections is not
                   a dictionary.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            y = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found at: {path}")
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file at {path}: {e}")

    if y is None:
        y = {}
    if not isinstance(y, dict):
        raise TypeError(f"Configuration file {path} must be a dictionary.")

    training = _section(y, "training", path)
    model = _section(y, "model", path)
    paths = _section(y, "paths", path)
    defaults = Config()

    seed = training.get("seed", defaults.seed)
    return Config(
        epochs=int(training.get("epochs", defaults.epochs)),
        learning_rate=float(training.get("learning_rate", defaults.learning_rate)),
        learning_rate_schedule=str(training.get("learning_rate_schedule", defaults.learning_rate_schedule)),
        average=_flag(training, "average", defaults.average, path),
        shuffle=_flag(training, "shuffle", defaults.shuffle, path),
        seed=int(seed) if seed is not None else None,
        default_state=str(model.get("default_state", defaults.default_state)),
        store=str(model.get("store", defaults.store)),
        paths={k: str(v) for k, v in paths.items()},
    )
