# hmmtag/trainer.py
"""Online perceptron training loop.

Each epoch walks the training set once: every example is decoded with the
current parameters and, when the prediction is wrong, `perceptron.update`
moves the weights toward the gold path. With averaging enabled the parameters
are snapshotted after every epoch and the store ends up holding their mean,
which is far less sensitive to the order of the last few updates than the
final weights.
"""
from __future__ import annotations
import math
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from tqdm import tqdm

from .averaging import ParameterAverager
from .config import Config
from .perceptron import update
from .store import ParameterStore
from .types import LabeledSequence, SequenceInput, SequenceOutput
from .viterbi import decode


@dataclass
class EpochStats:
    """Training statistics of one epoch."""
    epoch: int
    learning_rate: float
    loss: float
    num_tokens: int
    num_updates: int
    eval_score: Optional[float] = None

    @property
    def accuracy(self) -> float:
        return 1.0 - self.loss / self.num_tokens if self.num_tokens else 0.0


@dataclass
class TrainingHistory:
    epochs: List[EpochStats] = field(default_factory=list)


def epoch_learning_rate(cfg: Config, epoch: int) -> float:
    """Returns the learning rate used during ``epoch`` (1-based)."""
    if cfg.learning_rate_schedule == "linear":
        return cfg.learning_rate / epoch
    if cfg.learning_rate_schedule == "sqrt":
        return cfg.learning_rate / math.sqrt(epoch)
    return cfg.learning_rate


def train(
    dataset: Sequence[LabeledSequence],
    store: ParameterStore,
    cfg: Config,
    evaluate: Optional[Callable[[ParameterStore], float]] = None,
    verbose: bool = True,
) -> TrainingHistory:
    """
    Trains ``store`` in place with the averaged structured perceptron.

    Args:
        dataset: The labeled training sequences.
        store: The parameter store to train. Usually freshly created.
        cfg: Training settings (epochs, learning rate and schedule,
             averaging, shuffling and seed).
        evaluate: Optional callback run after every epoch with the store; its
                  return value is recorded as the epoch's ``eval_score``. When
                  averaging is on, it sees the averaged parameters so far.
        verbose: Print progress bars and a summary line per epoch.

    Returns:
        A `TrainingHistory` with one `EpochStats` entry per epoch.

    Raises:
        ValueError: If the dataset is empty.
    """
    if not dataset:
        raise ValueError("Cannot train on an empty dataset.")

    rng = random.Random(cfg.seed)
    order = list(range(len(dataset)))
    averager = ParameterAverager(store) if cfg.average else None
    history = TrainingHistory()
    num_tokens = sum(len(example) for example in dataset)

    for epoch in range(1, cfg.epochs + 1):
        if cfg.shuffle:
            rng.shuffle(order)
        rate = epoch_learning_rate(cfg, epoch)

        loss = 0.0
        num_updates = 0
        for idx in tqdm(order, desc=f"Epoch {epoch}/{cfg.epochs}", unit="seq", disable=not verbose):
            example = dataset[idx]
            predicted = decode(example.input, store)
            if predicted.labels == example.output.labels:
                continue
            loss += update(example.input, example.output, predicted, store, rate)
            num_updates += 1

        stats = EpochStats(
            epoch=epoch,
            learning_rate=rate,
            loss=loss,
            num_tokens=num_tokens,
            num_updates=num_updates,
        )

        if averager is not None:
            averager.accumulate(epoch)

        if evaluate is not None:
            stats.eval_score = _evaluate_averaged(store, averager, epoch, evaluate)

        history.epochs.append(stats)
        if verbose:
            line = (
                f"Epoch {epoch}: loss={loss:.0f} train-acc={stats.accuracy:.2%} "
                f"updates={num_updates}/{len(dataset)}"
            )
            if stats.eval_score is not None:
                line += f" eval={stats.eval_score:.4f}"
            print(line)

    if averager is not None:
        averager.average(cfg.epochs)
    return history


def _evaluate_averaged(
    store: ParameterStore,
    averager: Optional[ParameterAverager],
    epoch: int,
    evaluate: Callable[[ParameterStore], float],
) -> float:
    if averager is None:
        return evaluate(store)
    current = store.snapshot()
    store.restore(averager.averaged(epoch))
    try:
        return evaluate(store)
    finally:
        store.restore(current)


def predict_all(inputs: Sequence[SequenceInput], store: ParameterStore, verbose: bool = False) -> List[SequenceOutput]:
    """Decodes every sequence of ``inputs``."""
    return [decode(seq, store) for seq in tqdm(inputs, desc="Tagging", unit="seq", disable=not verbose)]
