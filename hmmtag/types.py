# hmmtag/types.py

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Sequence, Tuple

__all__ = [
    "SequenceInput",
    "SequenceOutput",
    "LabeledSequence",
    "check_same_length",
    "check_state",
]


def check_state(state: int, num_states: int) -> None:
    """Raises IndexError when ``state`` is not a valid state index."""
    if not 0 <= state < num_states:
        raise IndexError(f"State {state} is out of range [0, {num_states}).")


def check_same_length(expected: int, *sequences: Sequence) -> None:
    """Raises ValueError unless every sequence has ``expected`` elements."""
    for seq in sequences:
        if len(seq) != expected:
            raise ValueError(
                f"Sequence length mismatch: expected {expected}, got {len(seq)}."
            )


@dataclass(frozen=True)
class SequenceInput:
    """
    The observed side of one example: an ordered list of token feature sets.

    Each token exposes the set of feature indices active at that position.
    Feature indices are plain non-negative integers, typically codes handed
    out by a `StringEncoding`. Duplicates within a token are collapsed while
    keeping the first-seen order, so emission sums are computed in a stable
    order.

    Attributes:
        tokens: One tuple of feature indices per position. Never empty.
    """
    tokens: Tuple[Tuple[int, ...], ...]

    def __post_init__(self) -> None:
        if not self.tokens:
            raise ValueError("A sequence input must contain at least one token.")
        for pos, ftrs in enumerate(self.tokens):
            for ftr in ftrs:
                if ftr < 0:
                    raise IndexError(f"Negative feature index {ftr} at token {pos}.")

    @classmethod
    def from_features(cls, tokens: Iterable[Iterable[int]]) -> "SequenceInput":
        """Builds an input from any iterable of per-token feature iterables."""
        return cls(tuple(tuple(dict.fromkeys(int(f) for f in ftrs)) for ftrs in tokens))

    def __len__(self) -> int:
        return len(self.tokens)

    def features(self, token: int) -> Tuple[int, ...]:
        return self.tokens[token]


@dataclass
class SequenceOutput:
    """A mutable label assignment, one state index per token."""
    labels: List[int]

    @classmethod
    def empty(cls, length: int, fill: int = 0) -> "SequenceOutput":
        if length < 1:
            raise ValueError("A sequence output must contain at least one token.")
        return cls([fill] * length)

    def __len__(self) -> int:
        return len(self.labels)

    def __iter__(self) -> Iterator[int]:
        return iter(self.labels)

    def __getitem__(self, token: int) -> int:
        return self.labels[token]

    def __setitem__(self, token: int, state: int) -> None:
        self.labels[token] = state

    def validate(self, num_states: int) -> None:
        """Checks every label against ``num_states``."""
        for state in self.labels:
            check_state(state, num_states)


@dataclass(frozen=True)
class LabeledSequence:
    """A dataset element: an input together with its gold label sequence."""
    input: SequenceInput
    output: SequenceOutput = field(compare=False)

    def __post_init__(self) -> None:
        check_same_length(len(self.input), self.output)

    def __len__(self) -> int:
        return len(self.input)
