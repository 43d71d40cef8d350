# hmmtag/viterbi.py
"""Exact Viterbi decoding over a `ParameterStore`.

The decoder fills two ``T x S`` tables per call:

-   ``delta[t, s]``: the best score of any partial path that ends in state
    ``s`` at token ``t``.
-   ``psi[t, s]``: the predecessor state of that best partial path
    (row 0 is unused).

Scores are additive log-domain weights, so nothing is normalized and a
non-finite parameter simply flows through into the result.

Ties are never broken by "first index wins". Both the predecessor search and
the final-state search are seeded with the store's default state, which is
only replaced by a *strictly* greater candidate. Among the remaining states
the earliest index scanned keeps a tie. Trained models depend on this order,
so the scans below must stay sequential comparisons rather than an argmax.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .store import ParameterStore
from .types import SequenceInput, SequenceOutput, check_same_length

__all__ = ["Trellis", "token_emission_weight", "viterbi", "decode", "sequence_score"]


@dataclass(frozen=True)
class Trellis:
    """
    The filled dynamic-programming tables of one decode call.

    Attributes:
        delta: ``(T, S)`` float array of best partial-path scores.
        psi: ``(T, S)`` int array of best predecessor states.
        best_final_state: The state selected for the last token.
        best_score: ``delta[T - 1, best_final_state]``, the score of the
            decoded path.
    """
    delta: np.ndarray
    psi: np.ndarray
    best_final_state: int
    best_score: float

    def backtrack(self) -> SequenceOutput:
        """Follows psi from the best final state back to the first token."""
        length = self.delta.shape[0]
        output = SequenceOutput.empty(length)
        state = self.best_final_state
        for tkn in range(length - 1, 0, -1):
            output[tkn] = state
            state = int(self.psi[tkn, state])
        output[0] = state
        return output


def token_emission_weight(store: ParameterStore, features: Sequence[int], state: int) -> float:
    """Returns the summed emission weight of ``state`` over one token's features."""
    weight = 0.0
    for ftr in features:
        weight += store.emission(state, ftr)
    return weight


def _best_predecessor(delta_prev: np.ndarray, store: ParameterStore, to_state: int) -> tuple[int, float]:
    default_state = store.default_state
    best_state = default_state
    best_weight = delta_prev[default_state] + store.transition(default_state, to_state)
    for from_state in range(store.num_states):
        weight = delta_prev[from_state] + store.transition(from_state, to_state)
        if weight > best_weight:
            best_weight = weight
            best_state = from_state
    return best_state, best_weight


def viterbi(input: SequenceInput, store: ParameterStore) -> Trellis:
    """
    Runs the Viterbi recursion and returns the filled tables.

    Args:
        input: The token feature sets to decode. Must hold at least one token.
        store: The parameter store to read weights from. It is not modified.

    Returns:
        A `Trellis` holding delta, psi and the selected final state.

    Raises:
        ValueError: If the input is empty.
        IndexError: If a feature index is rejected by the store.
    """
    num_states = store.num_states
    length = len(input)
    if length < 1:
        raise ValueError("Cannot decode an empty sequence.")
    default_state = store.default_state

    delta = np.zeros((length, num_states), dtype=np.float64)
    psi = np.zeros((length, num_states), dtype=np.int64)

    for state in range(num_states):
        delta[0, state] = token_emission_weight(store, input.features(0), state) + store.initial(state)

    for tkn in range(1, length):
        features = input.features(tkn)
        for state in range(num_states):
            best_state, best_weight = _best_predecessor(delta[tkn - 1], store, state)
            psi[tkn, state] = best_state
            delta[tkn, state] = best_weight + token_emission_weight(store, features, state)

    # The default state is always the first option.
    best_final = default_state
    best_weight = delta[length - 1, default_state]
    for state in range(num_states):
        if delta[length - 1, state] > best_weight:
            best_weight = delta[length - 1, state]
            best_final = state

    return Trellis(delta=delta, psi=psi, best_final_state=best_final, best_score=float(best_weight))


def decode(input: SequenceInput, store: ParameterStore) -> SequenceOutput:
    """Returns the highest-scoring label sequence for ``input``."""
    return viterbi(input, store).backtrack()


def sequence_score(input: SequenceInput, output: SequenceOutput, store: ParameterStore) -> float:
    """Computes the additive score of an arbitrary label path."""
    check_same_length(len(input), output)
    output.validate(store.num_states)
    score = store.initial(output[0]) + token_emission_weight(store, input.features(0), output[0])
    for tkn in range(1, len(input)):
        score += store.transition(output[tkn - 1], output[tkn])
        score += token_emission_weight(store, input.features(tkn), output[tkn])
    return score
