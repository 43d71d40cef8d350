# hmmtag/perceptron.py
"""Structured-perceptron update for HMM-like taggers.

`update` compares a correct and a predicted label path for the same input and
moves the weights toward the correct one. Only parameters on the symmetric
difference of the two paths are touched:

-   At a token where the labels differ, the emission weights of the correct
    state gain ``rate`` and those of the predicted state lose ``rate`` (plus the
    initial weights at token 0, or the incoming transitions at later tokens).
-   At a token where the labels agree but the previous labels did not, the two
    paths re-converged through different transitions, so only the incoming
    transitions are updated.
-   Everywhere else nothing changes.

When the two paths are identical no parameter moves.
"""
from __future__ import annotations

from .store import ParameterStore
from .types import SequenceInput, SequenceOutput, check_same_length

__all__ = ["update"]


def update(
    input: SequenceInput,
    correct: SequenceOutput,
    predicted: SequenceOutput,
    store: ParameterStore,
    learning_rate: float,
) -> float:
    """
    Applies one online update to ``store`` in place.

    Every precondition is checked before the first weight changes, so a call
    that raises leaves the store exactly as it was.

    Args:
        input: The token feature sets shared by both outputs.
        correct: The gold label path.
        predicted: The label path returned by the decoder.
        store: The parameter store to mutate.
        learning_rate: The amount added to (and subtracted from) each
            affected parameter.

    Returns:
        The Hamming loss between the two paths, i.e. the number of tokens
        whose labels differ.

    Raises:
        ValueError: If the three sequences do not have the same length, or the
            input is empty.
        IndexError: If a label is not a valid state of the store.
    """
    length = len(input)
    if length < 1:
        raise ValueError("Cannot update on an empty sequence.")
    check_same_length(length, correct, predicted)
    correct.validate(store.num_states)
    predicted.validate(store.num_states)

    loss = 0.0

    # First token.
    label_correct = correct[0]
    label_predicted = predicted[0]
    if label_correct != label_predicted:
        loss += 1.0
        store.add_initial(label_correct, learning_rate)
        store.add_initial(label_predicted, -learning_rate)
        store.add_emission(input.features(0), label_correct, learning_rate)
        store.add_emission(input.features(0), label_predicted, -learning_rate)

    prev_correct = label_correct
    prev_predicted = label_predicted
    for tkn in range(1, length):
        label_correct = correct[tkn]
        label_predicted = predicted[tkn]
        if label_correct != label_predicted:
            loss += 1.0
            store.add_emission(input.features(tkn), label_correct, learning_rate)
            store.add_emission(input.features(tkn), label_predicted, -learning_rate)
            store.add_transition(prev_correct, label_correct, learning_rate)
            store.add_transition(prev_predicted, label_predicted, -learning_rate)
        elif prev_correct != prev_predicted:
            store.add_transition(prev_correct, label_correct, learning_rate)
            store.add_transition(prev_predicted, label_predicted, -learning_rate)

        prev_correct = label_correct
        prev_predicted = label_predicted

    return loss
