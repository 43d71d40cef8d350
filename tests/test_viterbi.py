import itertools
import math
import random
import unittest

import numpy as np
import pytest

from hmmtag.store import DenseParameterStore, SparseParameterStore
from hmmtag.types import SequenceInput, SequenceOutput
from hmmtag.viterbi import decode, sequence_score, token_emission_weight, viterbi


def random_store(rng: random.Random, num_states: int, num_features: int, default_state: int = 0) -> DenseParameterStore:
    store = DenseParameterStore(num_states, num_features, default_state=default_state)
    store.initial_weights[:] = [rng.uniform(-2, 2) for _ in range(num_states)]
    store.transition_weights[:] = [[rng.uniform(-2, 2) for _ in range(num_states)] for _ in range(num_states)]
    store.emission_weights[:] = [[rng.uniform(-2, 2) for _ in range(num_features)] for _ in range(num_states)]
    return store


def random_input(rng: random.Random, length: int, num_features: int) -> SequenceInput:
    return SequenceInput.from_features(
        [rng.sample(range(num_features), rng.randint(0, min(3, num_features))) for _ in range(length)]
    )


def test_decode_matches_exhaustive_search():
    rng = random.Random(1234)
    for _ in range(60):
        num_states = rng.randint(1, 3)
        length = rng.randint(1, 4)
        store = random_store(rng, num_states, num_features=5, default_state=rng.randrange(num_states))
        seq = random_input(rng, length, num_features=5)

        best = max(
            sequence_score(seq, SequenceOutput(list(path)), store)
            for path in itertools.product(range(num_states), repeat=length)
        )
        trellis = viterbi(seq, store)
        output = trellis.backtrack()

        assert sequence_score(seq, output, store) == pytest.approx(best)
        assert trellis.best_score == pytest.approx(best)


def test_backpointers_are_consistent_with_output():
    rng = random.Random(99)
    for _ in range(20):
        store = random_store(rng, 3, 4)
        seq = random_input(rng, 6, 4)
        trellis = viterbi(seq, store)
        output = trellis.backtrack()
        assert output[len(seq) - 1] == trellis.best_final_state
        for t in range(1, len(seq)):
            assert trellis.psi[t, output[t]] == output[t - 1]


def test_zigzag_scenario(zigzag_store, zigzag_input):
    trellis = viterbi(zigzag_input, zigzag_store)

    assert trellis.backtrack().labels == [0, 1, 0]
    # Three emissions of 2 plus the two switching transitions of 1.
    assert trellis.best_score == pytest.approx(8.0)
    np.testing.assert_allclose(trellis.delta[0], [2.0, 0.0])
    np.testing.assert_allclose(trellis.delta[1], [2.0, 5.0])
    np.testing.assert_allclose(trellis.delta[2], [8.0, 5.0])


def test_single_token_uses_initial_and_emission():
    store = SparseParameterStore(num_states=3)
    store.add_initial(2, 1.5)
    store.add_emission([7], 1, 1.0)
    seq = SequenceInput.from_features([[7]])

    assert decode(seq, store).labels == [2]
    assert token_emission_weight(store, seq.features(0), 1) == 1.0


def test_decode_does_not_modify_store(zigzag_store, zigzag_input):
    before = zigzag_store.snapshot()
    decode(zigzag_input, zigzag_store)
    after = zigzag_store.snapshot()
    for name in before:
        np.testing.assert_array_equal(before[name], after[name])


def test_non_finite_parameters_propagate():
    store = DenseParameterStore(num_states=2, num_features=1)
    store.emission_weights[1, 0] = math.inf
    trellis = viterbi(SequenceInput.from_features([[0], [0]]), store)

    assert math.isinf(trellis.best_score)
    # Both final scores are +inf, so the default state keeps the tie.
    assert trellis.backtrack().labels == [1, 0]


def test_unknown_feature_in_dense_store_raises():
    store = DenseParameterStore(num_states=2, num_features=2)
    with pytest.raises(IndexError):
        decode(SequenceInput.from_features([[0], [5]]), store)


class TestTieBreaking(unittest.TestCase):
    def test_all_ties_resolve_to_default_state(self):
        for default_state in range(3):
            store = SparseParameterStore(num_states=3, default_state=default_state)
            seq = SequenceInput.from_features([[0], [1], [2], [3]])
            self.assertEqual(decode(seq, store).labels, [default_state] * 4)

    def test_default_state_wins_a_tie_against_lower_index(self):
        store = SparseParameterStore(num_states=3, default_state=2)
        store.add_emission([0], 0, 1.0)
        store.add_emission([0], 2, 1.0)
        seq = SequenceInput.from_features([[0]])
        self.assertEqual(decode(seq, store).labels, [2])

    def test_earliest_state_wins_when_default_is_not_tied(self):
        store = SparseParameterStore(num_states=3, default_state=2)
        store.add_emission([0], 0, 1.0)
        store.add_emission([0], 1, 1.0)
        seq = SequenceInput.from_features([[0]])
        self.assertEqual(decode(seq, store).labels, [0])

    def test_predecessor_tie_prefers_default_state(self):
        # Both states reach token 1 with the same score; the psi entry must
        # point at the default state even though state 0 is scanned first.
        store = DenseParameterStore(num_states=2, num_features=2, default_state=1)
        store.emission_weights[:, 0] = [1.0, 1.0]
        store.emission_weights[0, 1] = 3.0
        trellis = viterbi(SequenceInput.from_features([[0], [1]]), store)

        self.assertEqual(int(trellis.psi[1, 0]), 1)
        self.assertEqual(trellis.backtrack().labels, [1, 0])

    def test_strictly_better_predecessor_replaces_default(self):
        store = DenseParameterStore(num_states=2, num_features=2, default_state=1)
        store.emission_weights[:, 0] = [1.0 + 1e-9, 1.0]
        store.emission_weights[0, 1] = 3.0
        trellis = viterbi(SequenceInput.from_features([[0], [1]]), store)

        self.assertEqual(trellis.backtrack().labels, [0, 0])


if __name__ == "__main__":
    unittest.main()
