# hmmtag/store.py
"""Parameter stores for HMM-like taggers.

A parameter store owns the three additive weight tables used by the decoder
and the learner:

-   **initial**: one weight per state, scored at the first token.
-   **transition**: one weight per ordered pair of states.
-   **emission**: one weight per (state, feature) pair; the emission score of a
    token is the sum over its active features.

All weights live in the log domain, so scores are sums and no normalization
happens anywhere. The decoder and the learner only rely on the
`ParameterStore` protocol, which keeps the storage strategy open. Two backings
are provided: `DenseParameterStore` for a known, fixed feature space and
`SparseParameterStore` for feature spaces that grow while reading data.

Both backings also expose `snapshot`/`restore`, which the averaging
bookkeeping in `hmmtag.averaging` uses to sum parameters across iterations.
"""
from __future__ import annotations
from typing import Dict, Iterable, Protocol, runtime_checkable

import numpy as np

from .types import check_state

Snapshot = Dict[str, np.ndarray]

EMISSION_PREFIX = "emission/"


@runtime_checkable
class ParameterStore(Protocol):
    """Read/mutate contract consumed by `viterbi` and `perceptron`."""

    @property
    def num_states(self) -> int: ...

    @property
    def default_state(self) -> int: ...

    def initial(self, state: int) -> float: ...

    def transition(self, from_state: int, to_state: int) -> float: ...

    def emission(self, state: int, feature: int) -> float: ...

    def add_initial(self, state: int, delta: float) -> None: ...

    def add_emission(self, features: Iterable[int], state: int, delta: float) -> None: ...

    def add_transition(self, from_state: int, to_state: int, delta: float) -> None: ...

    def snapshot(self) -> Snapshot: ...

    def restore(self, snapshot: Snapshot) -> None: ...


class _BaseStore:
    """Shared initial/transition storage for both backings."""

    def __init__(self, num_states: int, default_state: int = 0):
        if num_states < 1:
            raise ValueError(f"num_states must be at least 1, got {num_states}.")
        check_state(default_state, num_states)
        self._num_states = int(num_states)
        self._default_state = int(default_state)
        self.initial_weights = np.zeros(num_states, dtype=np.float64)
        self.transition_weights = np.zeros((num_states, num_states), dtype=np.float64)

    @property
    def num_states(self) -> int:
        return self._num_states

    @property
    def default_state(self) -> int:
        return self._default_state

    def initial(self, state: int) -> float:
        return float(self.initial_weights[state])

    def transition(self, from_state: int, to_state: int) -> float:
        return float(self.transition_weights[from_state, to_state])

    def add_initial(self, state: int, delta: float) -> None:
        self.initial_weights[state] += delta

    def add_transition(self, from_state: int, to_state: int, delta: float) -> None:
        self.transition_weights[from_state, to_state] += delta

    def _check_shape(self, name: str, value: np.ndarray, shape: tuple) -> np.ndarray:
        value = np.asarray(value, dtype=np.float64)
        if value.shape != shape:
            raise ValueError(f"Snapshot entry '{name}' has shape {value.shape}, expected {shape}.")
        return value


class DenseParameterStore(_BaseStore):
    """
    Stores every weight in dense numpy arrays.

    Suited to feature spaces whose size is known up front. Emission weights
    are kept as a ``(num_states, num_features)`` matrix; reading or updating a
    feature outside ``[0, num_features)`` raises IndexError.

    Attributes:
        initial_weights: ``(num_states,)`` initial-state weights.
        transition_weights: ``(num_states, num_states)`` weights indexed by
            ``[from_state, to_state]``.
        emission_weights: ``(num_states, num_features)`` emission weights.
    """

    def __init__(self, num_states: int, num_features: int, default_state: int = 0):
        super().__init__(num_states, default_state)
        if num_features < 0:
            raise ValueError(f"num_features must be non-negative, got {num_features}.")
        self.num_features = int(num_features)
        self.emission_weights = np.zeros((num_states, num_features), dtype=np.float64)

    def _check_feature(self, feature: int) -> None:
        if not 0 <= feature < self.num_features:
            raise IndexError(f"Feature {feature} is out of range [0, {self.num_features}).")

    def emission(self, state: int, feature: int) -> float:
        self._check_feature(feature)
        return float(self.emission_weights[state, feature])

    def add_emission(self, features: Iterable[int], state: int, delta: float) -> None:
        features = list(features)
        for ftr in features:
            self._check_feature(ftr)
        for ftr in features:
            self.emission_weights[state, ftr] += delta

    def snapshot(self) -> Snapshot:
        return {
            "initial": self.initial_weights.copy(),
            "transition": self.transition_weights.copy(),
            "emission": self.emission_weights.copy(),
        }

    def restore(self, snapshot: Snapshot) -> None:
        s, f = self.num_states, self.num_features
        initial = self._check_shape("initial", snapshot["initial"], (s,))
        transition = self._check_shape("transition", snapshot["transition"], (s, s))
        emission = self._check_shape("emission", snapshot["emission"], (s, f))
        self.initial_weights = initial.copy()
        self.transition_weights = transition.copy()
        self.emission_weights = emission.copy()


class SparseParameterStore(_BaseStore):
    """
    Stores emission weights sparsely, one state vector per seen feature.

    A feature gets its vector the first time an update touches it; until then
    every emission weight for it reads as 0.0. This is the backing used by the
    training scripts, where the feature space is discovered while reading the
    corpus.
    """

    def __init__(self, num_states: int, default_state: int = 0):
        super().__init__(num_states, default_state)
        self.emission_weights: Dict[int, np.ndarray] = {}

    def emission(self, state: int, feature: int) -> float:
        weights = self.emission_weights.get(feature)
        if weights is None:
            return 0.0
        return float(weights[state])

    def add_emission(self, features: Iterable[int], state: int, delta: float) -> None:
        for ftr in features:
            weights = self.emission_weights.get(ftr)
            if weights is None:
                weights = np.zeros(self.num_states, dtype=np.float64)
                self.emission_weights[ftr] = weights
            weights[state] += delta

    def snapshot(self) -> Snapshot:
        snap: Snapshot = {
            "initial": self.initial_weights.copy(),
            "transition": self.transition_weights.copy(),
        }
        for ftr, weights in self.emission_weights.items():
            snap[f"{EMISSION_PREFIX}{ftr}"] = weights.copy()
        return snap

    def restore(self, snapshot: Snapshot) -> None:
        s = self.num_states
        initial = self._check_shape("initial", snapshot["initial"], (s,))
        transition = self._check_shape("transition", snapshot["transition"], (s, s))
        emission: Dict[int, np.ndarray] = {}
        for name, value in snapshot.items():
            if not name.startswith(EMISSION_PREFIX):
                continue
            ftr = int(name[len(EMISSION_PREFIX):])
            emission[ftr] = self._check_shape(name, value, (s,)).copy()
        self.initial_weights = initial.copy()
        self.transition_weights = transition.copy()
        self.emission_weights = emission
