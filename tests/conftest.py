"""Test configuration helpers for ensuring local imports resolve."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    project_root = Path(__file__).resolve().parents[1]
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


_ensure_project_root_on_path()

from hmmtag.store import DenseParameterStore  # noqa: E402
from hmmtag.types import SequenceInput  # noqa: E402


@pytest.fixture
def zigzag_store() -> DenseParameterStore:
    """Two states, three one-feature tokens alternating their preferred state.

    Feature ``t`` is the only feature of token ``t``. Token 0 and token 2
    favour state 0 by +2, token 1 favours state 1 by +2, and switching
    states earns a +1 transition bonus.
    """
    store = DenseParameterStore(num_states=2, num_features=3, default_state=0)
    store.transition_weights[:] = [[0.0, 1.0], [1.0, 0.0]]
    store.emission_weights[0, 0] = 2.0
    store.emission_weights[1, 1] = 2.0
    store.emission_weights[0, 2] = 2.0
    return store


@pytest.fixture
def zigzag_input() -> SequenceInput:
    return SequenceInput.from_features([[0], [1], [2]])
