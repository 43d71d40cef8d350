# hmmtag/io_utils.py
"""Provides utility functions for reading and writing datasets and models.

Datasets are JSON files with a list of sequences, each a list of tokens that
carry string features and (for gold data) a string label::

    {"sequences": [{"tokens": [{"features": ["w=John", "cap"], "label": "B-PER"}]}]}

Strings are mapped to the integer codes the core works with through two
`StringEncoding` objects, one for features and one for states. Models are
saved as JSON too, with emission weights keyed by feature string so a model
can be reloaded without the training data.
"""
from __future__ import annotations
import json
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from .encoding import UNSEEN, StringEncoding
from .store import EMISSION_PREFIX, DenseParameterStore, ParameterStore, SparseParameterStore
from .types import LabeledSequence, SequenceInput, SequenceOutput, check_same_length


def _read_json(path: str, kind: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"{kind} file not found at: {path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Error decoding JSON from {path}: {e}")


def _token_items(data: Any, path: str) -> List[List[dict]]:
    if not isinstance(data, dict):
        raise TypeError(f"Dataset file {path} must contain a JSON object.")
    items = data.get("sequences")
    if not isinstance(items, list):
        raise TypeError(f"Expected a 'sequences' key with a list of objects in {path}")

    sequences = []
    for i, seq in enumerate(items):
        if not isinstance(seq, dict) or not isinstance(seq.get("tokens"), list):
            raise TypeError(f"Sequence at index {i} in {path} has no 'tokens' list.")
        if not seq["tokens"]:
            raise ValueError(f"Sequence at index {i} in {path} is empty.")
        for j, tok in enumerate(seq["tokens"]):
            if not isinstance(tok, dict):
                raise TypeError(f"Token {j} of sequence {i} in {path} is not a dictionary.")
            if "features" in tok and not isinstance(tok["features"], list):
                raise TypeError(f"Token {j} of sequence {i} in {path} has a 'features' value that is not a list.")
        sequences.append(seq["tokens"])
    return sequences


def load_dataset(
    path: str,
    feature_encoding: StringEncoding,
    state_encoding: StringEncoding,
) -> List[LabeledSequence]:
    """
    Loads a labeled dataset and encodes it with the given encodings.

    Features are added to ``feature_encoding`` as they are seen unless it is
    frozen, in which case unknown features are silently dropped from their
    token. Labels always go through ``state_encoding``; a label the (frozen)
    state encoding does not know is an error, since the model has no state
    for it.

    Args:
        path: The path to the dataset JSON file.
        feature_encoding: Encoding for feature strings.
        state_encoding: Encoding for state labels.

    Returns:
        A list of `LabeledSequence` objects in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON, a sequence is empty, or a
                    token has no usable label.
        TypeError: If the JSON structure is not the expected one.
    """
    data = _read_json(path, "Dataset")
    dataset = []
    for i, tokens in enumerate(_token_items(data, path)):
        features = []
        labels = []
        for j, tok in enumerate(tokens):
            codes = [feature_encoding.put(str(f)) for f in tok.get("features", [])]
            features.append([c for c in codes if c != UNSEEN])
            label = tok.get("label")
            if label is None:
                raise ValueError(f"Token {j} of sequence {i} in {path} has no 'label'.")
            state = state_encoding.put(str(label))
            if state == UNSEEN:
                raise ValueError(f"Unknown label '{label}' at token {j} of sequence {i} in {path}.")
            labels.append(state)
        dataset.append(LabeledSequence(SequenceInput.from_features(features), SequenceOutput(labels)))
    return dataset


def load_inputs(path: str, feature_encoding: StringEncoding) -> List[SequenceInput]:
    """Loads the token features of a dataset, ignoring any labels."""
    data = _read_json(path, "Dataset")
    inputs = []
    for tokens in _token_items(data, path):
        features = []
        for tok in tokens:
            codes = [feature_encoding.put(str(f)) for f in tok.get("features", [])]
            features.append([c for c in codes if c != UNSEEN])
        inputs.append(SequenceInput.from_features(features))
    return inputs


def load_gold_labels(path: str) -> List[List[str]]:
    """
    Loads the gold label strings of a dataset without encoding them.

    Evaluation compares labels as strings, so a gold label the model has no
    state for is kept as is and simply never matches a prediction.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON, a sequence is empty, or a
                    token has no label.
        TypeError: If the JSON structure is not the expected one.
    """
    data = _read_json(path, "Dataset")
    gold = []
    for i, tokens in enumerate(_token_items(data, path)):
        labels = []
        for j, tok in enumerate(tokens):
            label = tok.get("label")
            if label is None:
                raise ValueError(f"Token {j} of sequence {i} in {path} has no 'label'.")
            labels.append(str(label))
        gold.append(labels)
    return gold


def save_predictions(
    path: str,
    source_path: str,
    outputs: Sequence[SequenceOutput],
    state_encoding: StringEncoding,
) -> None:
    """
    Writes ``outputs`` as the labels of a copy of the dataset at ``source_path``.

    The original token dictionaries (features and any extra fields) are kept
    and only their ``label`` is replaced, so the output can be fed straight to
    the evaluation script.
    """
    data = _read_json(source_path, "Dataset")
    sequences = _token_items(data, source_path)
    check_same_length(len(sequences), outputs)

    out_sequences = []
    for tokens, output in zip(sequences, outputs):
        check_same_length(len(tokens), output)
        out_sequences.append(
            {"tokens": [{**tok, "label": state_encoding.value(state)} for tok, state in zip(tokens, output)]}
        )

    with open(path, "w", encoding="utf-8") as f:
        json.dump({"sequences": out_sequences}, f, ensure_ascii=False, indent=2)


def _emission_rows(store: ParameterStore, num_features: int) -> Dict[int, np.ndarray]:
    if isinstance(store, SparseParameterStore):
        return dict(store.emission_weights)
    if isinstance(store, DenseParameterStore):
        return {ftr: store.emission_weights[:, ftr] for ftr in range(store.num_features)}
    return {
        ftr: np.array([store.emission(s, ftr) for s in range(store.num_states)])
        for ftr in range(num_features)
    }


def save_model(
    path: str,
    store: ParameterStore,
    feature_encoding: StringEncoding,
    state_encoding: StringEncoding,
) -> None:
    """
    Saves a trained model as JSON.

    Emission vectors that are entirely zero are omitted, which keeps models
    trained over large, sparse feature spaces small.
    """
    if len(state_encoding) != store.num_states:
        raise ValueError(
            f"State encoding has {len(state_encoding)} labels but the model has {store.num_states} states."
        )

    emission = {}
    for ftr, weights in sorted(_emission_rows(store, len(feature_encoding)).items()):
        if not np.any(weights):
            continue
        emission[feature_encoding.value(ftr)] = [float(w) for w in weights]

    model = {
        "states": state_encoding.values(),
        "default_state": state_encoding.value(store.default_state),
        "initial": [store.initial(s) for s in range(store.num_states)],
        "transition": [
            [store.transition(a, b) for b in range(store.num_states)] for a in range(store.num_states)
        ],
        "emission": emission,
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(model, f, ensure_ascii=False, indent=2)


def load_model(path: str) -> Tuple[SparseParameterStore, StringEncoding, StringEncoding]:
    """
    Loads a model saved by `save_model`.

    Returns:
        The parameter store (always sparse) and the frozen feature and state
        encodings it was trained with.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or the tables do not match the
                    number of states.
        TypeError: If a required key is missing.
    """
    data = _read_json(path, "Model")
    if not isinstance(data, dict):
        raise TypeError(f"Model file {path} must contain a JSON object.")
    missing = [k for k in ("states", "default_state", "initial", "transition", "emission") if k not in data]
    if missing:
        raise TypeError(f"Model file {path} is missing keys: {', '.join(missing)}")

    state_encoding = StringEncoding(data["states"], frozen=True)
    num_states = len(state_encoding)
    default_state = state_encoding.code(data["default_state"])
    if default_state == UNSEEN:
        raise ValueError(f"Default state '{data['default_state']}' is not one of the model states.")

    store = SparseParameterStore(num_states, default_state=default_state)
    feature_encoding = StringEncoding()
    snapshot = {
        "initial": np.asarray(data["initial"], dtype=np.float64),
        "transition": np.asarray(data["transition"], dtype=np.float64),
    }
    for name, weights in data["emission"].items():
        snapshot[f"{EMISSION_PREFIX}{feature_encoding.put(name)}"] = np.asarray(weights, dtype=np.float64)
    store.restore(snapshot)
    feature_encoding.frozen = True
    return store, feature_encoding, state_encoding


def build_store(kind: str, num_states: int, num_features: int, default_state: int = 0) -> ParameterStore:
    """Creates an empty store of the requested kind."""
    if kind == "dense":
        return DenseParameterStore(num_states, num_features, default_state=default_state)
    if kind == "sparse":
        return SparseParameterStore(num_states, default_state=default_state)
    raise ValueError(f"Unknown store kind '{kind}'.")
