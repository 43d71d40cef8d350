# hmmtag/evaluation.py
"""Chunk-level and token-level evaluation of tagged sequences.

Labels follow the IOB convention used by named-entity corpora: ``B-X`` opens
a chunk of type ``X``, ``I-X`` continues it and ``O`` is outside any chunk.
Both IOB2 and the older IOB1 variant are accepted, since an ``I-X`` that does
not continue a chunk of type ``X`` simply opens a new one.

A predicted chunk counts as correct only when its sentence, boundaries and
type all match a gold chunk.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

__all__ = [
    "OUTSIDE",
    "TypedChunk",
    "ChunkScores",
    "extract_chunks",
    "evaluate_chunks",
    "token_accuracy",
    "results_frame",
]

OUTSIDE = "O"
OVERALL = "overall"


@dataclass(frozen=True, order=True)
class TypedChunk:
    """A typed span of tokens ``[begin, end]`` (inclusive) in one sentence."""
    sentence: int
    begin: int
    end: int
    type: str


@dataclass
class ChunkScores:
    """Counts and derived metrics for one chunk type (or ``overall``)."""
    objects: int = 0
    answers: int = 0
    correct: int = 0

    @property
    def precision(self) -> float:
        return self.correct / self.answers if self.answers else 0.0

    @property
    def recall(self) -> float:
        return self.correct / self.objects if self.objects else 0.0

    @property
    def f1(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if p + r else 0.0


def _split_label(label: str) -> tuple[str, Optional[str]]:
    if label == OUTSIDE or not label:
        return OUTSIDE, None
    if len(label) > 2 and label[1] == "-" and label[0] in "BI":
        return label[0], label[2:]
    # Labels without a prefix are treated as chunk continuations.
    return "I", label


def extract_chunks(labels: Sequence[str], sentence: int = 0) -> List[TypedChunk]:
    """Returns the chunks encoded by one sequence of IOB labels."""
    chunks: List[TypedChunk] = []
    begin: Optional[int] = None
    ctype: Optional[str] = None
    for idx, label in enumerate(labels):
        prefix, ltype = _split_label(label)
        continues = prefix == "I" and ltype == ctype
        if ctype is not None and not continues:
            chunks.append(TypedChunk(sentence, begin, idx - 1, ctype))
            begin, ctype = None, None
        if ltype is not None and not continues:
            begin, ctype = idx, ltype
    if ctype is not None:
        chunks.append(TypedChunk(sentence, begin, len(labels) - 1, ctype))
    return chunks


def evaluate_chunks(
    gold: Iterable[Sequence[str]],
    predicted: Iterable[Sequence[str]],
) -> Dict[str, ChunkScores]:
    """
    Computes chunk precision, recall and F1 per type and overall.

    Args:
        gold: Gold label sequences, one per sentence.
        predicted: Predicted label sequences, aligned with ``gold``.

    Returns:
        A mapping from chunk type to its `ChunkScores`, plus an ``overall``
        entry aggregating every type.

    Raises:
        ValueError: If the number of sentences or any sentence length differs.
    """
    gold = list(gold)
    predicted = list(predicted)
    if len(gold) != len(predicted):
        raise ValueError(f"Got {len(gold)} gold sequences but {len(predicted)} predicted ones.")

    gold_chunks = set()
    pred_chunks = set()
    for sent, (g, p) in enumerate(zip(gold, predicted)):
        if len(g) != len(p):
            raise ValueError(f"Sentence {sent}: gold has {len(g)} labels, prediction has {len(p)}.")
        gold_chunks.update(extract_chunks(g, sent))
        pred_chunks.update(extract_chunks(p, sent))

    results: Dict[str, ChunkScores] = {OVERALL: ChunkScores()}
    for chunk in gold_chunks:
        results.setdefault(chunk.type, ChunkScores()).objects += 1
        results[OVERALL].objects += 1
    for chunk in pred_chunks:
        results.setdefault(chunk.type, ChunkScores()).answers += 1
        results[OVERALL].answers += 1
        if chunk in gold_chunks:
            results[chunk.type].correct += 1
            results[OVERALL].correct += 1
    return results


def token_accuracy(gold: Iterable[Sequence], predicted: Iterable[Sequence]) -> float:
    """Fraction of tokens whose predicted label equals the gold one."""
    total = 0
    hits = 0
    for g, p in zip(gold, predicted):
        if len(g) != len(p):
            raise ValueError(f"Length mismatch: gold has {len(g)} labels, prediction has {len(p)}.")
        total += len(g)
        hits += sum(1 for a, b in zip(g, p) if a == b)
    return hits / total if total else 0.0


def results_frame(results: Dict[str, ChunkScores], order: Sequence[str] = ()) -> pd.DataFrame:
    """
    Tabulates evaluation results, one row per chunk type.

    Types listed in ``order`` come first (missing ones are skipped), then the
    remaining types alphabetically, and ``overall`` always last.
    """
    types = [t for t in order if t in results and t != OVERALL]
    types += sorted(t for t in results if t not in types and t != OVERALL)
    types.append(OVERALL)
    rows = [
        {
            "class": t,
            "precision": 100 * results[t].precision,
            "recall": 100 * results[t].recall,
            "f1": 100 * results[t].f1,
            "objects": results[t].objects,
            "answers": results[t].answers,
            "correct": results[t].correct,
        }
        for t in types
    ]
    return pd.DataFrame(rows).set_index("class")
