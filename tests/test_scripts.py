import argparse
import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import main as tag_main
from hmmtag.config import Config
from hmmtag.evaluation import evaluate_chunks
from scripts import evaluate_model, train_model


def _tok(word: str, label: str) -> dict:
    return {"features": [f"w={word.lower()}", "cap" if word[0].isupper() else "lower"], "label": label, "w": word}


CORPUS = [
    [_tok("John", "B-PER"), _tok("lives", "O"), _tok("in", "O"), _tok("Rio", "B-LOC")],
    [_tok("Mary", "B-PER"), _tok("Smith", "I-PER"), _tok("visited", "O"), _tok("Paris", "B-LOC")],
    [_tok("the", "O"), _tok("cat", "O")],
]


@pytest.fixture
def corpus_file(tmp_path: Path) -> Path:
    path = tmp_path / "train.json"
    path.write_text(json.dumps({"sequences": [{"tokens": seq} for seq in CORPUS]}), encoding="utf-8")
    return path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text("training:\n  epochs: 8\n  shuffle: false\nmodel:\n  default_state: O\n", encoding="utf-8")
    return path


def test_apply_overrides_only_touches_given_flags():
    parser_args = argparse.Namespace(
        epochs=3, rate=None, schedule="linear", seed=None, noavg=True, store=None, default_state=None
    )
    cfg = train_model.apply_overrides(Config(), parser_args)

    assert cfg.epochs == 3
    assert cfg.learning_rate_schedule == "linear"
    assert cfg.average is False
    assert cfg.learning_rate == Config().learning_rate


def test_train_evaluate_and_tag_end_to_end(tmp_path: Path, corpus_file: Path, config_file: Path, capsys):
    model_path = tmp_path / "model.json"
    train_model.main([
        "--train", str(corpus_file),
        "--model", str(model_path),
        "--config", str(config_file),
        "--test", str(corpus_file),
    ])

    model = json.loads(model_path.read_text(encoding="utf-8"))
    assert model["states"][0] == "O"
    assert model["default_state"] == "O"

    pred_path = tmp_path / "out" / "pred.json"
    evaluate_model.main(["--model", str(model_path), "--test", str(corpus_file), "--predictions-out", str(pred_path)])
    out = capsys.readouterr().out
    assert "overall" in out
    assert "Token accuracy:" in out
    predictions = json.loads(pred_path.read_text(encoding="utf-8"))
    assert len(predictions["sequences"]) == len(CORPUS)

    tagged_path = tmp_path / "tagged.json"
    tag_main.main(["--input", str(corpus_file), "--output", str(tagged_path), "--model", str(model_path)])
    tagged = json.loads(tagged_path.read_text(encoding="utf-8"))
    assert [len(seq["tokens"]) for seq in tagged["sequences"]] == [len(seq) for seq in CORPUS]
    labels = {t["label"] for seq in tagged["sequences"] for t in seq["tokens"]}
    assert labels <= set(model["states"])
    assert tagged["sequences"][0]["tokens"][0]["w"] == "John"


def test_evaluation_counts_chunk_types_missing_from_training(tmp_path: Path, config_file: Path, capsys):
    train_path = tmp_path / "train_per.json"
    per_only = [[_tok("John", "B-PER"), _tok("runs", "O")], [_tok("Mary", "B-PER"), _tok("sings", "O")]]
    train_path.write_text(json.dumps({"sequences": [{"tokens": seq} for seq in per_only]}), encoding="utf-8")
    test_path = tmp_path / "test_loc.json"
    with_loc = [[_tok("John", "B-PER"), _tok("in", "O"), _tok("Rio", "B-LOC")]]
    test_path.write_text(json.dumps({"sequences": [{"tokens": seq} for seq in with_loc]}), encoding="utf-8")
    model_path = tmp_path / "model.json"

    train_model.main([
        "--train", str(train_path),
        "--model", str(model_path),
        "--config", str(config_file),
        "--test", str(test_path),
    ])
    assert "B-LOC" not in json.loads(model_path.read_text(encoding="utf-8"))["states"]
    capsys.readouterr()

    pred_path = tmp_path / "pred.json"
    evaluate_model.main(["--model", str(model_path), "--test", str(test_path), "--predictions-out", str(pred_path)])
    out = capsys.readouterr().out
    assert "Warning:" in out and "B-LOC" in out
    assert "overall" in out

    gold = [[t["label"] for t in seq] for seq in with_loc]
    predicted = [[t["label"] for t in seq["tokens"]] for seq in json.loads(pred_path.read_text(encoding="utf-8"))["sequences"]]
    results = evaluate_chunks(gold, predicted)
    assert (results["LOC"].objects, results["LOC"].correct) == (1, 0)


def test_train_script_exits_on_missing_training_file(tmp_path: Path, config_file: Path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        train_model.main(["--train", str(tmp_path / "nope.json"), "--model", str(tmp_path / "m.json"), "--config", str(config_file)])
    assert excinfo.value.code == 1
    assert "Error:" in capsys.readouterr().err
