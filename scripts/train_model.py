# hmmtag/scripts/train_model.py

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from hmmtag.config import Config, load_config
from hmmtag.encoding import StringEncoding
from hmmtag.evaluation import evaluate_chunks, token_accuracy
from hmmtag.io_utils import build_store, load_dataset, load_gold_labels, load_inputs, save_model
from hmmtag.store import ParameterStore
from hmmtag.trainer import predict_all, train
from hmmtag.types import SequenceInput


def apply_overrides(cfg: Config, args: argparse.Namespace) -> Config:
    """Returns ``cfg`` with every command-line override applied."""
    overrides = {}
    if args.epochs is not None:
        overrides["epochs"] = args.epochs
    if args.rate is not None:
        overrides["learning_rate"] = args.rate
    if args.schedule is not None:
        overrides["learning_rate_schedule"] = args.schedule
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.noavg:
        overrides["average"] = False
    if args.store is not None:
        overrides["store"] = args.store
    if args.default_state is not None:
        overrides["default_state"] = args.default_state
    return replace(cfg, **overrides) if overrides else cfg


def make_chunk_evaluator(test_inputs: List[SequenceInput], gold: List[List[str]], states: StringEncoding):
    """Builds the per-epoch callback reporting overall chunk F1 on the test inputs."""

    def evaluate(store: ParameterStore) -> float:
        predicted = [[states.value(s) for s in out] for out in predict_all(test_inputs, store)]
        return evaluate_chunks(gold, predicted)["overall"].f1

    return evaluate


def main(argv: Optional[List[str]] = None):
    """
    Command-line entry point for training a tagger.

    Steps:
    1.  Load the configuration file and apply command-line overrides.
    2.  Read the training set, building the feature and state encodings. The
        default state is inserted first so that it gets code 0.
    3.  Optionally read a test set with the frozen feature encoding for
        per-epoch chunk F1 reporting. Its gold labels stay strings, so chunk
        types missing from the training set count as missed chunks.
    4.  Train the averaged perceptron and save the model as JSON.
    """
    parser = argparse.ArgumentParser(
        description="Train an HMM-like tagger with the averaged structured perceptron.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--train", type=str, required=True, help="Path to the training dataset JSON file.")
    parser.add_argument("--model", type=str, required=True, help="Output path for the trained model JSON.")
    parser.add_argument("--config", default="config.yaml", help="Path to the configuration YAML file.")
    parser.add_argument("--test", type=str, help="Optional test dataset evaluated after every epoch.")
    parser.add_argument("--epochs", type=int, help="Number of epochs (overrides the config).")
    parser.add_argument("--rate", type=float, help="Learning rate (overrides the config).")
    parser.add_argument("--schedule", choices=["constant", "linear", "sqrt"], help="Learning rate schedule.")
    parser.add_argument("--seed", type=int, help="Random number generator seed for shuffling.")
    parser.add_argument("--store", choices=["sparse", "dense"], help="Parameter store backing.")
    parser.add_argument("--default-state", dest="default_state", help="Label used as the default state.")
    parser.add_argument(
        "--noavg",
        action="store_true",
        help="Turn off weight averaging and keep the final weights instead of the average over epochs.",
    )
    args = parser.parse_args(argv)

    try:
        if Path(args.config).exists():
            cfg = load_config(args.config)
        else:
            print(f"Warning: Config file {args.config} not found. Using defaults.")
            cfg = Config()
        cfg = apply_overrides(cfg, args)

        features = StringEncoding()
        states = StringEncoding([cfg.default_state])
        print(f"Loading training set from {args.train}...")
        train_set = load_dataset(args.train, features, states)
        print(f"Loaded {len(train_set)} sequences, {len(features)} features, {len(states)} states.")

        evaluate = None
        if args.test:
            features.frozen = True
            states.frozen = True
            test_inputs = load_inputs(args.test, features)
            print(f"Loaded {len(test_inputs)} test sequences.")
            evaluate = make_chunk_evaluator(test_inputs, load_gold_labels(args.test), states)

        store = build_store(cfg.store, len(states), len(features), default_state=states.code(cfg.default_state))

        print("\n--- Training ---")
        history = train(train_set, store, cfg, evaluate=evaluate)

        last = history.epochs[-1]
        predicted = predict_all([ex.input for ex in train_set], store)
        acc = token_accuracy([ex.output for ex in train_set], predicted)
        print(f"Final training accuracy: {acc:.2%} (last epoch loss {last.loss:.0f})")

        save_model(args.model, store, features, states)
        print(f"Successfully saved model to {args.model}")
    except (FileNotFoundError, ValueError, TypeError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
