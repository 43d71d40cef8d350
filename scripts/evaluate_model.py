# hmmtag/scripts/evaluate_model.py
"""Command-line script for evaluating a trained tagger.

The script tags a gold-labeled dataset with a saved model and compares the
result with the gold labels. It reports:

-   **Chunk metrics**: precision, recall and F1 for every chunk type and
    overall, plus the number of gold chunks, predicted chunks and correctly
    predicted chunks.
-   **Token accuracy**: the fraction of tokens tagged with the gold label.

Optionally the predicted labels are written out in the dataset format.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path to allow for package imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from hmmtag.evaluation import evaluate_chunks, results_frame, token_accuracy
from hmmtag.io_utils import load_gold_labels, load_inputs, load_model, save_predictions
from hmmtag.trainer import predict_all

LABEL_ORDER = ("LOC", "MISC", "ORG", "PER")


def main(argv: Optional[List[str]] = None):
    """
    Main entry point for the command-line evaluation script.

    Loads the model, reads the gold dataset with the model's frozen feature
    encoding (features unseen in training are dropped), tags every sequence
    and prints a precision/recall/F1 table. Gold labels are compared as
    strings, so a chunk type the model never saw counts as missed.
    """
    parser = argparse.ArgumentParser(
        description="Evaluate a trained tagger against a gold-labeled dataset.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--model", required=True, help="Path to the trained model JSON file.")
    parser.add_argument("--test", required=True, help="Path to the gold-labeled dataset JSON file.")
    parser.add_argument("--predictions-out", help="Optional: Path to write the predicted labels as a dataset JSON file.")
    args = parser.parse_args(argv)

    try:
        print("Loading files...")
        store, features, states = load_model(args.model)
        test_inputs = load_inputs(args.test, features)
        gold_labels = load_gold_labels(args.test)

        unknown = sorted({label for seq in gold_labels for label in seq if label not in states})
        if unknown:
            print(f"Warning: Gold labels unknown to the model will count as missed: {', '.join(unknown)}")

        predicted = predict_all(test_inputs, store, verbose=True)
        pred_labels = [[states.value(s) for s in out] for out in predicted]

        print("\n--- Chunk Metrics ---")
        results = evaluate_chunks(gold_labels, pred_labels)
        print(results_frame(results, order=LABEL_ORDER).to_string(float_format=lambda v: f"{v:6.2f}"))

        print(f"\nToken accuracy: {token_accuracy(gold_labels, pred_labels):.2%}")

        if args.predictions_out:
            Path(args.predictions_out).parent.mkdir(parents=True, exist_ok=True)
            save_predictions(args.predictions_out, args.test, predicted, states)
            print(f"\nWrote predictions to {args.predictions_out}")

    except (FileNotFoundError, ValueError, TypeError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
