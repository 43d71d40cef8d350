# hmmtag/main.py

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path for robust execution
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from tqdm import tqdm

from hmmtag.io_utils import load_inputs, load_model, save_predictions
from hmmtag.viterbi import decode

def main(argv: Optional[List[str]] = None):
    """
    Main command-line interface for tagging with a trained model.

    1.  Loads the model JSON (weights plus feature and state encodings).
    2.  Reads the input dataset; labels, if present, are ignored and features
        unseen during training are dropped.
    3.  Runs Viterbi decoding on every sequence.
    4.  Writes a copy of the input with the predicted labels.
    """
    parser = argparse.ArgumentParser(
        description="Tag a dataset with a trained HMM-like tagger.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Path to the input dataset JSON file."
    )
    parser.add_argument(
        "--output",
        required=True,
        help="Path to write the tagged dataset JSON file."
    )
    parser.add_argument(
        "--model",
        required=True,
        help="Path to the trained model JSON file."
    )
    args = parser.parse_args(argv)

    try:
        print(f"Loading model from {args.model}...")
        store, features, states = load_model(args.model)
        inputs = load_inputs(args.input, features)
        outputs = [decode(seq, store) for seq in tqdm(inputs, desc="Tagging", unit="seq")]
        save_predictions(args.output, args.input, outputs, states)
        print(f"Tagged {len(outputs)} sequences. Output written to {args.output}")
    except (FileNotFoundError, ValueError, TypeError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
