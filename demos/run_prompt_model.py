#!/usr/bin/env python3
"""
RUN_PROMPT_MODEL: Instruction in, validated 2D model out
========================================================

Runs one generation request through the full pipeline and prints the
resulting model as JSON.

Run with:
    export MISTRAL_API_KEY=...
    python demos/run_prompt_model.py "2層3スパンのラーメン構造"
    python demos/run_prompt_model.py "change the column bases to pinned" \\
        --mode edit --current artifacts/model.json --output artifacts/edited.json

Without an API key, ``--offline`` shows what the deterministic synthesizer
would produce for the classified instruction.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from promptframe import CONFIG, GenerationError, ModelGenerator, classify
from promptframe.generative import synthesize_for_intent
from promptframe.schemas import GenerationRequest


def main():
    parser = argparse.ArgumentParser(
        description='Generate a 2D structural model from an instruction',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python demos/run_prompt_model.py "高さ3m スパン15mのトラス"
  python demos/run_prompt_model.py "3-story 2-bay frame with lateral loads" --verbose
  python demos/run_prompt_model.py "portal frame" --offline
        """
    )
    parser.add_argument('prompt', help='Instruction, Japanese or English')
    parser.add_argument('--mode', choices=['new', 'edit'], default='new',
                        help='Create a new model or edit --current (default: new)')
    parser.add_argument('--current', type=Path, default=None,
                        help='JSON file with the model to edit')
    parser.add_argument('--output', type=Path, default=None,
                        help='Write the response JSON here instead of stdout')
    parser.add_argument('--offline', action='store_true',
                        help='Skip the generation service and synthesize from the classified intent')
    parser.add_argument('--verbose', action='store_true',
                        help='Log pipeline steps at DEBUG level')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.offline:
        model = synthesize_for_intent(classify(args.prompt))
        text = model.to_json()
    else:
        current = json.loads(args.current.read_text(encoding='utf-8')) if args.current else None
        request = GenerationRequest(prompt=args.prompt, mode=args.mode, current_model=current)
        try:
            response = asyncio.run(ModelGenerator(CONFIG).generate(request))
        except GenerationError as e:
            print(f"Generation failed after {e.attempts} attempt(s): {e}", file=sys.stderr)
            return 1
        text = json.dumps(response.model_dump(by_alias=True), indent=2, ensure_ascii=False)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding='utf-8')
        print(f"Wrote {args.output}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
