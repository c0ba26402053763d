"""Generate predeploy address constants and bytecode manifest.

Generates, from config/predeploy.yaml and the token list:
- contracts/utils/Address.sol, Address.js, Address.d.ts
- resources/bytecodes.json

Usage:
    predeploy-gen                              # Generate with config/predeploy.yaml
    predeploy-gen --config path/to/config.yaml
    predeploy-gen --check                      # Exit 1 if artifacts differ (for CI)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from .compiler import CommandCompiler
from .config import default_config_path, load_config
from .errors import GenerationError
from .pipeline import generate

logger = logging.getLogger("predeploy_gen")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="predeploy-gen",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", default=None,
                        help="Generator config YAML (default: $PREDEPLOY_CONFIG or config/predeploy.yaml)")
    parser.add_argument("--check", action="store_true",
                        help="Exit 1 if artifacts differ from generated, write no artifacts")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging")
    parser.add_argument("--json-errors", action="store_true",
                        help="Print errors as JSON on stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config_path = args.config or default_config_path()
    try:
        config = load_config(config_path)
        if not args.verbose:
            logging.getLogger().setLevel(config.logging.level)
        result = generate(config, CommandCompiler.from_config(config), check=args.check)
    except GenerationError as e:
        logger.error(f"Generation failed during {e.stage.value}: {e}")
        if args.json_errors:
            print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1

    if args.check:
        if not result.up_to_date:
            print("Artifacts are out of sync! Run: predeploy-gen", file=sys.stderr)
            return 1
        print("Artifacts are in sync.")
        return 0

    print(f"Generated {len(result.outputs)} artifacts for {len(result.registry)} entries.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
