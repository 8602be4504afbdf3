"""Entry point for the snapshot analysis CLI.

Loads a JSON snapshot, runs one analysis cycle and prints the result as
JSON on stdout. Logs go to stderr.

Wiring order:
1. AppSettings (configuration, .env + environment)
2. Logging setup
3. RuntimeConfig from --technical / --preset
4. Snapshot loading
5. AnalysisEngine.run
"""

import argparse
import json
import sys

from tradescope.config import AppSettings, RuntimeConfig
from tradescope.exceptions import SnapshotError
from tradescope.logging import get_logger, setup_logging
from tradescope.signals.engine import AnalysisEngine
from tradescope.signals.models import WEIGHT_PRESETS
from tradescope.snapshot import load_snapshot


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tradescope-analyze",
        description="Multi-timeframe trade setup scoring and hedge advice from a JSON snapshot",
    )
    parser.add_argument("snapshot", help="Path to the snapshot JSON file")
    weights = parser.add_mutually_exclusive_group()
    weights.add_argument(
        "--technical",
        type=int,
        metavar="N",
        help="Technical weight in percent (0-100); sentiment gets the rest",
    )
    weights.add_argument(
        "--preset",
        choices=sorted(WEIGHT_PRESETS),
        help="Named technical/sentiment weight split",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (0 for compact)")
    return parser


def _runtime_config(args: argparse.Namespace) -> RuntimeConfig:
    if args.preset:
        preset = WEIGHT_PRESETS[args.preset]
        return RuntimeConfig(technical_weight=preset.technical, sentiment_weight=preset.sentiment)
    if args.technical is not None:
        return RuntimeConfig(technical_weight=args.technical, sentiment_weight=100 - args.technical)
    return RuntimeConfig()


def main(argv: list[str] | None = None) -> int:
    """Run the CLI. Returns the process exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.technical is not None and not 0 <= args.technical <= 100:
        parser.error("--technical must be between 0 and 100")

    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(args.log_level or settings.log_level)
    logger = get_logger("tradescope.main")

    # 3. Runtime overlay
    engine = AnalysisEngine(settings, runtime_config=_runtime_config(args))

    # 4. Load snapshot
    try:
        snapshot = load_snapshot(args.snapshot)
    except SnapshotError as e:
        logger.error("snapshot_invalid", path=args.snapshot, error=str(e))
        return 1

    # 5. Analyze
    result = engine.run(snapshot)
    json.dump(result.to_dict(), sys.stdout, indent=args.indent or None)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
