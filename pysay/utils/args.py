from __future__ import annotations

import argparse
import math


def _positive_float(value: str) -> float:
    try:
        speed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value}") from exc
    if not math.isfinite(speed) or speed <= 0:
        raise argparse.ArgumentTypeError("speed must be a finite number greater than 0")
    return speed


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pysay",
        description="Speak text (or export it to a file) with the OS speech engine.",
    )
    parser.add_argument(
        "text",
        nargs="?",
        help="Text to speak. If omitted, read from stdin.",
    )
    parser.add_argument("-v", "--voice", default=None, help="Installed OS voice name.")
    parser.add_argument(
        "-s",
        "--speed",
        type=_positive_float,
        default=None,
        help="Speed multiplier (1.0 = normal, 0.5 = half, 2.0 = double).",
    )
    parser.add_argument(
        "-e",
        "--engine",
        default=None,
        help="Engine: say, festival, espeak or sapi (default: detected from the OS).",
    )
    parser.add_argument(
        "--executable",
        default=None,
        help="Path to the engine executable (default: found on PATH).",
    )
    parser.add_argument(
        "-o",
        "--export",
        metavar="FILE",
        default=None,
        help="Write audio to FILE instead of playing it.",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env). Use empty to disable.",
    )
    parser.add_argument("--verbose", action="store_true", help="Print session log to stderr.")
    parser.add_argument("--save-log", action="store_true", help="Write the session log to the log directory.")
    parser.add_argument("--gui", action="store_true", help="Open the control window (needs PySide6).")
    return parser.parse_args(argv)
