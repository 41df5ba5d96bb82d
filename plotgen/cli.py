"""Command line rendering.

Run with:
    plotgen --type lissajous --seed 1212 --param resolution=420 --out out.svg
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

from .algorithms import ALGORITHMS, DEFAULT_ALGORITHM
from .config import DEFAULT_PROFILE, PAPER_PROFILES, Settings
from .engine import VectorEngine
from .optimization import PipelineConfig
from .rendering import render_svg

logger = logging.getLogger(__name__)


def parse_param(text: str) -> tuple[str, Any]:
    """Parse ``key=value``; the value is read as JSON when possible."""
    if "=" not in text:
        raise argparse.ArgumentTypeError(f"expected key=value, got {text!r}")
    key, raw = text.split("=", 1)
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return key.strip(), value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="plotgen", description="Render a generated layer to SVG.")
    parser.add_argument("--type", default=DEFAULT_ALGORITHM, choices=sorted(ALGORITHMS), help="algorithm key")
    parser.add_argument("--seed", type=int, default=None, help="layer seed (random when omitted)")
    parser.add_argument("--param", action="append", type=parse_param, default=[], metavar="KEY=VALUE")
    parser.add_argument("--profile", default=DEFAULT_PROFILE, choices=sorted(PAPER_PROFILES))
    parser.add_argument("--margin", type=float, default=None)
    parser.add_argument("--precision", type=int, default=None)
    parser.add_argument("--optimize", action="store_true", help="run the default optimization pipeline")
    parser.add_argument("--no-dedupe", action="store_true")
    parser.add_argument("--out", default="-", help="output file, '-' for stdout")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    settings = Settings(profile=args.profile)
    if args.margin is not None:
        settings.margin = args.margin
    params: Dict[str, Any] = dict(args.param)
    if args.seed is not None:
        params["seed"] = args.seed

    engine = VectorEngine(settings=settings, initial_layer=False)
    layer = engine.add_layer(args.type, params)
    logger.info("Generated %s with seed %s", layer.name, layer.params["seed"])
    if args.optimize:
        summaries: List[str] = engine.optimize(None, PipelineConfig.default())
        for line in summaries:
            logger.info(line)

    svg = render_svg(engine, precision=args.precision, dedupe=not args.no_dedupe)
    if args.out == "-":
        sys.stdout.write(svg)
    else:
        with open(args.out, "w", encoding="utf-8") as fh:
            fh.write(svg)
    return 0


if __name__ == "__main__":
    sys.exit(main())
