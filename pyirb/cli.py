"""
Command line entry point for pyirb.

Usage:
    pyirb [--config PATH] [--restricted] [--label TEXT] [--echo] [--verbose]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

from . import __version__
from .config import IRBConfig
from .context import Context
from .driver import Driver


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pyirb", description="Interactive Python console")
    parser.add_argument("--config", type=Path, help="Path to a JSON config file")
    parser.add_argument(
        "--restricted", action="store_true", help="Evaluate through RestrictedPython"
    )
    parser.add_argument("--label", help="Session label shown in the prompt")
    parser.add_argument(
        "--echo", action="store_true", help="Echo each input line after its prompt"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"pyirb {__version__}")
    return parser


def main(
    argv: list[str] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    config = IRBConfig.load(args.config)
    if args.restricted:
        config.evaluation.use_restricted = True
    if args.label:
        config.prompt.session_label = args.label

    driver = Driver(input=stdin, output=stdout, echo=args.echo)
    context = Context(driver=driver, config=config)

    pyv = sys.version_info
    driver.output.write(
        f"pyirb {__version__} using Python {pyv.major}.{pyv.minor}.{pyv.micro}\n"
    )
    driver.run(context)
    return 0


if __name__ == "__main__":
    sys.exit(main())
