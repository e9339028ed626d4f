#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

from lark.exceptions import UnexpectedInput

from . import parser
from .ast import Contract
from .errors import TranslationError
from .printer import format_contract

logger = logging.getLogger(__name__)


def _summary(contract: Contract) -> str:
    recursive = sum(1 for fn in contract.functions if fn.recursive)
    cases = sum(len(fn.cases) for fn in contract.functions)
    return (
        f"{len(contract.state)} state variable(s), {len(contract.functions)} function(s) "
        f"({recursive} recursive), {cases} case(s)"
    )


def check_file(path: Path, emit: str, out: TextIO, err: TextIO) -> bool:
    """Translate one contract file and report it; returns False when the source is rejected."""
    logger.info("checking %s", path)
    try:
        source = path.read_text()
    except OSError as exc:
        print(f"[error] {path}: {exc.strerror or exc}", file=err)
        return False
    try:
        contract = parser.parse_contract(source)
    except UnexpectedInput as exc:
        print(f"[parse error] {path}:{exc.line}:{exc.column}: unexpected input", file=err)
        return False
    except TranslationError as exc:
        where = f"{path}:" if exc.loc is not None else f"{path}: "
        print(f"[error] {where}{exc}", file=err)
        return False
    if emit == "source":
        out.write(format_contract(contract))
    else:
        print(f"[ok] {path}: {_summary(contract)}", file=out)
    return True


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="logikonc: check Logikon contracts and print their typed form")
    ap.add_argument("sources", type=Path, nargs="+", help="Contract source files")
    ap.add_argument(
        "--emit",
        choices=["summary", "source"],
        default="summary",
        help="Print a one-line summary per file (default) or the canonical source of the typed contract",
    )
    ap.add_argument("-v", "--verbose", action="count", default=0, help="Log progress (repeat for debug output)")
    args = ap.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    failed = False
    for path in args.sources:
        if not check_file(path, args.emit, sys.stdout, sys.stderr):
            failed = True
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
