#!/usr/bin/env python3
"""
Refactor every call to a function listed in an IDE "Find usages" export.

Usage:

    (1) in the IDE, find the usages of the function and export the result to
        a text file (default location: tools/report.txt).
    (2) from the project root:

            usage-refactor --report tools/report.txt --function last_error_set

Files are rewritten in place. Use --dry-run first, or --backup to keep a
copy of every file before its first rewrite.
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from pydantic import ValidationError

from usage_refactor.config import RefactorConfig
from usage_refactor.engine import RewriteEngine, RunContext
from usage_refactor.errors import RefactorError
from usage_refactor.files import DryRunStore, FileStore
from usage_refactor.policies import build_policy
from usage_refactor.report_parser import parse_report_file

LOGGER = logging.getLogger("usage_refactor")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Rewrite the call sites listed in a 'Find usages' export.")
    p.add_argument("--config", help="JSON file with RefactorConfig fields; flags below override it.")
    p.add_argument("--report", dest="report_path", help="Path to the exported usage report.")
    p.add_argument("--function", dest="function_name", help="Name of the function whose calls are rewritten.")
    p.add_argument("--root", help="Directory the report paths are relative to.")
    p.add_argument("--policy", choices=["diagnostic", "leading-argument"])
    p.add_argument("--separator", dest="path_separator", help="Separator used to join report path parts.")
    p.add_argument("--dry-run", action="store_true", default=None, help="Do not write anything.")
    p.add_argument("--backup", action="store_true", default=None, help="Keep a .bak copy of every rewritten file.")
    p.add_argument("--list", action="store_true", help="Print the call sites found in the report and exit.")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def load_config(args: argparse.Namespace) -> RefactorConfig:
    base = RefactorConfig.from_file(args.config) if args.config else RefactorConfig()
    overrides = {
        k: v
        for k, v in vars(args).items()
        if k in RefactorConfig.model_fields and v is not None
    }
    return RefactorConfig.model_validate({**base.model_dump(), **overrides})


def refactor(config: RefactorConfig) -> RunContext:
    locations = parse_report_file(
        config.report_path,
        encoding=config.encoding,
        separator=config.path_separator,
        indent_unit=config.indent_unit,
        margin_threshold=config.margin_threshold,
    )
    if config.dry_run:
        store: FileStore = DryRunStore(root=config.root, encoding=config.encoding)
    else:
        store = FileStore(root=config.root, encoding=config.encoding, backup=config.backup)

    engine = RewriteEngine(
        function_name=config.function_name,
        policy=build_policy(config),
        declaration_suffixes=config.declaration_suffixes,
    )
    context = RunContext(store=store, config=config)
    engine.run(locations, context)
    return context


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
    )

    try:
        config = load_config(args)
    except (ValidationError, OSError) as e:
        LOGGER.error("Invalid configuration: %s", e)
        return 2

    try:
        if args.list:
            for location in parse_report_file(
                config.report_path,
                encoding=config.encoding,
                separator=config.path_separator,
                indent_unit=config.indent_unit,
                margin_threshold=config.margin_threshold,
            ):
                print(location)
            return 0

        context = refactor(config)
    except (RefactorError, OSError) as e:
        LOGGER.error("Refactoring aborted: %s", e)
        return 1

    changed = context.store.changed_paths
    if config.dry_run:
        for path in changed:
            print(f"[DRY] {path}: would be rewritten ({context.delta(path):+d} line(s))")
    LOGGER.info("Done. Changed %d file(s).", len(changed))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
