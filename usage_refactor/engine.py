"""
Rewrite the call sites listed by a usage report, one at a time.

The report gives line numbers in the files as they were before the run.
Rewriting a call may change the number of lines of its file (a call written
over several lines becomes one line, a diagnostic statement is added...), so
the engine keeps, per file, the net number of lines added so far and shifts
the following locations of the same file by that amount. This only works if
the locations of a file are processed in increasing line order.

Each location is a full read-modify-write of its file. A failure stops the
run: files already rewritten stay rewritten.

Call detection is a regular expression. A call that appears in a comment
before the real one, on or after the reported line, is taken for the real one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from usage_refactor.arg_splitter import split_call_arguments
from usage_refactor.call_locator import find_function_call
from usage_refactor.config import RefactorConfig
from usage_refactor.errors import CallError, CallNotFound, LineOverflow
from usage_refactor.files import FileStore
from usage_refactor.policies import CallSite
from usage_refactor.report_parser import SourceLocation, sort_locations

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    store: FileStore
    config: RefactorConfig = field(default_factory=RefactorConfig)
    deltas: Dict[str, int] = field(default_factory=dict)

    def delta(self, path: str) -> int:
        return self.deltas.get(path, 0)


@dataclass(frozen=True)
class RewriteRecord:
    location: SourceLocation
    resolved_line: int
    replacement: str
    delta: int  # lines added (negative: removed) by this rewrite


def count_lines(code: str) -> int:
    if not code:
        return 0
    return code.count("\n") + (0 if code.endswith("\n") else 1)


def line_offset(code: str, line: int) -> int:
    """Index of the first character of `line` (1-based). The line must exist."""
    pos = 0
    for _ in range(line - 1):
        pos = code.index("\n", pos) + 1
    return pos


def _indent_before(before: str) -> str:
    ln = before[before.rfind("\n") + 1:]
    return ln[: len(ln) - len(ln.lstrip(" \t"))]


def _newline_of(code: str) -> str:
    return "\r\n" if "\r\n" in code else "\n"


class RewriteEngine:
    def __init__(
        self,
        function_name: str,
        policy,
        declaration_suffixes: Sequence[str] = (".h",),
    ):
        self.function_name = function_name
        self.policy = policy
        self.declaration_suffixes = tuple(declaration_suffixes)

    def is_declaration(self, path: str) -> bool:
        return path.lower().endswith(self.declaration_suffixes)

    def run(self, locations: Iterable[SourceLocation], context: RunContext) -> List[RewriteRecord]:
        records: List[RewriteRecord] = []
        for location in sort_locations(locations):
            record = self.rewrite_location(location, context, index=len(records))
            if record is not None:
                records.append(record)
        logger.info("REWRITE_DONE: %d call(s) rewritten", len(records))
        return records

    def rewrite_location(
        self, location: SourceLocation, context: RunContext, index: int
    ) -> Optional[RewriteRecord]:
        path = location.path
        if self.is_declaration(path):
            logger.info("REWRITE_SKIP: %s (declaration file)", location)
            return None

        shift = context.delta(path)
        target = location.line + shift
        logger.info("REWRITE_BEGIN: %s (%+d) -> %d", location, shift, target)

        code = context.store.load_code(path)
        total = count_lines(code)
        if target < 1 or target > total:
            raise LineOverflow(path, target, total)

        start = line_offset(code, target)
        prefix, suffix = code[:start], code[start:]

        match = find_function_call(self.function_name, suffix)
        if match is None:
            raise CallNotFound(path, location.line, target, self.function_name)

        try:
            call = split_call_arguments(match.after)
        except CallError as e:
            raise type(e)(f"{e} (resolved to line {target})", path=path, line=location.line) from e
        site = CallSite(
            path=path,
            line=location.line,
            resolved_line=target,
            function_name=self.function_name,
            arguments=call.arguments,
            index=index,
            indent=_indent_before(prefix + match.before),
            newline=_newline_of(code),
        )
        replacement = self.policy.rewrite(site)

        context.store.write_code(path, prefix + match.before + replacement + call.remainder)

        change = replacement.count("\n") - (match.gap.count("\n") + call.line_count)
        context.deltas[path] = shift + change
        logger.info("REWRITE_OK: %s args=%d lines%+d", location, len(call.arguments), change)
        return RewriteRecord(location=location, resolved_line=target, replacement=replacement, delta=change)
