"""
Parse the text export of an IDE "Find usages" search.

The export is a tree drawn with indentation (4 columns per level):

    Targets
        Occurrences of 'last_error_set' in Project
    Found usages  (5 usages found)
        Unclassified usage  (5 usages found)
            src  (5 usages found)
                api.c  (3 usages found)
                    api_open  (2 usages found)
                        12 last_error_set(TAG, __FILE__, __LINE__, ...);
                        30 last_error_set(TAG, __FILE__, __LINE__, ...);
                    api_close  (1 usage found)
                        55 last_error_set(TAG, __FILE__, __LINE__, ...);
                util.c  (2 usages found)
                    ...

Shallow lines (framing text of the export) are dropped. Each remaining line is
either a header "<name>  (<n> usages found)" naming a directory, a file or a
function, or a call-site line "<line number> <code>". What a header stands for
is only known from its depth relative to the call-site lines below it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from usage_refactor.errors import MalformedReport

logger = logging.getLogger(__name__)

INDENT_UNIT = 4
MARGIN_THRESHOLD = 2

CALL_LINE_RE = re.compile(r"^(\d+) .+$")
HEADER_RE = re.compile(r"^(.+)  \(\d+ usages? found\)\s*$")


@dataclass(frozen=True)
class SourceLocation:
    path: str
    line: int  # 1-based, in the original (unmodified) file

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"

    @classmethod
    def parse(cls, text: str) -> "SourceLocation":
        path, sep, line = text.rpartition(":")
        if not sep or not path or not line.isdigit():
            raise ValueError(f"not a 'path:line' location: {text!r}")
        return cls(path=path, line=int(line))


@dataclass(frozen=True)
class ReportNode:
    margin: int
    position: int  # line number in the report
    token: Optional[str] = None  # directories, files and functions
    line: Optional[int] = None  # call sites

    @property
    def is_call(self) -> bool:
        return self.line is not None


def location_key(location: SourceLocation) -> Tuple[str, int]:
    return (location.path, location.line)


def sort_locations(locations: Iterable[SourceLocation]) -> List[SourceLocation]:
    return sorted(locations, key=location_key)


def scan_report(
    text: str,
    indent_unit: int = INDENT_UNIT,
    margin_threshold: int = MARGIN_THRESHOLD,
) -> List[ReportNode]:
    """Turn the report into a flat list of nodes, dropping the framing lines."""
    nodes: List[ReportNode] = []
    for position, raw in enumerate(text.splitlines(), start=1):
        body = raw.lstrip(" ")
        if not body.strip():
            continue
        margin = (len(raw) - len(body)) // indent_unit
        if margin <= margin_threshold:
            continue

        m = CALL_LINE_RE.match(body)
        if m:
            nodes.append(ReportNode(margin=margin, position=position, line=int(m.group(1))))
            continue

        m = HEADER_RE.match(body)
        if m:
            nodes.append(ReportNode(margin=margin, position=position, token=m.group(1)))
            continue

        raise MalformedReport(f"unexpected line {raw!r}", position)
    return nodes


def parse_report(
    text: str,
    separator: str = "/",
    indent_unit: int = INDENT_UNIT,
    margin_threshold: int = MARGIN_THRESHOLD,
) -> List[SourceLocation]:
    """
    Return one location per call-site line of the report, sorted by path then
    line number.

    The nodes are split in two kinds of runs: path parts (directories, files,
    functions) and call-site lines. When a run of call-site lines starts, the
    path is built from the path parts seen since the previous run, minus the
    last one (the function name). Inside a run of call sites:
      - a header one level above the call sites is another function: skip it
      - a header two levels above is another file: it replaces the file name
      - anything else starts a new run of path parts
    """
    nodes = scan_report(text, indent_unit=indent_unit, margin_threshold=margin_threshold)

    locations: List[SourceLocation] = []
    seen = set()
    last_start = 0
    in_calls_section = False
    section_margin = 0
    current_path: List[str] = []

    def emit(node: ReportNode) -> None:
        location = SourceLocation(path=separator.join(current_path), line=node.line)
        if location in seen:
            raise MalformedReport(f"duplicate call site {location}", node.position)
        seen.add(location)
        locations.append(location)

    for i, node in enumerate(nodes):
        if not in_calls_section:
            if node.is_call:
                # the node just before is the function name
                current_path = [n.token for n in nodes[last_start:max(i - 1, last_start)]]
                if not current_path:
                    raise MalformedReport("call site without an enclosing file", node.position)
                in_calls_section = True
                section_margin = node.margin
                emit(node)
            continue

        if node.is_call:
            # shallower: a file-scope usage listed after the function groups
            if node.margin > section_margin:
                raise MalformedReport(
                    f"call site at depth {node.margin}, expected at most {section_margin}", node.position
                )
            emit(node)
            continue

        if node.margin == section_margin - 1:
            continue

        if node.margin == section_margin - 2:
            current_path[-1] = node.token
            continue

        in_calls_section = False
        last_start = i

    logger.info(
        "REPORT_PARSED: %d call site(s) in %d file(s)",
        len(locations),
        len({loc.path for loc in locations}),
    )
    return sort_locations(locations)


def parse_report_file(path: str, encoding: str = "utf-8", **kwargs) -> List[SourceLocation]:
    report = Path(path)
    logger.info("REPORT_LOAD: %s", report)
    return parse_report(report.read_text(encoding=encoding), **kwargs)
