from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CallMatch:
    before: str  # text strictly before the function name
    gap: str  # whitespace between the name and "("
    after: str  # text starting at "("


def _call_re(function_name: str) -> "re.Pattern[str]":
    return re.compile(rf"(?<![A-Za-z0-9_]){re.escape(function_name)}(\s*)\(")


def find_function_call(function_name: str, code: str) -> Optional[CallMatch]:
    """
    Find the first call to `function_name` in `code`.

    The name must not be preceded by an identifier character and must be
    followed by optional whitespace and "(". Calls inside comments or string
    literals are found like any other: detection is a regular expression, not
    a parser.
    """
    m = _call_re(function_name).search(code)
    if m is None:
        return None
    return CallMatch(
        before=code[: m.start()],
        gap=m.group(1),
        after=code[m.end() - 1:],
    )
