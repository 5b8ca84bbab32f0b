"""
Split the argument list of a single C function call.

Given the code that follows the name of the called function, for example

    (1, f(2, 3), "a, b"); return 0; }

return the top-level arguments ``["1", "f(2, 3)", "\"a, b\""]``, the code that
follows the closing parenthesis (``"; return 0; }"``) and the number of line
breaks met while scanning.

This is not a C lexer:
- parentheses and commas inside double-quoted strings are inert
- a backslash escapes exactly one following character
- comments and character literals are not recognized
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from usage_refactor.errors import MalformedCall, UnbalancedCall


@dataclass(frozen=True)
class CallArguments:
    arguments: List[str]
    remainder: str
    line_count: int  # "\n" characters consumed, leading whitespace included


def split_call_arguments(code: str) -> CallArguments:
    n = len(code)
    i = 0
    line_count = 0

    # skip whites up to the opening "("
    while i < n and code[i] != "(":
        if not code[i].isspace():
            raise MalformedCall(f'expecting "(", got "{code[i]}" instead')
        if code[i] == "\n":
            line_count += 1
        i += 1
    if i >= n:
        raise MalformedCall('expecting "(", got end of text instead')

    depth = 0
    in_string = False
    escaped = False
    params: List[str] = []
    current: List[str] = []

    while i < n:
        c = code[i]
        i += 1
        if c == "\n":
            line_count += 1

        if escaped:
            # exactly one character, whatever it is
            escaped = False
            current.append(c)
            continue

        if c == "\\":
            escaped = True

        if c == '"':
            in_string = not in_string
            current.append(c)
            continue

        if in_string:
            current.append(c)
            continue

        if c == "(":
            depth += 1
            if depth > 1:
                current.append(c)
            continue

        if c == ")":
            depth -= 1
            if depth == 0:
                params.append("".join(current))
                break
            current.append(c)
            continue

        if c == "," and depth == 1:
            params.append("".join(current))
            current = []
            continue

        current.append(c)
    else:
        raise UnbalancedCall(f"unbalanced call: {depth} parenthesis(es) still open at end of text")

    arguments = [p.strip() for p in params]
    if arguments == [""]:
        arguments = []

    return CallArguments(arguments=arguments, remainder=code[i:], line_count=line_count)
