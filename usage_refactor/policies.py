"""
Rewrite policies: given a located call and its arguments, return the text
that replaces the call, from the function name through the closing ")".

The code that followed the call in the file (usually ";") is kept after the
replacement, so a policy that appends a statement leaves it unterminated and
the original ";" closes it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from usage_refactor.config import RefactorConfig
from usage_refactor.errors import MalformedCall


@dataclass(frozen=True)
class CallSite:
    path: str
    line: int  # as given by the report
    resolved_line: int  # line in the file as it is now
    function_name: str
    arguments: List[str]
    index: int  # 0-based rank among the calls rewritten during this run
    indent: str = ""  # leading whitespace of the line holding the call
    newline: str = "\n"


class DiagnosticPolicy:
    """
    Number the call and add a diagnostic statement right after it.

        last_error_set(TAG, __FILE__, __LINE__, __func__, "bad %d",
                       value);

    becomes

        last_error_set(BASE_ERROR_ID + 0, __FILE__, __LINE__, __func__, "bad %d", value);
        /* TO-DELETE */ printf(__func__, "bad %d", value);

    The first argument is replaced by `<id_expression> + <n>`, the call is put
    on a single line and the diagnostic receives the arguments from
    `diagnostic_from` on.
    """

    def __init__(
        self,
        id_expression: str = "BASE_ERROR_ID",
        id_start: int = 0,
        diagnostic_function: str = "printf",
        diagnostic_marker: str = "/* TO-DELETE */",
        diagnostic_from: int = 3,
    ):
        self.id_expression = id_expression
        self.id_start = id_start
        self.diagnostic_function = diagnostic_function
        self.diagnostic_marker = diagnostic_marker
        self.diagnostic_from = diagnostic_from

    def rewrite(self, call: CallSite) -> str:
        args = call.arguments
        if len(args) <= self.diagnostic_from:
            raise MalformedCall(
                f"{call.path}:{call.line}: {call.function_name}() has {len(args)} argument(s), "
                f"expected more than {self.diagnostic_from}"
            )
        numbered = [f"{self.id_expression} + {self.id_start + call.index}"] + args[1:]
        marker = f"{self.diagnostic_marker} " if self.diagnostic_marker else ""
        return (
            f"{call.function_name}({', '.join(numbered)});{call.newline}"
            f"{call.indent}{marker}{self.diagnostic_function}({', '.join(args[self.diagnostic_from:])})"
        )


class LeadingArgumentPolicy:
    """Insert a generated identifier as a new first argument, optionally renaming the function."""

    def __init__(self, id_prefix: str = "ERR_", id_start: int = 0, rename_to: Optional[str] = None):
        self.id_prefix = id_prefix
        self.id_start = id_start
        self.rename_to = rename_to

    def rewrite(self, call: CallSite) -> str:
        name = self.rename_to or call.function_name
        args = [f"{self.id_prefix}{self.id_start + call.index}"] + call.arguments
        return f"{name}({', '.join(args)})"


def build_policy(config: RefactorConfig):
    if config.policy == "diagnostic":
        return DiagnosticPolicy(
            id_expression=config.id_expression,
            id_start=config.id_start,
            diagnostic_function=config.diagnostic_function,
            diagnostic_marker=config.diagnostic_marker,
            diagnostic_from=config.diagnostic_from,
        )
    if config.policy == "leading-argument":
        return LeadingArgumentPolicy(
            id_prefix=config.id_prefix,
            id_start=config.id_start,
            rename_to=config.rename_to,
        )
    raise ValueError(f"unknown policy: {config.policy}")
