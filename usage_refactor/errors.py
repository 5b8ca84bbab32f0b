"""
Errors raised while parsing a usage report or rewriting call sites.

Every error is fatal for the run: nothing is retried and nothing already
written is rolled back.
"""

from __future__ import annotations

from typing import Optional


class RefactorError(Exception):
    pass


class MalformedReport(RefactorError):
    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"report line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class CallError(RefactorError):
    def __init__(self, message: str, path: Optional[str] = None, line: Optional[int] = None):
        if path is not None:
            message = f"{path}:{line}: {message}"
        super().__init__(message)
        self.path = path
        self.line = line


class MalformedCall(CallError):
    pass


class UnbalancedCall(CallError):
    pass


class CallNotFound(RefactorError):
    def __init__(self, path: str, line: int, resolved_line: int, function_name: str):
        super().__init__(
            f"{path}:{line}: a call to {function_name}() should be found "
            f"(resolved to line {resolved_line})"
        )
        self.path = path
        self.line = line
        self.resolved_line = resolved_line
        self.function_name = function_name


class LineOverflow(RefactorError):
    def __init__(self, path: str, line: int, line_count: int):
        super().__init__(f"{path}: line overflow (line {line}, file has {line_count} lines)")
        self.path = path
        self.line = line
        self.line_count = line_count
