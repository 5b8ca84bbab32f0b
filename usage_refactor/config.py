from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

REPORT_PATH = "tools/report.txt"
FUNCTION_NAME = "last_error_set"


class RefactorConfig(BaseModel):
    # where to find things
    report_path: str = REPORT_PATH
    root: str = "."
    encoding: str = "utf-8"

    # report layout
    path_separator: str = "/"
    indent_unit: int = Field(default=4, ge=1)
    margin_threshold: int = Field(default=2, ge=0)

    # what to rewrite
    function_name: str = FUNCTION_NAME
    declaration_suffixes: List[str] = Field(default_factory=lambda: [".h"])

    # how to rewrite it
    policy: Literal["diagnostic", "leading-argument"] = "diagnostic"
    id_expression: str = "BASE_ERROR_ID"
    id_start: int = 0
    id_prefix: str = "ERR_"
    rename_to: Optional[str] = None
    diagnostic_function: str = "printf"
    diagnostic_marker: str = "/* TO-DELETE */"
    diagnostic_from: int = Field(default=3, ge=0)

    dry_run: bool = False
    backup: bool = False

    @field_validator("function_name", "rename_to")
    @classmethod
    def _check_identifier(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.isidentifier():
            raise ValueError(f"not a C identifier: {v!r}")
        return v

    @classmethod
    def from_file(cls, path: str) -> "RefactorConfig":
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
