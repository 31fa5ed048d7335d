"""Structured error objects for the Weave interpreter.

Every diagnostic carries a kind, a message, a source location and a details
dict, so it can be rendered as a one-line message or as JSON.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    LEX = "lex"
    PARSE = "parse"
    NAME = "name"
    ARITY = "arity"
    TYPE = "type"
    RUNTIME = "runtime"


@dataclass
class SourceLocation:
    line: int
    column: int
    file: str = "<string>"

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass
class WeaveError:
    kind: ErrorKind
    message: str
    location: Optional[SourceLocation] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.location:
            d["location"] = {
                "file": self.location.file,
                "line": self.location.line,
                "column": self.location.column,
            }
        if self.details:
            d["details"] = self.details
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        if self.location:
            return f"{self.kind.value} error at {self.location.line}:{self.location.column}: {self.message}"
        return f"{self.kind.value} error: {self.message}"


def lex_error(message: str, location: Optional[SourceLocation] = None) -> WeaveError:
    return WeaveError(kind=ErrorKind.LEX, message=message, location=location)


def parse_error(
    message: str,
    location: Optional[SourceLocation] = None,
    expected: Optional[str] = None,
    found: Optional[str] = None,
) -> WeaveError:
    details: dict[str, Any] = {}
    if expected is not None:
        details["expected"] = expected
    if found is not None:
        details["found"] = found
    return WeaveError(kind=ErrorKind.PARSE, message=message, location=location, details=details)


def name_error(
    message: str,
    name: str,
    location: Optional[SourceLocation] = None,
) -> WeaveError:
    return WeaveError(
        kind=ErrorKind.NAME,
        message=message,
        location=location,
        details={"name": name},
    )


def arity_error(
    callee: str,
    expected: int,
    actual: int,
    location: Optional[SourceLocation] = None,
) -> WeaveError:
    plural = "" if expected == 1 else "s"
    return WeaveError(
        kind=ErrorKind.ARITY,
        message=f"'{callee}' expects {expected} argument{plural}, got {actual}",
        location=location,
        details={"callee": callee, "expected": expected, "actual": actual},
    )


def type_error(
    message: str,
    location: Optional[SourceLocation] = None,
    expected_type: Optional[str] = None,
    actual: Optional[str] = None,
    **extra: Any,
) -> WeaveError:
    details: dict[str, Any] = dict(extra)
    if expected_type is not None:
        details["expected_type"] = expected_type
    if actual is not None:
        details["actual"] = actual
    return WeaveError(kind=ErrorKind.TYPE, message=message, location=location, details=details)


def runtime_error(
    message: str,
    location: Optional[SourceLocation] = None,
    **details: Any,
) -> WeaveError:
    return WeaveError(kind=ErrorKind.RUNTIME, message=message, location=location, details=details)


def format_error(error: WeaveError, fmt: str = "text") -> str:
    """Render a diagnostic for standard error: one line of text, or JSON."""
    if fmt == "json":
        return error.to_json()
    return str(error)


class ScriptError(Exception):
    """Exception wrapping the WeaveError that aborted a pipeline stage."""

    def __init__(self, error: WeaveError):
        self.error = error
        super().__init__(str(error))

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    def to_json(self, indent: int = 2) -> str:
        return self.error.to_json(indent=indent)
