"""
Diagnostics and Error Reporting

Warnings and errors are collected during a run and printed to stderr in one
batch at the end, rustc style. Only setup errors stop a run.
"""

import os
import sys
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, TextIO, Tuple

from .source_location import SourceLocation


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get("MODULIZER_COLOR", "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return True

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_YELLOW = "\033[33m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


class Severity(Enum):
    WARNING = "warning"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Diagnostic dataclass
# ---------------------------------------------------------------------------

@dataclass
class Diagnostic:
    """A warning or error attached to an optional source location."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    severity: Severity = Severity.WARNING
    help: Optional[str] = None
    note: Optional[str] = None


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _format_diagnostic(
    diagnostic: Diagnostic,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a single diagnostic.

    Example output (plain, no color)::

        warning[W0301]: unresolved reference to `Polymer.Foo`
         --> paper-button.html:12:5
          |
        12 |     Polymer.Foo.bar();
           |     ^^^^^^^^^^^
    """
    out: List[str] = []
    header_color = _RED if diagnostic.severity is Severity.ERROR else _YELLOW

    # ---- header -----------------------------------------------------------
    code_str = f"[{diagnostic.code}]" if diagnostic.code else ""
    out.append(
        _style(f"{diagnostic.severity.value}{code_str}", _BOLD, header_color, color=color)
        + _style(f": {diagnostic.message}", _BOLD, color=color)
    )

    loc = diagnostic.location
    if loc is None:
        _append_annotations(out, diagnostic, 1, color)
        return "\n".join(out)

    source = source_files.get(loc.file)
    if source is None or loc.line <= 0:
        where = f"{loc.file}:{loc.line}:{loc.column}" if loc.line > 0 else loc.file
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + where)
        _append_annotations(out, diagnostic, 1, color)
        return "\n".join(out)

    # ---- source snippet ---------------------------------------------------
    src_lines = source.split("\n")
    gw = max(len(str(loc.line)), 1)
    code_line = src_lines[loc.line - 1] if loc.line - 1 < len(src_lines) else ""

    out.append(
        _style(" " * gw + "--> ", _BOLD, _BLUE, color=color)
        + f"{loc.file}:{loc.line}:{loc.column}"
    )
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    out.append(_style(str(loc.line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)

    col_start = max(loc.column, 1) - 1
    if loc.end_line == loc.line and loc.end_column > loc.column:
        span_len = loc.end_column - loc.column
    else:
        span_len = max(1, len(code_line.rstrip()) - col_start)
    carets = " " * col_start + "^" * max(1, span_len)
    out.append(
        _style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color)
        + _style(carets, _BOLD, header_color, color=color)
    )

    _append_annotations(out, diagnostic, gw, color)
    return "\n".join(out)


def _append_annotations(
    out: List[str],
    diagnostic: Diagnostic,
    gw: int,
    color: bool,
) -> None:
    if not (diagnostic.help or diagnostic.note):
        return
    pad = " " * (gw + 1)
    if diagnostic.help:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("help: ", _BOLD, color=color)
            + diagnostic.help
        )
    if diagnostic.note:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("note: ", _BOLD, color=color)
            + diagnostic.note
        )


# ---------------------------------------------------------------------------
# DiagnosticReporter
# ---------------------------------------------------------------------------

class DiagnosticReporter:
    """
    Collects diagnostics for a whole run.

    Safe to share between worker threads. A diagnostic with the same code,
    message and file as an earlier one is dropped.
    """

    def __init__(self, source_files: Optional[Dict[str, str]] = None):
        self.source_files: Dict[str, str] = source_files if source_files is not None else {}
        self.diagnostics: List[Diagnostic] = []
        self._seen: set = set()
        self._lock = threading.Lock()

    def _report(self, diagnostic: Diagnostic) -> None:
        file = diagnostic.location.file if diagnostic.location else None
        key: Tuple = (diagnostic.code, diagnostic.message, file)
        with self._lock:
            if key in self._seen:
                return
            self._seen.add(key)
            self.diagnostics.append(diagnostic)

    def report_warning(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
    ) -> None:
        self._report(Diagnostic(message, location, code, Severity.WARNING, help, note))

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
    ) -> None:
        self._report(Diagnostic(message, location, code, Severity.ERROR, help, note))

    def add_source(self, file: str, contents: str) -> None:
        with self._lock:
            self.source_files.setdefault(file, contents)

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def format_diagnostic(self, diagnostic: Diagnostic, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(diagnostic, self.source_files, color=use_color)

    def format_all(self, color: Optional[bool] = None) -> str:
        parts = [self.format_diagnostic(d, color=color) for d in self.diagnostics]
        if parts:
            use_color = color if color is not None else _use_color()
            warnings, errors = len(self.warnings), len(self.errors)
            summary = (
                f"{warnings} warning{'s' if warnings != 1 else ''}, "
                f"{errors} error{'s' if errors != 1 else ''} emitted"
            )
            parts.append(_style(summary, _BOLD, color=use_color))
        return "\n\n".join(parts)

    def print_all(self, stream: Optional[TextIO] = None) -> None:
        stream = stream if stream is not None else sys.stderr
        if not self.diagnostics:
            return
        print(self.format_all(), file=stream)


# ============================================================================
# Exception Classes
# ============================================================================

class ModulizerError(Exception):
    """Base exception for all converter errors"""
    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        if self.location:
            return f"{self.message}\n --> {self.location}"
        return self.message


class SetupError(ModulizerError):
    """
    Unrecoverable problem detected before any conversion starts.

    Examples:
    - bower.json without a name and no --npm-name given
    - malformed --dependency-mapping value
    """


class UrlFormatError(ModulizerError, ValueError):
    """A path was not in the expected root-anchored form."""


class RegistryFrozenError(ModulizerError):
    """An export was registered after the registry was sealed."""


class ImportAllocationError(ModulizerError):
    """Import declarations for a module could not be built."""


class ModulizerImplementationError(Exception):
    """
    Error in the converter itself (not in the code being converted).

    Use this for invalid internal state, never for problems in user files.
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"
