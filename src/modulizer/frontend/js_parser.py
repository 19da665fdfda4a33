"""
JavaScript Parser

Thin wrapper over esprima. Every node carries a `range` of character offsets
into the parsed text, which is what the text-edit passes work with.
"""

import logging
from typing import Any, Optional

import esprima

from ..shared.errors import ModulizerError
from ..shared.source_location import SourceLocation

logger = logging.getLogger(__name__)

_PARSE_OPTIONS = {"range": True, "loc": True}


class JsParseError(ModulizerError):
    """Parse error with source location"""
    def __init__(self, message: str, source_file: str, location: Optional[SourceLocation] = None):
        super().__init__(message, location)
        self.source_file = source_file


def _location_of(error: Exception, source_file: str) -> Optional[SourceLocation]:
    line = getattr(error, "lineNumber", None)
    column = getattr(error, "column", None)
    if line is None:
        return None
    return SourceLocation(file=source_file, line=line, column=column or 1)


def parse_program(source: str, source_file: str = "<script>") -> Any:
    """
    Parse source that may already contain import/export declarations.

    Module goal first; sloppy-mode legacy code that is not valid module code
    (e.g. `with`, octal literals) falls back to the script goal.
    """
    try:
        return esprima.parseModule(source, dict(_PARSE_OPTIONS))
    except Exception as module_error:
        logger.debug(f"{source_file}: not a valid module ({module_error}), retrying as script")
        try:
            return esprima.parseScript(source, dict(_PARSE_OPTIONS))
        except Exception:
            raise JsParseError(
                f"Parse error: {module_error}", source_file, _location_of(module_error, source_file)
            ) from module_error
