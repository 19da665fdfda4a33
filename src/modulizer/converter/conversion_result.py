"""
Conversion and scan results
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..registry.export_registry import ExportRecord


class OutputKind(Enum):
    MODULE = "js-module"
    HTML = "html-document"


@dataclass(frozen=True)
class ScanResult:
    """What the scan learned about one document."""
    original_url: str
    converted_url: str
    converted_file_path: str
    output_kind: OutputKind
    export_records: Tuple[ExportRecord, ...] = ()


@dataclass(frozen=True)
class DeleteFileScanResult:
    """A document slated for deletion with no successor."""
    original_url: str


@dataclass(frozen=True)
class ConversionResult:
    """
    Output for one document.

    delete_original is set when the converted file replaces the original
    under a different path; in-place HTML patches keep it False.
    """
    original_url: str
    converted_url: str
    converted_file_path: str
    output_kind: OutputKind
    source: str
    delete_original: bool
    exported_records: Tuple[ExportRecord, ...] = ()
