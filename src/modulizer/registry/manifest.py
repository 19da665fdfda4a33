"""
Conversion manifest

JSON record of what a run converted, so a later run (over this package or
one that depends on it) can reuse the export table without rescanning:

    {"files": {"paper-button.html": {"url": "paper-button.js",
                                     "exports": [{"id": "Polymer.PaperButton",
                                                  "name": "PaperButton"}]},
               "old.html": null}}
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..converter.conversion_result import DeleteFileScanResult, OutputKind, ScanResult
from ..shared.errors import SetupError
from ..urls.util import strip_root_anchor
from ..utils.config import HTML_EXTENSION
from ..utils.io_utils import read_json_file, write_json_file
from .export_registry import ExportRecord

logger = logging.getLogger(__name__)


@dataclass
class LoadedManifest:
    """Scan results recovered from a manifest, keyed by original url."""
    results: Dict[str, Union[ScanResult, DeleteFileScanResult]] = field(default_factory=dict)

    def export_records(self) -> List[ExportRecord]:
        records: List[ExportRecord] = []
        for result in self.results.values():
            if isinstance(result, ScanResult):
                records.extend(result.export_records)
        return records


def manifest_to_json(results: Iterable[Union[ScanResult, DeleteFileScanResult]]) -> Dict[str, Any]:
    files: Dict[str, Optional[Dict[str, Any]]] = {}
    for result in sorted(results, key=lambda r: r.original_url):
        if isinstance(result, DeleteFileScanResult):
            files[result.original_url] = None
            continue
        files[result.original_url] = {
            "url": strip_root_anchor(result.converted_url),
            "exports": [
                {"id": record.legacy_path, "name": record.export_name}
                for record in result.export_records
            ],
        }
    return {"files": files}


def _check_entry(original: str, entry: Any) -> None:
    if not isinstance(entry, dict) or not isinstance(entry.get("url"), str):
        raise SetupError(f"manifest entry for {original!r} must be null or an object with a 'url' string")
    exports = entry.get("exports", [])
    if not isinstance(exports, list) or not all(
        isinstance(e, dict) and isinstance(e.get("id"), str) and isinstance(e.get("name"), str)
        for e in exports
    ):
        raise SetupError(f"exports of manifest entry {original!r} must be objects with 'id' and 'name' strings")


def manifest_from_json(
    data: Dict[str, Any],
    original_prefix: str = "",
    converted_prefix: str = "./",
) -> LoadedManifest:
    """
    Rebuild scan results from manifest JSON.

    The prefixes relocate the manifest's package-relative paths, e.g. to
    `bower_components/paper-button/` and `./node_modules/@polymer/paper-button/`
    when the manifest belongs to a dependency.

    Raises:
        SetupError: if the data is not a manifest
    """
    if not isinstance(data, dict) or not isinstance(data.get("files"), dict):
        raise SetupError("conversion manifest must be an object with a 'files' object")
    loaded = LoadedManifest()
    for original, entry in data["files"].items():
        original_url = original_prefix + original
        if entry is None:
            loaded.results[original_url] = DeleteFileScanResult(original_url)
            continue
        _check_entry(original, entry)
        converted_url = converted_prefix + entry["url"]
        records = tuple(
            ExportRecord(legacy_path=e["id"], module_url=converted_url, export_name=e["name"])
            for e in entry.get("exports", [])
        )
        kind = OutputKind.HTML if entry["url"].endswith(HTML_EXTENSION) else OutputKind.MODULE
        loaded.results[original_url] = ScanResult(
            original_url=original_url,
            converted_url=converted_url,
            converted_file_path=original_prefix + entry["url"],
            output_kind=kind,
            export_records=records,
        )
    logger.debug(f"Loaded manifest with {len(loaded.results)} files")
    return loaded


def save_manifest(path: Union[Path, str], results: Iterable[Union[ScanResult, DeleteFileScanResult]]) -> None:
    write_json_file(path, manifest_to_json(results))


def load_manifest(
    path: Union[Path, str],
    original_prefix: str = "",
    converted_prefix: str = "./",
) -> LoadedManifest:
    return manifest_from_json(read_json_file(path), original_prefix, converted_prefix)
