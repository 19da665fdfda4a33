"""
Dependency Name Map

Static table from legacy (bower) package names to new (npm) package names
and version ranges. Constructed once per run and passed to whoever needs it.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

from .shared.errors import DiagnosticReporter, SetupError
from .utils.io_utils import read_json_file

logger = logging.getLogger(__name__)

DEFAULT_DEPENDENCY_MAP_FILE = Path(__file__).parent / "dependency_map.json"


@dataclass(frozen=True)
class DependencyMapEntry:
    npm: str
    semver: str


def parse_dependency_mapping(value: str) -> Dict[str, DependencyMapEntry]:
    """
    Parse a command line override of the form 'bower,npm,semver'.

    Raises:
        SetupError: if the value does not have exactly three parts
    """
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 3 or not all(parts):
        raise SetupError(
            f"--dependency-mapping expects 'bower-name,npm-name,semver-range', got {value!r}"
        )
    bower, npm, semver = parts
    return {bower: DependencyMapEntry(npm=npm, semver=semver)}


class DependencyMap:
    """
    Read-only legacy→new package name table.

    A lookup for a missing name returns None and reports a warning the first
    time that name is looked up.
    """

    def __init__(
        self,
        entries: Mapping[str, DependencyMapEntry],
        reporter: Optional[DiagnosticReporter] = None,
    ):
        self._entries: Dict[str, DependencyMapEntry] = dict(entries)
        self.reporter = reporter
        self._warned: set = set()
        self._lock = threading.Lock()

    @classmethod
    def from_json(
        cls,
        data: Mapping[str, Mapping[str, str]],
        reporter: Optional[DiagnosticReporter] = None,
        overrides: Optional[Mapping[str, DependencyMapEntry]] = None,
    ) -> "DependencyMap":
        entries = {
            name: DependencyMapEntry(npm=info["npm"], semver=info["semver"])
            for name, info in data.items()
        }
        entries.update(overrides or {})
        return cls(entries, reporter)

    @classmethod
    def load(
        cls,
        path: Union[Path, str] = DEFAULT_DEPENDENCY_MAP_FILE,
        reporter: Optional[DiagnosticReporter] = None,
        overrides: Optional[Mapping[str, DependencyMapEntry]] = None,
    ) -> "DependencyMap":
        logger.debug(f"Loading dependency map from {path}")
        return cls.from_json(read_json_file(path), reporter, overrides)

    def lookup(self, legacy_name: str) -> Optional[DependencyMapEntry]:
        entry = self._entries.get(legacy_name)
        if entry is None:
            with self._lock:
                first_miss = legacy_name not in self._warned
                self._warned.add(legacy_name)
            if first_miss and self.reporter is not None:
                self.reporter.report_warning(
                    f'bower->npm mapping for "{legacy_name}" not found', code="W0101",
                )
        return entry

    def npm_name(self, legacy_name: str) -> str:
        """New package name, or the legacy name itself when unmapped."""
        entry = self.lookup(legacy_name)
        return entry.npm if entry is not None else legacy_name

    def reverse_lookup(self, npm_name: str) -> Optional[str]:
        for legacy_name, entry in self._entries.items():
            if entry.npm == npm_name:
                return legacy_name
        return None

    def __contains__(self, legacy_name: str) -> bool:
        return legacy_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> Iterable[str]:
        return self._entries.keys()
