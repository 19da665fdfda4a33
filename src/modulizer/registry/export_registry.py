"""
Export Registry

Symbol table from legacy dotted namespace paths to the module and export
name they have after conversion.

The registry has two phases:
- ExportRegistryBuilder collects records during the scan (thread-safe,
  first writer wins)
- ExportRegistry is the sealed, read-only table every rewrite consults
"""

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from ..shared.errors import RegistryFrozenError

logger = logging.getLogger(__name__)

NAMESPACE_EXPORT = "*"


@dataclass(frozen=True)
class ExportRecord:
    """Destination of a legacy dotted path: a module url and an export name."""
    legacy_path: str
    module_url: str
    export_name: str

    @property
    def is_namespace(self) -> bool:
        """True when the whole module namespace stands for the legacy path."""
        return self.export_name == NAMESPACE_EXPORT

    def __str__(self) -> str:
        return f"{self.legacy_path} → {self.module_url}#{self.export_name}"


class ExportRegistryBuilder:
    """
    Mutable registry used during the scan phase.

    A dotted path keeps the first record registered for it; later records for
    the same path are ignored (and logged when they disagree).
    """

    def __init__(self):
        self._records: Dict[str, ExportRecord] = {}
        self._lock = threading.Lock()
        self._frozen = False

    def register(self, records: Iterable[ExportRecord]) -> List[ExportRecord]:
        """
        Add records; returns the ones that were accepted.

        Raises:
            RegistryFrozenError: if the builder was already sealed
        """
        accepted = []
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("cannot register exports after the scan phase has ended")
            for record in records:
                existing = self._records.get(record.legacy_path)
                if existing is None:
                    self._records[record.legacy_path] = record
                    accepted.append(record)
                elif existing != record:
                    logger.debug(f"ExportRegistry: keeping {existing}, ignoring {record}")
        return accepted

    def lookup(self, legacy_path: str) -> Optional[ExportRecord]:
        with self._lock:
            return self._records.get(legacy_path)

    def __len__(self) -> int:
        return len(self._records)

    def freeze(self) -> "ExportRegistry":
        """Seal the builder and return the read-only registry."""
        with self._lock:
            self._frozen = True
            registry = ExportRegistry(dict(self._records))
        logger.debug(f"ExportRegistry: sealed with {len(registry)} records")
        return registry


class ExportRegistry:
    """Read-only export table."""

    def __init__(self, records: Mapping[str, ExportRecord]):
        self._records = MappingProxyType(dict(records))

    @classmethod
    def empty(cls) -> "ExportRegistry":
        return cls({})

    def lookup(self, legacy_path: str) -> Optional[ExportRecord]:
        return self._records.get(legacy_path)

    def __contains__(self, legacy_path: str) -> bool:
        return legacy_path in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ExportRecord]:
        return iter(self._records.values())

    def records_for_module(self, module_url: str) -> List[ExportRecord]:
        return [r for r in self._records.values() if r.module_url == module_url]
