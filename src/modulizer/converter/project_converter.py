"""
Project Orchestrator

Runs a whole package (or workspace) through the two phases of a conversion:

1. Scan: every in-scope document is scanned and its exports registered. The
   registry is sealed when the last scan finishes.
2. Convert: every document is converted against the sealed registry, to a
   module or to patched HTML depending on the settings.

Within a phase documents are independent, so each phase can run on a
thread pool. Results are keyed by original url; a document is converted at
most once per run.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional, Union

from ..analysis.analyzer import Analysis
from ..registry.export_registry import ExportRegistry, ExportRegistryBuilder
from ..registry.manifest import LoadedManifest
from ..shared.errors import DiagnosticReporter, ModulizerImplementationError
from ..shared.settings import ConversionSettings
from ..shared.source_location import SourceLocation
from ..urls.resolver import UrlResolver
from ..urls.util import is_protected_entrypoint
from ..utils.config import HTML_EXTENSION
from .conversion_result import ConversionResult, DeleteFileScanResult, ScanResult
from .document_converter import DocumentConverter
from .document_scanner import DocumentScanner

logger = logging.getLogger(__name__)

AnyScanResult = Union[ScanResult, DeleteFileScanResult]


def _is_protected(result: ConversionResult) -> bool:
    """Hand-maintained entrypoint modules that legacy documents are remapped to."""
    return is_protected_entrypoint(result.original_url) or is_protected_entrypoint(result.converted_url)


class ProjectConverter:
    """
    Scan-then-convert driver for a set of documents.

    Args:
        analysis: Every document loaded for the run
        resolver: Url resolver for the run's layout
        settings: Conversion settings
        reporter: Collects warnings and per-document errors
        workers: Size of the thread pool used inside each phase (1 runs inline)
    """

    def __init__(
        self,
        analysis: Analysis,
        resolver: UrlResolver,
        settings: ConversionSettings,
        reporter: Optional[DiagnosticReporter] = None,
        workers: int = 1,
    ):
        self.analysis = analysis
        self.resolver = resolver
        self.settings = settings
        self.reporter = reporter if reporter is not None else DiagnosticReporter()
        self.workers = max(1, workers)

        self.builder = ExportRegistryBuilder()
        self.registry: Optional[ExportRegistry] = None
        self.scan_results: Dict[str, AnyScanResult] = {}
        self.conversion_results: Dict[str, ConversionResult] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Document classification
    # ------------------------------------------------------------------

    def is_package_document(self, original_url: str) -> bool:
        return not original_url.startswith(self.settings.legacy_dependency_dir + "/")

    def emits_module(self, original_url: str) -> bool:
        """
        Whether a document's conversion is a module.

        Documents of installed dependencies are always modules: they are
        scanned so references into them resolve, never converted here.
        """
        if self.settings.is_module(original_url):
            return True
        return original_url.endswith(HTML_EXTENSION) and not self.is_package_document(original_url)

    def in_scope(self, original_url: str) -> bool:
        return (
            original_url.endswith(HTML_EXTENSION)
            and not self.settings.is_excluded(original_url)
            and original_url in self.analysis
        )

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    def load_manifest(self, manifest: LoadedManifest) -> None:
        """Take over a previous run's scan results; their documents are not scanned again."""
        if self.registry is not None:
            raise ModulizerImplementationError("manifest loaded after the scan phase ended")
        accepted = self.builder.register(manifest.export_records())
        with self._lock:
            for url, result in manifest.results.items():
                self.scan_results.setdefault(url, result)
        logger.debug(f"Loaded {len(manifest.results)} scanned files, {len(accepted)} exports from manifest")

    def manifest_results(self) -> List[AnyScanResult]:
        with self._lock:
            return list(self.scan_results.values())

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _run(self, work: Callable[[str], object], urls: List[str]) -> None:
        if self.workers == 1 or len(urls) < 2:
            for url in urls:
                work(url)
            return
        with ThreadPoolExecutor(max_workers=min(self.workers, len(urls))) as executor:
            futures = {executor.submit(work, url): url for url in urls}
            for future in as_completed(futures):
                future.result()

    def _report_failure(self, original_url: str, phase: str, error: Exception) -> None:
        logger.error(f"Error in {original_url} during {phase}: {error}")
        self.reporter.report_error(
            f"{phase} of {original_url} failed: {error}",
            SourceLocation(file=original_url, line=0, column=0),
            code="E0001",
        )

    def scan(self, urls: Iterable[str]) -> ExportRegistry:
        """
        Scan every in-scope document, then seal and return the registry.

        Documents already known from a manifest are skipped.
        """
        if self.registry is not None:
            raise ModulizerImplementationError("scan phase already ended")
        pending = sorted({u for u in urls if self.in_scope(u) and u not in self.scan_results})
        self._run(self._scan_document, pending)
        self.registry = self.builder.freeze()
        logger.debug(f"Scan phase done: {len(pending)} documents, {len(self.registry)} exports")
        return self.registry

    def _scan_document(self, original_url: str) -> Optional[ScanResult]:
        document = self.analysis.get_document(original_url)
        try:
            scanner = DocumentScanner(
                document, self.analysis, self.resolver, self.settings, reporter=self.reporter,
            )
            if self.emits_module(original_url):
                result = scanner.scan_module()
            else:
                result = scanner.scan_html()
        except Exception as e:
            self._report_failure(original_url, "scan", e)
            return None
        self.builder.register(result.export_records)
        with self._lock:
            self.scan_results.setdefault(original_url, result)
        return result

    def convert(self, original_url: str) -> Optional[ConversionResult]:
        """
        Convert one document; None when it is out of scope or its conversion failed.

        A document that was already converted returns the cached result.
        """
        if self.registry is None:
            raise ModulizerImplementationError("documents must not be converted before the scan phase ends")
        with self._lock:
            cached = self.conversion_results.get(original_url)
        if cached is not None:
            return cached
        if not self.in_scope(original_url):
            return None

        document = self.analysis.get_document(original_url)
        try:
            converter = DocumentConverter(
                document, self.analysis, self.resolver, self.settings,
                registry=self.registry, reporter=self.reporter,
            )
            if self.settings.is_module(original_url):
                result = converter.convert_to_module()
            else:
                result = converter.convert_to_patched_html()
        except Exception as e:
            self._report_failure(original_url, "conversion", e)
            return None
        with self._lock:
            return self.conversion_results.setdefault(original_url, result)

    def convert_all(self, urls: Iterable[str]) -> None:
        self._run(self.convert, sorted(set(urls)))

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def get_results(self) -> Dict[str, Optional[str]]:
        """
        Output path → new text, or None for files to delete.

        Originals replaced by a file under another path are deleted;
        protected entrypoints are never emitted.
        """
        with self._lock:
            conversions = list(self.conversion_results.values())
        results: Dict[str, Optional[str]] = {}
        for result in conversions:
            if result.delete_original and not _is_protected(result):
                results[result.original_url] = None
        for result in conversions:
            if _is_protected(result):
                continue
            results[result.converted_file_path] = result.source
        return results
