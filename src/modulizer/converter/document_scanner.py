"""
Scan Pass

Runs the front of the rewrite pipeline over a document, far enough to learn
which namespace members it will export and under which names, without
building imports or rewriting references. The scan never touches the
document itself; its only product is a ScanResult.
"""

import logging

from ..passes import SCAN_PASSES, PassManager
from .conversion_result import OutputKind, ScanResult
from .document_processor import DocumentProcessor

logger = logging.getLogger(__name__)


class DocumentScanner(DocumentProcessor):
    """Scan one document for the exports its conversion will create."""

    def scan_module(self) -> ScanResult:
        PassManager(SCAN_PASSES).run_all(self.program, self.ctx)
        records = tuple(self.ctx.export_records)
        logger.debug(f"{self.original_url}: scan found {len(records)} exports")
        return ScanResult(
            original_url=self.original_url,
            converted_url=self.converted_url,
            converted_file_path=self.resolver.converted_file_path(self.original_url),
            output_kind=OutputKind.MODULE,
            export_records=records,
        )

    def scan_html(self) -> ScanResult:
        """Documents that stay HTML export nothing."""
        return ScanResult(
            original_url=self.original_url,
            converted_url=self.resolver.convert_url(self.original_url),
            converted_file_path=self.original_url,
            output_kind=OutputKind.HTML,
        )
