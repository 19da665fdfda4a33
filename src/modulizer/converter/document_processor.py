"""
Document Processor

Shared preparation for scanning and converting one HTML document:

1. Every script that runs in the document (inline scripts and linked classic
   scripts of the same package) is concatenated into one program, in
   document order. HTML comments between scripts survive as block comments.
2. The imports the document's markup asks for are recorded.
3. A placeholder prefix that cannot collide with the program text is
   reserved.

DocumentScanner and DocumentConverter build on the prepared program.
"""

import logging
import re
from typing import List, Optional, Tuple, Union

from ..analysis.analyzer import Analysis
from ..analysis.document import Document, ImportFeature, ImportKind, ScriptFeature
from ..frontend.html_parser import HtmlNode
from ..passes.base import ConversionContext, JsProgram
from ..registry.export_registry import ExportRegistry
from ..shared.errors import DiagnosticReporter, UrlFormatError
from ..shared.settings import ConversionSettings
from ..urls.resolver import UrlResolver
from ..urls.util import is_original_url_format

logger = logging.getLogger(__name__)

_JSDOC_TAG_RE = re.compile(r"@\w+")

ScriptUnit = Union[ScriptFeature, ImportFeature]


def format_html_comment(text: str) -> str:
    """
    JS block comment carrying the text of an HTML comment.

    Text that looks like it holds jsdoc tags becomes a jsdoc comment.

    Examples:
        ' a note ' → '/* a note */'
        ' @license MIT ' → '/** @license MIT */'
    """
    body = text.replace("*/", "*\\/")
    if _JSDOC_TAG_RE.search(text):
        return f"/**{body}*/"
    return f"/*{body}*/"


def _terminated(code: str) -> str:
    code = code.strip("\n").rstrip()
    if code and not code.endswith((";", "}")):
        code += ";"
    return code


def _in_template(node: HtmlNode) -> bool:
    parent = node.parent
    while parent is not None:
        if parent.tag == "template":
            return True
        parent = parent.parent
    return False


class DocumentProcessor:
    """
    Combined program and conversion context of one document.

    The context created here belongs to the module path; the HTML patching
    path asks new_context() for one context per inline script.
    """

    def __init__(
        self,
        document: Document,
        analysis: Analysis,
        resolver: UrlResolver,
        settings: ConversionSettings,
        registry: Optional[ExportRegistry] = None,
        reporter: Optional[DiagnosticReporter] = None,
    ):
        if not is_original_url_format(document.url):
            raise UrlFormatError(f"original document url expected, got {document.url!r}")
        self.document = document
        self.analysis = analysis
        self.resolver = resolver
        self.settings = settings
        self.registry = registry if registry is not None else ExportRegistry.empty()
        self.reporter = reporter if reporter is not None else DiagnosticReporter()
        self.original_url = document.url
        self.converted_url = resolver.to_converted_path(document.url)

        self.ctx = self.new_context()
        self.program = self.combine_scripts()
        self.ctx.explicit_imports.extend(self.explicit_imports())
        self.ctx.reserve_placeholder_prefix(self.program.source)

    def new_context(self) -> ConversionContext:
        return ConversionContext(
            self.document,
            self.converted_url,
            self.settings,
            registry=self.registry,
            resolver=self.resolver,
            reporter=self.reporter,
        )

    # ------------------------------------------------------------------
    # Scripts
    # ------------------------------------------------------------------

    def is_inlined_script(self, feature: ImportFeature) -> bool:
        """Linked classic scripts of the same package are folded into the module."""
        if feature.kind is not ImportKind.HTML_SCRIPT or feature.is_module():
            return False
        if self.settings.is_excluded(feature.url):
            return False
        script_url = self.resolver.convert_script_url(feature.url)
        return self.resolver.is_internal(self.converted_url, script_url)

    def script_sources(self) -> List[Tuple[ScriptUnit, str]]:
        """Code of every script folded into the combined program, in document order."""
        sources: List[Tuple[ScriptUnit, str]] = []
        for unit in self.document.script_units():
            if isinstance(unit, ScriptFeature):
                if unit.is_legacy_javascript() or unit.is_module():
                    sources.append((unit, unit.contents))
            elif self.is_inlined_script(unit):
                linked = self.analysis.get_document(unit.url)
                if linked is not None:
                    sources.append((unit, linked.contents))
        return sources

    def _comments_between(self, start: int, end: int) -> List[str]:
        html = self.document.html
        if html is None:
            return []
        return [
            format_html_comment(comment.data)
            for comment in html.comments()
            if start <= comment.start and comment.end <= end and not _in_template(comment)
        ]

    def combine_scripts(self) -> JsProgram:
        """Concatenate the document's scripts into one program."""
        if not self.document.is_html():
            return JsProgram(self.document.contents, self.original_url)

        pieces: List[str] = []
        previous_end = 0
        sources = self.script_sources()
        for unit, code in sources:
            pieces.extend(self._comments_between(previous_end, unit.start))
            code = _terminated(code)
            if code:
                pieces.append(code)
            previous_end = unit.end
        pieces.extend(self._comments_between(previous_end, len(self.document.contents)))

        logger.debug(f"{self.original_url}: combined {len(sources)} scripts")
        return JsProgram("\n\n".join(pieces), self.original_url)

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def explicit_imports(self) -> List[Tuple[str, str]]:
        """(converted url, original href) of every module the markup imports."""
        imports: List[Tuple[str, str]] = []
        if not self.document.is_html():
            return imports
        for feature in self.document.imports():
            if self.settings.is_excluded(feature.url):
                continue
            if feature.kind is ImportKind.HTML_IMPORT:
                imports.append((self.resolver.to_converted_path(feature.url), feature.href))
            elif not self.is_inlined_script(feature):
                imports.append((self.resolver.convert_script_url(feature.url), feature.href))
        return imports
