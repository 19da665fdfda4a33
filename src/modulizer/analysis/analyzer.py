"""
Document Analyzer

Loads the files of a legacy package and extracts the feature model the
converter works on.

This class handles:
- Loading HTML and JS files from a root directory (or an in-memory overlay)
- Resolving `<link rel="import">` and `<script src>` targets to root-relative urls
- Following imports transitively
- Pairing element declarations with their `<dom-module>` markup
"""

import logging
import posixpath
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..frontend.html_parser import HtmlDocument, HtmlElement, HtmlParser
from ..frontend.js_parser import JsParseError, parse_program
from ..shared.errors import DiagnosticReporter
from ..shared.source_location import shift_location
from ..utils.config import HTML_EXTENSION
from ..utils.io_utils import read_source_file
from .document import (
    Document,
    DocumentKind,
    ElementFeature,
    Feature,
    ImportFeature,
    ImportKind,
    ScriptFeature,
    StyleFeature,
)
from .elements import find_element_declarations

logger = logging.getLogger(__name__)

_NON_LOCAL_PREFIXES = ("http:", "https:", "//", "data:", "mailto:", "javascript:")


def resolve_href(
    document_url: str,
    href: str,
    dependency_dir: Optional[str] = None,
) -> Optional[str]:
    """
    Resolve an href found in document_url to a root-relative url.

    Hrefs that climb out of the root are redirected into dependency_dir, which
    is where a package's siblings live once it is installed.

    Examples:
        resolve_href('foo/bar.html', 'baz.html') → 'foo/baz.html'
        resolve_href('bar.html', '../polymer/polymer.html', 'bower_components')
            → 'bower_components/polymer/polymer.html'
        resolve_href('bar.html', 'https://cdn/x.js') → None
    """
    if not href or href.startswith(_NON_LOCAL_PREFIXES):
        return None
    href = href.split("#", 1)[0].split("?", 1)[0]
    if not href:
        return None
    if href.startswith("/"):
        joined = href.lstrip("/")
    else:
        joined = posixpath.join(posixpath.dirname(document_url), href)
    normalized = posixpath.normpath(joined)
    if normalized.startswith("../"):
        if dependency_dir is None:
            return None
        while normalized.startswith("../"):
            normalized = normalized[3:]
        normalized = posixpath.join(dependency_dir, normalized)
    return normalized


class Analysis:
    """All documents loaded for one run, keyed by root-relative url."""

    def __init__(self, documents: Dict[str, Document]):
        self.documents = documents

    def get_document(self, url: str) -> Optional[Document]:
        return self.documents.get(url)

    def __contains__(self, url: str) -> bool:
        return url in self.documents


class Analyzer:
    """
    Builds Documents from files under a root directory.

    Documents are cached by url; every url is loaded at most once.
    """

    def __init__(
        self,
        root_dir: Path,
        parser: Optional[HtmlParser] = None,
        reporter: Optional[DiagnosticReporter] = None,
        dependency_dir: Optional[str] = None,
        source_overlay: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            root_dir: Directory urls are relative to
            parser: HtmlParser instance (auto-created if None)
            reporter: Receives warnings about unparseable scripts
            dependency_dir: Where hrefs escaping the root are redirected
            source_overlay: Optional in-memory sources (url -> text) used
                           instead of the filesystem
        """
        self.root_dir = Path(root_dir)
        self.parser = parser if parser is not None else HtmlParser()
        self.reporter = reporter if reporter is not None else DiagnosticReporter()
        self.dependency_dir = dependency_dir
        self.source_overlay = source_overlay or {}
        self._documents: Dict[str, Optional[Document]] = {}

    def analyze(self, urls: Iterable[str]) -> Analysis:
        """Load urls and everything they import, transitively."""
        queue: List[str] = list(urls)
        while queue:
            url = queue.pop(0)
            if url in self._documents:
                continue
            document = self.load(url)
            if document is None:
                continue
            for feature in document.imports():
                if feature.url not in self._documents:
                    queue.append(feature.url)
        return Analysis({url: d for url, d in self._documents.items() if d is not None})

    def _exists(self, url: str) -> bool:
        return url in self.source_overlay or (self.root_dir / url).is_file()

    def _read(self, url: str) -> str:
        if url in self.source_overlay:
            return self.source_overlay[url]
        return read_source_file(self.root_dir / url)

    def load(self, url: str) -> Optional[Document]:
        """Load a single document; None when the file does not exist."""
        if url in self._documents:
            return self._documents[url]
        if not self._exists(url):
            logger.debug(f"Analyzer: {url} not found")
            self._documents[url] = None
            return None
        contents = self._read(url)
        self.reporter.add_source(url, contents)
        if url.endswith(HTML_EXTENSION):
            document = self._load_html(url, contents)
        else:
            document = Document(url=url, contents=contents, kind=DocumentKind.JS)
        self._documents[url] = document
        logger.debug(f"Analyzer: loaded {url} ({len(document.features)} features)")
        return document

    # ------------------------------------------------------------------
    # HTML feature extraction
    # ------------------------------------------------------------------

    def _load_html(self, url: str, contents: str) -> Document:
        html = self.parser.parse(contents, url)
        document = Document(url=url, contents=contents, kind=DocumentKind.HTML, html=html)
        features: List[Feature] = []

        for element in html.iter_elements():
            in_template = element.has_ancestor("template")
            if element.tag == "link" and not in_template:
                rel = (element.get_attribute("rel") or "").lower().split()
                href = element.get_attribute("href")
                target = resolve_href(url, href or "", self.dependency_dir) if "import" in rel else None
                if target is not None and self._exists(target):
                    features.append(ImportFeature(ImportKind.HTML_IMPORT, element, href, target))
                elif "import" in rel:
                    logger.debug(f"Analyzer: {url}: import of {href} not found")
            elif element.tag == "script":
                src = element.get_attribute("src")
                script_type = element.get_attribute("type")
                if src is None:
                    features.append(ScriptFeature(
                        element, html.inner_source(element), script_type, in_template,
                    ))
                elif not in_template:
                    target = resolve_href(url, src, self.dependency_dir)
                    if target is not None and self._exists(target):
                        features.append(ImportFeature(
                            ImportKind.HTML_SCRIPT, element, src, target, script_type,
                        ))
            elif element.tag == "style" and not in_template:
                includes = tuple((element.get_attribute("include") or "").split())
                parent = element.parent
                in_custom_style = (
                    element.get_attribute("is") == "custom-style"
                    or (parent is not None and parent.tag == "custom-style")
                )
                features.append(StyleFeature(element, includes, in_custom_style))

        features.extend(self._element_features(url, html, features))
        features.sort(key=lambda f: f.start)
        document.features = features
        return document

    def _element_features(
        self,
        url: str,
        html: HtmlDocument,
        features: List[Feature],
    ) -> List[ElementFeature]:
        dom_modules: Dict[str, HtmlElement] = {}
        for element in html.iter_elements("dom-module"):
            module_id = element.get_attribute("id")
            if module_id and module_id not in dom_modules:
                dom_modules[module_id] = element

        # (url, code, feature start, feature end, offset of code in the html or None)
        sources: List[Tuple[str, str, int, int, Optional[int]]] = []
        for feature in features:
            if isinstance(feature, ScriptFeature) and not feature.in_template and feature.is_legacy_javascript():
                sources.append((url, feature.contents, feature.start, feature.end, feature.contents_start))
            elif isinstance(feature, ImportFeature) and feature.kind is ImportKind.HTML_SCRIPT:
                if not feature.url.startswith(self.dependency_dir or "\0") and self._exists(feature.url):
                    sources.append((feature.url, self._read(feature.url), feature.start, feature.end, None))

        elements: List[ElementFeature] = []
        for source_url, code, start, end, code_offset in sources:
            try:
                program = parse_program(code, source_url)
            except JsParseError as e:
                location = e.location
                if location is not None and code_offset is not None:
                    location = shift_location(location, html.contents, code_offset)
                self.reporter.report_warning(
                    f"could not parse script in {url}: {e.message}", location, code="W0201",
                )
                continue
            for declaration in find_element_declarations(program):
                elements.append(ElementFeature(
                    tag_name=declaration.tag_name,
                    declaration_kind=declaration.kind,
                    source_url=source_url,
                    start=start,
                    end=end,
                    dom_module=dom_modules.get(declaration.tag_name),
                ))
        return elements
