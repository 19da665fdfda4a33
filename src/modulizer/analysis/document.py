"""
Document model

A document is one file of the legacy package with the features found in it.
Features form a closed set of variants; callers use the accessor methods on
Document instead of filtering by a kind string.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from ..frontend.html_parser import HtmlDocument, HtmlElement
from ..utils.config import LEGACY_JAVASCRIPT_TYPES
from .elements import ElementDeclarationKind


class DocumentKind(Enum):
    HTML = "html"
    JS = "js"


class ImportKind(Enum):
    HTML_IMPORT = "html-import"
    HTML_SCRIPT = "html-script"


@dataclass(eq=False)
class ScriptFeature:
    """An inline `<script>` element."""
    element: HtmlElement
    contents: str
    script_type: Optional[str] = None
    in_template: bool = False

    @property
    def start(self) -> int:
        return self.element.start

    @property
    def end(self) -> int:
        return self.element.end

    @property
    def contents_start(self) -> int:
        """Offset of `contents` in the document's text."""
        return self.element.start_tag_end

    def is_legacy_javascript(self) -> bool:
        if self.script_type is None:
            return True
        return self.script_type.strip().lower() in LEGACY_JAVASCRIPT_TYPES

    def is_module(self) -> bool:
        return self.script_type is not None and self.script_type.strip().lower() == "module"


@dataclass(eq=False)
class ImportFeature:
    """A `<link rel="import">` or `<script src>` pointing at another document."""
    kind: ImportKind
    element: HtmlElement
    href: str
    url: str
    script_type: Optional[str] = None

    @property
    def start(self) -> int:
        return self.element.start

    @property
    def end(self) -> int:
        return self.element.end

    def is_module(self) -> bool:
        return self.script_type is not None and self.script_type.strip().lower() == "module"


@dataclass(eq=False)
class StyleFeature:
    """A `<style>` element, possibly pulling in shared style modules."""
    element: HtmlElement
    includes: Tuple[str, ...] = ()
    in_custom_style: bool = False

    @property
    def start(self) -> int:
        return self.element.start

    @property
    def end(self) -> int:
        return self.element.end

    def has_include(self) -> bool:
        return bool(self.includes)


@dataclass(eq=False)
class ElementFeature:
    """
    A custom element declaration and its companion markup block.

    source_url is the document whose code declares the element: the HTML
    document itself for inline scripts, or a linked script.
    """
    tag_name: str
    declaration_kind: ElementDeclarationKind
    source_url: str
    start: int
    end: int
    dom_module: Optional[HtmlElement] = None


Feature = Union[ScriptFeature, ImportFeature, StyleFeature, ElementFeature]


@dataclass(eq=False)
class Document:
    url: str
    contents: str
    kind: DocumentKind
    html: Optional[HtmlDocument] = None
    features: List[Feature] = field(default_factory=list)

    def is_html(self) -> bool:
        return self.kind is DocumentKind.HTML

    def scripts(self) -> List[ScriptFeature]:
        """Inline scripts that run in the document (not inside templates)."""
        return [f for f in self.features if isinstance(f, ScriptFeature) and not f.in_template]

    def template_scripts(self) -> List[ScriptFeature]:
        return [f for f in self.features if isinstance(f, ScriptFeature) and f.in_template]

    def imports(self, kind: Optional[ImportKind] = None) -> List[ImportFeature]:
        return [
            f for f in self.features
            if isinstance(f, ImportFeature) and (kind is None or f.kind is kind)
        ]

    def html_imports(self) -> List[ImportFeature]:
        return self.imports(ImportKind.HTML_IMPORT)

    def script_imports(self) -> List[ImportFeature]:
        return self.imports(ImportKind.HTML_SCRIPT)

    def styles(self) -> List[StyleFeature]:
        return [f for f in self.features if isinstance(f, StyleFeature)]

    def elements(self) -> List[ElementFeature]:
        return [f for f in self.features if isinstance(f, ElementFeature)]

    def script_units(self) -> List[Union[ScriptFeature, ImportFeature]]:
        """Inline scripts and linked scripts in document order."""
        units = [f for f in self.features if isinstance(f, (ScriptFeature, ImportFeature))]
        units = [
            u for u in units
            if (isinstance(u, ScriptFeature) and not u.in_template)
            or (isinstance(u, ImportFeature) and u.kind is ImportKind.HTML_SCRIPT)
        ]
        return sorted(units, key=lambda u: u.start)
