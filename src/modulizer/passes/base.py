"""
Base Pass System

A document's combined script is rewritten by an ordered list of passes.
Each pass receives a JsProgram and returns a new one; passes never mutate
the program they are given. Everything a pass learns that later passes need
(reference sites, chosen export names, claimed markup) lives on the
ConversionContext, not on the pass.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Type

from ..analysis.document import Document
from ..frontend.html_parser import HtmlElement
from ..frontend.js_parser import parse_program
from ..registry.export_registry import ExportRecord, ExportRegistry
from ..shared.errors import DiagnosticReporter
from ..shared.settings import ConversionSettings
from ..shared.source_location import SourceLocation, location_from_offsets
from ..urls.resolver import UrlResolver
from .edits import Edit, apply_edits

logger = logging.getLogger(__name__)


_PLACEHOLDER_STEM = "__modulizer"


class JsProgram:
    """
    Source text of a program plus its lazily parsed AST.

    Node ranges of `ast` are offsets into `source`.
    """

    def __init__(self, source: str, source_file: str = "<program>"):
        self.source = source
        self.source_file = source_file
        self._ast: Optional[Any] = None

    @property
    def ast(self) -> Any:
        if self._ast is None:
            self._ast = parse_program(self.source, self.source_file)
        return self._ast

    @property
    def body(self) -> List[Any]:
        return self.ast.body

    def text(self, node: Any) -> str:
        return self.source[node.range[0]:node.range[1]]

    def with_source(self, source: str) -> "JsProgram":
        if source == self.source:
            return self
        return JsProgram(source, self.source_file)

    def apply(self, edits: Iterable[Edit], drop_nested: bool = False) -> "JsProgram":
        edits = list(edits)
        if not edits:
            return self
        return self.with_source(apply_edits(self.source, edits, drop_nested=drop_nested))


class ConversionContext:
    """
    State shared by the passes converting one document.

    The registry and settings are read-only; everything else is filled in by
    the passes as they run.
    """

    def __init__(
        self,
        document: Document,
        converted_url: str,
        settings: ConversionSettings,
        registry: Optional[ExportRegistry] = None,
        resolver: Optional[UrlResolver] = None,
        reporter: Optional[DiagnosticReporter] = None,
    ):
        self.document = document
        self.converted_url = converted_url
        self.settings = settings
        self.registry = registry if registry is not None else ExportRegistry.empty()
        self.resolver = resolver
        self.reporter = reporter if reporter is not None else DiagnosticReporter()

        # Markup blocks spliced into element declarations (not re-created as DOM)
        self.claimed_dom_modules: List[HtmlElement] = []
        # Imports requested by the document's markup: (converted url, original href)
        self.explicit_imports: List[tuple] = []
        # Legacy dotted path → local name of this module's own export
        self.local_names: Dict[str, str] = {}
        self.export_records: List[ExportRecord] = []
        # Local function name → namespace path, for functions lifted out of a namespace object
        self.namespace_functions: Dict[str, str] = {}
        # Placeholder identifier → record it stands for, in first-reference order
        self.references: Dict[str, ExportRecord] = {}
        # Placeholder identifier → text substituted when the program is printed
        self.deferred: Dict[str, str] = {}
        self.import_count = 0
        # Span of the document text the program came from, when it is one inline script
        self.script_span: Optional[Tuple[int, int]] = None
        # Source of the program the running pass was given
        self.program_source: Optional[str] = None

        self._placeholder_prefix = _PLACEHOLDER_STEM + "ref"
        self._placeholder_by_path: Dict[str, str] = {}

    @property
    def document_url(self) -> str:
        return self.document.url

    # ------------------------------------------------------------------
    # Placeholders
    # ------------------------------------------------------------------

    def reserve_placeholder_prefix(self, source: str) -> None:
        """Make sure no placeholder can collide with text already in source."""
        while self._placeholder_prefix in source:
            self._placeholder_prefix += "_"

    @property
    def placeholder_prefix(self) -> str:
        return self._placeholder_prefix

    def placeholder_for(self, record: ExportRecord) -> str:
        """Placeholder identifier for a record; one per record per document."""
        placeholder = self._placeholder_by_path.get(record.legacy_path)
        if placeholder is None:
            placeholder = f"{self._placeholder_prefix}{len(self._placeholder_by_path)}__"
            self._placeholder_by_path[record.legacy_path] = placeholder
            self.references[placeholder] = record
        return placeholder

    def defer(self, text: str) -> str:
        """Placeholder identifier for text the parser cannot read, e.g. `import.meta.url`."""
        placeholder = f"{self._placeholder_prefix}d{len(self.deferred)}__"
        self.deferred[placeholder] = text
        return placeholder

    def placeholders(self) -> Set[str]:
        return set(self.references) | set(self.deferred)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def warn(self, message: str, code: str, help: Optional[str] = None, node: Optional[Any] = None) -> None:
        """
        Report a warning against the document.

        node is the program node the warning is about. It is located in the
        document only for programs made of a single inline script, and only
        when its text occurs exactly once in that script; otherwise the
        location names the file only.
        """
        self.reporter.report_warning(message, self._locate(node), code=code, help=help)

    def _locate(self, node: Optional[Any]) -> SourceLocation:
        file_only = SourceLocation(file=self.document_url, line=0, column=0)
        if node is None or self.script_span is None or self.program_source is None:
            return file_only
        text = self.program_source[node.range[0]:node.range[1]]
        start, end = self.script_span
        contents = self.document.contents
        found = contents.find(text, start, end)
        if not text or found < 0 or contents.find(text, found + 1, end) >= 0:
            return file_only
        return location_from_offsets(self.document_url, contents, found, found + len(text))


class BasePass(ABC):
    """
    Base class for all program passes.

    - Explicit dependencies via `requires`
    - Results needed by later passes stored on the context
    - Passes return a new JsProgram
    """
    requires: List[Type["BasePass"]] = []

    @abstractmethod
    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        raise NotImplementedError


class PassManager:
    """
    Runs registered passes in dependency order.

    A dependency that was not registered is ignored, so a pipeline can leave
    out passes that do not apply to it (the HTML patching path does not
    inline templates, for instance).
    """

    def __init__(self, passes: Iterable[Type[BasePass]] = ()):
        self.passes: List[Type[BasePass]] = []
        self._dependency_graph: Dict[Type[BasePass], Set[Type[BasePass]]] = {}
        for pass_class in passes:
            self.register_pass(pass_class)

    def register_pass(self, pass_class: Type[BasePass]) -> None:
        """Register a pass"""
        self.passes.append(pass_class)
        self._dependency_graph[pass_class] = set(pass_class.requires)

    def run_all(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        """
        Run all passes in dependency order.

        Args:
            program: Input program
            ctx: Conversion context shared by the passes
        """
        for pass_class in self._topological_sort():
            ctx.program_source = program.source
            program = pass_class().run(program, ctx)
            logger.debug(f"{ctx.document_url}: ran {pass_class.__name__}")
        return program

    def _topological_sort(self) -> List[Type[BasePass]]:
        """Topological sort of passes by dependencies, registration order breaking ties"""
        registered = set(self.passes)
        in_degree = {p: len(self._dependency_graph[p] & registered) for p in self.passes}
        queue = [p for p in self.passes if in_degree[p] == 0]
        result = []

        while queue:
            pass_class = queue.pop(0)
            result.append(pass_class)

            for other_pass in self.passes:
                if pass_class in self._dependency_graph[other_pass]:
                    in_degree[other_pass] -= 1
                    if in_degree[other_pass] == 0:
                        queue.append(other_pass)

        if len(result) != len(self.passes):
            raise RuntimeError("Circular dependency detected in passes")

        return result
