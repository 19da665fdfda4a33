"""
Document Converter

Turns one legacy HTML document into its converted form:

- convert_to_module: the combined program runs through the whole pass
  pipeline and becomes an ES module that replaces the document.
- convert_to_patched_html: the document stays HTML and only the byte ranges
  that must change are replaced. Inline scripts that gain imports become
  module scripts, HTML imports become module script tags, linked scripts get
  their src corrected and styles that include style modules are re-created
  by small module scripts so they land in document order.
"""

import logging
from typing import Any, Iterator, List, Optional

from ..analysis.document import ScriptFeature
from ..frontend.html_parser import HtmlElement, serialize_start_tag
from ..frontend.js_ast import get_identifier_path, walk
from ..frontend.js_parser import JsParseError
from ..passes import INLINE_SCRIPT_PASSES, MODULE_PASSES, JsProgram, PassManager
from ..passes.dom_insertion import dom_insertion_statements
from ..passes.edits import Edit, apply_edits
from ..shared.source_location import shift_location
from ..utils.config import GLOBAL_SETTINGS_OBJECTS, STYLE_MODULE_APOLOGY
from .conversion_result import ConversionResult, OutputKind
from .document_processor import DocumentProcessor

logger = logging.getLogger(__name__)


def contains_write_to_global_settings_object(program: Any) -> bool:
    """
    True when program assigns one of the global settings objects itself.

    Writes to members of those objects (`Polymer.Settings.foo = 1`) do not
    count.
    """
    for node in walk(program):
        if node.type != "AssignmentExpression":
            continue
        path = get_identifier_path(node.left)
        if path is not None and ".".join(path) in GLOBAL_SETTINGS_OBJECTS:
            return True
    return False


def module_script_tag(code: str) -> str:
    return serialize_start_tag("script", [("type", "module")]) + "\n" + code.rstrip("\n") + "\n</script>"


def _in_demo_snippet(script: ScriptFeature) -> bool:
    for ancestor in script.element.iter_ancestors():
        if ancestor.tag == "template" and ancestor.parent is not None and ancestor.parent.tag == "demo-snippet":
            return True
    return False


class DocumentConverter(DocumentProcessor):
    """Convert one document to a module or a patched HTML document."""

    def convert_to_module(self) -> ConversionResult:
        program = PassManager(MODULE_PASSES).run_all(self.program, self.ctx)
        logger.debug(
            f"{self.original_url}: converted to {self.converted_url} "
            f"({len(self.ctx.export_records)} exports, {self.ctx.import_count} imports)"
        )
        return ConversionResult(
            original_url=self.original_url,
            converted_url=self.converted_url,
            converted_file_path=self.resolver.converted_file_path(self.original_url),
            output_kind=OutputKind.MODULE,
            source=program.source,
            delete_original=True,
            exported_records=tuple(self.ctx.export_records),
        )

    # ------------------------------------------------------------------
    # Patched HTML
    # ------------------------------------------------------------------

    def convert_to_patched_html(self) -> ConversionResult:
        edits: List[Edit] = []
        edits.extend(self._inline_script_edits())
        edits.extend(self._html_import_edits())
        edits.extend(self._script_src_edits())
        if any(style.has_include() for style in self.document.styles()):
            edits.extend(self._style_module_edits())

        source = apply_edits(self.document.contents, edits, drop_nested=True)
        logger.debug(f"{self.original_url}: patched HTML with {len(edits)} edits")
        return ConversionResult(
            original_url=self.original_url,
            converted_url=self.resolver.convert_url(self.original_url),
            converted_file_path=self.original_url,
            output_kind=OutputKind.HTML,
            source=source,
            delete_original=False,
        )

    def _scripts_to_patch(self) -> List[ScriptFeature]:
        scripts = [s for s in self.document.scripts() if s.is_legacy_javascript()]
        scripts.extend(
            s for s in self.document.template_scripts()
            if s.is_legacy_javascript() and _in_demo_snippet(s)
        )
        return scripts

    def _inline_script_edits(self) -> Iterator[Edit]:
        for script in self._scripts_to_patch():
            code = self.rewrite_inline_script(script)
            if code is not None:
                yield Edit(script.start, script.end, module_script_tag(code))

    def rewrite_inline_script(self, script: ScriptFeature) -> Optional[str]:
        """
        Module source for an inline script, or None to leave it a classic script.

        Scripts that configure global settings objects must run before any
        module does, and scripts that import nothing gain nothing from
        becoming modules.
        """
        program = JsProgram(script.contents, self.original_url)
        try:
            if contains_write_to_global_settings_object(program.ast):
                return None
        except JsParseError as e:
            location = e.location
            if location is not None:
                location = shift_location(location, self.document.contents, script.contents_start)
            self.reporter.report_warning(
                f"inline script left unchanged: {e.message}", location, code="W0203",
            )
            return None

        ctx = self.new_context()
        ctx.script_span = (script.contents_start, script.contents_start + len(script.contents))
        ctx.reserve_placeholder_prefix(program.source)
        program = PassManager(INLINE_SCRIPT_PASSES).run_all(program, ctx)
        if ctx.import_count == 0:
            return None
        return program.source

    def _html_import_edits(self) -> Iterator[Edit]:
        for feature in self.document.html_imports():
            if self.settings.is_excluded(feature.url):
                continue
            import_url = self.resolver.format_import_url(
                self.converted_url,
                self.resolver.to_converted_path(feature.url),
                self.settings.import_style,
                feature.href,
            )
            tag = serialize_start_tag("script", [("type", "module"), ("src", import_url)]) + "</script>"
            yield Edit(feature.start, feature.end, tag)

    def _script_src_edits(self) -> Iterator[Edit]:
        for feature in self.document.script_imports():
            src = self.resolver.format_import_url(
                self.converted_url,
                self.resolver.to_converted_path(feature.url),
                self.settings.import_style,
                feature.href,
            )
            element = feature.element
            attrs = [(name, src if name == "src" else value) for name, value in element.attrs]
            start_tag = serialize_start_tag(element.tag, attrs)
            yield Edit(element.start, element.start_tag_end, start_tag)

    def _style_module_edits(self) -> Iterator[Edit]:
        """
        Replace head styles and body content with module scripts that insert them.

        Module scripts run in document order, after every classic script;
        moving all of them keeps their relative order intact.
        """
        html = self.document.html
        head = html.find_first("head")
        body = html.find_first("body")
        if head is None or body is None:
            self.reporter.report_warning(
                "styles including style modules were not converted: the document has no head and body",
                code="W0203",
            )
            return

        elements: List[HtmlElement] = []
        for node in head.iter_descendants():
            if not isinstance(node, HtmlElement):
                continue
            if node.tag == "custom-style" or (node.tag == "style" and node.parent.tag != "custom-style"):
                elements.append(node)
        in_body = [(e, True) for e in body.element_children() if e.tag != "script"]
        tags = [(e, False) for e in elements] + in_body

        first = True
        for element, active_in_body in tags:
            markup = html.source_of(element)
            replacement = module_script_tag(dom_insertion_statements(markup, in_body=active_in_body))
            if first:
                replacement = STYLE_MODULE_APOLOGY + replacement
                first = False
            yield Edit(element.start, element.end, replacement)
