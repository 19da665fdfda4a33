"""
DOM insertion

Markup of a converted HTML document that is not carried by the module any
other way (styles, custom-style blocks, dom-modules that could not be
inlined, ...) is re-created when the module runs: it is serialized into a
hidden container element appended to the document head.
"""

import logging
from typing import Any, List

from ..frontend.html_parser import HtmlElement
from ..frontend.js_ast import collect_used_names
from ..shared.identifiers import find_available_identifier
from ..utils.config import DOCUMENT_CONTAINER_NAME, GENERATED_ELEMENT_BLACKLIST
from .base import BasePass, ConversionContext, JsProgram
from .edits import Edit
from .inline_templates import InlineTemplatesPass, template_literal
from .rewrite_references import RewriteReferencesPass

logger = logging.getLogger(__name__)


def dom_insertion_statements(markup: str, container: str = DOCUMENT_CONTAINER_NAME, in_body: bool = False) -> str:
    """Statements that parse markup into a container element and attach it."""
    lines = [
        f"const {container} = document.createElement('div');",
    ]
    if not in_body:
        lines.append(f"{container}.setAttribute('style', 'display: none;');")
    lines.append(f"{container}.innerHTML = {template_literal(markup, add_newlines=False)};")
    lines.append(f"document.{'body' if in_body else 'head'}.appendChild({container});")
    return "\n".join(lines)


class DomInsertionPass(BasePass):
    """Re-create unclaimed top-level markup at module evaluation time."""
    requires = [InlineTemplatesPass, RewriteReferencesPass]

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        html = ctx.document.html
        if html is None:
            return program
        claimed = ctx.claimed_dom_modules

        def excluded(element: HtmlElement) -> bool:
            if element.has_ancestor("template"):
                return False
            return element.tag in GENERATED_ELEMENT_BLACKLIST or any(element is c for c in claimed)

        elements = [e for e in html.content_elements() if not excluded(e)]
        if not elements:
            return program
        markup = "\n".join(html.serialize_without(e, excluded) for e in elements)
        container = find_available_identifier(DOCUMENT_CONTAINER_NAME, collect_used_names(program.ast))
        statements = dom_insertion_statements(markup, container)

        offset = self._after_leading_imports(program.body)
        if offset == 0:
            edit = Edit.insert(0, statements + "\n\n")
        else:
            edit = Edit.insert(offset, "\n\n" + statements)
        logger.debug(f"{ctx.document_url}: re-creating {len(elements)} elements at runtime")
        return program.apply([edit])

    @staticmethod
    def _after_leading_imports(body: List[Any]) -> int:
        offset = 0
        for statement in body:
            if statement.type != "ImportDeclaration":
                break
            offset = statement.range[1]
        return offset
