"""
Template inlining

Moves the `<template>` of an element's `<dom-module>` into the element's
declaration, as a `static get template()` getter for class-based elements or
a `_template` property for `Polymer({...})` factory calls. A dom-module whose
markup is more than an id and a single plain template stays in the document
and is re-created at runtime by the DOM insertion pass.
"""

import logging
import re
from typing import Dict, List

from ..analysis.elements import ElementDeclaration, ElementDeclarationKind, find_element_declarations
from ..frontend.html_parser import HtmlElement, HtmlText
from .base import BasePass, ConversionContext, JsProgram
from .edits import Edit
from .remove_wrappers import RemoveWrappersPass

logger = logging.getLogger(__name__)

_BLANK_LINE_RE = re.compile(r"^\s*$")


def can_dom_module_be_inlined(dom_module: HtmlElement) -> bool:
    """
    True when a dom-module holds nothing but one attribute-less template.

    Only an `id` attribute is allowed on the dom-module itself; scripts and
    whitespace between children are fine.
    """
    if any(name != "id" for name, _ in dom_module.attrs):
        return False
    templates = 0
    for child in dom_module.children:
        if isinstance(child, HtmlElement):
            if child.tag == "template":
                if child.attrs:
                    return False
                templates += 1
            elif child.tag != "script":
                return False
        elif isinstance(child, HtmlText):
            if not child.is_whitespace():
                return False
        else:
            return False
    return templates <= 1


def template_literal(markup: str, add_newlines: bool = True) -> str:
    """
    Source of a template literal whose value is markup.

    Leading and trailing blank lines are dropped. `</script` is defused so the
    literal can sit inside an inline script.
    """
    lines = markup.split("\n")
    while lines and _BLANK_LINE_RE.match(lines[0]):
        lines.pop(0)
    while lines and _BLANK_LINE_RE.match(lines[-1]):
        lines.pop()
    cooked = "\n".join(lines)
    if add_newlines:
        cooked = f"\n{cooked}\n"
    # Backslashes first so the escapes added below are left alone
    raw = (
        cooked.replace("</script", "&lt;/script")
        .replace("\\", "\\\\")
        .replace("`", "\\`")
        .replace("$", "\\$")
    )
    return f"`{raw}`"


def _class_body_open(declaration: ElementDeclaration) -> int:
    return declaration.node.body.range[0] + 1


def _factory_options_open(declaration: ElementDeclaration) -> int:
    return declaration.node.arguments[0].range[0] + 1


class InlineTemplatesPass(BasePass):
    """Splice dom-module templates into element declarations and claim the dom-modules."""
    requires = [RemoveWrappersPass]

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        declarations: Dict[str, ElementDeclaration] = {}
        for declaration in find_element_declarations(program.ast):
            declarations.setdefault(declaration.tag_name, declaration)

        insertions: Dict[int, List[str]] = {}
        html = ctx.document.html

        for element in ctx.document.elements():
            dom_module = element.dom_module
            if dom_module is None or html is None:
                continue
            if not can_dom_module_be_inlined(dom_module):
                logger.debug(f"{ctx.document_url}: dom-module {element.tag_name} is not inlinable")
                continue
            template = next((c for c in dom_module.element_children() if c.tag == "template"), None)
            if template is None:
                ctx.claimed_dom_modules.append(dom_module)
                continue
            declaration = declarations.get(element.tag_name)
            if declaration is None:
                ctx.warn(
                    f"could not find the declaration of element <{element.tag_name}>; "
                    f"its template was not inlined",
                    code="W0201",
                )
                continue
            ctx.claimed_dom_modules.append(dom_module)
            literal = template_literal(html.inner_source(template))
            tag = ctx.settings.template_tag or ""
            if declaration.kind is ElementDeclarationKind.CLASS:
                text = f"\n  static get template() {{\n    return {tag}{literal};\n  }}\n"
                insertions.setdefault(_class_body_open(declaration), []).append(text)
            else:
                text = f"\n  _template: {tag}{literal},"
                insertions.setdefault(_factory_options_open(declaration), []).append(text)

        if ctx.settings.add_import_path:
            for declaration in declarations.values():
                meta_url = ctx.defer("import.meta.url")
                if declaration.kind is ElementDeclarationKind.CLASS:
                    text = f"\n  static get importPath() {{\n    return {meta_url};\n  }}\n"
                    insertions.setdefault(_class_body_open(declaration), []).insert(0, text)
                else:
                    text = f"\n  importPath: {meta_url},"
                    insertions.setdefault(_factory_options_open(declaration), []).insert(0, text)

        edits = [Edit.insert(offset, "".join(texts)) for offset, texts in insertions.items()]
        if edits:
            logger.debug(f"{ctx.document_url}: inlined {len(ctx.claimed_dom_modules)} dom-modules")
        return program.apply(edits)
