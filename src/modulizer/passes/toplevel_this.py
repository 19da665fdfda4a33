"""
Top-level `this`

Classic scripts run with `this` bound to the global object; module code runs
with `this` undefined. Every `this` outside of a function body is rewritten
to `window`.
"""

import logging

from ..frontend.js_ast import NodeVisitor
from .base import BasePass, ConversionContext, JsProgram
from .edits import Edit

logger = logging.getLogger(__name__)


class _ToplevelThisVisitor(NodeVisitor):
    def __init__(self):
        super().__init__()
        self.edits = []

    def visit_this_expression(self, node) -> None:
        self.edits.append(Edit(node.range[0], node.range[1], "window"))

    def visit_function_expression(self, node) -> None:
        pass

    def visit_function_declaration(self, node) -> None:
        pass

    def visit_class_body(self, node) -> None:
        # Methods and class fields get their own receiver
        pass


class RewriteToplevelThisPass(BasePass):
    """Rewrite top-level `this` to `window`."""
    requires = []

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        visitor = _ToplevelThisVisitor()
        visitor.visit(program.ast)
        if visitor.edits:
            logger.debug(f"{ctx.document_url}: rewrote {len(visitor.edits)} top-level `this`")
        return program.apply(visitor.edits)

