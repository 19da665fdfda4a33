"""
Namespace `this`

Functions lifted out of a namespace object literal used `this` to reach
their sibling members. Inside those functions `this.member` is rewritten to
the explicit `Namespace.member`, which the reference rewrite then turns into
the sibling's local name. Nested functions are not entered since they may be
called with a different receiver; arrow functions are.
"""

import logging
from typing import Any, List

from ..frontend.js_ast import NodeVisitor
from .base import BasePass, ConversionContext, JsProgram
from .edits import Edit
from .namespace_exports import NamespaceExportsPass

logger = logging.getLogger(__name__)


class _SingleScopeThisVisitor(NodeVisitor):
    def __init__(self, ctx: ConversionContext, namespace: str, function_name: str):
        super().__init__()
        self.ctx = ctx
        self.namespace = namespace
        self.function_name = function_name
        self.edits: List[Edit] = []

    def visit_this_expression(self, node: Any) -> None:
        parent = self.parent
        if (
            parent is not None
            and parent.type == "MemberExpression"
            and parent.object is node
            and not parent.computed
            and f"{self.namespace}.{parent.property.name}" in self.ctx.local_names
        ):
            self.edits.append(Edit(node.range[0], node.range[1], self.namespace))
            return
        self.ctx.warn(
            f"`this` in {self.namespace}.{self.function_name} does not name a member of "
            f"{self.namespace} and was left as is",
            code="W0303",
            node=parent if parent is not None else node,
        )

    def visit_function_expression(self, node: Any) -> None:
        pass

    def visit_function_declaration(self, node: Any) -> None:
        pass

    def visit_class_body(self, node: Any) -> None:
        pass


class NamespaceThisPass(BasePass):
    """Rewrite `this` inside functions lifted out of namespace objects."""
    requires = [NamespaceExportsPass]

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        if not ctx.namespace_functions:
            return program
        edits: List[Edit] = []
        for statement in program.body:
            function = statement
            if statement.type == "ExportNamedDeclaration" and statement.declaration is not None:
                function = statement.declaration
            if function.type != "FunctionDeclaration" or function.id is None:
                continue
            namespace = ctx.namespace_functions.get(function.id.name)
            if namespace is None:
                continue
            visitor = _SingleScopeThisVisitor(ctx, namespace, function.id.name)
            for child in function.body.body:
                visitor.visit(child)
            edits.extend(visitor.edits)
        if edits:
            logger.debug(f"{ctx.document_url}: rewrote {len(edits)} namespace `this` references")
        return program.apply(edits)
