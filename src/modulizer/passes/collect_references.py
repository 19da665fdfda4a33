"""
Reference collection

Finds every place the program reads a namespace member that another module
exports and replaces it with a placeholder identifier standing for that
module's export. The import pass later binds each placeholder to one local
name.

Member chains are matched outermost first: for `Polymer.Foo.bar()` a record
for `Polymer.Foo.bar` wins over one for `Polymer.Foo`.
"""

import logging
from typing import Any, List

from ..frontend.js_ast import (
    NodeVisitor,
    get_member_path,
    is_assignment_target,
    is_reference_position,
)
from ..shared.identifiers import get_setter_name
from .base import BasePass, ConversionContext, JsProgram
from .edits import Edit
from .inline_templates import InlineTemplatesPass
from .remove_wrappers import RemoveWrappersPass

logger = logging.getLogger(__name__)


def _chain_node(node: Any, path_length: int, prefix_length: int) -> Any:
    """The sub-expression of a member chain that spells the first prefix_length segments."""
    for _ in range(path_length - prefix_length):
        node = node.object
    return node


class _ReferenceCollector(NodeVisitor):
    def __init__(self, ctx: ConversionContext):
        super().__init__()
        self.ctx = ctx
        self.roots = ctx.settings.root_namespaces()
        self.edits: List[Edit] = []

    def visit_member_expression(self, node: Any) -> None:
        path = get_member_path(node)
        if path is None or path[0] == "this":
            self.generic_visit(node)
            return
        self._collect(node, path)

    def visit_identifier(self, node: Any) -> None:
        if node.name == "window" or not is_reference_position(node, self.parent):
            return
        self._collect(node, [node.name])

    def _collect(self, node: Any, path: List[str]) -> None:
        ctx = self.ctx
        assigned = is_assignment_target(node, self.parent)
        for length in range(len(path), 0, -1):
            dotted_path = ".".join(path[:length])
            if dotted_path in ctx.settings.reference_excludes or dotted_path in ctx.settings.reference_rewrites:
                return
            record = ctx.registry.lookup(dotted_path)
            if record is None:
                continue
            if record.module_url == ctx.converted_url:
                return
            if assigned and length == len(path):
                self._collect_assignment(node, path)
                return
            target = _chain_node(node, len(path), length)
            self.edits.append(Edit(target.range[0], target.range[1], ctx.placeholder_for(record)))
            return
        if path[0] in self.roots and not assigned:
            ctx.warn(
                f"unresolved reference to `{'.'.join(path)}`",
                code="W0301",
                help="the namespace member is not exported by any converted document",
                node=node,
            )

    def _collect_assignment(self, node: Any, path: List[str]) -> None:
        ctx = self.ctx
        parent = self.parent
        dotted_path = ".".join(path)
        setter = ctx.registry.lookup(get_setter_name(path))
        if (
            parent.type == "AssignmentExpression"
            and parent.operator == "="
            and setter is not None
            and setter.module_url != ctx.converted_url
        ):
            placeholder = ctx.placeholder_for(setter)
            self.edits.append(Edit(parent.range[0], parent.right.range[0], f"{placeholder}("))
            self.edits.append(Edit(parent.right.range[1], parent.range[1], ")"))
            logger.debug(f"{ctx.document_url}: assignment to {dotted_path} becomes a setter call")
            return
        ctx.warn(
            f"assignment to `{dotted_path}`, which is exported by another module and has no setter",
            code="W0302",
            help="imported bindings are read-only; export a setter function next to the binding",
            node=parent,
        )


class CollectReferencesPass(BasePass):
    """Replace references to other modules' exports with placeholders."""
    requires = [RemoveWrappersPass, InlineTemplatesPass]

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        collector = _ReferenceCollector(ctx)
        collector.visit(program.ast)
        logger.debug(
            f"{ctx.document_url}: {len(collector.edits)} reference sites, "
            f"{len(ctx.references)} distinct exports"
        )
        return program.apply(collector.edits)
