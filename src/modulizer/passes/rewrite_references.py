"""
Fixed reference rewrites

Applies, outermost member chain first:

- configured rewrites (`document.currentScript.ownerDocument` → `window.document`)
- configured excludes, replaced by `undefined` except where assigned to
- references to this module's own exports, replaced by their local names
"""

import logging
from typing import Any, List, Optional

from ..frontend.js_ast import NodeVisitor, get_member_path, is_assignment_target
from .base import BasePass, ConversionContext, JsProgram
from .edits import Edit
from .namespace_this import NamespaceThisPass

logger = logging.getLogger(__name__)


class _ReferenceRewriter(NodeVisitor):
    def __init__(self, ctx: ConversionContext):
        super().__init__()
        self.ctx = ctx
        self.edits: List[Edit] = []

    def _replacement(self, dotted_path: str, assigned: bool) -> Optional[str]:
        settings = self.ctx.settings
        if dotted_path in settings.reference_rewrites:
            return settings.reference_rewrites[dotted_path]
        if dotted_path in settings.reference_excludes:
            return None if assigned else "undefined"
        return self.ctx.local_names.get(dotted_path)

    def visit_member_expression(self, node: Any) -> None:
        path = get_member_path(node)
        if path is None:
            self.generic_visit(node)
            return
        # Excludes inside an assignment target would leave `undefined.x = ...`
        assigned = is_assignment_target(node, self.parent)
        target = node
        for length in range(len(path), 1, -1):
            replacement = self._replacement(".".join(path[:length]), assigned)
            if replacement is not None:
                self.edits.append(Edit(target.range[0], target.range[1], replacement))
                return
            target = target.object


class RewriteReferencesPass(BasePass):
    """Apply rewrites, excludes and own-export references."""
    requires = [NamespaceThisPass]

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        rewriter = _ReferenceRewriter(ctx)
        rewriter.visit(program.ast)
        if rewriter.edits:
            logger.debug(f"{ctx.document_url}: rewrote {len(rewriter.edits)} references")
        return program.apply(rewriter.edits)
