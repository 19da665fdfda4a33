"""
Dangerous references

Some expressions mean something else once code runs as a module. They are
reported, not rewritten.
"""

import logging
from typing import Any

from ..frontend.js_ast import NodeVisitor, get_member_path
from ..utils.config import DANGEROUS_REFERENCES
from .base import BasePass, ConversionContext, JsProgram
from .imports import ImportsPass

logger = logging.getLogger(__name__)


class _DangerousReferenceVisitor(NodeVisitor):
    def __init__(self, ctx: ConversionContext):
        super().__init__()
        self.ctx = ctx
        self.found = 0

    def visit_member_expression(self, node: Any) -> None:
        path = get_member_path(node)
        if path is not None:
            message = DANGEROUS_REFERENCES.get(".".join(path))
            if message is not None:
                self.found += 1
                self.ctx.warn(message, code="W0401", node=node)
        self.generic_visit(node)


class DangerousReferencesPass(BasePass):
    """Warn about references that behave differently in modules."""
    requires = [ImportsPass]

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        visitor = _DangerousReferenceVisitor(ctx)
        visitor.visit(program.ast)
        if visitor.found:
            logger.debug(f"{ctx.document_url}: {visitor.found} dangerous references")
        return program
