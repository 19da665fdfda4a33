"""
Wrapper removal

Module code has its own scope and runs after its imports, so the scaffolding
legacy scripts used for both is dropped:

- immediately invoked function expressions around a whole script
- `HTMLImports.whenReady(function() {...})`
- `addEventListener('WebComponentsReady', function() {...})` and the
  `HTMLImportsLoaded` variant
- a top-level `'use strict'` directive
"""

import logging
from typing import Any, List, Optional, Set

from ..frontend.js_ast import (
    ALL_FUNCTION_TYPES,
    get_member_path,
    is_use_strict,
    iter_child_nodes,
    scope_declared_names,
    statement_declared_names,
    string_literal_value,
)
from ..utils.config import POLYFILL_READY_EVENTS
from .base import BasePass, ConversionContext, JsProgram
from .edits import Edit
from .toplevel_this import RewriteToplevelThisPass

logger = logging.getLogger(__name__)


def _unparenthesized_function(node: Any) -> Optional[Any]:
    if node.type in ALL_FUNCTION_TYPES and not node.params and node.body.type == "BlockStatement":
        return node
    return None


def _iife_body(expression: Any) -> Optional[Any]:
    """Function whose body an IIFE statement runs, if expression is one."""
    if expression.type == "UnaryExpression" and expression.operator in ("!", "void"):
        expression = expression.argument
    if expression.type != "CallExpression":
        return None
    callee = expression.callee
    if _unparenthesized_function(callee) is not None and not expression.arguments:
        return callee
    # (function() {...}).call(this)
    if callee.type == "MemberExpression" and not callee.computed:
        if callee.property.name in ("call", "apply") and _unparenthesized_function(callee.object) is not None:
            args = expression.arguments
            if len(args) <= 1 and all(a.type == "ThisExpression" or (a.type == "Identifier" and a.name == "window") for a in args):
                return callee.object
    return None


def _ready_callback(expression: Any) -> Optional[Any]:
    """Callback of `HTMLImports.whenReady(fn)` or a polyfill-ready listener."""
    if expression.type != "CallExpression":
        return None
    path = get_member_path(expression.callee)
    if expression.callee.type == "Identifier":
        path = [expression.callee.name]
    if path is None:
        return None
    args = expression.arguments
    if path == ["HTMLImports", "whenReady"] and len(args) == 1:
        return _unparenthesized_function(args[0])
    if path[-1] == "addEventListener" and len(args) == 2 and path[:-1] in ([], ["document"]):
        if string_literal_value(args[0]) in POLYFILL_READY_EVENTS:
            return _unparenthesized_function(args[1])
    return None


def wrapped_function(statement: Any) -> Optional[Any]:
    """The function a top-level wrapper statement exists to run, or None."""
    if statement.type != "ExpressionStatement":
        return None
    return _iife_body(statement.expression) or _ready_callback(statement.expression)


def _has_toplevel_return(function: Any) -> bool:
    stack = list(function.body.body)
    while stack:
        node = stack.pop()
        if node.type == "ReturnStatement":
            return True
        if node.type in ALL_FUNCTION_TYPES or node.type in ("ClassDeclaration", "ClassExpression"):
            continue
        stack.extend(iter_child_nodes(node))
    return False


def _uses_arguments(function: Any) -> bool:
    stack = list(function.body.body)
    while stack:
        node = stack.pop()
        if node.type == "Identifier" and node.name == "arguments":
            return True
        if node.type in ("FunctionExpression", "FunctionDeclaration"):
            continue
        stack.extend(iter_child_nodes(node))
    return False


class RemoveWrappersPass(BasePass):
    """
    Inline the bodies of wrapper functions into the top level.

    A wrapper whose body declares a name that another top-level statement
    also declares is left in place, since unwrapping would merge the two
    bindings.
    """
    requires = [RewriteToplevelThisPass]

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        unwrapped_any = False
        while True:
            edits = self._unwrap_round(program, ctx)
            if not edits:
                break
            unwrapped_any = True
            program = program.apply(edits)
        if unwrapped_any:
            # `this` at the top of a sloppy-mode wrapper was the global object
            program = RewriteToplevelThisPass().run(program, ctx)
        return program

    def _unwrap_round(self, program: JsProgram, ctx: ConversionContext) -> List[Edit]:
        body = program.body
        declared_by_statement = [set(statement_declared_names(s)) for s in body]
        edits: List[Edit] = []
        claimed: Set[str] = set()
        for index, statement in enumerate(body):
            if is_use_strict(statement):
                edits.append(Edit.delete(*statement.range))
                continue
            function = wrapped_function(statement)
            if function is None:
                continue
            if _has_toplevel_return(function) or _uses_arguments(function):
                logger.debug(f"{ctx.document_url}: keeping wrapper with return/arguments at {statement.range}")
                continue
            inner = function.body.body
            names = scope_declared_names(inner)
            others: Set[str] = set(claimed)
            for other_index, other in enumerate(declared_by_statement):
                if other_index != index:
                    others |= other
            collisions = names & others
            if collisions:
                ctx.warn(
                    f"wrapper function not removed: it declares {', '.join(sorted(collisions))}, "
                    f"which is also declared at the top level",
                    code="W0202",
                )
                continue
            claimed |= names
            edits.append(Edit(statement.range[0], statement.range[1], self._body_text(program, function)))
        return edits

    @staticmethod
    def _body_text(program: JsProgram, function: Any) -> str:
        start = function.body.range[0] + 1
        end = function.body.range[1] - 1
        text = program.source[start:end]
        for directive in reversed([s for s in function.body.body if is_use_strict(s)]):
            text = text[:directive.range[0] - start] + text[directive.range[1] - start:]
        return text.strip("\n")
