"""
JavaScript AST helpers

Traversal and small structural queries over esprima trees. Nodes are
dispatched on their `type` to `visit_<node_kind>` methods, e.g.
`MemberExpression` → `visit_member_expression`.
"""

import functools
import re
from typing import Any, Iterator, List, Optional, Set

from esprima.nodes import Node

_SKIPPED_KEYS = frozenset([
    "range", "loc", "comments", "tokens", "errors",
    "leadingComments", "trailingComments", "innerComments",
])
_CAMEL_BOUNDARY_RE = re.compile(r"(?<!^)(?=[A-Z])")

FUNCTION_TYPES = frozenset(["FunctionExpression", "FunctionDeclaration"])
ALL_FUNCTION_TYPES = FUNCTION_TYPES | {"ArrowFunctionExpression"}


@functools.lru_cache(maxsize=None)
def node_kind(type_name: str) -> str:
    """'MemberExpression' → 'member_expression'"""
    return _CAMEL_BOUNDARY_RE.sub("_", type_name).lower()


def iter_child_nodes(node: Any) -> List[Any]:
    """Direct children of node in source order."""
    children = []
    for key, value in vars(node).items():
        if key in _SKIPPED_KEYS:
            continue
        if isinstance(value, Node):
            children.append(value)
        elif isinstance(value, list):
            children.extend(v for v in value if isinstance(v, Node))
    children.sort(key=lambda n: n.range[0] if n.range else 0)
    return children


def walk(node: Any) -> Iterator[Any]:
    """Pre-order walk over node and all its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(iter_child_nodes(current)))


class NodeVisitor:
    """
    Visitor with one method per node kind.

    A `visit_<kind>` method that wants the children of its node visited calls
    `generic_visit(node)`; returning without doing so prunes the subtree.
    The chain of ancestors of the node being visited is `self.ancestors`.
    """

    def __init__(self):
        self.ancestors: List[Any] = []

    @property
    def parent(self) -> Optional[Any]:
        return self.ancestors[-1] if self.ancestors else None

    def visit(self, node: Any) -> None:
        method = getattr(self, "visit_" + node_kind(node.type), None)
        if method is None:
            self.generic_visit(node)
        else:
            method(node)

    def generic_visit(self, node: Any) -> None:
        self.ancestors.append(node)
        try:
            for child in iter_child_nodes(node):
                self.visit(child)
        finally:
            self.ancestors.pop()


# ---------------------------------------------------------------------------
# Member paths
# ---------------------------------------------------------------------------

def get_member_path(node: Any) -> Optional[List[str]]:
    """
    Dotted path of a non-computed member chain.

    `window` as the root is dropped and `this` is kept as a segment.

    Examples:
        Polymer.Foo.bar → ['Polymer', 'Foo', 'bar']
        window.Polymer.Foo → ['Polymer', 'Foo']
        this.foo → ['this', 'foo']
        a[b].c → None
    """
    if node.type != "MemberExpression" or node.computed or node.property.type != "Identifier":
        return None
    prop = node.property.name
    obj = node.object
    if obj.type == "ThisExpression":
        return ["this", prop]
    if obj.type == "Identifier":
        if obj.name == "window":
            return [prop]
        return [obj.name, prop]
    parent_path = get_member_path(obj)
    if parent_path is None:
        return None
    return parent_path + [prop]


def get_identifier_path(node: Any) -> Optional[List[str]]:
    """Like get_member_path, but a bare identifier yields a one-element path."""
    if node is None:
        return None
    if node.type == "Identifier":
        return [node.name]
    return get_member_path(node)


def is_assignment_target(node: Any, parent: Optional[Any]) -> bool:
    if parent is None:
        return False
    if parent.type == "AssignmentExpression":
        return parent.left is node
    if parent.type == "UpdateExpression":
        return parent.argument is node
    return False


def is_reference_position(node: Any, parent: Optional[Any]) -> bool:
    """
    True when an Identifier node reads or writes a binding.

    Property keys, member property names, labels and declaration names are
    not references.
    """
    if parent is None:
        return True
    kind = parent.type
    if kind == "MemberExpression":
        return parent.computed or parent.property is not node
    if kind == "Property":
        if parent.key is node:
            return bool(parent.computed)
        return not parent.shorthand
    if kind == "MethodDefinition":
        return bool(parent.computed) or parent.key is not node
    if kind == "VariableDeclarator":
        return parent.id is not node
    if kind in ALL_FUNCTION_TYPES:
        return False
    if kind in ("ClassDeclaration", "ClassExpression"):
        return parent.id is not node
    if kind in ("LabeledStatement", "BreakStatement", "ContinueStatement"):
        return False
    if kind in ("ImportSpecifier", "ImportDefaultSpecifier", "ImportNamespaceSpecifier",
                "ExportSpecifier", "CatchClause", "RestElement", "AssignmentPattern",
                "ArrayPattern", "ObjectPattern", "MetaProperty"):
        return False
    return True


# ---------------------------------------------------------------------------
# Bindings
# ---------------------------------------------------------------------------

def pattern_names(pattern: Any) -> List[str]:
    """Names bound by a declaration pattern."""
    if pattern is None:
        return []
    kind = pattern.type
    if kind == "Identifier":
        return [pattern.name]
    if kind == "ObjectPattern":
        names = []
        for prop in pattern.properties:
            names.extend(pattern_names(prop.value if prop.type == "Property" else prop))
        return names
    if kind == "ArrayPattern":
        names = []
        for element in pattern.elements:
            names.extend(pattern_names(element))
        return names
    if kind == "AssignmentPattern":
        return pattern_names(pattern.left)
    if kind == "RestElement":
        return pattern_names(pattern.argument)
    return []


def statement_declared_names(statement: Any) -> List[str]:
    """Names a single statement declares in its enclosing scope."""
    kind = statement.type
    if kind == "VariableDeclaration":
        names = []
        for declarator in statement.declarations:
            names.extend(pattern_names(declarator.id))
        return names
    if kind in ("FunctionDeclaration", "ClassDeclaration"):
        return [statement.id.name] if statement.id is not None else []
    if kind == "ExportNamedDeclaration" and statement.declaration is not None:
        return statement_declared_names(statement.declaration)
    if kind == "ImportDeclaration":
        return [specifier.local.name for specifier in statement.specifiers]
    return []


def scope_declared_names(statements: List[Any]) -> Set[str]:
    """
    Names declared at function scope by a list of statements.

    Includes `var` declarations hoisted out of nested blocks, but nothing
    declared inside nested functions.
    """
    names: Set[str] = set()
    for statement in statements:
        names.update(statement_declared_names(statement))
        stack = [c for c in iter_child_nodes(statement)]
        while stack:
            node = stack.pop()
            if node.type in ALL_FUNCTION_TYPES or node.type in ("ClassDeclaration", "ClassExpression"):
                continue
            if node.type == "VariableDeclaration" and node.kind == "var":
                names.update(statement_declared_names(node))
            stack.extend(iter_child_nodes(node))
    return names


def string_literal_value(node: Any) -> Optional[str]:
    if node is not None and node.type == "Literal" and isinstance(node.value, str):
        return node.value
    return None


def is_use_strict(statement: Any) -> bool:
    return (
        statement.type == "ExpressionStatement"
        and string_literal_value(statement.expression) == "use strict"
    )


def collect_used_names(node: Any) -> Set[str]:
    """
    Names of every binding read, written or declared under node.

    Property names (`a.name`, `{name: 1}`, `name() {}`) and labels are not
    bindings and are left out.
    """
    names: Set[str] = set()
    stack = [(node, None)]
    while stack:
        current, parent = stack.pop()
        if current.type == "Identifier" and _is_binding_identifier(current, parent):
            names.add(current.name)
        stack.extend((child, current) for child in iter_child_nodes(current))
    return names


def _is_binding_identifier(node: Any, parent: Optional[Any]) -> bool:
    if parent is None:
        return True
    kind = parent.type
    if kind == "MemberExpression":
        return parent.computed or parent.property is not node
    if kind in ("Property", "MethodDefinition"):
        return bool(parent.computed) or parent.key is not node or bool(getattr(parent, "shorthand", False))
    if kind in ("LabeledStatement", "BreakStatement", "ContinueStatement", "MetaProperty"):
        return False
    return True
