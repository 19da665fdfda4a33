"""
Custom element declaration detection

Finds the code that declares a custom element, in the three shapes legacy
element packages use:

- `class XFoo extends Polymer.Element { static get is() { return 'x-foo'; } }`
- `customElements.define('x-foo', XFoo)` naming a class declared elsewhere
- the legacy factory call `Polymer({is: 'x-foo', ...})`
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from ..frontend.js_ast import get_member_path, string_literal_value, walk


class ElementDeclarationKind(Enum):
    CLASS = "class"
    FACTORY = "factory"


@dataclass
class ElementDeclaration:
    tag_name: str
    kind: ElementDeclarationKind
    node: Any


def _static_is_getter(class_node: Any) -> Optional[str]:
    for member in class_node.body.body:
        if member.type != "MethodDefinition" or not member.static or member.kind != "get":
            continue
        if member.computed or member.key.type != "Identifier" or member.key.name != "is":
            continue
        for statement in member.value.body.body:
            if statement.type == "ReturnStatement":
                return string_literal_value(statement.argument)
    return None


def _factory_tag_name(call: Any) -> Optional[str]:
    if call.callee.type != "Identifier" or call.callee.name != "Polymer":
        return None
    if not call.arguments or call.arguments[0].type != "ObjectExpression":
        return None
    for prop in call.arguments[0].properties:
        if prop.type != "Property" or prop.computed:
            continue
        key = prop.key.name if prop.key.type == "Identifier" else string_literal_value(prop.key)
        if key == "is":
            return string_literal_value(prop.value)
    return None


def find_element_declarations(program: Any) -> List[ElementDeclaration]:
    """Element declarations in source order."""
    defined: Dict[str, str] = {}
    for node in walk(program):
        if node.type != "CallExpression" or get_member_path(node.callee) != ["customElements", "define"]:
            continue
        if len(node.arguments) < 2:
            continue
        tag_name = string_literal_value(node.arguments[0])
        target = node.arguments[1]
        if tag_name and target.type == "Identifier":
            defined[target.name] = tag_name

    declarations: List[ElementDeclaration] = []
    for node in walk(program):
        if node.type in ("ClassDeclaration", "ClassExpression"):
            tag_name = _static_is_getter(node)
            if tag_name is None and node.id is not None:
                tag_name = defined.get(node.id.name)
            if tag_name:
                declarations.append(ElementDeclaration(tag_name, ElementDeclarationKind.CLASS, node))
        elif node.type == "CallExpression":
            tag_name = _factory_tag_name(node)
            if tag_name:
                declarations.append(ElementDeclaration(tag_name, ElementDeclarationKind.FACTORY, node))
    declarations.sort(key=lambda d: d.node.range[0])
    return declarations
