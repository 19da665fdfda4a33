"""
Namespace exports

Turns top-level assignments to namespace members into module exports:

    Polymer.Foo = class {...};          →  export const Foo = class {...};
    Polymer.Foo = Foo;                  →  export { Foo };
    const Foo = Polymer.Foo = expr;     →  export const Foo = expr;

    /** @namespace */
    Polymer.Async = {                   →  export function run() {...}
      run() {...},                          export const microTask = ...;
      microTask: ...
    };

Namespace initializers (`window.Polymer = window.Polymer || {}`) have no
module counterpart and are removed. Every export is recorded as an
ExportRecord; the scan phase registers them, the conversion phase uses the
export names the scan chose.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, List, Optional, Set, Tuple

from ..frontend.js_ast import (
    FUNCTION_TYPES,
    NodeVisitor,
    collect_used_names,
    get_identifier_path,
    get_member_path,
    scope_declared_names,
    string_literal_value,
    walk,
)
from ..registry.export_registry import NAMESPACE_EXPORT, ExportRecord
from ..shared.identifiers import allocate_identifier, find_available_identifier, is_valid_identifier
from ..shared.settings import DeclarationKind
from .base import BasePass, ConversionContext, JsProgram
from .collect_references import CollectReferencesPass
from .edits import Edit

logger = logging.getLogger(__name__)


@dataclass
class _Candidate:
    """A top-level statement that assigns a namespace member."""
    statement: Any
    path: List[str]
    value: Any
    declared_name: Optional[str] = None
    declaration_kind: str = "const"


def _is_empty_object(node: Any) -> bool:
    return node.type == "ObjectExpression" and not node.properties


def _initializer_path(statement: Any, roots: Set[str]) -> Optional[List[str]]:
    """Path initialized by `P = P || {}` or `var P = window.P || {}`."""
    if statement.type == "ExpressionStatement":
        expression = statement.expression
        if expression.type != "AssignmentExpression" or expression.operator != "=":
            return None
        path = get_identifier_path(expression.left)
        init = expression.right
    elif statement.type == "VariableDeclaration" and len(statement.declarations) == 1:
        declarator = statement.declarations[0]
        if declarator.id.type != "Identifier" or declarator.init is None:
            return None
        path = [declarator.id.name]
        init = declarator.init
    else:
        return None
    if path is None or path[0] not in roots:
        return None
    if init.type != "LogicalExpression" or init.operator != "||" or not _is_empty_object(init.right):
        return None
    if get_identifier_path(init.left) != path:
        return None
    return path


def _line_extent(source: str, start: int, end: int) -> Tuple[int, int]:
    """Widen start:end to its whole line when nothing else shares the line."""
    line_start = start
    while line_start > 0 and source[line_start - 1] in " \t":
        line_start -= 1
    if line_start > 0 and source[line_start - 1] != "\n":
        return start, end
    line_end = end
    while line_end < len(source) and source[line_end] in " \t":
        line_end += 1
    if line_end < len(source) and source[line_end] != "\n":
        return start, end
    return line_start, min(line_end + 1, len(source))


class _ThisMemberWrites(NodeVisitor):
    """Counts `this.key = ...` and `this.key++` in one function scope."""

    def __init__(self):
        super().__init__()
        self.writes: Counter = Counter()

    def _count(self, target: Any) -> None:
        path = get_member_path(target)
        if path is not None and len(path) == 2 and path[0] == "this":
            self.writes[path[1]] += 1

    def visit_assignment_expression(self, node: Any) -> None:
        self._count(node.left)
        self.generic_visit(node)

    def visit_update_expression(self, node: Any) -> None:
        self._count(node.argument)
        self.generic_visit(node)

    def visit_function_expression(self, node: Any) -> None:
        pass

    def visit_function_declaration(self, node: Any) -> None:
        pass

    def visit_class_body(self, node: Any) -> None:
        pass


class NamespaceExportsPass(BasePass):
    """Convert namespace member declarations into exports."""
    requires = [CollectReferencesPass]

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        converter = _ExportConverter(program, ctx)
        edits = converter.convert()
        logger.debug(f"{ctx.document_url}: {len(ctx.export_records)} namespace exports")
        return program.apply(edits)


class _ExportConverter:
    def __init__(self, program: JsProgram, ctx: ConversionContext):
        self.program = program
        self.ctx = ctx
        self.settings = ctx.settings
        self.roots = ctx.settings.root_namespaces()
        self.used_names: Set[str] = collect_used_names(program.ast)
        self.toplevel_names: Set[str] = scope_declared_names(program.body)
        self.exported_names: Set[str] = set()
        self.exported_values: Set[str] = set()
        self.initialized: List[str] = []
        self.exported_paths: Set[str] = set()
        self.assignment_counts: Counter = Counter()
        for node in walk(program.ast):
            if node.type == "AssignmentExpression":
                path = get_identifier_path(node.left)
            elif node.type == "UpdateExpression":
                path = get_identifier_path(node.argument)
            else:
                continue
            if path is not None:
                self.assignment_counts[".".join(path)] += 1

    # ------------------------------------------------------------------

    def convert(self) -> List[Edit]:
        edits: List[Edit] = []
        previous_end = 0
        for statement in self.program.body:
            leading = self.program.source[previous_end:statement.range[0]]
            previous_end = statement.range[1]

            initialized = _initializer_path(statement, self.roots)
            if initialized is not None:
                edits.append(Edit.delete(*_line_extent(self.program.source, *statement.range)))
                if len(initialized) > 1:
                    self.initialized.append(".".join(initialized))
                continue

            candidate = self._candidate(statement)
            if candidate is None:
                continue
            replacement = self._convert_candidate(candidate, leading)
            if replacement is not None:
                edits.append(Edit(statement.range[0], statement.range[1], replacement))

        for namespace in self.initialized:
            prefix = namespace + "."
            if any(r.legacy_path.startswith(prefix) for r in self.ctx.export_records):
                self._record(namespace, NAMESPACE_EXPORT, None)
        return edits

    def _candidate(self, statement: Any) -> Optional[_Candidate]:
        if statement.type == "ExpressionStatement":
            expression = statement.expression
            if expression.type == "AssignmentExpression" and expression.operator == "=":
                path = get_identifier_path(expression.left)
                if self._is_member_path(path):
                    return _Candidate(statement, path, expression.right)
        elif statement.type == "VariableDeclaration" and len(statement.declarations) == 1:
            declarator = statement.declarations[0]
            init = declarator.init
            if (
                declarator.id.type == "Identifier"
                and init is not None
                and init.type == "AssignmentExpression"
                and init.operator == "="
            ):
                path = get_identifier_path(init.left)
                if self._is_member_path(path):
                    return _Candidate(statement, path, init.right, declarator.id.name, statement.kind)
        return None

    def _is_member_path(self, path: Optional[List[str]]) -> bool:
        return path is not None and len(path) > 1 and path[0] in self.roots

    # ------------------------------------------------------------------

    def _declaration_kind(self, candidate: _Candidate, leading: str) -> DeclarationKind:
        dotted_path = ".".join(candidate.path)
        override = self.settings.declaration_overrides.get(dotted_path)
        if override is not None:
            return override
        if candidate.value.type == "ObjectExpression" and candidate.declared_name is None:
            if dotted_path in self.settings.namespaces or "@namespace" in leading:
                return DeclarationKind.NAMESPACE
        return DeclarationKind.VALUE

    def _is_excluded(self, path: List[str]) -> bool:
        """True if path or one of its prefixes is excluded or rewritten."""
        for length in range(1, len(path) + 1):
            prefix = ".".join(path[:length])
            if prefix in self.settings.reference_excludes or prefix in self.settings.reference_rewrites:
                return True
        return False

    def _owned_elsewhere(self, dotted_path: str) -> bool:
        record = self.ctx.registry.lookup(dotted_path)
        return record is not None and record.module_url != self.ctx.converted_url

    def _convert_candidate(self, candidate: _Candidate, leading: str) -> Optional[str]:
        dotted_path = ".".join(candidate.path)
        kind = self._declaration_kind(candidate, leading)
        if kind is DeclarationKind.IGNORE:
            return None
        if dotted_path in self.exported_paths or self._is_excluded(candidate.path):
            return None
        if self._owned_elsewhere(dotted_path):
            logger.debug(f"{self.ctx.document_url}: {dotted_path} is exported by another module")
            return None
        # Property writes on a value this module already exports stay assignments
        for length in range(2, len(candidate.path)):
            if ".".join(candidate.path[:length]) in self.exported_values:
                return None

        if kind is DeclarationKind.NAMESPACE and candidate.value.type == "ObjectExpression":
            text = self._convert_namespace(candidate)
            if text is not None:
                return text
        return self._convert_value(candidate)

    # ------------------------------------------------------------------

    def _export_name(self, dotted_path: str, requested: str) -> str:
        record = self.ctx.registry.lookup(dotted_path)
        if record is not None and record.module_url == self.ctx.converted_url and not record.is_namespace:
            name = record.export_name
        else:
            name = find_available_identifier(requested, self.exported_names)
        self.exported_names.add(name)
        return name

    def _local_name(self, export_name: str) -> str:
        if export_name not in self.used_names:
            self.used_names.add(export_name)
            return export_name
        return allocate_identifier(export_name, self.used_names)

    def _binding_kind(self, dotted_path: str, own_assignments: int = 1) -> str:
        return "let" if self.assignment_counts[dotted_path] > own_assignments else "const"

    def _record(self, dotted_path: str, export_name: str, local_name: Optional[str]) -> None:
        self.ctx.export_records.append(ExportRecord(dotted_path, self.ctx.converted_url, export_name))
        self.exported_paths.add(dotted_path)
        if local_name is not None:
            self.ctx.local_names[dotted_path] = local_name

    def _convert_value(self, candidate: _Candidate) -> str:
        dotted_path = ".".join(candidate.path)
        value = candidate.value
        export_name = self._export_name(dotted_path, candidate.path[-1])
        self.exported_values.add(dotted_path)
        value_text = self.program.text(value)

        if candidate.declared_name is not None:
            local = candidate.declared_name
            self._record(dotted_path, export_name, local)
            keyword = candidate.declaration_kind
            if local == export_name:
                return f"export {keyword} {local} = {value_text};"
            return f"{keyword} {local} = {value_text};\nexport {{ {local} as {export_name} }};"

        if value.type == "Identifier" and value.name in self.toplevel_names:
            local = value.name
            self._record(dotted_path, export_name, local)
            if local == export_name:
                return f"export {{ {local} }};"
            return f"export {{ {local} as {export_name} }};"

        local = self._local_name(export_name)
        self._record(dotted_path, export_name, local)
        keyword = self._binding_kind(dotted_path)
        if local == export_name:
            return f"export {keyword} {local} = {value_text};"
        return f"{keyword} {local} = {value_text};\nexport {{ {local} as {export_name} }};"

    def _convert_namespace(self, candidate: _Candidate) -> Optional[str]:
        """Export each member of a namespace object literal; None if a member can't be lifted."""
        members: List[Tuple[str, Any, str]] = []
        previous_end = candidate.value.range[0] + 1
        for prop in candidate.value.properties:
            if prop.type != "Property" or prop.computed or prop.kind != "init":
                return None
            key = prop.key.name if prop.key.type == "Identifier" else string_literal_value(prop.key)
            if key is None or not is_valid_identifier(key):
                return None
            comment = self.program.source[previous_end:prop.range[0]].strip().lstrip(",").strip()
            previous_end = prop.range[1]
            members.append((key, prop.value, comment))

        # Members a sibling function writes through `this` are reassigned once lifted
        this_writes: Counter = Counter()
        for _, value, _ in members:
            if value.type in FUNCTION_TYPES:
                writes = _ThisMemberWrites()
                writes.visit(value.body)
                this_writes.update(writes.writes)

        namespace_path = ".".join(candidate.path)
        pieces = []
        for key, value, comment in members:
            member_path = f"{namespace_path}.{key}"
            export_name = self._export_name(member_path, key)
            local = self._local_name(export_name)
            self._record(member_path, export_name, local)
            if value.type in FUNCTION_TYPES:
                self.ctx.namespace_functions[local] = namespace_path
                declaration = self._function_declaration(local, value)
            else:
                if this_writes[key]:
                    keyword = "let"
                else:
                    keyword = self._binding_kind(member_path, own_assignments=0)
                declaration = f"{keyword} {local} = {self.program.text(value)};"
            if local == export_name:
                text = f"export {declaration}"
            else:
                text = f"{declaration}\nexport {{ {local} as {export_name} }};"
            pieces.append(f"{comment}\n{text}" if comment else text)

        self._record(namespace_path, NAMESPACE_EXPORT, None)
        return "\n\n".join(pieces)

    def _function_declaration(self, name: str, function: Any) -> str:
        params = ", ".join(self.program.text(p) for p in function.params)
        prefix = "async " if getattr(function, "isAsync", False) else ""
        star = "*" if getattr(function, "generator", False) else ""
        return f"{prefix}function{star} {name}({params}) {self.program.text(function.body)}"
