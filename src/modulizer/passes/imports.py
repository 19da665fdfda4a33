"""
Import declarations

Builds one import declaration per module the document depends on, binds
every placeholder left by the reference collection to a local name and
prepends the declarations to the program.

Modules imported by the document's markup come first, in document order;
modules only reached through references follow in first-reference order.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Set, Tuple

from ..frontend.js_ast import collect_used_names
from ..registry.export_registry import ExportRecord
from ..shared.errors import ImportAllocationError
from ..shared.identifiers import allocate_identifier, get_module_id
from .base import BasePass, ConversionContext, JsProgram
from .dom_insertion import DomInsertionPass
from .rewrite_references import RewriteReferencesPass

logger = logging.getLogger(__name__)


def _quote(specifier: str) -> str:
    return "'" + specifier.replace("\\", "\\\\").replace("'", "\\'") + "'"


def build_import_declarations(
    specifier: str,
    module_url: str,
    references: List[Tuple[str, ExportRecord]],
    used: Set[str],
) -> Tuple[List[str], Dict[str, str]]:
    """
    Import declarations for one module, plus the local name of each placeholder.

    Named imports are aliased on collision (`name`, `name$0`, `name$1`, ...);
    the whole-module import, if any record needs one, is named after the
    module file (`$$paperButton`). used is updated with every allocated name.

    Examples:
        [] → ["import './foo.js';"]
        [format] → ["import { format } from './util.js';"]
    """
    assigned: Dict[str, str] = {}
    aliases: "OrderedDict[str, str]" = OrderedDict()
    namespace_alias: Optional[str] = None

    for placeholder, record in references:
        if record.is_namespace:
            if namespace_alias is None:
                namespace_alias = allocate_identifier(get_module_id(module_url), used)
            assigned[placeholder] = namespace_alias
            continue
        if record.export_name not in aliases:
            aliases[record.export_name] = allocate_identifier(record.export_name, used)
        assigned[placeholder] = aliases[record.export_name]

    declarations: List[str] = []
    if namespace_alias is not None:
        declarations.append(f"import * as {namespace_alias} from {_quote(specifier)};")
    if aliases:
        specifiers = ", ".join(
            name if alias == name else f"{name} as {alias}" for name, alias in aliases.items()
        )
        declarations.append(f"import {{ {specifiers} }} from {_quote(specifier)};")
    elif namespace_alias is None:
        declarations.append(f"import {_quote(specifier)};")
    return declarations, assigned


class ImportsPass(BasePass):
    """Add import declarations and bind reference placeholders."""
    requires = [RewriteReferencesPass, DomInsertionPass]

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        if ctx.resolver is None:
            raise ImportAllocationError(f"{ctx.document_url}: no url resolver to format import specifiers")

        by_module: "OrderedDict[str, List[Tuple[str, ExportRecord]]]" = OrderedDict()
        hrefs: Dict[str, Optional[str]] = {}
        for converted_url, href in ctx.explicit_imports:
            if converted_url == ctx.converted_url:
                continue
            by_module.setdefault(converted_url, [])
            hrefs.setdefault(converted_url, href)
        for placeholder, record in ctx.references.items():
            by_module.setdefault(record.module_url, []).append((placeholder, record))

        used = collect_used_names(program.ast) - ctx.placeholders()
        declarations: List[str] = []
        local_names: Dict[str, str] = {}
        for module_url, references in by_module.items():
            specifier = ctx.resolver.format_import_url(
                ctx.converted_url, module_url, ctx.settings.import_style, hrefs.get(module_url),
            )
            module_declarations, assigned = build_import_declarations(specifier, module_url, references, used)
            declarations.extend(module_declarations)
            local_names.update(assigned)

        missing = [p for p in ctx.references if p not in local_names]
        if missing:
            raise ImportAllocationError(
                f"{ctx.document_url}: no local name assigned to {', '.join(ctx.references[p].legacy_path for p in missing)}"
            )

        source = program.source
        for placeholder, local_name in local_names.items():
            source = source.replace(placeholder, local_name)
        if declarations:
            body = source.lstrip("\n")
            source = "\n".join(declarations) + "\n" + ("\n" + body if body.strip() else "")
        ctx.import_count = len(declarations)
        logger.debug(f"{ctx.document_url}: {len(declarations)} import declarations")
        return program.with_source(source)
