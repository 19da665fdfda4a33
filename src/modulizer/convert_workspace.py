"""
Workspace conversion

Converts several legacy packages checked out side by side in one workspace
directory. Each package is converted in place; imports between them use the
workspace layout, so they resolve against an installed dependency tree.
"""

import dataclasses
import fnmatch
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .analysis.analyzer import Analyzer
from .convert_package import PACKAGE_JSON, is_dependency_path, load_dependency_map, read_bower_json
from .converter.project_converter import ProjectConverter
from .manifest_converter import generate_package_json
from .shared.errors import DiagnosticReporter, SetupError
from .shared.settings import (
    DeclarationKind,
    ImportStyle,
    create_default_conversion_settings,
    is_default_module_document,
)
from .urls.resolver import WorkspaceUrlResolver
from .utils.io_utils import iter_files, read_json_file, write_results

logger = logging.getLogger(__name__)


@dataclass
class ConvertWorkspaceOptions:
    """
    Options of a workspace conversion.

    excludes are matched against paths relative to each package directory.
    """
    workspace_dir: Path
    repos: Sequence[str]
    npm_version: str
    excludes: Sequence[str] = ()
    delete_files: Sequence[str] = ()
    namespaces: Optional[Sequence[str]] = None
    import_style: ImportStyle = ImportStyle.NAME
    add_import_path: bool = False
    template_tag: Optional[str] = None
    dependency_mappings: Sequence[str] = ()
    declaration_overrides: Dict[str, DeclarationKind] = field(default_factory=dict)
    workers: int = 1


def _relative_to_repo(url: str) -> str:
    return url.split("/", 1)[1] if "/" in url else url


def workspace_document_urls(workspace_dir: Path, repos: Sequence[str]) -> List[str]:
    urls: List[str] = []
    for repo in repos:
        urls.extend(
            f"{repo}/{u}" for u in iter_files(workspace_dir / repo, ["*.html"])
            if not is_dependency_path(u)
        )
    return urls


def convert_workspace(
    options: ConvertWorkspaceOptions,
    reporter: Optional[DiagnosticReporter] = None,
) -> Dict[str, str]:
    """
    Convert every repo of the workspace in place.

    Returns repo directory name → new package name for the packages that
    were converted. Repos whose bower name has no dependency mapping are
    skipped.

    Raises:
        SetupError: for problems detected before any document is converted
    """
    reporter = reporter if reporter is not None else DiagnosticReporter()
    workspace_dir = Path(options.workspace_dir).resolve()
    if not workspace_dir.is_dir():
        raise SetupError(f"workspace directory {workspace_dir} does not exist")
    missing = [repo for repo in options.repos if not (workspace_dir / repo).is_dir()]
    if missing:
        raise SetupError(f"repos not found in {workspace_dir}: {', '.join(missing)}")

    dependency_map = load_dependency_map(options.dependency_mappings, reporter)
    package_names: Dict[str, str] = {}
    bower_jsons = {}
    for repo in options.repos:
        bower_jsons[repo] = read_bower_json(workspace_dir / repo)
        entry = dependency_map.lookup(bower_jsons[repo].get("name", repo))
        if entry is None:
            logger.debug(f"Skipping {repo}: no npm name")
            continue
        package_names[repo] = entry.npm

    document_urls = workspace_document_urls(workspace_dir, list(package_names))
    settings = create_default_conversion_settings(
        document_urls,
        namespaces=options.namespaces,
        import_style=options.import_style,
        add_import_path=options.add_import_path,
        template_tag=options.template_tag,
        declaration_overrides=options.declaration_overrides,
    )
    # Module and exclude rules apply to paths within each package.
    excluded = frozenset(
        u for u in document_urls
        if any(fnmatch.fnmatch(_relative_to_repo(u), pattern) for pattern in options.excludes)
    )
    modules = frozenset(
        u for u in document_urls
        if u not in excluded and is_default_module_document(_relative_to_repo(u))
    )
    settings = dataclasses.replace(settings, modules=modules, excluded_documents=excluded)

    resolver = WorkspaceUrlResolver(dependency_map, package_names)
    analysis = Analyzer(workspace_dir, reporter=reporter).analyze(document_urls)
    project = ProjectConverter(analysis, resolver, settings, reporter, workers=options.workers)
    project.scan(url for url in analysis.documents)
    project.convert_all(u for u in document_urls if u not in excluded)

    results = project.get_results()
    for repo, name in package_names.items():
        existing = None
        if (workspace_dir / repo / PACKAGE_JSON).is_file():
            existing = read_json_file(workspace_dir / repo / PACKAGE_JSON)
        package_json = generate_package_json(
            bower_jsons[repo], name, options.npm_version, dependency_map, reporter, existing,
        )
        results[f"{repo}/{PACKAGE_JSON}"] = json.dumps(package_json, indent=2) + "\n"

    for repo in package_names:
        repo_results = {
            _relative_to_repo(path): text for path, text in results.items()
            if path.startswith(repo + "/")
        }
        write_results(workspace_dir / repo, repo_results, options.delete_files)
    return package_names
