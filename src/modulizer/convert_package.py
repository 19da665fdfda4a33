"""
Package conversion

Converts one legacy package (dependencies installed under
`bower_components/`) into a module package written to an output directory.
"""

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .analysis.analyzer import Analyzer
from .converter.project_converter import ProjectConverter
from .dependency_map import DependencyMap, DependencyMapEntry, parse_dependency_mapping
from .manifest_converter import generate_package_json
from .registry.manifest import load_manifest, save_manifest
from .shared.errors import DiagnosticReporter, SetupError
from .shared.settings import (
    DeclarationKind,
    ImportStyle,
    PackageType,
    create_default_conversion_settings,
)
from .urls.resolver import PackageUrlResolver
from .utils.config import LEGACY_DEPENDENCY_DIR, MODULE_DEPENDENCY_DIR
from .utils.io_utils import iter_files, read_json_file, write_results

logger = logging.getLogger(__name__)

BOWER_JSON = "bower.json"
PACKAGE_JSON = "package.json"
_IGNORED_DIRECTORIES = (LEGACY_DEPENDENCY_DIR, MODULE_DEPENDENCY_DIR, ".git")


@dataclass
class ConvertPackageOptions:
    """
    Options of a package conversion.

    includes selects the package's HTML documents to convert (all of them by
    default); excludes removes documents from the conversion entirely.
    """
    in_dir: Path
    out_dir: Path
    npm_name: Optional[str] = None
    npm_version: Optional[str] = None
    includes: Sequence[str] = ("*.html",)
    excludes: Sequence[str] = ()
    delete_files: Sequence[str] = ()
    namespaces: Optional[Sequence[str]] = None
    import_style: ImportStyle = ImportStyle.PATH
    package_type: PackageType = PackageType.ELEMENT
    add_import_path: bool = False
    template_tag: Optional[str] = None
    dependency_mappings: Sequence[str] = ()
    declaration_overrides: Dict[str, DeclarationKind] = field(default_factory=dict)
    manifest_in: Optional[Path] = None
    manifest_out: Optional[Path] = None
    workers: int = 1


def is_dependency_path(rel_path: str) -> bool:
    return any(part in _IGNORED_DIRECTORIES for part in rel_path.split("/")[:-1])


def load_dependency_map(mappings: Sequence[str], reporter: DiagnosticReporter) -> DependencyMap:
    """
    Bundled dependency map with the command line overrides applied.

    Raises:
        SetupError: if an override is malformed
    """
    overrides: Dict[str, DependencyMapEntry] = {}
    for value in mappings:
        overrides.update(parse_dependency_mapping(value))
    return DependencyMap.load(reporter=reporter, overrides=overrides)


def read_bower_json(package_dir: Path) -> Dict[str, Any]:
    path = package_dir / BOWER_JSON
    if not path.is_file():
        return {}
    try:
        data = read_json_file(path)
    except ValueError as e:
        raise SetupError(f"{path}: not valid JSON ({e})") from e
    if not isinstance(data, dict):
        raise SetupError(f"{path}: expected a JSON object")
    return data


def package_identity(
    bower_json: Dict[str, Any],
    dependency_map: DependencyMap,
    npm_name: Optional[str],
    npm_version: Optional[str],
) -> Tuple[str, str]:
    """
    New package name and version.

    The name comes from the command line, else from mapping the bower name;
    the version from the command line, else from bower.json.

    Raises:
        SetupError: if either cannot be determined
    """
    name = npm_name
    if not name:
        bower_name = bower_json.get("name")
        if not bower_name:
            raise SetupError("bower.json has no name; pass --npm-name")
        name = dependency_map.npm_name(bower_name)
    version = npm_version or bower_json.get("version")
    if not version:
        raise SetupError(f"no version for {name}; pass --npm-version")
    return name, version


def package_document_urls(in_dir: Path, includes: Sequence[str]) -> List[str]:
    return [u for u in iter_files(in_dir, includes) if u.endswith(".html") and not is_dependency_path(u)]


def convert_package(
    options: ConvertPackageOptions,
    reporter: Optional[DiagnosticReporter] = None,
) -> Dict[str, Optional[str]]:
    """
    Convert the package in options.in_dir and write it to options.out_dir.

    Returns the output path → text map that was written (None marks a
    deleted file).

    Raises:
        SetupError: for problems detected before any document is converted
    """
    reporter = reporter if reporter is not None else DiagnosticReporter()
    in_dir = Path(options.in_dir).resolve()
    out_dir = Path(options.out_dir).resolve()
    if not in_dir.is_dir():
        raise SetupError(f"input directory {in_dir} does not exist")

    dependency_map = load_dependency_map(options.dependency_mappings, reporter)
    bower_json = read_bower_json(in_dir)
    name, version = package_identity(bower_json, dependency_map, options.npm_name, options.npm_version)
    logger.debug(f"Converting {in_dir} as {name}@{version}")

    document_urls = package_document_urls(in_dir, options.includes)
    settings = create_default_conversion_settings(
        document_urls,
        package_name=name,
        package_type=options.package_type,
        namespaces=options.namespaces,
        excludes=options.excludes,
        import_style=options.import_style,
        add_import_path=options.add_import_path,
        template_tag=options.template_tag,
        declaration_overrides=options.declaration_overrides,
    )
    resolver = PackageUrlResolver(name, dependency_map, options.package_type)
    analysis = Analyzer(in_dir, reporter=reporter, dependency_dir=LEGACY_DEPENDENCY_DIR).analyze(document_urls)

    project = ProjectConverter(analysis, resolver, settings, reporter, workers=options.workers)
    if options.manifest_in is not None:
        project.load_manifest(load_manifest(options.manifest_in))
    project.scan(url for url in analysis.documents)
    project.convert_all(u for u in document_urls if not settings.is_excluded(u))

    results = project.get_results()
    existing = None
    if (in_dir / PACKAGE_JSON).is_file():
        existing = read_json_file(in_dir / PACKAGE_JSON)
    package_json = generate_package_json(bower_json, name, version, dependency_map, reporter, existing)
    results[PACKAGE_JSON] = json.dumps(package_json, indent=2) + "\n"

    if out_dir != in_dir:
        copy_package(in_dir, out_dir)
    write_results(out_dir, results, options.delete_files)
    if options.manifest_out is not None:
        save_manifest(options.manifest_out, project.manifest_results())
    return results


def copy_package(in_dir: Path, out_dir: Path) -> None:
    """Copy the package's own files (no dependencies, no .git) to out_dir."""
    logger.debug(f"Copying {in_dir} to {out_dir}")
    ignored = list(_IGNORED_DIRECTORIES)
    if out_dir.parent == in_dir:
        ignored.append(out_dir.name)
    shutil.copytree(
        in_dir,
        out_dir,
        ignore=shutil.ignore_patterns(*ignored),
        dirs_exist_ok=True,
    )

