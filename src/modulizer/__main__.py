"""CLI entry point: `modulizer package ...` / `modulizer workspace ...` or `python -m modulizer ...`."""

import sys
from pathlib import Path
from typing import Dict, List, Optional


def _declaration_overrides(values: List[str]) -> Dict[str, "DeclarationKind"]:
    from .shared.errors import SetupError
    from .shared.settings import DeclarationKind

    overrides = {}
    for value in values:
        path, _, kind = value.partition("=")
        try:
            overrides[path.strip()] = DeclarationKind(kind.strip())
        except ValueError:
            raise SetupError(
                f"--declaration expects 'dotted.path=namespace|value|ignore', got {value!r}"
            ) from None
    return overrides


def _add_common_arguments(parser) -> None:
    from .shared.settings import ImportStyle

    parser.add_argument("--exclude", action="append", default=[], metavar="GLOB",
                        help="Documents never converted and never imported")
    parser.add_argument("--delete-files", action="append", default=[], metavar="GLOB",
                        help="Files removed from the output after conversion")
    parser.add_argument("--namespace", action="append", default=None, metavar="NAME",
                        help="Tracked namespace root (default: Polymer)")
    parser.add_argument("--import-style", choices=[s.value for s in ImportStyle], default=None,
                        help="Write imports of other packages as names or paths")
    parser.add_argument("--add-import-path", action="store_true",
                        help="Add a static importPath getter to converted elements")
    parser.add_argument("--template-tag", default=None, metavar="EXPR",
                        help="Tag expression for inlined template literals, e.g. Polymer.html")
    parser.add_argument("--dependency-mapping", action="append", default=[], metavar="BOWER,NPM,SEMVER",
                        help="Extra or overriding dependency map entry")
    parser.add_argument("--declaration", action="append", default=[], metavar="PATH=KIND",
                        help="Treat a namespace assignment as namespace, value or ignore")
    parser.add_argument("--workers", type=int, default=1, help="Threads per conversion phase")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def build_parser():
    import argparse
    from .shared.settings import PackageType

    parser = argparse.ArgumentParser(
        prog="modulizer",
        description="Convert HTML-import packages to JavaScript modules.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    package = commands.add_parser("package", help="Convert one package into an output directory")
    package.add_argument("--in", dest="in_dir", type=Path, default=Path("."), help="Package directory")
    package.add_argument("--out", dest="out_dir", type=Path, default=Path("modulizer_out"),
                         help="Output directory")
    package.add_argument("--npm-name", default=None, help="New package name")
    package.add_argument("--npm-version", default=None, help="New package version")
    package.add_argument("--include", action="append", default=None, metavar="GLOB",
                         help="Documents to convert (default: every HTML file)")
    package.add_argument("--package-type", choices=[t.value for t in PackageType],
                         default=PackageType.ELEMENT.value)
    package.add_argument("--manifest-in", type=Path, default=None,
                         help="Conversion manifest of an earlier run to reuse")
    package.add_argument("--manifest-out", type=Path, default=None,
                         help="Where to write this run's conversion manifest")
    _add_common_arguments(package)

    workspace = commands.add_parser("workspace", help="Convert sibling package checkouts in place")
    workspace.add_argument("--workspace-dir", type=Path, required=True)
    workspace.add_argument("--repo", action="append", required=True, metavar="NAME",
                           help="Package directory inside the workspace")
    workspace.add_argument("--npm-version", required=True, help="Version of every converted package")
    _add_common_arguments(workspace)
    return parser


def run(args, reporter) -> None:
    from .shared.settings import ImportStyle, PackageType

    overrides = _declaration_overrides(args.declaration)
    if args.command == "package":
        from .convert_package import ConvertPackageOptions, convert_package

        options = ConvertPackageOptions(
            in_dir=args.in_dir,
            out_dir=args.out_dir,
            npm_name=args.npm_name,
            npm_version=args.npm_version,
            includes=tuple(args.include) if args.include else ("*.html",),
            excludes=tuple(args.exclude),
            delete_files=tuple(args.delete_files),
            namespaces=args.namespace,
            import_style=ImportStyle(args.import_style or ImportStyle.PATH.value),
            package_type=PackageType(args.package_type),
            add_import_path=args.add_import_path,
            template_tag=args.template_tag,
            dependency_mappings=tuple(args.dependency_mapping),
            declaration_overrides=overrides,
            manifest_in=args.manifest_in,
            manifest_out=args.manifest_out,
            workers=args.workers,
        )
        convert_package(options, reporter)
    else:
        from .convert_workspace import ConvertWorkspaceOptions, convert_workspace

        options = ConvertWorkspaceOptions(
            workspace_dir=args.workspace_dir,
            repos=tuple(args.repo),
            npm_version=args.npm_version,
            excludes=tuple(args.exclude),
            delete_files=tuple(args.delete_files),
            namespaces=args.namespace,
            import_style=ImportStyle(args.import_style or ImportStyle.NAME.value),
            add_import_path=args.add_import_path,
            template_tag=args.template_tag,
            dependency_mappings=tuple(args.dependency_mapping),
            declaration_overrides=overrides,
            workers=args.workers,
        )
        convert_workspace(options, reporter)


def main(argv: Optional[List[str]] = None) -> int:
    import logging
    from .shared.errors import DiagnosticReporter, SetupError

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    reporter = DiagnosticReporter()
    try:
        run(args, reporter)
    except SetupError as e:
        reporter.report_error(e.message, e.location, code="E0002")
        reporter.print_all()
        return 1

    reporter.print_all()
    return 0


if __name__ == "__main__":
    sys.exit(main())
