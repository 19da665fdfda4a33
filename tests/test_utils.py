"""
Test utilities for the modulizer test suite.

Provides helpers for the analyze-scan-convert pattern over in-memory
packages, so most tests never touch the filesystem.
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from modulizer.analysis.analyzer import Analyzer
from modulizer.converter.project_converter import ProjectConverter
from modulizer.dependency_map import DependencyMap, DependencyMapEntry
from modulizer.shared.errors import DiagnosticReporter
from modulizer.shared.settings import ConversionSettings, create_default_conversion_settings
from modulizer.urls.resolver import PackageUrlResolver

IN_MEMORY_ROOT = Path("/nonexistent-modulizer-root")


@dataclass
class ConversionRun:
    """Everything a test may want to look at after converting a package."""
    project: ProjectConverter
    reporter: DiagnosticReporter
    results: Dict[str, Optional[str]] = field(default_factory=dict)

    def module(self, path: str) -> str:
        source = self.results.get(path)
        assert source is not None, f"no output for {path}; got {sorted(self.results)}"
        return source

    def warning_codes(self) -> set:
        return {d.code for d in self.reporter.warnings}


def small_dependency_map(reporter: Optional[DiagnosticReporter] = None) -> DependencyMap:
    return DependencyMap({
        "polymer": DependencyMapEntry("@polymer/polymer", "^3.0.0"),
        "iron-icon": DependencyMapEntry("@polymer/iron-icon", "^3.0.0"),
        "widgets": DependencyMapEntry("@scope/widgets", "^1.0.0"),
    }, reporter)


def convert_sources(
    sources: Dict[str, str],
    package_name: str = "my-element",
    namespaces: Iterable[str] = ("Polymer",),
    settings: Optional[ConversionSettings] = None,
    workers: int = 1,
    **settings_options,
) -> ConversionRun:
    """
    Analyze, scan and convert an in-memory package.

    sources maps root-relative paths to file contents; every HTML file
    outside `bower_components/` is a package document.
    """
    reporter = DiagnosticReporter()
    package_urls = [
        url for url in sources
        if url.endswith(".html") and not url.startswith("bower_components/")
    ]
    if settings is None:
        settings = create_default_conversion_settings(
            package_urls, package_name=package_name, namespaces=namespaces, **settings_options,
        )
    dependency_map = small_dependency_map(reporter)
    resolver = PackageUrlResolver(package_name, dependency_map)
    analyzer = Analyzer(
        IN_MEMORY_ROOT, reporter=reporter, dependency_dir="bower_components", source_overlay=sources,
    )
    analysis = analyzer.analyze(package_urls)
    project = ProjectConverter(analysis, resolver, settings, reporter, workers=workers)
    project.scan(analysis.documents)
    project.convert_all(package_urls)
    return ConversionRun(project, reporter, project.get_results())
