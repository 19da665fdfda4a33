"""
Pytest configuration and shared fixtures for all modulizer tests.

Parsers and the bundled dependency map are expensive to build and never
mutated by a conversion, so they are shared across the session.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))
from modulizer.dependency_map import DependencyMap
from modulizer.frontend.html_parser import HtmlParser
from modulizer.shared.errors import DiagnosticReporter
from modulizer.shared.settings import ConversionSettings


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def html_parser():
    """
    Session-scoped HTML parser shared across ALL tests.

    The parser is stateless between parse() calls; the Lark grammar is
    compiled once and cached.
    """
    return HtmlParser()


@pytest.fixture(scope="session")
def bundled_dependency_map():
    """The dependency map shipped with the package (no reporter attached)."""
    return DependencyMap.load()


@pytest.fixture(scope="session")
def default_settings():
    """Settings with every default: Polymer namespace, default excludes and rewrites."""
    from modulizer.shared.settings import create_default_conversion_settings
    return create_default_conversion_settings([], package_name="my-element")


# =============================================================================
# Function-scoped fixtures (default - one per test)
# =============================================================================

@pytest.fixture
def reporter():
    """Fresh diagnostic reporter per test."""
    return DiagnosticReporter()


@pytest.fixture
def polymer_settings() -> ConversionSettings:
    return ConversionSettings(namespaces=frozenset(["Polymer"]))


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "fast: marks tests as fast"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
