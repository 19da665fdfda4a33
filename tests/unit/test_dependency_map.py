"""
Tests for the bower→npm dependency map and diagnostics output.
"""

import pytest
from modulizer.dependency_map import DependencyMap, DependencyMapEntry, parse_dependency_mapping
from modulizer.shared.errors import DiagnosticReporter, SetupError
from modulizer.shared.source_location import SourceLocation, location_from_offsets, shift_location
from tests.test_utils import small_dependency_map


class TestDependencyMap:
    """Lookups against the static name table."""

    def test_bundled_map_has_polymer(self, bundled_dependency_map):
        entry = bundled_dependency_map.lookup("polymer")
        assert entry == DependencyMapEntry("@polymer/polymer", "^3.0.0")
        assert bundled_dependency_map.reverse_lookup("@polymer/polymer") == "polymer"

    def test_missing_name_warns_once(self, reporter):
        dependency_map = small_dependency_map(reporter)
        assert dependency_map.lookup("left-pad") is None
        assert dependency_map.lookup("left-pad") is None
        assert [d.code for d in reporter.warnings] == ["W0101"]

    def test_npm_name_falls_back_to_legacy_name(self):
        dependency_map = small_dependency_map()
        assert dependency_map.npm_name("iron-icon") == "@polymer/iron-icon"
        assert dependency_map.npm_name("left-pad") == "left-pad"

    def test_overrides_replace_entries(self):
        dependency_map = DependencyMap.from_json(
            {"polymer": {"npm": "@polymer/polymer", "semver": "^3.0.0"}},
            overrides=parse_dependency_mapping("polymer,@fork/polymer,^1.0.0"),
        )
        assert dependency_map.lookup("polymer").npm == "@fork/polymer"
        assert len(dependency_map) == 1


class TestParseDependencyMapping:
    """The --dependency-mapping command line value."""

    def test_valid(self):
        assert parse_dependency_mapping(" a , @b/a , ^2.0.0 ") == {"a": DependencyMapEntry("@b/a", "^2.0.0")}

    @pytest.mark.parametrize("value", ["a,b", "a,b,c,d", "a,,^1.0.0", ""])
    def test_invalid(self, value):
        with pytest.raises(SetupError):
            parse_dependency_mapping(value)


class TestDiagnostics:
    """Collected diagnostics and their plain-text rendering."""

    def test_snippet_with_carets(self):
        source = "var a = 1;\nPolymer.Foo.bar();\n"
        reporter = DiagnosticReporter({"x.html": source})
        start = source.index("Polymer.Foo")
        location = location_from_offsets("x.html", source, start, start + len("Polymer.Foo"))
        reporter.report_warning("unresolved reference to `Polymer.Foo`", location, code="W0301")
        text = reporter.format_all(color=False)
        assert "warning[W0301]: unresolved reference to `Polymer.Foo`" in text
        assert "--> x.html:2:1" in text
        assert "2 | Polymer.Foo.bar();" in text
        assert "  | ^^^^^^^^^^^" in text
        assert text.endswith("1 warning, 0 errors emitted")

    def test_duplicates_dropped(self, reporter):
        reporter.report_warning("same", code="W0101")
        reporter.report_warning("same", code="W0101")
        reporter.report_error("bad", code="E0001", help="check the file")
        assert len(reporter.diagnostics) == 2
        assert reporter.has_errors()
        assert "= help: check the file" in reporter.format_all(color=False)

    def test_nothing_printed_without_diagnostics(self, reporter, capsys):
        reporter.print_all()
        assert capsys.readouterr().err == ""

    def test_script_location_shifted_into_document(self):
        html = "<p>x</p>\n<script>var a;\n  b(;\n</script>\n"
        offset = html.index("var a;")
        first_line = shift_location(SourceLocation("x.html", 1, 5), html, offset)
        assert (first_line.line, first_line.column) == (2, 13)
        later_line = shift_location(SourceLocation("x.html", 2, 4), html, offset)
        assert (later_line.line, later_line.column) == (3, 4)
        assert html[later_line.start] == "("
