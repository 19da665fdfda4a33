"""
Tests for package.json generation from bower.json.
"""

from modulizer.manifest_converter import generate_package_json
from tests.test_utils import small_dependency_map


def _generate(bower_json, existing=None, reporter=None):
    return generate_package_json(
        bower_json, "@polymer/paper-button", "3.0.0", small_dependency_map(), reporter, existing,
    )


class TestGeneratePackageJson:
    """Fields derived from bower.json."""

    def test_basic_fields(self, reporter):
        package_json = _generate({
            "name": "paper-button",
            "description": "A button",
            "main": "paper-button.html",
            "license": "MIT",
            "dependencies": {"polymer": "Polymer/polymer#^2.0.0", "iron-icon": "^2.0.0"},
            "devDependencies": {"widgets": "^1.0.0"},
        }, reporter=reporter)
        assert package_json["name"] == "@polymer/paper-button"
        assert package_json["version"] == "3.0.0"
        assert package_json["flat"] is True
        assert package_json["description"] == "A button"
        assert package_json["main"] == "paper-button.js"
        assert package_json["license"] == "MIT"
        assert package_json["dependencies"] == {"@polymer/polymer": "^3.0.0", "@polymer/iron-icon": "^3.0.0"}
        assert package_json["devDependencies"] == {"@scope/widgets": "^1.0.0"}
        assert not reporter.has_warnings()

    def test_single_main_in_list(self):
        assert _generate({"main": ["paper-button.html"], "license": "MIT"})["main"] == "paper-button.js"

    def test_multiple_mains_warn(self, reporter):
        package_json = _generate({"main": ["a.html", "b.html"], "license": "MIT"}, reporter=reporter)
        assert "main" not in package_json
        assert [d.code for d in reporter.warnings] == ["W0501", "W0501"]

    def test_non_html_main_is_not_used(self, reporter):
        package_json = _generate({"main": "index.js", "license": "MIT"}, reporter=reporter)
        assert "main" not in package_json
        assert len(reporter.warnings) == 1

    def test_polymer_license_url(self):
        package_json = _generate({"main": "a.html", "license": "http://polymer.github.io/LICENSE.txt"})
        assert package_json["license"] == "BSD-3-Clause"

    def test_missing_license_warns(self, reporter):
        package_json = _generate({"main": "a.html"}, reporter=reporter)
        assert "license" not in package_json
        assert "license" in reporter.warnings[0].message

    def test_single_author(self):
        package_json = _generate({
            "main": "a.html", "license": "MIT",
            "authors": [{"name": "The Polymer Authors", "homepage": "https://polymer-project.org"}],
        })
        assert package_json["author"] == {"name": "The Polymer Authors", "url": "https://polymer-project.org"}
        assert "contributors" not in package_json

    def test_several_authors_become_contributors(self):
        package_json = _generate({"main": "a.html", "license": "MIT", "authors": ["Ann", "Bob"]})
        assert package_json["contributors"] == ["Ann", "Bob"]
        assert "author" not in package_json

    def test_resolutions_are_pinned(self):
        resolutions = _generate({"main": "a.html", "license": "MIT"})["resolutions"]
        assert resolutions["inherits"] == "2.0.3"
        assert resolutions["type-detect"] == "1.0.0"


class TestExistingPackageJson:
    """Merging into a package.json that already exists."""

    def test_existing_values_win(self, reporter):
        existing = {
            "name": "old-name",
            "version": "0.0.1",
            "private": True,
            "main": "custom.js",
            "license": "Apache-2.0",
            "scripts": {"test": "wct"},
            "dependencies": {"lodash": "^4.0.0"},
        }
        package_json = _generate(
            {"main": "a.html", "license": "MIT", "dependencies": {"polymer": "^2.0.0"}},
            existing=existing, reporter=reporter,
        )
        assert package_json["name"] == "@polymer/paper-button"
        assert package_json["version"] == "3.0.0"
        assert "private" not in package_json
        assert package_json["main"] == "custom.js"
        assert package_json["license"] == "Apache-2.0"
        assert package_json["scripts"] == {"test": "wct"}
        assert package_json["dependencies"] == {"lodash": "^4.0.0", "@polymer/polymer": "^3.0.0"}
        assert not reporter.has_warnings()

    def test_unmapped_dependency_is_dropped(self, reporter):
        package_json = generate_package_json(
            {"main": "a.html", "license": "MIT", "dependencies": {"left-pad": "^1.0.0"}},
            "x", "1.0.0", small_dependency_map(reporter), reporter,
        )
        assert package_json["dependencies"] == {}
        assert "W0101" in [d.code for d in reporter.warnings]
