"""
Package, workspace and command line conversions against real directories.
"""

import json

import pytest
from modulizer.__main__ import main
from modulizer.convert_package import ConvertPackageOptions, convert_package
from modulizer.convert_workspace import ConvertWorkspaceOptions, convert_workspace
from modulizer.shared.errors import DiagnosticReporter, SetupError

ELEMENT_HTML = (
    '<link rel="import" href="../polymer/polymer.html">\n'
    "<script>\n"
    "  Polymer.MyEl = class extends Polymer.Element {};\n"
    "</script>\n"
)
POLYMER_HTML = "<script>\n  Polymer.Element = class {};\n</script>\n"


def _write(root, files):
    for rel_path, contents in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(contents, dict):
            contents = json.dumps(contents)
        path.write_text(contents)


@pytest.fixture
def element_package(tmp_path):
    package_dir = tmp_path / "my-el"
    _write(package_dir, {
        "bower.json": {
            "name": "my-el",
            "version": "2.0.0",
            "main": "my-el.html",
            "license": "MIT",
            "dependencies": {"polymer": "Polymer/polymer#^2.0.0"},
        },
        "my-el.html": ELEMENT_HTML,
        "demo/index.html": '<link rel="import" href="../my-el.html">\n<my-el></my-el>\n',
        "bower_components/polymer/polymer.html": POLYMER_HTML,
    })
    return package_dir


@pytest.mark.integration
class TestConvertPackage:
    """Whole package conversions written to an output directory."""

    def test_convert_to_output_directory(self, element_package, tmp_path):
        out_dir = tmp_path / "out"
        manifest_path = tmp_path / "manifest.json"
        reporter = DiagnosticReporter()
        convert_package(
            ConvertPackageOptions(
                in_dir=element_package, out_dir=out_dir, npm_name="my-el", npm_version="3.0.0",
                manifest_out=manifest_path,
            ),
            reporter,
        )

        module = (out_dir / "my-el.js").read_text()
        assert "import { Element } from '../@polymer/polymer/polymer.js';" in module
        assert "export const MyEl = class extends Element {};" in module
        assert not (out_dir / "my-el.html").exists()
        assert not (out_dir / "bower_components").exists()
        assert '<script type="module" src="../my-el.js"></script>' in (out_dir / "demo/index.html").read_text()

        package_json = json.loads((out_dir / "package.json").read_text())
        assert package_json["name"] == "my-el"
        assert package_json["version"] == "3.0.0"
        assert package_json["main"] == "my-el.js"
        assert package_json["dependencies"] == {"@polymer/polymer": "^3.0.0"}

        manifest = json.loads(manifest_path.read_text())
        assert manifest["files"]["my-el.html"] == {
            "url": "my-el.js",
            "exports": [{"id": "Polymer.MyEl", "name": "MyEl"}],
        }
        assert not reporter.has_errors()
        # The input package is left untouched
        assert (element_package / "my-el.html").read_text() == ELEMENT_HTML

    def test_version_from_bower_json(self, element_package, tmp_path):
        results = convert_package(ConvertPackageOptions(
            in_dir=element_package, out_dir=tmp_path / "out", npm_name="my-el",
        ))
        assert json.loads(results["package.json"])["version"] == "2.0.0"

    def test_manifest_reuse(self, element_package, tmp_path):
        manifest_path = tmp_path / "manifest.json"
        convert_package(ConvertPackageOptions(
            in_dir=element_package, out_dir=tmp_path / "first", npm_name="my-el", manifest_out=manifest_path,
        ))
        results = convert_package(ConvertPackageOptions(
            in_dir=element_package, out_dir=tmp_path / "second", npm_name="my-el", manifest_in=manifest_path,
        ))
        assert "export const MyEl" in results["my-el.js"]

    def test_excluded_document_is_left_alone(self, element_package, tmp_path):
        out_dir = tmp_path / "out"
        results = convert_package(ConvertPackageOptions(
            in_dir=element_package, out_dir=out_dir, npm_name="my-el", excludes=["demo/*"],
        ))
        assert "demo/index.html" not in results
        assert (out_dir / "demo/index.html").read_text().startswith('<link rel="import"')

    def test_missing_input_directory(self, tmp_path):
        with pytest.raises(SetupError):
            convert_package(ConvertPackageOptions(in_dir=tmp_path / "missing", out_dir=tmp_path / "out"))

    def test_missing_name(self, tmp_path):
        _write(tmp_path, {"bower.json": {"version": "1.0.0"}})
        with pytest.raises(SetupError, match="--npm-name"):
            convert_package(ConvertPackageOptions(in_dir=tmp_path, out_dir=tmp_path / "out"))


@pytest.mark.integration
class TestConvertWorkspace:
    """Side-by-side repos converted in place."""

    def test_workspace(self, tmp_path):
        _write(tmp_path, {
            "polymer/bower.json": {"name": "polymer", "main": "polymer.html", "license": "BSD-3-Clause"},
            "polymer/polymer.html": POLYMER_HTML,
            "my-el/bower.json": {"name": "my-el", "main": "my-el.html", "license": "MIT"},
            "my-el/my-el.html": ELEMENT_HTML,
            "unmapped/bower.json": {"name": "unmapped"},
            "unmapped/unmapped.html": "<script>Polymer.Unmapped = 1;</script>\n",
        })
        names = convert_workspace(ConvertWorkspaceOptions(
            workspace_dir=tmp_path,
            repos=["polymer", "my-el", "unmapped"],
            npm_version="3.0.0",
            dependency_mappings=["my-el,@polymer/my-el,^3.0.0"],
        ))
        assert names == {"polymer": "@polymer/polymer", "my-el": "@polymer/my-el"}

        module = (tmp_path / "my-el/my-el.js").read_text()
        assert "import { Element } from '@polymer/polymer/polymer.js';" in module
        assert not (tmp_path / "my-el/my-el.html").exists()
        assert "export const Element = class {};" in (tmp_path / "polymer/polymer.js").read_text()
        assert json.loads((tmp_path / "my-el/package.json").read_text())["name"] == "@polymer/my-el"
        assert (tmp_path / "unmapped/unmapped.html").exists()
        assert not (tmp_path / "unmapped/package.json").exists()

    def test_missing_repo(self, tmp_path):
        with pytest.raises(SetupError):
            convert_workspace(ConvertWorkspaceOptions(workspace_dir=tmp_path, repos=["nope"], npm_version="1.0.0"))


@pytest.mark.integration
class TestCommandLine:
    """Exit status of the command line entry point."""

    def test_setup_error_exits_nonzero(self, tmp_path, capsys):
        _write(tmp_path, {"bower.json": {"version": "1.0.0"}})
        assert main(["package", "--in", str(tmp_path), "--out", str(tmp_path / "out")]) == 1
        assert "error[E0002]" in capsys.readouterr().err

    def test_bad_declaration_override(self, element_package, tmp_path, capsys):
        argv = ["package", "--in", str(element_package), "--out", str(tmp_path / "out"), "--declaration", "Polymer.X"]
        assert main(argv) == 1
        assert "E0002" in capsys.readouterr().err

    def test_package_conversion(self, element_package, tmp_path):
        out_dir = tmp_path / "out"
        argv = ["package", "--in", str(element_package), "--out", str(out_dir), "--npm-name", "my-el"]
        assert main(argv) == 0
        assert (out_dir / "my-el.js").exists()
