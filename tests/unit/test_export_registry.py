"""
Tests for the export registry and the conversion manifest.
"""

import json
import threading

import pytest
from modulizer.converter.conversion_result import DeleteFileScanResult, OutputKind, ScanResult
from modulizer.registry.export_registry import ExportRecord, ExportRegistry, ExportRegistryBuilder
from modulizer.registry.manifest import load_manifest, manifest_from_json, manifest_to_json, save_manifest
from modulizer.shared.errors import RegistryFrozenError, SetupError


def _record(path, url="./a.js", name=None):
    return ExportRecord(path, url, name or path.split(".")[-1])


class TestExportRegistryBuilder:
    """Scan-phase registration: first writer wins, then sealed."""

    def test_first_writer_wins(self):
        builder = ExportRegistryBuilder()
        first = _record("Polymer.Foo", "./a.js")
        accepted = builder.register([first])
        rejected = builder.register([_record("Polymer.Foo", "./b.js")])
        assert accepted == [first]
        assert rejected == [], "a path already registered must not be replaced"
        assert builder.lookup("Polymer.Foo").module_url == "./a.js"

    def test_freeze_blocks_registration(self):
        builder = ExportRegistryBuilder()
        builder.register([_record("Polymer.Foo")])
        registry = builder.freeze()
        assert "Polymer.Foo" in registry
        with pytest.raises(RegistryFrozenError):
            builder.register([_record("Polymer.Bar")])

    def test_concurrent_registration(self):
        builder = ExportRegistryBuilder()

        def register(index):
            builder.register([_record(f"Polymer.Item{index}", f"./item{index}.js")])

        threads = [threading.Thread(target=register, args=(i,)) for i in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(builder.freeze()) == 16


class TestExportRegistry:
    """The sealed, read-only table."""

    def test_lookup_and_namespace_records(self):
        registry = ExportRegistry({
            "Polymer.Async": ExportRecord("Polymer.Async", "./async.js", "*"),
            "Polymer.Async.run": ExportRecord("Polymer.Async.run", "./async.js", "run"),
        })
        assert registry.lookup("Polymer.Async").is_namespace
        assert not registry.lookup("Polymer.Async.run").is_namespace
        assert registry.lookup("Polymer.Missing") is None
        assert len(registry.records_for_module("./async.js")) == 2

    def test_empty(self):
        assert len(ExportRegistry.empty()) == 0


class TestManifest:
    """Persisting scan results between runs."""

    def _results(self):
        return [
            ScanResult(
                original_url="paper-button.html",
                converted_url="./paper-button.js",
                converted_file_path="paper-button.js",
                output_kind=OutputKind.MODULE,
                export_records=(ExportRecord("Polymer.PaperButton", "./paper-button.js", "PaperButton"),),
            ),
            DeleteFileScanResult("old.html"),
        ]

    def test_json_shape(self):
        data = manifest_to_json(self._results())
        assert data == {
            "files": {
                "old.html": None,
                "paper-button.html": {
                    "url": "paper-button.js",
                    "exports": [{"id": "Polymer.PaperButton", "name": "PaperButton"}],
                },
            },
        }

    def test_relocated_load(self):
        loaded = manifest_from_json(
            manifest_to_json(self._results()),
            original_prefix="bower_components/paper-button/",
            converted_prefix="./node_modules/@polymer/paper-button/",
        )
        result = loaded.results["bower_components/paper-button/paper-button.html"]
        assert result.converted_url == "./node_modules/@polymer/paper-button/paper-button.js"
        assert loaded.export_records()[0].module_url == result.converted_url
        assert isinstance(loaded.results["bower_components/paper-button/old.html"], DeleteFileScanResult)

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "manifest.json"
        save_manifest(path, self._results())
        assert json.loads(path.read_text())["files"]["old.html"] is None
        loaded = load_manifest(path)
        assert loaded.results["paper-button.html"].export_records[0].export_name == "PaperButton"

    def test_malformed_manifest(self):
        with pytest.raises(SetupError):
            manifest_from_json({"exports": []})

    @pytest.mark.parametrize("entry", [
        {"exports": []},
        {"url": 3},
        "paper-button.js",
        {"url": "paper-button.js", "exports": [{"id": "Polymer.PaperButton"}]},
    ])
    def test_malformed_entry(self, entry):
        with pytest.raises(SetupError, match="paper-button.html"):
            manifest_from_json({"files": {"paper-button.html": entry}})
