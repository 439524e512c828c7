# Copyright Rand Arete @ Ananke 2025
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================
"""Unit tests for package.json and tsconfig.json parsing.

Tests for:
- exports/imports normalization into tagged targets
- Manifest field extraction and package filters
- tsconfig.json output geometry, comments and extends chains
"""

import json

import pytest

from modresolve import InvalidPackageConfig, ResolutionCycle
from modresolve.build_config import BuildConfig, load_build_config, strip_json_comments
from modresolve.errors import MAX_RESOLUTION_DEPTH
from modresolve.manifest import manifest_from_raw, parse_manifest
from modresolve.targets import (
    ArrayTarget,
    ConditionalTarget,
    InvalidTarget,
    NULL_TARGET,
    StringTarget,
    TargetKind,
    is_array_index,
    parse_exports,
    parse_imports,
    parse_target,
)


# ===========================================================================
# Targets
# ===========================================================================


class TestParseTarget:
    """Tests for converting raw JSON into targets."""

    def test_string(self):
        assert parse_target("./index.js") == StringTarget("./index.js")

    def test_null(self):
        assert parse_target(None) is NULL_TARGET
        assert parse_target(None).kind is TargetKind.NULL

    def test_array(self):
        target = parse_target(["./a.js", None])
        assert isinstance(target, ArrayTarget)
        assert target.items == (StringTarget("./a.js"), NULL_TARGET)

    def test_conditional_keeps_declaration_order(self):
        target = parse_target({"require": "./cjs.js", "import": "./esm.js", "default": "./x.js"})
        assert isinstance(target, ConditionalTarget)
        assert [key for key, _ in target.branches] == ["require", "import", "default"]
        assert not target.has_index_keys

    def test_conditional_with_index_keys(self):
        assert parse_target({"0": "./a.js"}).has_index_keys

    def test_numbers_and_booleans_are_invalid(self):
        assert isinstance(parse_target(42), InvalidTarget)
        assert parse_target(True).kind is TargetKind.INVALID

    def test_self_referencing_structure(self):
        raw = {"node": None}
        raw["node"] = raw
        with pytest.raises(ResolutionCycle):
            parse_target(raw)

    def test_deep_nesting_rejected(self):
        raw = "./a.js"
        for index in range(3000):
            raw = {"default": raw} if index % 2 else [raw]
        with pytest.raises(ResolutionCycle) as exc_info:
            parse_target(raw)
        assert "nesting" in str(exc_info.value)

    def test_nesting_below_ceiling_accepted(self):
        raw = "./a.js"
        for _ in range(MAX_RESOLUTION_DEPTH):
            raw = {"default": raw}
        assert isinstance(parse_target(raw), ConditionalTarget)

    def test_shared_substructure_is_not_a_cycle(self):
        shared = {"default": "./a.js"}
        target = parse_target([shared, shared])
        assert len(target.items) == 2

    @pytest.mark.parametrize("key,expected", [("0", True), ("12", True), ("01", False), ("-1", False),
                                              ("4294967295", False), ("node", False)])
    def test_is_array_index(self, key, expected):
        assert is_array_index(key) is expected


class TestParseExports:
    """Tests for exports normalization."""

    def test_absent_and_null(self):
        assert parse_exports(None) is None

    def test_string_is_main_export(self):
        exports = parse_exports("./index.js")
        assert list(exports.keys()) == ["."]
        assert exports.get(".") == StringTarget("./index.js")

    def test_conditional_object_is_main_export(self):
        exports = parse_exports({"import": "./esm.js", "require": "./cjs.js"})
        assert list(exports.keys()) == ["."]
        assert isinstance(exports.get("."), ConditionalTarget)
        assert not exports.mixed

    def test_subpath_map(self):
        exports = parse_exports({".": "./index.js", "./feature": "./lib/feature.js"})
        assert "./feature" in exports
        assert exports.get("./missing") is None
        assert not exports.mixed

    def test_mixed_keys_are_recorded(self):
        assert parse_exports({".": "./a.js", "node": "./b.js"}).mixed

    def test_imports_require_object(self):
        assert parse_imports("./x.js") is None
        imports = parse_imports({"#util": "./util.js"})
        assert imports.get("#util") == StringTarget("./util.js")


# ===========================================================================
# Manifests
# ===========================================================================


class TestManifest:
    """Tests for package.json parsing."""

    def test_fields(self):
        manifest = manifest_from_raw({
            "name": "pkg",
            "main": "./lib/index.js",
            "type": "module",
            "exports": {"./x": "./x.js"},
            "imports": {"#y": "./y.js"},
        })
        assert manifest.name == "pkg"
        assert manifest.main == "./lib/index.js"
        assert manifest.type == "module"
        assert "./x" in manifest.exports
        assert "#y" in manifest.imports

    def test_defaults(self):
        manifest = manifest_from_raw({"name": 3, "type": "esm"})
        assert manifest.name is None
        assert manifest.type == "none"
        assert manifest.exports is None
        assert manifest.imports is None

    def test_invalid_json(self):
        with pytest.raises(InvalidPackageConfig) as exc_info:
            parse_manifest("{ not json", "/repo/package.json")
        assert exc_info.value.code == "INVALID_PACKAGE_CONFIG"
        assert "/repo/package.json" in str(exc_info.value)

    def test_json_too_deep_for_the_decoder(self):
        text = '{"exports": ' + "[" * 100000 + "]" * 100000 + "}"
        with pytest.raises(InvalidPackageConfig):
            parse_manifest(text, "/repo/package.json")

    def test_non_object_json(self):
        with pytest.raises(InvalidPackageConfig):
            parse_manifest("[]", "/repo/package.json")

    def test_package_filter_rewrites_manifest(self):
        seen = []

        def package_filter(raw, manifest_path, package_dir):
            seen.append((manifest_path, package_dir))
            return {**raw, "main": "./patched.js"}

        manifest = parse_manifest(json.dumps({"name": "pkg", "main": "./index.js"}), "/repo/package.json",
                                  package_filter)
        assert manifest.main == "./patched.js"
        assert seen == [("/repo/package.json", "/repo")]

    def test_package_filter_must_return_object(self):
        with pytest.raises(InvalidPackageConfig):
            parse_manifest("{}", "/repo/package.json", lambda raw, path, directory: None)


# ===========================================================================
# Build configs
# ===========================================================================


class TestStripJsonComments:
    """Tests for tsconfig.json comment handling."""

    def test_line_and_block_comments(self):
        text = '{\n  // line\n  "a": 1, /* block */ "b": "//not a comment"\n}'
        assert json.loads(strip_json_comments(text)) == {"a": 1, "b": "//not a comment"}

    def test_trailing_commas(self):
        assert json.loads(strip_json_comments('{"a": [1, 2,], "b": 3,}')) == {"a": [1, 2], "b": 3}

    def test_escaped_quotes_in_strings(self):
        assert json.loads(strip_json_comments('{"a": "x\\"//y"}')) == {"a": 'x"//y'}


class TestLoadBuildConfig:
    """Tests for tsconfig.json geometry."""

    @staticmethod
    def reader(files):
        return lambda path: files.get(path)

    def test_directories_are_absolute(self):
        files = {"/repo/pkg/tsconfig.json": '{"compilerOptions": {"rootDir": "src", "outDir": "./dist"}}'}
        config = load_build_config("/repo/pkg/tsconfig.json", self.reader(files))
        assert config.root_dir == "/repo/pkg/src"
        assert config.out_dir == "/repo/pkg/dist"
        assert config.source_root == "/repo/pkg/src"

    def test_composite_source_root_is_config_dir(self):
        files = {"/repo/tsconfig.json": '{"compilerOptions": {"composite": true, "outDir": "out"}}'}
        config = load_build_config("/repo/tsconfig.json", self.reader(files))
        assert config.source_root == "/repo"

    def test_no_source_root(self):
        files = {"/repo/tsconfig.json": '{"compilerOptions": {"outDir": "out"}}'}
        assert load_build_config("/repo/tsconfig.json", self.reader(files)).source_root is None

    def test_tooling_output_dirs(self):
        files = {"/repo/tsconfig.json": json.dumps({
            "compilerOptions": {"rootDir": "src", "declarationDir": "types"},
            "modresolve": {"cjsOutDir": "dist/cjs", "esmOutDir": "dist/esm"},
        })}
        config = load_build_config("/repo/tsconfig.json", self.reader(files))
        assert config.output_dirs() == ["/repo/types", "/repo/dist/cjs", "/repo/dist/esm"]

    def test_dual_output_sibling(self):
        config = BuildConfig(config_path="/repo/tsconfig.json", out_dir="/repo/dist/cjs")
        assert config.output_dirs() == ["/repo/dist/cjs", "/repo/dist/esm"]

    def test_extends_chain(self):
        files = {
            "/repo/tsconfig.base.json": '{"compilerOptions": {"rootDir": "./src", "outDir": "lib"}}',
            "/repo/pkg/tsconfig.json": '{"extends": "../tsconfig.base", "compilerOptions": {"outDir": "dist"}}',
        }
        config = load_build_config("/repo/pkg/tsconfig.json", self.reader(files))
        assert config.root_dir == "/repo/src"
        assert config.out_dir == "/repo/pkg/dist"

    def test_circular_extends(self):
        files = {
            "/repo/a.json": '{"extends": "./b.json", "compilerOptions": {"outDir": "a"}}',
            "/repo/b.json": '{"extends": "./a.json"}',
        }
        assert load_build_config("/repo/a.json", self.reader(files)).out_dir == "/repo/a"

    def test_missing_or_invalid(self):
        assert load_build_config("/repo/tsconfig.json", self.reader({})) is None
        assert load_build_config("/repo/tsconfig.json", self.reader({"/repo/tsconfig.json": "nope"})) is None
