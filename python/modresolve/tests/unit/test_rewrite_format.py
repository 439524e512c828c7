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
"""Unit tests for "#" import rewriting and module format detection."""

import pytest

from modresolve import ModuleFormat, ResolverOptions, module_format, rewrite_subpath_import


@pytest.fixture
def package(make_tree):
    return make_tree({
        "package.json": {
            "type": "module",
            "imports": {
                "#util": "./src/lib/util.js",
                "#internal/*": "./src/internal/*.js",
                "#env": {"import": "./src/env.mjs", "default": "./src/env.cjs"},
                "#missing": "./src/missing.js",
                "#dotenv": "./src/.env.js",
            },
        },
        "src/index.js": "",
        "src/lib/util.js": "",
        "src/internal/a.js": "",
        "src/env.mjs": "",
        "src/env.cjs": "",
        "src/.env.js": "",
        "src/deep/nested/file.js": "",
    })


class TestRewriteSubpathImport:
    """Tests for rewrite_subpath_import."""

    def rewrite(self, specifier, source_file, cache):
        return rewrite_subpath_import(specifier, str(source_file), ResolverOptions(cache=cache))

    def test_sibling_directory(self, package, cache):
        assert self.rewrite("#util", package / "src/index.js", cache) == "./lib/util.js"

    def test_parent_directories(self, package, cache):
        assert self.rewrite("#util", package / "src/deep/nested/file.js", cache) == "../../lib/util.js"

    def test_pattern(self, package, cache):
        assert self.rewrite("#internal/a", package / "src/index.js", cache) == "./internal/a.js"

    def test_require_conditions(self, package, cache):
        assert self.rewrite("#env", package / "src/index.js", cache) == "./env.cjs"

    def test_dotfile_keeps_relative_prefix(self, package, cache):
        assert self.rewrite("#dotenv", package / "src/index.js", cache) == "./.env.js"

    @pytest.mark.parametrize("specifier", ["./local", "lodash", "#unknown", "#missing"])
    def test_left_unchanged(self, package, cache, specifier):
        assert self.rewrite(specifier, package / "src/index.js", cache) == specifier

    def test_default_options(self, package):
        assert rewrite_subpath_import("#util", str(package / "src/index.js")) == "./lib/util.js"


class TestModuleFormat:
    """Tests for module_format."""

    @pytest.mark.parametrize("name,expected", [
        ("a.mjs", ModuleFormat.MODULE),
        ("a.mts", ModuleFormat.MODULE),
        ("a.cjs", ModuleFormat.COMMONJS),
        ("a.cts", ModuleFormat.COMMONJS),
        ("a.json", ModuleFormat.JSON),
        ("a.css", None),
    ])
    def test_explicit_extensions(self, root, name, expected):
        assert module_format(str(root / name)) is expected

    @pytest.mark.parametrize("name", ["a.js", "a.jsx", "a.ts", "a.tsx"])
    def test_type_module_scope(self, package, make_ctx, name):
        assert module_format(str(package / "src" / name), make_ctx()) is ModuleFormat.MODULE

    def test_commonjs_scope(self, make_tree, make_ctx):
        root = make_tree({"package.json": {"name": "legacy"}, "a.js": ""})
        assert module_format(str(root / "a.js"), make_ctx()) is ModuleFormat.COMMONJS

    def test_nearest_manifest_decides(self, make_tree, make_ctx):
        root = make_tree({
            "package.json": {"type": "module"},
            "legacy/package.json": {"type": "commonjs"},
        })
        ctx = make_ctx()
        assert module_format(str(root / "legacy/a.js"), ctx) is ModuleFormat.COMMONJS
        assert module_format(str(root / "a.js"), ctx) is ModuleFormat.MODULE
