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
"""Unit tests for the resolver hook entry points and the CLI."""

import json
import logging

import pytest

from modresolve import (
    ModuleNotFound,
    ResolverOptions,
    clear_default_resolver_cache,
    resolve,
    resolve_source_preferred,
)
from modresolve.__main__ import main
from modresolve.options import SOURCE_PREFERRED_CONDITION


class RecordingResolver:
    """Host default resolver recording its calls."""

    def __init__(self, result="/host/result.js"):
        self.calls = []
        self.result = result

    def __call__(self, request, options):
        self.calls.append((request, options))
        return self.result


@pytest.fixture
def app(make_tree):
    return make_tree({
        "package.json": {"name": "app"},
        "src/index.js": "",
        "src/util.js": "",
        "node_modules/dep/package.json": {"exports": {"import": "./esm.mjs", "require": "./cjs.js"}},
        "node_modules/dep/esm.mjs": "",
        "node_modules/dep/cjs.js": "",
    })


# ===========================================================================
# Dispatch
# ===========================================================================


class TestDispatch:
    """Tests for choosing the algorithm from the conditions."""

    def test_require_style_by_default(self, app, cache):
        options = ResolverOptions(basedir=str(app / "src"), cache=cache)
        assert resolve("./util", options) == str(app / "src/util.js")
        assert resolve("dep", options) == str(app / "node_modules/dep/cjs.js")

    def test_import_condition_selects_import_style(self, app, cache):
        options = ResolverOptions(basedir=str(app / "src"), conditions=["import"], cache=cache)
        assert resolve("dep", options) == str(app / "node_modules/dep/esm.mjs")
        assert resolve("./util.js", options) == str(app / "src/util.js")
        with pytest.raises(ModuleNotFound):
            resolve("./util", options)

    def test_filename_wins_over_basedir(self, app, cache):
        options = ResolverOptions(basedir="/unrelated", filename=str(app / "src/index.js"), cache=cache)
        assert resolve("./util", options) == str(app / "src/util.js")

    def test_relative_filename_resolved_against_basedir(self, app, cache):
        options = ResolverOptions(basedir=str(app), filename="src/index.js", cache=cache)
        assert resolve("./util", options) == str(app / "src/util.js")

    def test_builtins(self, app, cache):
        assert resolve("fs", ResolverOptions(basedir=str(app), cache=cache)) == "fs"
        esm_options = ResolverOptions(basedir=str(app), conditions=["import"], cache=cache)
        assert resolve("fs", esm_options) == "node:fs"
        assert resolve("node:fs", esm_options) == "node:fs"

    def test_host_mapping(self, app, cache):
        result = resolve("dep", {"basedir": str(app / "src"), "conditions": ["import"], "cache": cache})
        assert result == str(app / "node_modules/dep/esm.mjs")

    def test_repeat_resolution_is_served_from_cache(self, app, cache):
        options = ResolverOptions(basedir=str(app / "src"), cache=cache)
        first = resolve("dep", options)
        calls = cache.stats.total
        assert resolve("dep", options) == first
        assert cache.stats.total == calls

    def test_trace_logging(self, app, cache, caplog):
        options = ResolverOptions(basedir=str(app / "src"), cache=cache, trace=True)
        with caplog.at_level(logging.DEBUG, logger="modresolve.trace"):
            resolve("./util", options)
        messages = [record.getMessage() for record in caplog.records]
        assert any(message.startswith("[resolve:COMMONJS_RESOLVE] ./util") for message in messages)
        assert any(message.startswith("[resolve:LOAD_AS_FILE]") for message in messages)


class TestDefaultResolverFallback:
    """Tests for delegation to the host resolver."""

    def test_failure_delegates_with_original_options(self, app, cache):
        host = RecordingResolver()
        options = {"basedir": str(app / "src"), "cache": cache, "defaultResolver": host}
        assert resolve("missing-package", options) == "/host/result.js"
        assert host.calls == [("missing-package", options)]
        assert host.calls[0][1] is options

    def test_success_does_not_consult_host(self, app, cache):
        host = RecordingResolver()
        options = ResolverOptions(basedir=str(app / "src"), cache=cache, default_resolver=host)
        assert resolve("./util", options) == str(app / "src/util.js")
        assert host.calls == []

    def test_invalid_options_delegate(self, cache):
        host = RecordingResolver()
        assert resolve("./x", ResolverOptions(cache=cache, default_resolver=host)) == "/host/result.js"

    def test_failure_without_host_raises(self, app, cache):
        with pytest.raises(ModuleNotFound):
            resolve("missing-package", ResolverOptions(basedir=str(app), cache=cache))

    def test_missing_referrer_without_host_raises(self, cache):
        with pytest.raises(ValueError):
            resolve("./x", ResolverOptions(cache=cache))


class TestSourcePreferred:
    """Tests for resolve_source_preferred."""

    @pytest.fixture
    def project(self, make_tree):
        return make_tree({
            "package.json": {"name": "lib"},
            "tsconfig.json": '{"compilerOptions": {"rootDir": "src", "outDir": "dist"}}',
            "src/foo.ts": "",
            "dist/foo.js": "",
            "test/index.js": "",
        })

    def test_existing_output_is_redirected(self, project, cache):
        options = ResolverOptions(filename=str(project / "test/index.js"), cache=cache)
        assert resolve("../dist/foo", options) == str(project / "dist/foo.js")
        assert resolve_source_preferred("../dist/foo", options) == str(project / "src/foo.ts")

    def test_host_mapping_gains_condition(self, project, cache):
        options = {"filename": str(project / "test/index.js"), "conditions": ["import"], "cache": cache}
        assert resolve_source_preferred("../dist/foo.js", options) == str(project / "src/foo.ts")
        assert options["conditions"] == ["import"]

    def test_condition_not_duplicated(self, project, cache):
        options = ResolverOptions(filename=str(project / "test/index.js"), conditions=[SOURCE_PREFERRED_CONDITION],
                                  cache=cache)
        assert options.with_conditions(SOURCE_PREFERRED_CONDITION).conditions == (SOURCE_PREFERRED_CONDITION,)
        assert resolve_source_preferred("../dist/foo", options) == str(project / "src/foo.ts")


class TestClearDefaultResolverCache:
    """Tests for the process-wide cache."""

    def test_clear_forgets_missing_files(self, make_tree):
        root = make_tree({"index.js": ""})
        options = ResolverOptions(basedir=str(root))
        with pytest.raises(ModuleNotFound):
            resolve("./late", options)

        (root / "late.js").write_text("")
        with pytest.raises(ModuleNotFound):
            resolve("./late", options)

        clear_default_resolver_cache()
        assert resolve("./late", options) == str(root / "late.js")


# ===========================================================================
# CLI
# ===========================================================================


class TestMain:
    """Tests for python -m modresolve."""

    def test_prints_resolved_path(self, app, capsys):
        assert main(["./util", "--basedir", str(app / "src")]) == 0
        assert capsys.readouterr().out.strip() == str(app / "src/util.js")

    def test_import_condition(self, app, capsys):
        assert main(["dep", "--from", str(app / "src/index.js"), "--condition", "import"]) == 0
        assert capsys.readouterr().out.strip() == str(app / "node_modules/dep/esm.mjs")

    def test_json_output(self, app, capsys):
        assert main(["./util", "--basedir", str(app / "src"), "--json"]) == 0
        assert json.loads(capsys.readouterr().out) == {"request": "./util", "resolved": str(app / "src/util.js")}

    def test_failure(self, app, capsys):
        assert main(["./missing", "--basedir", str(app / "src")]) == 1
        assert capsys.readouterr().err.startswith("MODULE_NOT_FOUND: ")

    def test_failure_as_json(self, app, capsys):
        assert main(["./missing", "--basedir", str(app / "src"), "--json"]) == 1
        assert json.loads(capsys.readouterr().out)["error"] == "MODULE_NOT_FOUND"

    def test_unusable_path_is_reported(self, app, capsys):
        assert main(["./a\x00b", "--basedir", str(app / "src")]) == 1
        assert capsys.readouterr().err.startswith("INVALID_ARGUMENT: ")

    def test_unusable_path_as_json(self, app, capsys):
        assert main(["./a\x00b", "--basedir", str(app / "src"), "--json"]) == 1
        assert json.loads(capsys.readouterr().out)["error"] == "INVALID_ARGUMENT"
