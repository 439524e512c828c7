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
"""Require-style (CommonJS) resolution.

Implements ``require(X)`` from a module at path Y: builtins, relative and
absolute files with extension probing, directory loading through ``main``
and ``index`` files, package imports, self-reference, and the module
directory search. Exports and imports maps are evaluated by the shared
evaluator with the conditions ``{"node", "require"}``.

Functions returning ``Optional[str]`` use None for "not here, try the next
candidate"; errors are terminal.

References:
    - Node.js Modules: https://nodejs.org/api/modules.html#all-together
"""

from __future__ import annotations

import os
import re
from typing import List, Optional

from .context import ResolutionContext
from .errors import InvalidModuleSpecifier, ModuleNotFound
from .evaluator import EsmMatch, package_exports_resolve, package_imports_resolve
from .manifest import MANIFEST_NAME
from .node_builtins import is_builtin
from .options import REQUIRE_CONDITIONS
from .package_name import parse_package_name
from .source_redirect import redirect_to_source
from .urls import (
    file_url_to_path,
    path_dirname,
    path_join,
    path_resolve,
    path_to_file_url,
    url_scheme,
)

# "./", "../", ".", "..", "/" or a drive letter
_RELATIVE_REQUEST_RE = re.compile(r"^(\.\.?(/|$)|/|[a-z]:[\\/])", re.IGNORECASE)

# Requests that may only load as a directory
_DIRECTORY_REQUEST_RE = re.compile(r"(^\.\.?|/)$")

_JS_EXTENSION_RE = re.compile(r"^\.[mc]?jsx?$")
_TS_EXTENSION_RE = re.compile(r"^\.[mc]?tsx?$")


def resolve_require(request: str, referrer: str, ctx: ResolutionContext) -> str:
    """Resolve ``require(request)`` from the module at ``referrer``.

    Args:
        request: The required module
        referrer: Path of the requiring module
        ctx: Resolution context

    Returns:
        Canonical path of the module, or the request itself for builtins

    Raises:
        ModuleNotFound: If nothing resolves
        ResolutionError: Other subclasses for invalid packages or requests
    """
    ctx.trace("COMMONJS_RESOLVE", request, referrer)
    options = ctx.options

    if not request:
        raise InvalidModuleSpecifier(request, "must be a non-empty string", options.filename or referrer)

    if is_builtin(request):
        return request

    if request.startswith("/"):
        referrer = "/"

    if options.basedir:
        referrer = path_resolve(options.basedir, referrer)
    else:
        referrer = path_resolve(referrer)
    directory = path_dirname(ctx.cache.canonicalize(referrer))
    error_referrer = options.filename or referrer

    if _RELATIVE_REQUEST_RE.match(request):
        target = path_join(directory, request)
        if _DIRECTORY_REQUEST_RE.search(request) and not target.endswith("/"):
            target += "/"
        path = load_as_file(target, ctx) or load_as_directory(target, referrer, ctx)
        if path is None:
            raise ModuleNotFound(request, error_referrer, kind="module")
        return ctx.cache.canonicalize(path)

    if request.startswith("#"):
        path = load_package_imports(request, directory, referrer, ctx)
    else:
        path = load_package_self(request, directory, referrer, ctx)
        if path is None:
            path = load_node_modules(request, directory, referrer, ctx)

    if path is None:
        raise ModuleNotFound(request, error_referrer, kind="module")
    if url_scheme(path) == "node":
        return path
    return ctx.cache.canonicalize(path)


# =============================================================================
# Files and directories
# =============================================================================


def load_as_file(x: str, ctx: ResolutionContext) -> Optional[str]:
    """Load ``x`` as a file: exactly, then with each configured extension.

    A ".js" (or ".jsx", ".mjs", ".cjs") request also matches the TypeScript
    file next to it when TypeScript extensions are configured. With source
    preference active, a miss is retried through source redirection.
    """
    ctx.trace("LOAD_AS_FILE", x)
    cache = ctx.cache
    extensions = ctx.options.extensions

    if cache.is_file(x):
        return x
    for ext in extensions:
        if cache.is_file(x + ext):
            return x + ext

    for ext in extensions:
        if _JS_EXTENSION_RE.match(ext) and x.endswith(ext):
            stem = x[: -len(ext)]
            for ts_ext in extensions:
                if _TS_EXTENSION_RE.match(ts_ext) and cache.is_file(stem + ts_ext):
                    return stem + ts_ext

    if ctx.prefer_source:
        return redirect_to_source(x, ctx)
    return None


def load_index(x: str, ctx: ResolutionContext) -> Optional[str]:
    ctx.trace("LOAD_INDEX", x)
    for ext in ctx.options.extensions:
        path = path_join(x, "index" + ext)
        if ctx.cache.is_file(path):
            return path
    return None


def load_as_directory(x: str, referrer: str, ctx: ResolutionContext) -> Optional[str]:
    """Load ``x`` as a package directory.

    With a ``main`` field, tries main as a file, main as a directory, then
    ``x/index``; failing all three raises rather than returning None.

    Raises:
        ModuleNotFound: If ``main`` is declared but nothing it names exists
        InvalidPackageConfig: If x/package.json is malformed
    """
    ctx.trace("LOAD_AS_DIRECTORY", x, referrer)
    options = ctx.options

    package_config = ctx.cache.read_package_config(path_join(x, MANIFEST_NAME), options.package_filter)
    if package_config.exists and package_config.manifest.main:
        main = path_join(x, package_config.manifest.main)
        path = load_as_file(main, ctx) or load_index(main, ctx) or load_index(x, ctx)
        if path is None:
            raise ModuleNotFound(x, options.filename or referrer, kind="module")
        return path

    return load_index(x, ctx)


# =============================================================================
# Packages
# =============================================================================


def node_modules_paths(start: str, ctx: ResolutionContext) -> List[str]:
    """Module directories to search from ``start``, nearest first.

    Ancestors that are themselves module directories are skipped. The
    configured global ``paths`` come last.

    Example:
        >>> node_modules_paths("/a/node_modules/b", ctx)
        ['/a/node_modules/b/node_modules', '/a/node_modules', '/node_modules']
    """
    module_directories = ctx.options.module_directories
    dirs: List[str] = []

    directory = path_join(start)
    while True:
        if os.path.basename(directory) not in module_directories:
            dirs.extend(path_join(directory, name) for name in module_directories)
        parent = path_dirname(directory)
        if parent == directory:
            break
        directory = parent

    dirs.extend(path_resolve(extra) for extra in ctx.options.paths)
    return dirs


def load_node_modules(x: str, start: str, referrer: str, ctx: ResolutionContext) -> Optional[str]:
    ctx.trace("LOAD_NODE_MODULES", x, start)
    for directory in node_modules_paths(start, ctx):
        candidate = path_join(directory, x)
        path = (
            load_package_exports(x, directory, referrer, ctx)
            or load_as_file(candidate, ctx)
            or load_as_directory(candidate, referrer, ctx)
        )
        if path is not None:
            return path
    return None


def load_package_imports(x: str, directory: str, referrer: str, ctx: ResolutionContext) -> Optional[str]:
    """Resolve a "#" request through the enclosing package's imports."""
    ctx.trace("LOAD_PACKAGE_IMPORTS", x, directory)
    options = ctx.options

    package_config = ctx.cache.find_package_config(directory, options.package_filter, options.module_directories)
    if not package_config.exists or package_config.manifest.imports is None:
        return None

    match = package_imports_resolve(
        x, path_to_file_url(package_config.package_path + "/"), REQUIRE_CONDITIONS, ctx
    )
    return resolve_esm_match(match, referrer, ctx)


def load_package_exports(x: str, directory: str, referrer: str, ctx: ResolutionContext) -> Optional[str]:
    """Resolve ``x`` through the exports of ``directory/<name>``, if it has any."""
    ctx.trace("LOAD_PACKAGE_EXPORTS", x, directory)

    try:
        package_name = parse_package_name(x, directory)
    except InvalidModuleSpecifier:
        return None

    package_config = ctx.cache.read_package_config(
        path_join(directory, package_name.name, MANIFEST_NAME), ctx.options.package_filter
    )
    if not package_config.exists or package_config.manifest.exports is None:
        return None

    match = package_exports_resolve(
        package_config, package_name.subpath, path_to_file_url(referrer), REQUIRE_CONDITIONS, ctx
    )
    return resolve_esm_match(match, referrer, ctx)


def load_package_self(x: str, directory: str, referrer: str, ctx: ResolutionContext) -> Optional[str]:
    """Resolve a package requiring itself by its declared name."""
    ctx.trace("LOAD_PACKAGE_SELF", x, directory)
    options = ctx.options

    package_config = ctx.cache.find_package_config(directory, options.package_filter, options.module_directories)
    if not package_config.exists:
        return None

    manifest = package_config.manifest
    if manifest.exports is None or manifest.name is None:
        return None
    if not (x == manifest.name or x.startswith(manifest.name + "/")):
        return None

    match = package_exports_resolve(
        package_config, "." + x[len(manifest.name):], path_to_file_url(referrer), REQUIRE_CONDITIONS, ctx
    )
    return resolve_esm_match(match, referrer, ctx)


def resolve_esm_match(match: EsmMatch, referrer: str, ctx: ResolutionContext) -> str:
    """Turn an exports/imports match into an existing file path.

    Exact matches must name an existing file; "/"-key matches are probed as
    a file and then as a directory.

    Raises:
        ModuleNotFound: If the matched location does not exist
    """
    ctx.trace("RESOLVE_ESM_MATCH", match.resolved, match.exact)
    options = ctx.options

    if url_scheme(match.resolved) == "node":
        return match.resolved
    try:
        path = file_url_to_path(match.resolved)
    except ValueError as e:
        raise InvalidModuleSpecifier(match.resolved, "must not include encoded '/' or '\\' characters", referrer) from e

    if match.exact:
        if ctx.cache.is_file(path):
            return path
        if ctx.prefer_source:
            redirected = redirect_to_source(path, ctx)
            if redirected is not None:
                return redirected
    else:
        resolved = load_as_file(path, ctx) or load_as_directory(path, referrer, ctx)
        if resolved is not None:
            return resolved

    raise ModuleNotFound(path, options.filename or referrer, kind="module")
