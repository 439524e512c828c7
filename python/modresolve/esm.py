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
"""Import-style (ES module) resolution.

Results are file URL strings, or ``node:`` URLs for builtins. Unlike
require-style resolution there are no extension probes and no implicit
directory index, except that a ``.js`` URL whose file is missing may resolve
to the ``.ts``/``.tsx`` file next to it.

References:
    - Resolver algorithm: https://nodejs.org/api/esm.html#resolver-algorithm-specification
"""

from __future__ import annotations

import re
from typing import AbstractSet, Optional

from .context import ResolutionContext
from .errors import InvalidModuleSpecifier, ModuleNotFound, UnsupportedDirImport
from .evaluator import package_exports_resolve, package_imports_resolve, scope_directory
from .manifest import MANIFEST_NAME
from .node_builtins import is_builtin
from .package_name import parse_package_name
from .source_redirect import redirect_to_source
from .urls import (
    file_url_to_path,
    is_url,
    path_dirname,
    path_join,
    path_to_file_url,
    url_pathname,
    url_resolve,
    url_scheme,
)

_RELATIVE_SPECIFIER_RE = re.compile(r"^(/|\.\.?/)")
_ENCODED_SEPARATOR_RE = re.compile(r"%2f|%5c", re.IGNORECASE)
_JS_EXTENSION_RE = re.compile(r"\.([cm]?)js(x?)$")

SUPPORTED_SCHEMES = ("file", "node")


def resolve_import(
    specifier: str,
    parent_url: str,
    conditions: AbstractSet[str],
    ctx: ResolutionContext,
) -> str:
    """Resolve an import specifier.

    Args:
        specifier: The import request
        parent_url: File URL of the importing module
        conditions: Active export conditions
        ctx: Resolution context

    Returns:
        Canonical file URL of an existing file, or a ``node:`` URL

    Raises:
        ResolutionError: Any subclass, when resolution fails
    """
    ctx.trace("ESM_RESOLVE", specifier, parent_url, conditions)

    if is_url(specifier):
        if url_scheme(specifier) not in SUPPORTED_SCHEMES:
            raise InvalidModuleSpecifier(specifier, "uses an unsupported URL scheme", parent_url)
        resolved = specifier
    elif _RELATIVE_SPECIFIER_RE.match(specifier):
        resolved = url_resolve(specifier, parent_url)
    elif specifier.startswith("#"):
        resolved = package_imports_resolve(specifier, parent_url, conditions, ctx).resolved
    else:
        resolved = package_resolve(specifier, parent_url, conditions, ctx)

    if _ENCODED_SEPARATOR_RE.search(url_pathname(resolved)):
        raise InvalidModuleSpecifier(specifier, "must not include encoded '/' or '\\' characters", parent_url)

    if url_scheme(resolved) == "node":
        return resolved

    path = file_url_to_path(resolved)
    if ctx.cache.is_directory(path):
        raise UnsupportedDirImport(path, parent_url)

    if ctx.prefer_source:
        path = redirect_to_source(path, ctx) or path

    if not ctx.cache.is_file(path):
        path = _typescript_sibling(path, ctx) or path
    if not ctx.cache.is_file(path):
        raise ModuleNotFound(path, parent_url, kind="module")

    return path_to_file_url(ctx.cache.canonicalize(path))


def _typescript_sibling(path: str, ctx: ResolutionContext) -> Optional[str]:
    """Map foo.js to foo.ts or foo.tsx (and the .mjs/.cjs flavors)."""
    match = _JS_EXTENSION_RE.search(path)
    if match is None:
        return None
    stem = path[: match.start()]
    for ext in (f".{match.group(1)}ts{match.group(2)}", f".{match.group(1)}tsx"):
        if ctx.cache.is_file(stem + ext):
            return stem + ext
    return None


def package_resolve(
    specifier: str,
    parent_url: str,
    conditions: AbstractSet[str],
    ctx: ResolutionContext,
) -> str:
    """Resolve a bare specifier to a URL.

    Self-reference is tried first, then builtins, then the nearest package
    directory under a module directory of an ancestor. A package with an
    exports map resolves only through it; otherwise "." loads as a directory
    and any other subpath maps directly into the package.

    Raises:
        InvalidModuleSpecifier: If the specifier is not a valid package name
        ModuleNotFound: If no package directory exists
        ResolutionCycle: If resolution re-enters itself
    """
    ctx.trace("PACKAGE_RESOLVE", specifier, parent_url, conditions)

    with ctx.guard(specifier, parent_url, conditions):
        package_name = parse_package_name(specifier, parent_url)

        self_url = package_self_resolve(package_name.name, package_name.subpath, parent_url, conditions, ctx)
        if self_url is not None:
            return self_url

        if is_builtin(specifier):
            return "node:" + specifier

        options = ctx.options
        directory = scope_directory(parent_url)
        while True:
            for module_directory in options.module_directories:
                package_dir = path_join(directory, module_directory, package_name.name)
                if ctx.cache.is_directory(package_dir):
                    return _resolve_in_package(package_dir, package_name.name, package_name.subpath, parent_url,
                                               conditions, ctx)
            parent = path_dirname(directory)
            if parent == directory:
                break
            directory = parent

        raise ModuleNotFound(package_name.name, parent_url, kind="module")


def _resolve_in_package(
    package_dir: str,
    name: str,
    subpath: str,
    parent_url: str,
    conditions: AbstractSet[str],
    ctx: ResolutionContext,
) -> str:
    package_config = ctx.cache.read_package_config(
        path_join(package_dir, MANIFEST_NAME), ctx.options.package_filter
    )
    if package_config.manifest.exports is not None:
        return package_exports_resolve(package_config, subpath, parent_url, conditions, ctx).resolved

    if subpath == ".":
        from .cjs import load_as_directory

        try:
            path = load_as_directory(package_dir, file_url_to_path(parent_url), ctx)
        except ModuleNotFound:
            path = None
        if path is None:
            raise ModuleNotFound(name, parent_url, kind="module")
        return path_to_file_url(path)

    return url_resolve(subpath, path_to_file_url(package_dir + "/"))


def package_self_resolve(
    name: str,
    subpath: str,
    parent_url: str,
    conditions: AbstractSet[str],
    ctx: ResolutionContext,
) -> Optional[str]:
    """Resolve a package importing itself by name.

    Returns:
        Resolved URL, or None if the enclosing package is not ``name`` or
        declares no exports
    """
    ctx.trace("PACKAGE_SELF_RESOLVE", name, subpath, parent_url, conditions)

    options = ctx.options
    package_config = ctx.cache.find_package_config(
        scope_directory(parent_url), options.package_filter, options.module_directories
    )
    if not package_config.exists:
        return None

    manifest = package_config.manifest
    if manifest.exports is None or manifest.name != name:
        return None

    return package_exports_resolve(package_config, subpath, parent_url, conditions, ctx).resolved
