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
"""Conditional exports/imports map evaluation.

Both resolvers evaluate package.json ``exports`` and ``imports`` through
this module; only the active condition set differs (``{"node", "require"}``
for require-style lookups, the caller's conditions for import-style ones).

All locations are file URL strings. Targets are evaluated against the URL of
the package.json that declares them.

References:
    - Resolver algorithm: https://nodejs.org/api/esm.html#resolver-algorithm-specification
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import AbstractSet, Optional

from .context import ResolutionContext
from .errors import (
    InvalidModuleSpecifier,
    InvalidPackageConfig,
    InvalidPackageTarget,
    PackageImportNotDefined,
    PackagePathNotExported,
)
from .manifest import PackageConfig
from .targets import SubpathMap, Target, TargetKind
from .urls import (
    file_url_to_path,
    is_url,
    is_within,
    path_join,
    path_to_file_url,
    url_directory,
    url_resolve,
)

# ".", ".." or "node_modules" as a whole path segment
_INVALID_SEGMENT_RE = re.compile(r"(^|[\\/])(\.\.?|node_modules)($|[\\/])")

DEFAULT_CONDITION = "default"


@dataclass(frozen=True)
class EsmMatch:
    """Result of matching a subpath against an exports/imports map.

    Attributes:
        resolved: Resolved URL, or None when nothing matched
        exact: False when the match came from a "/" key and the caller must
            still probe the filesystem for the actual file
    """

    resolved: Optional[str]
    exact: bool


def scope_directory(parent_url: str) -> str:
    """Directory path containing ``parent_url`` (itself, for directory URLs)."""
    return path_join(file_url_to_path(url_directory(parent_url)))


# =============================================================================
# Exports / imports entry points
# =============================================================================


def package_exports_resolve(
    package_config: PackageConfig,
    subpath: str,
    parent_url: str,
    conditions: AbstractSet[str],
    ctx: ResolutionContext,
) -> EsmMatch:
    """Resolve ``subpath`` ("." or "./...") through a package's exports.

    Raises:
        InvalidPackageConfig: If the exports map mixes subpath and condition keys
        PackagePathNotExported: If no exports entry matches
    """
    ctx.trace("PACKAGE_EXPORTS_RESOLVE", package_config.manifest_path, subpath, parent_url, conditions)

    exports = package_config.manifest.exports
    if exports is not None:
        if exports.mixed:
            raise InvalidPackageConfig(
                package_config.manifest_path,
                parent_url,
                "\"exports\" cannot contain both keys starting with '.' and keys not starting with '.'",
            )
        match = resolve_map(subpath, exports, package_config, parent_url, False, conditions, ctx)
        if match.resolved is not None:
            return match

    raise PackagePathNotExported(package_config.package_path, subpath, parent_url)


def package_imports_resolve(
    specifier: str,
    parent_url: str,
    conditions: AbstractSet[str],
    ctx: ResolutionContext,
) -> EsmMatch:
    """Resolve a "#" specifier through the imports of the enclosing package.

    Raises:
        InvalidModuleSpecifier: If the specifier is "#" or starts with "#/"
        PackageImportNotDefined: If no imports entry matches
    """
    ctx.trace("PACKAGE_IMPORTS_RESOLVE", specifier, parent_url, conditions)

    if not specifier.startswith("#"):
        raise InvalidModuleSpecifier(specifier, "is not a package import", parent_url)
    if specifier == "#" or specifier.startswith("#/"):
        raise InvalidModuleSpecifier(specifier, "cannot be '#' or start with '#/'", parent_url)

    options = ctx.options
    package_config = ctx.cache.find_package_config(
        scope_directory(parent_url), options.package_filter, options.module_directories
    )
    if package_config.exists and package_config.manifest.imports is not None:
        match = resolve_map(
            specifier, package_config.manifest.imports, package_config, parent_url, True, conditions, ctx
        )
        if match.resolved is not None:
            return match

    package_path = package_config.package_path if package_config.exists else None
    raise PackageImportNotDefined(specifier, package_path, parent_url)


# =============================================================================
# Map and target evaluation
# =============================================================================


def resolve_map(
    match_key: str,
    subpath_map: SubpathMap,
    package_config: PackageConfig,
    parent_url: str,
    is_imports: bool,
    conditions: AbstractSet[str],
    ctx: ResolutionContext,
) -> EsmMatch:
    """Match ``match_key`` against the keys of an exports/imports map.

    An exact key wins. Otherwise pattern keys ending in "*" or "/" are tried
    longest first; "*" keys need a non-empty remainder and yield exact
    matches, "/" keys append the remainder and yield inexact ones.
    """
    ctx.trace("PACKAGE_IMPORTS_EXPORTS_RESOLVE", match_key, package_config.manifest_path, is_imports, conditions)

    target = subpath_map.get(match_key)
    if target is not None and not match_key.endswith("*"):
        resolved = resolve_target(
            package_config, target, "", match_key, parent_url, False, is_imports, conditions, ctx
        )
        return EsmMatch(resolved, exact=True)

    expansion_keys = sorted(
        (key for key in subpath_map.keys() if key.endswith("*") or key.endswith("/")),
        key=len,
        reverse=True,
    )
    for key in expansion_keys:
        if key.endswith("*"):
            prefix = key[:-1]
            if match_key.startswith(prefix) and len(match_key) > len(prefix):
                resolved = resolve_target(
                    package_config,
                    subpath_map.get(key),
                    match_key[len(prefix):],
                    key,
                    parent_url,
                    True,
                    is_imports,
                    conditions,
                    ctx,
                )
                return EsmMatch(resolved, exact=True)
        elif match_key.startswith(key):
            resolved = resolve_target(
                package_config,
                subpath_map.get(key),
                match_key[len(key):],
                key,
                parent_url,
                False,
                is_imports,
                conditions,
                ctx,
            )
            return EsmMatch(resolved, exact=False)

    return EsmMatch(None, exact=True)


def resolve_target(
    package_config: PackageConfig,
    target: Target,
    subpath: str,
    match_key: str,
    parent_url: str,
    pattern: bool,
    internal: bool,
    conditions: AbstractSet[str],
    ctx: ResolutionContext,
) -> Optional[str]:
    """Evaluate one exports/imports target.

    Args:
        package_config: Package declaring the target
        target: The target to evaluate
        subpath: Remainder matched by a pattern or "/" key ("" for exact keys)
        match_key: Map key the target belongs to (for error messages)
        parent_url: URL of the importing module
        pattern: Whether ``subpath`` replaces "*" in the target
        internal: Whether the target comes from an imports map
        conditions: Active conditions; "default" always matches
        ctx: Resolution context

    Returns:
        Resolved URL, or None when the target is absent for these conditions

    Raises:
        InvalidPackageTarget: If a target escapes its package or has an invalid shape
        InvalidPackageConfig: If a condition object has array-index keys
        InvalidModuleSpecifier: If the matched subpath contains ".", ".." or
            "node_modules" segments
        ResolutionCycle: If conditions and arrays nest deeper than
            MAX_RESOLUTION_DEPTH
    """
    ctx.trace("PACKAGE_TARGET_RESOLVE", package_config.manifest_path, subpath, match_key, pattern, internal, conditions)
    kind = target.kind

    if kind is TargetKind.STRING:
        return _resolve_string_target(
            package_config, target.value, subpath, match_key, parent_url, pattern, internal, conditions, ctx
        )

    if kind is TargetKind.CONDITIONAL:
        if target.has_index_keys:
            raise InvalidPackageConfig(
                package_config.manifest_path, parent_url, '"exports" cannot contain numeric property keys'
            )
        for condition, value in target.branches:
            if condition != DEFAULT_CONDITION and condition not in conditions:
                continue
            with ctx.descend(match_key, parent_url):
                resolved = resolve_target(
                    package_config, value, subpath, match_key, parent_url, pattern, internal, conditions, ctx
                )
            if resolved is not None:
                return resolved
        return None

    if kind is TargetKind.ARRAY:
        last_error: Optional[InvalidPackageTarget] = None
        for item in target.items:
            try:
                with ctx.descend(match_key, parent_url):
                    resolved = resolve_target(
                        package_config, item, subpath, match_key, parent_url, pattern, internal, conditions, ctx
                    )
            except InvalidPackageTarget as e:
                last_error = e
                continue
            if resolved is not None:
                return resolved
        if last_error is not None:
            raise last_error
        return None

    if kind is TargetKind.NULL:
        return None

    raise InvalidPackageTarget(package_config.package_path, match_key, target.value, internal, parent_url)


def _resolve_string_target(
    package_config: PackageConfig,
    target: str,
    subpath: str,
    match_key: str,
    parent_url: str,
    pattern: bool,
    internal: bool,
    conditions: AbstractSet[str],
    ctx: ResolutionContext,
) -> str:
    package_path = package_config.package_path

    def invalid() -> InvalidPackageTarget:
        return InvalidPackageTarget(package_path, match_key, target, internal, parent_url)

    if not pattern and subpath and not target.endswith("/"):
        raise invalid()

    manifest_url = path_to_file_url(package_config.manifest_path)

    if not target.startswith("./"):
        if internal and not target.startswith("../") and not target.startswith("/") and not is_url(target):
            # Imports may map onto another package
            from .esm import package_resolve

            specifier = target.replace("*", subpath) if pattern else target + subpath
            return package_resolve(specifier, manifest_url, conditions, ctx)
        raise invalid()

    if _INVALID_SEGMENT_RE.search(target[2:]):
        raise invalid()

    resolved = url_resolve(target, manifest_url)
    try:
        resolved_path = file_url_to_path(resolved)
    except ValueError:
        raise invalid() from None
    if not is_within(resolved_path, package_path):
        raise invalid()

    if not subpath:
        return resolved

    if _INVALID_SEGMENT_RE.search(subpath):
        field_name = "imports" if internal else "exports"
        raise InvalidModuleSpecifier(
            match_key + subpath,
            f"request is not a valid subpath for the \"{field_name}\" resolution of '{package_config.manifest_path}'",
            parent_url,
        )

    if pattern:
        return resolved.replace("*", subpath)
    return url_resolve(subpath, resolved)
