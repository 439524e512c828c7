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
"""Node.js module resolution for build and test tooling.

This package provides:
- resolve: require/import resolver hook with host fallback
- resolve_source_preferred: the same, redirecting build output to sources
- ResolverCache: memoized filesystem access, one per session
- rewrite_subpath_import: turn "#" imports into relative specifiers
- module_format: module/commonjs/json detection
"""

from __future__ import annotations

from .cache import PathKind, ResolverCache, clear_default_cache, default_cache
from .cjs import resolve_require
from .context import MAX_RESOLUTION_DEPTH, ResolutionContext
from .errors import (
    InvalidModuleSpecifier,
    InvalidPackageConfig,
    InvalidPackageTarget,
    ModuleNotFound,
    PackageImportNotDefined,
    PackagePathNotExported,
    ResolutionCycle,
    ResolutionError,
    UnsupportedDirImport,
)
from .esm import package_resolve, resolve_import
from .evaluator import EsmMatch
from .format import ModuleFormat, module_format
from .options import (
    IMPORT_CONDITION,
    REQUIRE_CONDITIONS,
    SOURCE_PREFERRED_CONDITION,
    ResolverOptions,
)
from .package_name import PackageName, parse_package_name
from .resolver import (
    clear_default_resolver_cache,
    resolve,
    resolve_source_preferred,
    resolve_with_options,
)
from .rewrite import rewrite_subpath_import
from .source_redirect import redirect_to_source

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "resolve",
    "resolve_source_preferred",
    "resolve_with_options",
    "clear_default_resolver_cache",
    # Algorithms
    "resolve_require",
    "resolve_import",
    "package_resolve",
    "redirect_to_source",
    "rewrite_subpath_import",
    "module_format",
    "parse_package_name",
    # Configuration and state
    "ResolverOptions",
    "ResolverCache",
    "ResolutionContext",
    "PathKind",
    "default_cache",
    "clear_default_cache",
    "IMPORT_CONDITION",
    "REQUIRE_CONDITIONS",
    "SOURCE_PREFERRED_CONDITION",
    "MAX_RESOLUTION_DEPTH",
    # Types
    "EsmMatch",
    "ModuleFormat",
    "PackageName",
    # Errors
    "ResolutionError",
    "ModuleNotFound",
    "InvalidModuleSpecifier",
    "PackagePathNotExported",
    "PackageImportNotDefined",
    "InvalidPackageTarget",
    "InvalidPackageConfig",
    "UnsupportedDirImport",
    "ResolutionCycle",
]
